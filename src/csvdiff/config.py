"""
Configuration and constants for csvdiff.

Holds the Options record that flows through loading and diffing, plus the
CLI defaults. Users can create a local config file (.csvdiff.json) to
override the CLI defaults.
"""

import json
import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Callable, Dict, Optional, Sequence, Tuple

from .errors import ConfigError


# ============================================================================
# DEFAULT VALUES
# ============================================================================

# Field delimiter
DEFAULT_SEPARATOR: str = ","

# Decimal digits used for numeric tolerance (0 disables it)
DEFAULT_PRECISION: int = 0

# First parsed row is the header
DEFAULT_HAS_HEADER: bool = True

# Joins the values of the key columns into one composite key
KEY_SEPARATOR: str = ","

# Characters that can never act as the field delimiter
INVALID_SEPARATORS: Tuple[str, ...] = ("\r", "\n", '"')

# Local config file name (should be gitignored)
LOCAL_CONFIG_FILENAME: str = ".csvdiff.json"


Comparator = Callable[[str, str], bool]


@dataclass(frozen=True)
class Options:
    """
    Immutable configuration for one compare invocation.

    Attributes:
        key_columns: Header names forming the composite record key, in order
        ignore_columns: Header names to exclude from change detection
            (stored only; the engine does not consult it)
        ignore_case: Compare fields case-insensitively and lower-case keys
        lazy_quotes: Relax quote parsing in the tokenizer
        has_header: Use the first parsed row as the header
        separator: Single field-delimiter character
        precision: Decimal digits to round numbers to before comparing;
            0 disables numeric tolerance
        comparator: Optional (a, b) -> bool replacing the default equality

    Raises:
        ConfigError: If the column lists, separator or precision are invalid
    """

    key_columns: Sequence[str] = ()
    ignore_columns: Sequence[str] = ()
    ignore_case: bool = False
    lazy_quotes: bool = False
    has_header: bool = DEFAULT_HAS_HEADER
    separator: str = DEFAULT_SEPARATOR
    precision: int = DEFAULT_PRECISION
    comparator: Optional[Comparator] = field(default=None, compare=False)

    def __post_init__(self):
        for name in ("key_columns", "ignore_columns"):
            value = getattr(self, name)
            if value is None or isinstance(value, str) or not hasattr(value, '__iter__'):
                raise ConfigError(f"{name} must be a sequence of column names, got {value!r}")
            # Freeze list arguments so the options can be shared safely
            object.__setattr__(self, name, tuple(value))

        if not isinstance(self.separator, str) or len(self.separator) != 1:
            raise ConfigError(
                f"separator must be a single character, got {self.separator!r}"
            )
        if self.separator in INVALID_SEPARATORS:
            raise ConfigError(f"separator cannot be {self.separator!r}")
        if (
            isinstance(self.precision, bool)
            or not isinstance(self.precision, int)
            or self.precision < 0
        ):
            raise ConfigError(
                f"precision must be a non-negative integer, got {self.precision!r}"
            )
        if self.comparator is not None and not callable(self.comparator):
            raise ConfigError("comparator must be callable")


def find_local_config(start: Optional[Path] = None) -> Optional[Path]:
    """
    Search for local config file in a directory and its parents.

    Args:
        start: Directory to start from (defaults to the working directory)

    Returns:
        Path to config file if found, None otherwise
    """
    current = start or Path.cwd()

    # Check current directory and parents up to home or root
    for directory in [current] + list(current.parents):
        config_path = directory / LOCAL_CONFIG_FILENAME
        if config_path.exists():
            return config_path
        # Stop at home directory
        if directory == Path.home():
            break

    return None


def load_local_config(start: Optional[Path] = None) -> Dict[str, Any]:
    """
    Load configuration from a local .csvdiff.json file.

    Returns:
        Dictionary of configuration values, empty dict if no config found
    """
    config_path = find_local_config(start)
    if config_path is None:
        return {}

    try:
        with open(config_path, 'r') as f:
            data = json.load(f)
    except (json.JSONDecodeError, OSError) as e:
        logging.warning(f"Error loading {config_path}: {e}")
        return {}

    if not isinstance(data, dict):
        logging.warning(f"Ignoring {config_path}: expected a JSON object")
        return {}

    logging.debug(f"Loaded local config from {config_path}")
    return data


def get_config_value(config: Dict[str, Any], key: str, default: Any = None) -> Any:
    """Get a config value, falling back to the default."""
    return config.get(key, default)
