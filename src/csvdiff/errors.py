"""
Exception types raised by csvdiff.

All errors derive from CSVDiffError so library callers can catch a single
type. Nothing is retried internally: the first error aborts the call.
"""

from typing import Optional


class CSVDiffError(Exception):
    """Base class for all csvdiff errors."""


class InputError(CSVDiffError, ValueError):
    """A source stream or the options are missing or unusable."""


class ConfigError(CSVDiffError, ValueError):
    """Invalid options, or a key column absent from the resolved header."""


class ParseError(CSVDiffError):
    """
    The tokenizer rejected the delimited text.

    Args:
        message: Description of the parse failure
        source: Name of the offending source (e.g. "from" or "to")
        line: Line number where parsing failed, if known
    """

    def __init__(
        self,
        message: str,
        source: Optional[str] = None,
        line: Optional[int] = None,
    ):
        self.message = message
        self.source = source
        self.line = line
        super().__init__(str(self))

    def __str__(self) -> str:
        location = f" (line {self.line})" if self.line else ""
        if self.source:
            return f"error parsing {self.source} csv{location}: {self.message}"
        return f"{self.message}{location}"
