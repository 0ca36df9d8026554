"""csvdiff - Keyed diff of two CSV snapshots."""

from .config import Options
from .csv_reader import Table, load
from .differ import DiffResult, compare, diff_record, diff_tables, load_pair
from .errors import ConfigError, CSVDiffError, InputError, ParseError
from .printer import as_json, as_summary, build_report

__all__ = [
    "Options",
    "Table",
    "load",
    "DiffResult",
    "compare",
    "diff_record",
    "diff_tables",
    "load_pair",
    "CSVDiffError",
    "ConfigError",
    "InputError",
    "ParseError",
    "as_json",
    "as_summary",
    "build_report",
]
