"""
Command-line interface for csvdiff.

Provides argument parsing and CLI entry point.
"""

import argparse
import logging
import sys
from typing import Any, Dict, List, Optional

from .config import (
    DEFAULT_HAS_HEADER,
    DEFAULT_PRECISION,
    DEFAULT_SEPARATOR,
    Options,
    get_config_value,
    load_local_config,
)
from .differ import diff_tables, load_pair
from .errors import CSVDiffError
from .printer import as_json, as_summary


class CustomHelpFormatter(argparse.RawDescriptionHelpFormatter):
    """Custom formatter for prettier help output."""

    def __init__(self, prog, indent_increment=2, max_help_position=40, width=100):
        super().__init__(prog, indent_increment, max_help_position, width)

    def _format_action_invocation(self, action):
        if not action.option_strings:
            return super()._format_action_invocation(action)
        return ', '.join(action.option_strings)


def _config_int(config: Dict[str, Any], key: str, default: int) -> int:
    """Read an integer config value, falling back to the default if invalid."""
    value = get_config_value(config, key, default)
    try:
        return int(value)
    except (TypeError, ValueError):
        logging.warning(
            f"Ignoring config value {key}={value!r}: expected an integer, "
            f"using {default}"
        )
        return default


def create_parser(config: Optional[Dict[str, Any]] = None) -> argparse.ArgumentParser:
    """
    Create and configure the argument parser.

    Args:
        config: Local config values used as flag defaults

    Returns:
        Configured ArgumentParser instance
    """
    config = config or {}

    description = """
  Compare two CSV snapshots of the same dataset, keyed by one or more
  columns, and report added, removed and changed rows.
"""

    epilog = """
  Compare two exports keyed by id:
    %(prog)s --from-csv old.csv --to-csv new.csv --key id

  Composite key, ignoring float noise beyond 2 decimals:
    %(prog)s --from-csv old.csv --to-csv new.csv -k sku -k locale --precision 2

  Only print row counts:
    %(prog)s --from-csv old.csv --to-csv new.csv -k id --summary

  Flag defaults can be set in a .csvdiff.json file in the working
  directory or any parent, e.g. {"key": ["id"], "precision": 2}.
"""

    parser = argparse.ArgumentParser(
        prog='csvdiff',
        description=description,
        epilog=epilog,
        formatter_class=CustomHelpFormatter,
    )

    # Input sources
    input_group = parser.add_argument_group(
        'Input Sources',
        'The two CSV files to compare'
    )
    input_group.add_argument(
        '--from-csv', '--from_csv',
        dest='from_csv',
        required=True,
        metavar='FILE',
        help='The base CSV file.'
    )
    input_group.add_argument(
        '--to-csv', '--to_csv',
        dest='to_csv',
        required=True,
        metavar='FILE',
        help='CSV to compare to.'
    )

    # Core options
    core_group = parser.add_argument_group(
        'Core Options',
        'How rows are matched and fields compared'
    )
    default_key = get_config_value(config, 'key', [])
    if isinstance(default_key, str):
        default_key = [default_key]
    default_key = list(default_key)
    core_group.add_argument(
        '--key', '-k',
        action='append',
        dest='key',
        metavar='COLUMN',
        help='Column name to use as key. Repeat for composite keys.'
             + (f'\n(from config: {default_key})' if default_key else '')
    )
    core_group.add_argument(
        '--ignore-case', '--ignore_case',
        dest='ignore_case',
        action='store_true',
        default=bool(get_config_value(config, 'ignore_case', False)),
        help='Ignore case when comparing cell values.\n'
             'This also applies to key columns.'
    )
    core_group.add_argument(
        '--precision',
        type=int,
        default=_config_int(config, 'precision', DEFAULT_PRECISION),
        metavar='DIGITS',
        help='Number of decimal digits to approximate floating point\n'
             'values before comparison.\n'
             f'(default: {DEFAULT_PRECISION}, no tolerance)'
    )

    # Parsing options
    parse_group = parser.add_argument_group(
        'Parsing Options',
        'How the CSV text is tokenized'
    )
    parse_group.add_argument(
        '--lazy-quotes', '--lazy_quotes',
        dest='lazy_quotes',
        action='store_true',
        default=bool(get_config_value(config, 'lazy_quotes', False)),
        help='Tolerate malformed quoting instead of failing.'
    )
    parse_group.add_argument(
        '--has-header', '--has_header',
        dest='has_header',
        action=argparse.BooleanOptionalAction,
        default=bool(get_config_value(config, 'has_header', DEFAULT_HAS_HEADER)),
        help='Use the first record as the CSV header.'
    )
    parse_group.add_argument(
        '--separator',
        default=get_config_value(config, 'separator', DEFAULT_SEPARATOR),
        metavar='CHAR',
        help=f'Field delimiter character.\n(default: {DEFAULT_SEPARATOR!r})'
    )

    # Output configuration
    output_group = parser.add_argument_group(
        'Output',
        'Control what is printed'
    )
    output_group.add_argument(
        '--summary',
        action='store_true',
        help='Print added/changed/removed row counts instead of JSON.'
    )
    output_group.add_argument(
        '--verbose', '-v',
        action='store_true',
        help='Enable verbose/debug output.'
    )

    parser.set_defaults(config_key=default_key)
    return parser


def options_from_args(args: argparse.Namespace) -> Options:
    """Build Options from parsed arguments."""
    return Options(
        key_columns=args.key if args.key else args.config_key,
        ignore_case=args.ignore_case,
        lazy_quotes=args.lazy_quotes,
        has_header=args.has_header,
        separator=args.separator,
        precision=args.precision,
    )


def run(args: argparse.Namespace) -> int:
    """
    Compare the two files named in `args` and print the result.

    Returns:
        Process exit status
    """
    try:
        options = options_from_args(args)
    except CSVDiffError as e:
        logging.error(f"Invalid options: {e}")
        return 1

    logging.info(f"Comparing files:\n  From: {args.from_csv}\n  To: {args.to_csv}")
    logging.debug(f"Using key column(s): {list(options.key_columns)}")

    try:
        with open(args.from_csv, 'r', encoding='utf-8-sig', newline='') as from_file, \
                open(args.to_csv, 'r', encoding='utf-8-sig', newline='') as to_file:
            from_table, to_table = load_pair(from_file, to_file, options)
    except OSError as e:
        logging.error(f"Error opening file: {e}")
        return 1
    except CSVDiffError as e:
        logging.error(f"Error generating diff: {e}")
        return 1

    result = diff_tables(from_table, to_table)

    if args.summary:
        sys.stdout.write(as_summary(result))
    else:
        print(as_json(result, from_table, to_table))
    return 0


def main(argv: Optional[List[str]] = None) -> int:
    """Main entry point for the CLI."""
    config = load_local_config()
    parser = create_parser(config)
    args = parser.parse_args(argv)

    log_level = logging.DEBUG if args.verbose else logging.INFO
    logging.basicConfig(
        level=log_level,
        format='%(asctime)s %(levelname)s: %(message)s'
    )

    return run(args)


if __name__ == "__main__":
    sys.exit(main())
