"""
Keyed CSV loader.

This module turns a delimited text stream into an in-memory table that:
- Uses the first parsed row as the header (when configured)
- Indexes header names to column positions (last occurrence wins)
- Keys every record by a composite of the configured key columns
- Keeps only the last record for a repeated key
- Parses the whole source eagerly before building any record
"""

import csv
import io
import logging
import sys
from dataclasses import dataclass, field
from typing import Dict, List, Optional, Sequence

from .config import KEY_SEPARATOR, Options
from .errors import ConfigError, InputError, ParseError


# Safely set CSV field size limit to handle large fields (e.g., HTML content)
_max_int = sys.maxsize
while True:
    try:
        csv.field_size_limit(_max_int)
        break
    except OverflowError:
        _max_int //= 10


@dataclass
class Table:
    """
    A loaded dataset, keyed by composite key.

    Attributes:
        headers: Column names in file order (empty when there is no header)
        header_index: Column name -> position; a repeated name maps to its
            last position
        records: Composite key -> field values of the last row with that key
        options: Options the table was loaded with
    """

    headers: List[str] = field(default_factory=list)
    header_index: Dict[str, int] = field(default_factory=dict)
    records: Dict[str, List[str]] = field(default_factory=dict)
    options: Options = field(default_factory=Options)

    def value(self, key: str, column: str) -> Optional[str]:
        """Return the field `column` of record `key`, or None if unresolvable."""
        index = self.header_index.get(column)
        record = self.records.get(key)
        if index is None or record is None:
            return None
        return record[index]

    def record_map(self, key: str) -> Dict[str, str]:
        """Return the record for `key` as a header -> value mapping."""
        record = self.records[key]
        return {column: record[i] for column, i in self.header_index.items()}

    def __len__(self) -> int:
        return len(self.records)


def _check_source(source, name: str) -> None:
    """Reject sources csv.reader cannot consume."""
    if source is None:
        raise InputError(f"{name} source cannot be None")
    if isinstance(source, (str, bytes)):
        raise InputError(
            f"{name} source must be a stream or iterable of lines, "
            f"not {type(source).__name__}"
        )
    if not hasattr(source, '__iter__'):
        raise InputError(f"{name} source is not readable: {source!r}")


def read_rows(source, options: Options, name: str = "input") -> List[List[str]]:
    """
    Tokenize an entire source into rows of fields.

    Blank lines are skipped. Every row must have as many fields as the first
    row.

    Args:
        source: Text stream, binary stream, or iterable of lines
        options: Supplies the separator and quote leniency
        name: Source name used in error messages

    Returns:
        List of rows, each a list of field strings

    Raises:
        InputError: If the source is missing or not a stream
        ParseError: If the text is malformed
    """
    _check_source(source, name)
    wrapper = None
    stream = source
    if isinstance(source, (io.RawIOBase, io.BufferedIOBase)):
        # Binary stream: decode with BOM handling, caller keeps ownership
        wrapper = io.TextIOWrapper(source, encoding='utf-8-sig', newline='')
        stream = wrapper

    reader = csv.reader(
        stream,
        delimiter=options.separator,
        strict=not options.lazy_quotes,
    )

    rows: List[List[str]] = []
    expected_fields: Optional[int] = None
    try:
        for row in reader:
            if not row:
                continue
            if expected_fields is None:
                expected_fields = len(row)
            elif len(row) != expected_fields:
                raise ParseError(
                    f"wrong number of fields: expected {expected_fields}, "
                    f"got {len(row)}",
                    source=name,
                    line=reader.line_num,
                )
            rows.append(row)
    except csv.Error as e:
        raise ParseError(str(e), source=name, line=reader.line_num) from e
    except UnicodeDecodeError as e:
        raise ParseError(f"invalid UTF-8 text: {e}", source=name) from e
    finally:
        if wrapper is not None:
            wrapper.detach()

    return rows


def _resolve_key_columns(
    key_columns: Sequence[str],
    headers: List[str],
    header_index: Dict[str, int],
) -> List[int]:
    """Map key column names to positions, failing on the first unknown name."""
    positions = []
    for column in key_columns:
        if column not in header_index:
            raise ConfigError(
                f"Invalid column header: {column}. Available headers: {headers}"
            )
        positions.append(header_index[column])
    return positions


def make_key(record: Sequence[str], positions: Sequence[int], ignore_case: bool = False) -> str:
    """
    Build the composite key of a record.

    Values are joined with a comma and not escaped, so key values that
    contain a comma can collide.
    """
    key = KEY_SEPARATOR.join(record[i] for i in positions)
    if ignore_case:
        key = key.lower()
    return key


def load(source, options: Options, name: str = "input") -> Table:
    """
    Load a delimited text source into a keyed Table.

    Args:
        source: Text stream, binary stream, or iterable of lines
        options: Loading and comparison options, bound to the result
        name: Source name used in error messages (e.g. "from" or "to")

    Returns:
        Table with headers, header index and keyed records

    Raises:
        InputError: If the source or options are missing
        ParseError: If the tokenizer rejects the text
        ConfigError: If a key column is absent from the header, or there
            are rows but no header to resolve key columns against
    """
    if options is None:
        raise InputError("options cannot be None")

    rows = read_rows(source, options, name)

    headers: List[str] = []
    header_index: Dict[str, int] = {}
    if options.has_header and rows:
        headers = rows[0]
        for i, column in enumerate(headers):
            if column in header_index:
                logging.warning(
                    f"Duplicate header {column!r} in {name} source; "
                    f"using the last occurrence (column {i})"
                )
            header_index[column] = i
        rows = rows[1:]

    if headers or rows:
        positions = _resolve_key_columns(options.key_columns, headers, header_index)
    else:
        # Empty source: no records to key
        positions = []
    if not positions and rows:
        logging.warning(
            f"No key columns configured for {name} source; "
            f"all rows collapse onto one record"
        )

    logging.debug(f"    {name} headers: {headers}")
    logging.debug(f"    Key column(s): {list(options.key_columns)}")

    records: Dict[str, List[str]] = {}
    duplicates = 0
    for row in rows:
        key = make_key(row, positions, options.ignore_case)
        # Last occurrence wins for duplicates
        if key in records:
            duplicates += 1
        records[key] = row

    if duplicates:
        logging.warning(
            f"{duplicates} duplicate key(s) in {name} source; "
            f"the last row for each key was kept"
        )

    logging.debug(f"    Loaded {len(records)} records from {name} source")

    return Table(
        headers=headers,
        header_index=header_index,
        records=records,
        options=options,
    )
