"""
Keyed diff of two loaded tables.

This module compares a "from" table against a "to" table and reports:
- Keys present only in "to" (added rows)
- Keys present only in "from" (removed rows)
- For keys present in both, the header names whose values differ

Columns that exist on only one side are reported as changed fields of every
matched row, so schema changes surface as per-row field changes.
"""

import logging
from dataclasses import dataclass, field
from typing import Dict, List, Tuple

from .comparator import build_comparator
from .config import Comparator, Options
from .csv_reader import Table, load
from .errors import InputError
from .utils import ordered_set


@dataclass(frozen=True)
class DiffResult:
    """
    Keys of changed records between two tables.

    Attributes:
        added_keys: Keys present only in the "to" table, sorted
        removed_keys: Keys present only in the "from" table, sorted
        changed_fields: Key -> header names whose values differ, in
            first-seen header order; keys without changes are absent
    """

    added_keys: List[str] = field(default_factory=list)
    removed_keys: List[str] = field(default_factory=list)
    changed_fields: Dict[str, List[str]] = field(default_factory=dict)

    @property
    def has_changes(self) -> bool:
        """True if any row was added, removed or changed."""
        return bool(self.added_keys or self.removed_keys or self.changed_fields)


def diff_record(
    key: str,
    from_table: Table,
    to_table: Table,
    equal: Comparator,
) -> List[str]:
    """
    List the fields of one matched record that differ between two tables.

    Iterates the ordered union of both tables' headers. A header resolving
    in only one table is always a change; a header resolving in both is a
    change when `equal` rejects the two values.

    Args:
        key: Composite key present in both tables
        from_table: Baseline table
        to_table: Table to compare against
        equal: Field equality predicate

    Returns:
        Header names that differ, in first-seen order
    """
    from_record = from_table.records[key]
    to_record = to_table.records[key]

    changes: List[str] = []
    for header in ordered_set(from_table.headers, to_table.headers):
        from_index = from_table.header_index.get(header)
        to_index = to_table.header_index.get(header)
        if from_index is None and to_index is None:
            continue
        if (
            from_index is not None
            and to_index is not None
            and equal(from_record[from_index], to_record[to_index])
        ):
            continue
        changes.append(header)
    return changes


def diff_tables(from_table: Table, to_table: Table) -> DiffResult:
    """
    Compute the keyed diff between two loaded tables.

    The equality predicate is built once from the "from" table's options.

    Args:
        from_table: Baseline table
        to_table: Table to compare against

    Returns:
        DiffResult with added, removed and changed keys
    """
    equal = build_comparator(from_table.options)

    removed_keys: List[str] = []
    changed_fields: Dict[str, List[str]] = {}
    for key in from_table.records:
        if key not in to_table.records:
            removed_keys.append(key)
            continue
        changes = diff_record(key, from_table, to_table, equal)
        if changes:
            changed_fields[key] = changes

    added_keys = [key for key in to_table.records if key not in from_table.records]

    logging.debug(
        f"    Diff complete: +{len(added_keys)} added, -{len(removed_keys)} removed, "
        f"~{len(changed_fields)} changed"
    )

    return DiffResult(
        added_keys=sorted(added_keys),
        removed_keys=sorted(removed_keys),
        changed_fields=changed_fields,
    )


def load_pair(from_source, to_source, options: Options) -> Tuple[Table, Table]:
    """
    Load the "from" and "to" sources with shared options.

    Raises:
        InputError: If a source or the options are missing
        ParseError: If either source is malformed (names the source)
        ConfigError: If a key column is absent from either header
    """
    if options is None:
        raise InputError("options cannot be None")
    if from_source is None or to_source is None:
        raise InputError("from and to sources cannot be None")

    from_table = load(from_source, options, name="from")
    to_table = load(to_source, options, name="to")
    return from_table, to_table


def compare(from_source, to_source, options: Options) -> DiffResult:
    """
    Compare two delimited text sources.

    Example:
        >>> import io
        >>> result = compare(
        ...     io.StringIO("a,b\\n1,2"),
        ...     io.StringIO("a,b\\n1,3"),
        ...     Options(key_columns=["a"]),
        ... )
        >>> result.changed_fields
        {'1': ['b']}

    Args:
        from_source: Baseline stream
        to_source: Stream to compare against
        options: Options shared by both sources

    Returns:
        DiffResult for the two sources
    """
    from_table, to_table = load_pair(from_source, to_source, options)
    return diff_tables(from_table, to_table)
