"""
Renderers for diff results.
"""

import json
from typing import Any, Dict, List

from .csv_reader import Table
from .differ import DiffResult


def as_summary(result: DiffResult) -> str:
    """Return the three-line added/changed/removed row count summary."""
    return (
        f"{len(result.added_keys)} rows added.\n"
        f"{len(result.changed_fields)} rows changed.\n"
        f"{len(result.removed_keys)} rows removed.\n"
    )


def build_report(
    result: DiffResult,
    from_table: Table,
    to_table: Table,
) -> Dict[str, List[Dict[str, str]]]:
    """
    Build a JSON-friendly report of a diff, with field values.

    Args:
        result: Diff of the two tables
        from_table: Table the diff was computed from
        to_table: Table the diff was computed against

    Returns:
        Dictionary with three lists:
            - Added: full record of each added key, from the "to" table
            - Removed: full record of each removed key, from the "from" table
            - Changed: one {key, field, from, to} entry per changed field;
              a side where the field does not exist reports ""
    """
    report: Dict[str, List[Dict[str, Any]]] = {
        "Added": [to_table.record_map(key) for key in result.added_keys],
        "Removed": [from_table.record_map(key) for key in result.removed_keys],
        "Changed": [],
    }

    for key, fields in result.changed_fields.items():
        for column in fields:
            from_value = from_table.value(key, column)
            to_value = to_table.value(key, column)
            report["Changed"].append({
                "key": key,
                "field": column,
                "from": "" if from_value is None else from_value,
                "to": "" if to_value is None else to_value,
            })

    return report


def as_json(result: DiffResult, from_table: Table, to_table: Table) -> str:
    """Render the report built by build_report as indented JSON."""
    return json.dumps(build_report(result, from_table, to_table), indent=2)
