"""
Field equality predicates.

The predicate used during a diff is derived once from Options and passed
explicitly to the engine. A user-supplied comparator replaces the default
logic entirely.
"""

from typing import Optional

from .config import Comparator, Options


def parse_number(value: str) -> Optional[float]:
    """
    Parse a field as a floating-point number.

    Surrounding whitespace and digit-group underscores are not accepted, so
    " 1" and "1_000" stay strings.

    Returns:
        The parsed float, or None if the value is not a plain number
    """
    if not value or value != value.strip() or "_" in value:
        return None
    try:
        return float(value)
    except ValueError:
        return None


def numbers_equal(a: float, b: float, precision: int) -> bool:
    """Compare two numbers after formatting both to `precision` decimals."""
    return f"{a:.{precision}f}" == f"{b:.{precision}f}"


def build_comparator(options: Options) -> Comparator:
    """
    Build the field equality predicate for the given options.

    The default predicate tries, in order:
        1. Numeric tolerance: when both values parse as numbers and
           precision > 0, compare them rounded to `precision` decimals
        2. Case folding: when ignore_case is set, compare lower-cased values
        3. Exact string equality

    Args:
        options: Options to derive the predicate from

    Returns:
        Callable (a, b) -> bool, True when the values are considered equal
    """
    if options.comparator is not None:
        return options.comparator

    precision = options.precision
    ignore_case = options.ignore_case

    def default_comparator(a: str, b: str) -> bool:
        if precision > 0:
            a_num = parse_number(a)
            b_num = parse_number(b)
            if a_num is not None and b_num is not None:
                return numbers_equal(a_num, b_num, precision)

        if ignore_case:
            return a.lower() == b.lower()
        return a == b

    return default_comparator
