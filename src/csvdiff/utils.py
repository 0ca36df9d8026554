"""
Utility functions for csvdiff.
"""

from typing import Iterable, List, Set


def ordered_set(*sequences: Iterable[str]) -> List[str]:
    """
    Union several sequences, keeping first-seen order and dropping repeats.

    Example:
        >>> ordered_set(["a", "b"], ["b", "c", "a"])
        ['a', 'b', 'c']
    """
    result: List[str] = []
    seen: Set[str] = set()
    for sequence in sequences:
        for item in sequence:
            if item not in seen:
                result.append(item)
                seen.add(item)
    return result
