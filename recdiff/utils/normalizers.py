"""
Text normalization helpers.
Single responsibility: normalize header names and detect blank values.
"""

from typing import Iterable, Optional


def is_blank(val: Optional[str]) -> bool:
    """
    Check whether a value is missing, empty or whitespace only.

    Args:
        val: Input value

    Returns:
        True if the value carries no text
    """
    return val is None or not val.strip()


def all_blank(values: Iterable[Optional[str]]) -> bool:
    """True when every value in a row is blank (an empty row counts too)."""
    return all(is_blank(v) for v in values)


def normalize_header(name: str) -> str:
    """
    Normalize a header name for cross-file matching.

    Surrounding whitespace is trimmed and the name is case-folded, so
    ``" Salary "`` and ``"SALARY"`` name the same column.

    Args:
        name: Raw header as read from the source

    Returns:
        Normalized header name
    """
    return name.strip().casefold()
