"""
Text comparer shared by every comparison in a run.
Single responsibility: one definition of equality and ordering for anchors,
field values and transform triggers.
"""

from typing import Optional


class Comparer:
    """
    Ordinal text comparer.

    Case-sensitive mode compares code points as-is. Case-insensitive mode
    compares ``str.casefold()`` forms. ``key()`` returns the form used for
    dictionary keys and sorting, so equality and ordering always agree.
    """

    def __init__(self, case_sensitive: bool = True):
        self.case_sensitive = case_sensitive

    def key(self, value: Optional[str]) -> str:
        if value is None:
            return ""
        return value if self.case_sensitive else value.casefold()

    def equals(self, left: Optional[str], right: Optional[str]) -> bool:
        return self.key(left) == self.key(right)

    def __repr__(self) -> str:
        mode = "sensitive" if self.case_sensitive else "insensitive"
        return f"Comparer(case_{mode})"
