"""
Error taxonomy for change report runs.
Single responsibility: name every way a run can abort.

Every error derives from RecDiffError so callers can stop a run with one
except clause; the subclasses carry enough context (side, row number,
path) to point the user at the offending input.
"""

from pathlib import Path
from typing import List, Optional, Sequence


class RecDiffError(Exception):
    """Base class for all change report errors."""
    pass


# Configuration errors: raised before any I/O

class ConfigurationError(RecDiffError):
    """Invalid run configuration (blank anchor, bad option values)."""
    pass


class InvalidTransformError(ConfigurationError):
    """A transform rule set is malformed or targets an unusable column."""
    pass


class InvalidIgnoreColumnError(ConfigurationError):
    """An ignored column is unknown, is the anchor, or leaves nothing to compare."""
    pass


# Structural errors: raised after header inspection

class StructuralError(RecDiffError):
    """Headers of a source (or the pair of sources) are unusable."""
    pass


class BlankHeaderError(StructuralError):
    """A header cell is empty or whitespace."""

    def __init__(self, side: str, position: int):
        self.side = side
        self.position = position
        super().__init__(
            f"{side} file has a blank header at column {position}"
        )


class DuplicateHeaderError(StructuralError):
    """Two headers of one source normalize to the same name."""

    def __init__(self, side: str, first: str, second: str):
        self.side = side
        self.first = first
        self.second = second
        super().__init__(
            f"{side} file has duplicate headers '{first}' and '{second}'"
        )


class ColumnMismatchError(StructuralError):
    """The two sources do not share the same set of columns."""

    def __init__(self, only_previous: Sequence[str], only_current: Sequence[str]):
        self.only_previous = sorted(only_previous)
        self.only_current = sorted(only_current)
        parts = []
        if self.only_previous:
            parts.append(f"only in previous: {', '.join(self.only_previous)}")
        if self.only_current:
            parts.append(f"only in current: {', '.join(self.only_current)}")
        super().__init__("Column sets differ (" + "; ".join(parts) + ")")


class AnchorNotFoundError(StructuralError):
    """The anchor column is missing from a source."""

    def __init__(self, side: str, anchor: str):
        self.side = side
        self.anchor = anchor
        super().__init__(f"Anchor column '{anchor}' not found in {side} file")


# Row-level errors: raised on the offending row

class RowError(RecDiffError):
    """A record of one source is invalid."""

    def __init__(self, side: str, row_number: int, message: str):
        self.side = side
        self.row_number = row_number
        super().__init__(f"{side} file, row {row_number}: {message}")


class BlankAnchorError(RowError):
    def __init__(self, side: str, row_number: int, anchor: str):
        super().__init__(side, row_number, f"anchor column '{anchor}' is blank")


class RowLengthError(RowError):
    def __init__(self, side: str, row_number: int, expected: int, actual: int):
        self.expected = expected
        self.actual = actual
        super().__init__(
            side, row_number, f"expected {expected} values, found {actual}"
        )


class BlankRowError(RowError):
    def __init__(self, side: str, row_number: int):
        super().__init__(side, row_number, "every value is blank")


class DuplicateAnchorError(RecDiffError):
    """An anchor value occurs more than once where uniqueness is required."""

    def __init__(self, side: str, anchor_value: str, rows: List[int]):
        self.side = side
        self.anchor_value = anchor_value
        self.rows = list(rows)
        rows_text = ", ".join(str(r) for r in self.rows)
        super().__init__(
            f"Duplicate anchor value '{anchor_value}' in {side} file (rows {rows_text})"
        )


# I/O errors: always wrap the original cause

class SourceIOError(RecDiffError):
    """Reading, writing or temporary storage failed for a path."""

    def __init__(self, path, cause: Optional[BaseException] = None,
                 action: str = "access"):
        self.path = Path(path) if path is not None else None
        self.cause = cause
        detail = f": {cause}" if cause else ""
        super().__init__(f"Failed to {action} '{self.path}'{detail}")


class SourceReadError(SourceIOError):
    def __init__(self, path, cause: Optional[BaseException] = None):
        super().__init__(path, cause, action="read")


class ReportWriteError(SourceIOError):
    def __init__(self, path, cause: Optional[BaseException] = None):
        super().__init__(path, cause, action="write")


class TemporaryStorageError(SourceIOError):
    def __init__(self, path, cause: Optional[BaseException] = None):
        super().__init__(path, cause, action="use temporary storage at")
