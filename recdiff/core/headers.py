"""
Header reconciliation.
Single responsibility: validate both header rows and build the column
lookups every later stage uses.
"""

from dataclasses import dataclass, field
from typing import Dict, Iterable, List, Optional, Sequence

from ..utils.logger import get_logger
from ..utils.normalizers import is_blank, normalize_header
from .errors import (
    AnchorNotFoundError,
    BlankHeaderError,
    ColumnMismatchError,
    ConfigurationError,
    DuplicateHeaderError,
    InvalidIgnoreColumnError,
    InvalidTransformError,
    StructuralError,
)


logger = get_logger()


@dataclass
class ReconciledHeaders:
    """Column lookups shared by both sources."""

    anchor: str
    columns: List[str]
    previous_map: Dict[str, str]
    current_map: Dict[str, str]
    previous_anchor: str
    current_anchor: str
    ignored: List[str] = field(default_factory=list)


class HeaderReconciler:
    """
    Validate and normalize the header rows of the previous and current sources.
    """

    def reconcile(self, previous_headers: Sequence[str],
                  current_headers: Sequence[str],
                  anchor: str,
                  ignore_columns: Optional[Iterable[str]] = None,
                  transform_columns: Optional[Iterable[str]] = None) -> ReconciledHeaders:
        """
        Reconcile two header rows.

        Args:
            previous_headers: Raw headers of the previous source
            current_headers: Raw headers of the current source
            anchor: Anchor column name (any case/whitespace)
            ignore_columns: Column names excluded from comparison
            transform_columns: Normalized columns that carry transform rules

        Returns:
            ReconciledHeaders with the sorted retained columns and
            normalized -> raw maps for both sides

        Raises:
            BlankHeaderError, DuplicateHeaderError, AnchorNotFoundError,
            InvalidIgnoreColumnError, ColumnMismatchError, InvalidTransformError
        """
        if anchor is None or is_blank(anchor):
            raise ConfigurationError("Anchor column name is required")

        previous_map = self._normalize("previous", previous_headers)
        current_map = self._normalize("current", current_headers)

        anchor_norm = normalize_header(anchor)
        if anchor_norm not in previous_map:
            raise AnchorNotFoundError("previous", anchor)
        if anchor_norm not in current_map:
            raise AnchorNotFoundError("current", anchor)

        ignored = self._resolve_ignored(
            ignore_columns, anchor_norm, previous_map, current_map
        )

        previous_cols = set(previous_map) - ignored
        current_cols = set(current_map) - ignored
        if previous_cols != current_cols:
            raise ColumnMismatchError(
                previous_cols - current_cols,
                current_cols - previous_cols,
            )

        columns = sorted(previous_cols - {anchor_norm})
        if not columns:
            if ignored:
                raise InvalidIgnoreColumnError(
                    "Ignoring these columns leaves nothing to compare besides the anchor"
                )
            raise StructuralError("Files have no columns besides the anchor")

        for column in transform_columns or []:
            if column == anchor_norm or column in ignored or column not in previous_cols:
                raise InvalidTransformError(
                    f"Transform column '{column}' is not a compared column"
                )

        logger.debug("headers.reconciled",
                     anchor=anchor_norm,
                     columns=len(columns),
                     ignored=sorted(ignored))

        return ReconciledHeaders(
            anchor=anchor_norm,
            columns=columns,
            previous_map={c: previous_map[c] for c in columns},
            current_map={c: current_map[c] for c in columns},
            previous_anchor=previous_map[anchor_norm],
            current_anchor=current_map[anchor_norm],
            ignored=sorted(ignored),
        )

    def _normalize(self, side: str, headers: Sequence[str]) -> Dict[str, str]:
        """Map normalized header -> raw header, rejecting blanks and duplicates."""
        result: Dict[str, str] = {}
        for position, raw in enumerate(headers, start=1):
            if is_blank(raw):
                raise BlankHeaderError(side, position)
            normalized = normalize_header(raw)
            if normalized in result:
                raise DuplicateHeaderError(side, result[normalized], raw)
            result[normalized] = raw
        return result

    def _resolve_ignored(self, ignore_columns, anchor_norm: str,
                         previous_map: Dict[str, str],
                         current_map: Dict[str, str]) -> set:
        ignored = set()
        for name in ignore_columns or []:
            if name is None or is_blank(name):
                raise InvalidIgnoreColumnError("Ignored column name is blank")
            normalized = normalize_header(name)
            if normalized == anchor_norm:
                raise InvalidIgnoreColumnError(
                    f"Cannot ignore the anchor column '{name}'"
                )
            if normalized not in previous_map and normalized not in current_map:
                raise InvalidIgnoreColumnError(
                    f"Ignored column '{name}' does not exist in either file"
                )
            ignored.add(normalized)
        return ignored
