"""
Record comparison logic.
Single responsibility: classify one anchor key and capture its field values.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, Optional

from ..adapters.file_reader import Record
from ..utils.logger import get_logger
from .comparer import Comparer
from .headers import ReconciledHeaders
from .tally import RunTally
from .transforms import TransformEngine


logger = get_logger()


class Classification(str, Enum):
    ADD = "Add"
    UPDATE = "Update"
    DELETE = "Delete"
    NONE = "None"


@dataclass(frozen=True)
class ChangeRecord:
    """One row of the change report."""

    anchor_value: str
    classification: Classification
    old: Dict[str, str] = field(default_factory=dict)
    new: Dict[str, str] = field(default_factory=dict)
    matches: Dict[str, bool] = field(default_factory=dict)

    @property
    def is_change(self) -> bool:
        return self.classification is not Classification.NONE


class RecordComparator:
    """
    Compare matched record pairs and build Add/Delete records.

    Old values pass through the transform engine before comparison; the
    change record always keeps the raw old value.
    """

    def __init__(self, headers: ReconciledHeaders,
                 comparer: Comparer,
                 transforms: Optional[TransformEngine] = None,
                 tally: Optional[RunTally] = None,
                 detailed: bool = False):
        """
        Initialize comparator.

        Args:
            headers: Reconciled column lookups
            comparer: Equality used for field values
            transforms: Comparison value transforms for previous values
            tally: Run accumulator
            detailed: Record every column's values and match flag
        """
        self.headers = headers
        self.comparer = comparer
        self.transforms = transforms or TransformEngine()
        self.tally = tally if tally is not None else RunTally()
        self.detailed = detailed

    def compare(self, previous: Record, current: Record) -> ChangeRecord:
        """
        Classify a matched pair as Update or None.

        Args:
            previous: Record from the previous source
            current: Record from the current source

        Returns:
            ChangeRecord for the pair
        """
        old: Dict[str, str] = {}
        new: Dict[str, str] = {}
        matches: Dict[str, bool] = {}
        mismatched = []

        for column in self.headers.columns:
            old_value = previous[self.headers.previous_map[column]]
            new_value = current[self.headers.current_map[column]]
            comparison_value = self.transforms.apply(column, old_value, self.tally)
            matched = self.comparer.equals(comparison_value, new_value)

            if not matched:
                mismatched.append(column)
            if self.detailed or not matched:
                old[column] = old_value
                new[column] = new_value
            if self.detailed:
                matches[column] = matched

        self.tally.record_pair(mismatched)
        classification = Classification.UPDATE if mismatched else Classification.NONE

        return self._record(
            current[self.headers.current_anchor], classification, old, new, matches
        )

    def added(self, current: Record) -> ChangeRecord:
        new = {c: current[self.headers.current_map[c]] for c in self.headers.columns}
        return self._record(
            current[self.headers.current_anchor], Classification.ADD, {}, new, {}
        )

    def deleted(self, previous: Record) -> ChangeRecord:
        old = {c: previous[self.headers.previous_map[c]] for c in self.headers.columns}
        return self._record(
            previous[self.headers.previous_anchor], Classification.DELETE, old, {}, {}
        )

    def _record(self, anchor_value, classification, old, new, matches) -> ChangeRecord:
        self.tally.record_classification(classification.value)
        return ChangeRecord(anchor_value, classification, old, new, matches)
