"""
Per-run accumulator.
Single responsibility: count what happened during one comparison run.
"""

from collections import Counter
from dataclasses import dataclass, field
from typing import Dict, Tuple


@dataclass
class RunTally:
    """Counters threaded through the transform engine, comparator and assembler."""

    matched_pairs: int = 0
    column_mismatches: Counter = field(default_factory=Counter)
    classifications: Counter = field(default_factory=Counter)
    # (column, trigger) -> times the rule changed a comparison value
    transform_hits: Counter = field(default_factory=Counter)

    def record_transform(self, column: str, trigger: str):
        self.transform_hits[(column, trigger)] += 1

    def record_pair(self, mismatched_columns):
        self.matched_pairs += 1
        for column in mismatched_columns:
            self.column_mismatches[column] += 1

    def record_classification(self, classification: str):
        self.classifications[classification] += 1

    @property
    def change_count(self) -> int:
        """Number of Add, Update and Delete outcomes."""
        return sum(
            count for tag, count in self.classifications.items()
            if tag != "None"
        )

    def transform_hits_for(self, column: str) -> Dict[str, int]:
        return {
            trigger: count
            for (col, trigger), count in self.transform_hits.items()
            if col == column
        }

    def as_dict(self) -> Dict[str, object]:
        return {
            "matched_pairs": self.matched_pairs,
            "classifications": dict(self.classifications),
            "column_mismatches": dict(self.column_mismatches),
        }
