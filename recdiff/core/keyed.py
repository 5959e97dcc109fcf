"""
Keyed record access.
Single responsibility: attach anchor keys to records and collapse duplicate
anchors with a first-occurrence-wins policy.
"""

from dataclasses import dataclass, field
from typing import Dict, Iterator, List

from ..adapters.file_reader import Record, TabularReader
from ..utils.logger import get_logger
from ..utils.normalizers import is_blank
from .comparer import Comparer
from .errors import BlankAnchorError


logger = get_logger()


@dataclass
class KeyedRow:
    key: str
    row_number: int
    record: Record


@dataclass
class DuplicateAnchor:
    """An anchor value that occurs on several rows of one source."""

    side: str
    anchor_value: str
    rows: List[int] = field(default_factory=list)

    def describe(self) -> str:
        rows = ", ".join(str(r) for r in self.rows)
        return f"{self.side}: '{self.anchor_value}' on rows {rows}"


@dataclass
class KeyedRecords:
    """Deduplicated key -> row map plus every conflict that was collapsed."""

    side: str
    rows: Dict[str, KeyedRow] = field(default_factory=dict)
    duplicates: List[DuplicateAnchor] = field(default_factory=list)

    def __len__(self) -> int:
        return len(self.rows)


class KeyedSource:
    """
    A tabular source read through its anchor column.
    """

    def __init__(self, reader: TabularReader, anchor_header: str,
                 comparer: Comparer):
        self.reader = reader
        self.anchor_header = anchor_header
        self.comparer = comparer

    @property
    def side(self) -> str:
        return self.reader.side

    def rows(self) -> Iterator[KeyedRow]:
        """
        Yield records with their comparer key.

        Raises:
            BlankAnchorError: On the first record with a blank anchor value
        """
        for row_number, record in self.reader.records():
            anchor_value = record[self.anchor_header]
            if is_blank(anchor_value):
                raise BlankAnchorError(self.side, row_number, self.anchor_header)
            yield KeyedRow(self.comparer.key(anchor_value), row_number, record)

    def anchor_value(self, row: KeyedRow) -> str:
        return row.record[self.anchor_header]

    def load(self) -> KeyedRecords:
        """
        Materialize the whole source into a key map.

        Later occurrences of an anchor are dropped and reported in
        ``duplicates`` with every row number they appeared on.
        """
        result = KeyedRecords(side=self.side)
        conflicts: Dict[str, DuplicateAnchor] = {}

        for row in self.rows():
            first = result.rows.get(row.key)
            if first is None:
                result.rows[row.key] = row
                continue

            conflict = conflicts.get(row.key)
            if conflict is None:
                conflict = DuplicateAnchor(
                    self.side, self.anchor_value(first), [first.row_number]
                )
                conflicts[row.key] = conflict
            conflict.rows.append(row.row_number)

        result.duplicates = list(conflicts.values())

        logger.info("keyed.loaded",
                    side=self.side,
                    keys=len(result.rows),
                    duplicates=len(result.duplicates))

        return result
