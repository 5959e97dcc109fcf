"""
Join strategies.
Single responsibility: pair up records of the previous and current sources
by anchor key and hand each key to the comparator exactly once.
"""

from abc import ABC, abstractmethod
from typing import Dict, Iterator, List, Tuple

from ..utils.logger import get_logger
from .comparator import ChangeRecord, RecordComparator
from .keyed import DuplicateAnchor, KeyedSource


logger = get_logger()


class JoinStrategy(ABC):
    """
    Base join strategy.

    ``join()`` yields one ChangeRecord for every anchor key present in
    either source. Duplicate anchors that were tolerated are available in
    ``duplicates`` once the iterator is exhausted.
    """

    name = ""

    def __init__(self, comparator: RecordComparator, batch_size: int = 10_000):
        self.comparator = comparator
        self.batch_size = batch_size
        self.duplicates: List[DuplicateAnchor] = []

    @abstractmethod
    def join(self, previous: KeyedSource,
             current: KeyedSource) -> Iterator[ChangeRecord]:
        """
        Join two keyed sources.

        Args:
            previous: Previous version of the dataset
            current: Current version of the dataset

        Yields:
            Change records in the strategy's traversal order
        """
        pass

    def _warn_duplicates(self):
        for duplicate in self.duplicates:
            logger.warning("join.duplicate_anchor",
                           strategy=self.name,
                           side=duplicate.side,
                           anchor=duplicate.anchor_value,
                           rows=duplicate.rows)


class InMemoryHashJoin(JoinStrategy):
    """
    Materialize both sources, then walk the previous keys followed by the
    keys only present in the current source.
    """

    name = "memory"

    def join(self, previous: KeyedSource,
             current: KeyedSource) -> Iterator[ChangeRecord]:
        previous_rows = previous.load()
        current_rows = current.load()
        self.duplicates = previous_rows.duplicates + current_rows.duplicates
        self._warn_duplicates()

        logger.info("join.memory.start",
                    previous=len(previous_rows),
                    current=len(current_rows))

        for key, row in previous_rows.rows.items():
            match = current_rows.rows.get(key)
            if match is None:
                yield self.comparator.deleted(row.record)
            else:
                yield self.comparator.compare(row.record, match.record)

        for key, row in current_rows.rows.items():
            if key not in previous_rows.rows:
                yield self.comparator.added(row.record)

        logger.info("join.memory.complete")


class StreamingHashJoin(JoinStrategy):
    """
    Materialize the previous source and stream the current source once.

    Matched keys are removed from the previous map as they are found, so
    whatever remains after the stream ends was deleted. Only the keys (with
    first row number and anchor text) of the current source are remembered,
    to skip later duplicate occurrences.
    """

    name = "streaming"

    def join(self, previous: KeyedSource,
             current: KeyedSource) -> Iterator[ChangeRecord]:
        previous_rows = previous.load()
        remaining = previous_rows.rows
        # key -> (first row number, first raw anchor value)
        seen: Dict[str, Tuple[int, str]] = {}
        conflicts: Dict[str, DuplicateAnchor] = {}

        logger.info("join.streaming.start", previous=len(remaining))

        streamed = 0
        for row in current.rows():
            first = seen.get(row.key)
            if first is not None:
                conflict = conflicts.get(row.key)
                if conflict is None:
                    first_row, first_anchor = first
                    conflict = DuplicateAnchor(current.side, first_anchor, [first_row])
                    conflicts[row.key] = conflict
                conflict.rows.append(row.row_number)
                continue

            seen[row.key] = (row.row_number, current.anchor_value(row))
            streamed += 1

            match = remaining.pop(row.key, None)
            if match is None:
                yield self.comparator.added(row.record)
            else:
                yield self.comparator.compare(match.record, row.record)

        self.duplicates = previous_rows.duplicates + list(conflicts.values())
        self._warn_duplicates()

        for row in remaining.values():
            yield self.comparator.deleted(row.record)

        logger.info("join.streaming.complete",
                    streamed=streamed,
                    deleted=len(remaining))
