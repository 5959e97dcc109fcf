"""
Report assembly.
Single responsibility: shape change records into report rows and decide
when they are written.
"""

from typing import List, Optional

from ..adapters.report_writer import ReportWriter
from ..core.comparator import ChangeRecord
from ..core.comparer import Comparer
from ..core.tally import RunTally
from ..core.transforms import TransformEngine
from ..utils.logger import get_logger


logger = get_logger()

CHANGE_COLUMN = "Change"
SUMMARY_ANCHOR = "SUMMARY"
SUMMARY_TAG = "---"


def old_label(column: str) -> str:
    return f"old {column}"


def new_label(column: str) -> str:
    return f"new {column}"


def match_label(column: str) -> str:
    return f"match {column}"


def format_match(matched: Optional[bool]) -> str:
    if matched is None:
        return ""
    return "TRUE" if matched else "FALSE"


class ReportLayout:
    """
    Column layout of the report: anchor, change tag, then old/new (and
    match in detailed mode) for every compared column in sorted order.
    """

    def __init__(self, anchor_header: str, columns: List[str],
                 detailed: bool = False):
        self.anchor_header = anchor_header
        self.columns = list(columns)
        self.detailed = detailed

    @property
    def header(self) -> List[str]:
        names = [self.anchor_header, CHANGE_COLUMN]
        for column in self.columns:
            names.append(old_label(column))
            names.append(new_label(column))
            if self.detailed:
                names.append(match_label(column))
        return names

    def row(self, change: ChangeRecord) -> List[str]:
        values = [change.anchor_value, change.classification.value]
        for column in self.columns:
            values.append(change.old.get(column, ""))
            values.append(change.new.get(column, ""))
            if self.detailed:
                values.append(format_match(change.matches.get(column)))
        return values

    def summary_row(self, tally: RunTally,
                    transforms: Optional[TransformEngine] = None) -> List[str]:
        """
        Synthetic first row of a detailed report.

        ``match`` cells read "X of Y FALSE" (X mismatching out of Y matched
        pairs); ``old`` cells carry the transform digest of the column.
        """
        values = [SUMMARY_ANCHOR, SUMMARY_TAG]
        for column in self.columns:
            digest = ""
            if transforms is not None and transforms.has_rules(column):
                digest = transforms.digest(column, tally)
            values.append(digest)
            values.append("")
            if self.detailed:
                mismatches = tally.column_mismatches.get(column, 0)
                values.append(f"{mismatches} of {tally.matched_pairs} FALSE")
        return values


class ReportAssembler:
    """
    Collect change records and hand them to the writer.

    Detailed reports keep every record (unchanged ones included), sort by
    anchor and are written once behind a summary row. Other reports keep
    only Add/Update/Delete records and flush them every ``batch_size`` rows
    in the order the join produced them.
    """

    def __init__(self, writer: ReportWriter, layout: ReportLayout,
                 comparer: Comparer, tally: RunTally,
                 transforms: Optional[TransformEngine] = None,
                 batch_size: int = 10_000):
        """
        Initialize assembler.

        Args:
            writer: Destination for report rows
            layout: Report column layout
            comparer: Ordering used to sort detailed reports
            tally: Run accumulator for the summary row
            transforms: Transform engine for the summary digest
            batch_size: Rows per flush for non-detailed reports
        """
        self.writer = writer
        self.layout = layout
        self.comparer = comparer
        self.tally = tally
        self.transforms = transforms
        self.batch_size = batch_size
        self.detailed = layout.detailed
        self.changes = 0
        self._pending: List[ChangeRecord] = []

    def add(self, change: ChangeRecord):
        if change.is_change:
            self.changes += 1
        elif not self.detailed:
            return

        self._pending.append(change)

        if not self.detailed and len(self._pending) >= self.batch_size:
            self._flush()

    def finish(self) -> Optional[str]:
        """
        Write whatever is still pending.

        Returns:
            Report path, or None when there were no changes
        """
        if self.detailed:
            if self.changes:
                self._write_detailed()
            else:
                self._pending = []
        else:
            self._flush()

        if not self.writer.written:
            logger.info("assembler.no_changes",
                        stale_report_removed=self.writer.discard())
            return None

        logger.info("assembler.complete",
                    file=str(self.writer.path),
                    rows=self.writer.rows_written,
                    flushes=self.writer.flushes)
        return str(self.writer.path)

    def _flush(self):
        if not self._pending:
            return
        self.writer.append([self.layout.row(c) for c in self._pending])
        self._pending = []

    def _write_detailed(self):
        ordered = sorted(
            self._pending,
            key=lambda c: (self.comparer.key(c.anchor_value), c.anchor_value),
        )
        rows = [self.layout.summary_row(self.tally, self.transforms)]
        rows.extend(self.layout.row(c) for c in ordered)
        self._pending = []
        self.writer.append(rows)
