"""
Delimited report writer.
Single responsibility: persist report rows in batches.
"""

from pathlib import Path
from typing import List, Sequence

import pandas as pd

from ..core.errors import ReportWriteError
from ..utils.logger import get_logger


logger = get_logger()


class ReportWriter:
    """
    Write report rows to a delimited file.

    The file is created on the first ``append()`` (header included) and
    appended to afterwards, so a run that never appends leaves no file.
    """

    def __init__(self, path: Path, columns: Sequence[str],
                 delimiter: str = ",", encoding: str = "utf-8"):
        """
        Initialize writer.

        Args:
            path: Output file
            columns: Report header
            delimiter: Field delimiter
            encoding: Output text encoding
        """
        self.path = Path(path)
        self.columns = list(columns)
        self.delimiter = delimiter
        self.encoding = encoding
        self.written = False
        self.rows_written = 0
        self.flushes = 0

    def append(self, rows: List[List[str]]):
        """
        Write a batch of rows.

        Raises:
            ReportWriteError: If the file cannot be created or written
        """
        if not rows:
            return

        frame = pd.DataFrame(rows, columns=self.columns)

        try:
            if not self.written:
                self.path.parent.mkdir(parents=True, exist_ok=True)
            frame.to_csv(
                self.path,
                sep=self.delimiter,
                encoding=self.encoding,
                index=False,
                header=not self.written,
                mode="a" if self.written else "w",
                lineterminator="\n",
            )
        except (OSError, UnicodeEncodeError) as e:
            raise ReportWriteError(self.path, e) from e

        self.written = True
        self.rows_written += len(rows)
        self.flushes += 1

        logger.debug("report_writer.flushed",
                     file=str(self.path),
                     rows=len(rows),
                     total=self.rows_written)

    def discard(self) -> bool:
        """
        Remove a report left at ``path`` by an earlier run.

        Only valid before anything was written by this writer.

        Returns:
            True if a file was removed

        Raises:
            ReportWriteError: If the old file cannot be removed
        """
        if self.written or not self.path.is_file():
            return False
        try:
            self.path.unlink()
        except OSError as e:
            raise ReportWriteError(self.path, e) from e

        logger.info("report_writer.stale_removed", file=str(self.path))
        return True
