"""
External sort-merge join.
Single responsibility: join two sources without materializing either one.

Each source is staged in batches into an on-disk DuckDB database inside a
private temporary directory, sorted by anchor key into a Parquet run, and
read back in batches for a two-cursor merge. The temporary directory is
removed whatever way the join ends.
"""

import tempfile
from dataclasses import dataclass
from pathlib import Path
from typing import Iterator, List, Optional

import duckdb
import pandas as pd
import pyarrow as pa
import pyarrow.parquet as pq

from ..utils.logger import get_logger
from .comparator import ChangeRecord
from .errors import DuplicateAnchorError, TemporaryStorageError
from .keyed import KeyedRow, KeyedSource
from .strategies import JoinStrategy


logger = get_logger()


def qident(name: str) -> str:
    """Quote a SQL identifier for DuckDB."""
    return '"' + name.replace('"', '""') + '"'


def qpath(path) -> str:
    """
    Quote a file path for DuckDB statements.

    Separators are normalized to forward slashes so Windows paths survive.
    """
    path_str = str(path).replace("\\", "/").replace("'", "''")
    return f"'{path_str}'"


@dataclass
class SortedRun:
    """A source sorted by anchor key into a Parquet file."""

    side: str
    path: Path
    headers: List[str]
    anchor_header: str
    rows: int


class SortMergeJoin(JoinStrategy):
    """
    Sort both sources to temporary storage and merge them.

    Anchors must be unique within each source; a duplicate is fatal
    because the merge cursors assume one row per key.
    """

    name = "sort-merge"

    STAGING_VIEW = "staged_batch"

    def __init__(self, comparator, batch_size: int = 10_000,
                 temp_dir: Optional[Path] = None,
                 memory_limit: Optional[str] = None):
        """
        Initialize sort-merge join.

        Args:
            comparator: Record comparator
            batch_size: Rows per staging insert and per read-back batch
            temp_dir: Parent directory for the sort workspace
            memory_limit: DuckDB memory limit for the sort (e.g. "512MB")
        """
        super().__init__(comparator, batch_size)
        self.temp_dir = Path(temp_dir) if temp_dir else None
        self.memory_limit = memory_limit
        self.workspace: Optional[Path] = None

    def join(self, previous: KeyedSource,
             current: KeyedSource) -> Iterator[ChangeRecord]:
        parent = self.temp_dir or Path(tempfile.gettempdir())
        try:
            workspace = tempfile.TemporaryDirectory(prefix="recdiff_sort_", dir=parent)
        except OSError as e:
            raise TemporaryStorageError(parent, e) from e

        self.workspace = Path(workspace.name)
        con = None

        try:
            try:
                con = duckdb.connect(str(self.workspace / "sort.duckdb"))
                con.execute(f"SET temp_directory = {qpath(self.workspace / 'spill')}")
                if self.memory_limit:
                    limit = self.memory_limit.replace("'", "''")
                    con.execute(f"SET memory_limit = '{limit}'")

                previous_run = self._sort_source(con, previous)
                current_run = self._sort_source(con, current)
            except duckdb.Error as e:
                raise TemporaryStorageError(self.workspace, e) from e
            finally:
                if con is not None:
                    con.close()

            try:
                yield from self._merge(previous_run, current_run)
            except (pa.ArrowException, OSError) as e:
                raise TemporaryStorageError(self.workspace, e) from e
        finally:
            workspace.cleanup()
            logger.debug("join.sort_merge.workspace_removed",
                         workspace=str(self.workspace))

    def _sort_source(self, con: duckdb.DuckDBPyConnection,
                     source: KeyedSource) -> SortedRun:
        """
        Stage one source in batches and write it sorted by key.

        Returns:
            SortedRun describing the Parquet file
        """
        headers = list(source.reader.headers)
        table = f"{source.side}_rows"
        value_columns = [f"c{i}" for i in range(len(headers))]
        columns = ["row_number", "sort_key"] + value_columns

        column_defs = ", ".join(
            ["row_number BIGINT", "sort_key VARCHAR"]
            + [f"{qident(c)} VARCHAR" for c in value_columns]
        )
        con.execute(f"CREATE TABLE {qident(table)} ({column_defs})")

        logger.info("join.sort_merge.staging", side=source.side)

        batch = []
        staged = 0
        for row in source.rows():
            batch.append([row.row_number, row.key] + [row.record[h] for h in headers])
            if len(batch) >= self.batch_size:
                self._insert_batch(con, table, columns, batch)
                staged += len(batch)
                batch = []

        if batch:
            self._insert_batch(con, table, columns, batch)
            staged += len(batch)

        run_path = self.workspace / f"{source.side}_sorted.parquet"
        con.execute(f"""
            COPY (
                SELECT * FROM {qident(table)}
                ORDER BY sort_key, row_number
            ) TO {qpath(run_path)} (FORMAT PARQUET)
        """)
        con.execute(f"DROP TABLE {qident(table)}")

        logger.info("join.sort_merge.sorted",
                    side=source.side,
                    rows=staged,
                    run=str(run_path))

        return SortedRun(source.side, run_path, headers, source.anchor_header, staged)

    def _insert_batch(self, con: duckdb.DuckDBPyConnection, table: str,
                      columns: List[str], batch: list):
        frame = pd.DataFrame(batch, columns=columns)
        con.register(self.STAGING_VIEW, frame)
        try:
            con.execute(
                f"INSERT INTO {qident(table)} SELECT * FROM {self.STAGING_VIEW}"
            )
        finally:
            con.unregister(self.STAGING_VIEW)

    def _read_run(self, run: SortedRun) -> Iterator[KeyedRow]:
        """
        Stream a sorted run back in batches.

        Raises:
            DuplicateAnchorError: When two consecutive rows share a key
        """
        last: Optional[KeyedRow] = None

        with open(run.path, "rb") as handle:
            parquet_file = pq.ParquetFile(handle)
            for batch in parquet_file.iter_batches(batch_size=self.batch_size):
                for item in batch.to_pylist():
                    record = {
                        header: item[f"c{i}"]
                        for i, header in enumerate(run.headers)
                    }
                    row = KeyedRow(item["sort_key"], item["row_number"], record)

                    if last is not None and last.key == row.key:
                        raise DuplicateAnchorError(
                            run.side,
                            last.record[run.anchor_header],
                            [last.row_number, row.row_number],
                        )
                    last = row
                    yield row

    def _merge(self, previous_run: SortedRun,
               current_run: SortedRun) -> Iterator[ChangeRecord]:
        """Two-cursor merge of the sorted runs."""
        previous_rows = self._read_run(previous_run)
        current_rows = self._read_run(current_run)

        try:
            p = next(previous_rows, None)
            c = next(current_rows, None)

            while p is not None and c is not None:
                if p.key == c.key:
                    yield self.comparator.compare(p.record, c.record)
                    p = next(previous_rows, None)
                    c = next(current_rows, None)
                elif p.key < c.key:
                    yield self.comparator.deleted(p.record)
                    p = next(previous_rows, None)
                else:
                    yield self.comparator.added(c.record)
                    c = next(current_rows, None)

            while p is not None:
                yield self.comparator.deleted(p.record)
                p = next(previous_rows, None)

            while c is not None:
                yield self.comparator.added(c.record)
                c = next(current_rows, None)
        finally:
            # release the Parquet handles before the workspace is removed
            previous_rows.close()
            current_rows.close()

        logger.info("join.sort_merge.complete",
                    previous=previous_run.rows,
                    current=current_run.rows)
