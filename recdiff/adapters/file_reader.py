"""
Delimited text reader.
Single responsibility: turn a delimited file into headers plus a lazy
stream of validated records.
"""

import codecs
import csv
from pathlib import Path
from typing import Dict, Iterator, List, Optional, Tuple

from ..core.errors import (
    BlankHeaderError,
    BlankRowError,
    RowLengthError,
    SourceReadError,
)
from ..utils.logger import get_logger
from ..utils.normalizers import all_blank


logger = get_logger()

Record = Dict[str, str]

SUPPORTED_DELIMITERS = {
    ",": "comma",
    "\t": "tab",
    ";": "semicolon",
    "|": "pipe",
}


def reading_encoding(encoding: str) -> str:
    """UTF-8 sources are read with BOM stripping."""
    if codecs.lookup(encoding).name == "utf-8":
        return "utf-8-sig"
    return encoding


class TabularReader:
    """
    Read one delimited source.

    Use as a context manager; ``headers`` is available once entered and
    ``records()`` yields ``(row_number, record)`` pairs where the header is
    row 1. Rows with the wrong number of values or with only blank values
    abort the read.
    """

    def __init__(self, path: Path, side: str,
                 delimiter: str = ",",
                 encoding: str = "utf-8"):
        """
        Initialize reader.

        Args:
            path: Source file
            side: "previous" or "current", used in error messages
            delimiter: Single-character field delimiter
            encoding: Text encoding of the file
        """
        if delimiter not in SUPPORTED_DELIMITERS:
            raise ValueError(f"Unsupported delimiter: {delimiter!r}")
        self.path = Path(path)
        self.side = side
        self.delimiter = delimiter
        self.encoding = encoding
        self.headers: List[str] = []
        self.rows_read = 0
        self._handle = None
        self._reader = None

    def __enter__(self) -> "TabularReader":
        self.open()
        return self

    def __exit__(self, exc_type, exc, tb):
        self.close()
        return False

    def open(self):
        logger.debug("file_reader.opening",
                     side=self.side,
                     file=str(self.path),
                     delimiter=SUPPORTED_DELIMITERS[self.delimiter],
                     encoding=self.encoding)
        try:
            self._handle = open(self.path, "r", newline="",
                                encoding=reading_encoding(self.encoding))
            self._reader = csv.reader(self._handle, delimiter=self.delimiter)
            first = next(self._reader, None)
        except (OSError, UnicodeDecodeError, csv.Error) as e:
            self.close()
            raise SourceReadError(self.path, e) from e

        if not first:
            self.close()
            raise BlankHeaderError(self.side, 1)

        self.headers = list(first)
        logger.debug("file_reader.headers",
                     side=self.side,
                     columns=len(self.headers))

    def close(self):
        if self._handle is not None:
            self._handle.close()
        self._handle = None
        self._reader = None

    def records(self) -> Iterator[Tuple[int, Record]]:
        """
        Yield validated records.

        Yields:
            (row_number, record) with record mapping raw header -> value

        Raises:
            BlankRowError, RowLengthError, SourceReadError
        """
        if self._reader is None:
            raise RuntimeError("Reader is not open")

        width = len(self.headers)
        row_number = 1

        while True:
            try:
                values = next(self._reader)
            except StopIteration:
                break
            except (OSError, UnicodeDecodeError, csv.Error) as e:
                raise SourceReadError(self.path, e) from e

            row_number += 1
            if all_blank(values):
                raise BlankRowError(self.side, row_number)
            if len(values) != width:
                raise RowLengthError(self.side, row_number, width, len(values))

            self.rows_read += 1
            yield row_number, dict(zip(self.headers, values))

        logger.debug("file_reader.complete",
                     side=self.side,
                     rows=self.rows_read)


def read_headers(path: Path, delimiter: str = ",",
                 encoding: str = "utf-8", side: str = "source") -> List[str]:
    """Read only the header row of a file."""
    with TabularReader(path, side, delimiter, encoding) as reader:
        return list(reader.headers)
