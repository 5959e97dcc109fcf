"""Shared fixtures: small delimited files written into tmp_path."""

import csv
import sys
from pathlib import Path

import pytest

# Add project root to path for imports
project_root = Path(__file__).resolve().parent.parent
sys.path.insert(0, str(project_root))


def write_rows(path: Path, rows, delimiter: str = ",", encoding: str = "utf-8") -> Path:
    with open(path, "w", newline="", encoding=encoding) as f:
        csv.writer(f, delimiter=delimiter, lineterminator="\n").writerows(rows)
    return path


def read_rows(path: Path, delimiter: str = ",", encoding: str = "utf-8"):
    with open(path, newline="", encoding=encoding) as f:
        return list(csv.reader(f, delimiter=delimiter))


@pytest.fixture
def write_csv(tmp_path):
    """Factory writing rows to ``tmp_path / name``."""
    def _write(name, rows, delimiter=",", encoding="utf-8"):
        return write_rows(tmp_path / name, rows, delimiter, encoding)
    return _write


@pytest.fixture
def read_csv():
    return read_rows
