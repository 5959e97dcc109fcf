"""File adapters."""

from .file_reader import TabularReader, read_headers
from .report_writer import ReportWriter

__all__ = ["TabularReader", "read_headers", "ReportWriter"]
