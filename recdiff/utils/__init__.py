"""Utility functions and helpers."""

from .logger import get_logger, StructuredLogger
from .normalizers import is_blank, all_blank, normalize_header

__all__ = [
    "get_logger",
    "StructuredLogger",
    "is_blank",
    "all_blank",
    "normalize_header",
]
