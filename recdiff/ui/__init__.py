"""Terminal output."""

from .console import ResultPrinter

__all__ = ["ResultPrinter"]
