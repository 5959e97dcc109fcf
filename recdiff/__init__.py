"""
Record Diff - keyed change reports for delimited datasets.
"""

__version__ = "1.0.0"

from .core.errors import RecDiffError
from .core.comparator import ChangeRecord, Classification, RecordComparator
from .config.manager import ConfigManager, RunConfig
from .pipeline.runner import ChangeReportPipeline, ComparisonResult, run_comparison
from .adapters.file_reader import TabularReader
from .utils.logger import get_logger

__all__ = [
    "RecDiffError",
    "ChangeRecord",
    "Classification",
    "RecordComparator",
    "ConfigManager",
    "RunConfig",
    "ChangeReportPipeline",
    "ComparisonResult",
    "run_comparison",
    "TabularReader",
    "get_logger",
]
