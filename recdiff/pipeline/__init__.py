"""Report assembly and run orchestration."""

from .assembler import ReportAssembler, ReportLayout
from .runner import (
    ChangeReportPipeline,
    ComparisonResult,
    STRATEGIES,
    create_strategy,
    run_comparison,
)

__all__ = [
    "ReportAssembler",
    "ReportLayout",
    "ChangeReportPipeline",
    "ComparisonResult",
    "STRATEGIES",
    "create_strategy",
    "run_comparison",
]
