"""
Change report pipeline.
Single responsibility: wire reader, reconciler, join strategy, comparator
and assembler together for one run.
"""

from contextlib import ExitStack, closing
from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, List, Optional
import traceback

from ..adapters.file_reader import TabularReader
from ..adapters.report_writer import ReportWriter
from ..config.manager import RunConfig
from ..core.comparator import Classification, RecordComparator
from ..core.comparer import Comparer
from ..core.errors import ConfigurationError, RecDiffError
from ..core.headers import HeaderReconciler
from ..core.keyed import DuplicateAnchor, KeyedSource
from ..core.sort_merge import SortMergeJoin
from ..core.strategies import InMemoryHashJoin, JoinStrategy, StreamingHashJoin
from ..core.tally import RunTally
from ..core.transforms import TransformEngine
from ..utils.logger import get_logger
from .assembler import ReportAssembler, ReportLayout


logger = get_logger()


STRATEGIES = {
    InMemoryHashJoin.name: InMemoryHashJoin,
    StreamingHashJoin.name: StreamingHashJoin,
    SortMergeJoin.name: SortMergeJoin,
}


def create_strategy(config: RunConfig, comparator: RecordComparator) -> JoinStrategy:
    """
    Instantiate the configured join strategy.

    Raises:
        ConfigurationError: If the strategy name is unknown
    """
    strategy_cls = STRATEGIES.get(config.strategy)
    if strategy_cls is None:
        raise ConfigurationError(f"Unknown strategy '{config.strategy}'")

    if strategy_cls is SortMergeJoin:
        return SortMergeJoin(
            comparator,
            batch_size=config.batch_size,
            temp_dir=Path(config.temp_dir) if config.temp_dir else None,
            memory_limit=config.sort_memory_limit,
        )
    return strategy_cls(comparator, batch_size=config.batch_size)


@dataclass
class ComparisonResult:
    """Outcome of one run."""

    strategy: str
    report_path: Optional[str] = None
    added: int = 0
    updated: int = 0
    deleted: int = 0
    unchanged: int = 0
    matched_pairs: int = 0
    columns: List[str] = field(default_factory=list)
    column_mismatches: Dict[str, int] = field(default_factory=dict)
    duplicates: List[DuplicateAnchor] = field(default_factory=list)

    @property
    def has_changes(self) -> bool:
        return (self.added + self.updated + self.deleted) > 0

    @property
    def total(self) -> int:
        return self.added + self.updated + self.deleted + self.unchanged


class ChangeReportPipeline:
    """
    Main pipeline orchestrator.
    """

    def __init__(self, config: RunConfig):
        """
        Initialize pipeline.

        Args:
            config: Validated run configuration
        """
        self.config = config
        self.comparer = Comparer(config.case_sensitive)
        self.reconciler = HeaderReconciler()

    def run(self) -> ComparisonResult:
        """
        Run the comparison and write the report.

        Returns:
            ComparisonResult with counts and the report path (None when
            nothing changed)

        Raises:
            RecDiffError: On any configuration, structural, row or I/O error
        """
        config = self.config
        logger.info("pipeline.starting",
                    previous=config.previous,
                    current=config.current,
                    anchor=config.anchor,
                    strategy=config.strategy,
                    detailed=config.detailed)

        try:
            result = self._run()
        except RecDiffError as e:
            logger.error("pipeline.failed",
                         error_type=type(e).__name__,
                         error=str(e))
            logger.debug("pipeline.failed.traceback",
                         traceback=traceback.format_exc())
            raise

        logger.info("pipeline.completed",
                    added=result.added,
                    updated=result.updated,
                    deleted=result.deleted,
                    unchanged=result.unchanged,
                    report=result.report_path)
        return result

    def _run(self) -> ComparisonResult:
        config = self.config
        output_path = config.output_path
        self._check_output_path(output_path)

        # Rule validation needs no file access
        transforms = TransformEngine.from_config(config.transforms, self.comparer)
        tally = RunTally()

        with ExitStack() as stack:
            previous_reader = stack.enter_context(
                TabularReader(Path(config.previous), "previous",
                              config.delimiter, config.encoding)
            )
            current_reader = stack.enter_context(
                TabularReader(Path(config.current), "current",
                              config.delimiter, config.encoding)
            )

            headers = self.reconciler.reconcile(
                previous_reader.headers,
                current_reader.headers,
                config.anchor,
                config.ignore_columns,
                transforms.columns,
            )

            comparator = RecordComparator(
                headers, self.comparer, transforms, tally, detailed=config.detailed
            )
            strategy = create_strategy(config, comparator)

            layout = ReportLayout(headers.current_anchor, headers.columns,
                                  detailed=config.detailed)
            writer = ReportWriter(output_path, layout.header,
                                  delimiter=config.delimiter,
                                  encoding=config.encoding)
            assembler = ReportAssembler(writer, layout, self.comparer, tally,
                                        transforms=transforms,
                                        batch_size=config.batch_size)

            previous = KeyedSource(previous_reader, headers.previous_anchor, self.comparer)
            current = KeyedSource(current_reader, headers.current_anchor, self.comparer)

            with closing(strategy.join(previous, current)) as changes:
                for change in changes:
                    assembler.add(change)

            report_path = assembler.finish()

        counts = tally.classifications
        return ComparisonResult(
            strategy=strategy.name,
            report_path=report_path,
            added=counts.get(Classification.ADD.value, 0),
            updated=counts.get(Classification.UPDATE.value, 0),
            deleted=counts.get(Classification.DELETE.value, 0),
            unchanged=counts.get(Classification.NONE.value, 0),
            matched_pairs=tally.matched_pairs,
            columns=list(headers.columns),
            column_mismatches=dict(tally.column_mismatches),
            duplicates=list(strategy.duplicates),
        )

    def _check_output_path(self, output_path: Path):
        for source in (self.config.previous, self.config.current):
            if Path(source).resolve() == output_path.resolve():
                raise ConfigurationError(
                    f"Report path {output_path} would overwrite an input file"
                )


def run_comparison(config: RunConfig) -> ComparisonResult:
    """Convenience wrapper: build a pipeline for ``config`` and run it."""
    return ChangeReportPipeline(config).run()
