#!/usr/bin/env python3
"""
Record Diff - Main Entry Point
Keyed change reports between two versions of a delimited dataset.
"""

import argparse
import sys
from pathlib import Path

from recdiff import __version__
from recdiff.config.manager import (
    STRATEGY_NAMES,
    ConfigManager,
    create_sample_config,
)
from recdiff.core.errors import RecDiffError
from recdiff.pipeline.runner import ChangeReportPipeline
from recdiff.ui.console import ResultPrinter
from recdiff.utils.logger import get_logger


logger = get_logger()


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Record Diff - compare two versions of a keyed dataset"
    )

    parser.add_argument(
        "config",
        nargs="?",
        help="YAML configuration file (optional when --previous/--current/--anchor are given)"
    )
    parser.add_argument("--previous", help="Previous version of the dataset")
    parser.add_argument("--current", help="Current version of the dataset")
    parser.add_argument("--anchor", help="Anchor (key) column name")
    parser.add_argument("--output", "-o", help="Report file path")
    parser.add_argument(
        "--strategy",
        choices=STRATEGY_NAMES,
        help="Join strategy (default: memory)"
    )
    parser.add_argument(
        "--detailed",
        action="store_true",
        default=None,
        help="Report old/new/match for every column plus a summary row"
    )
    parser.add_argument(
        "--ignore-case",
        action="store_true",
        help="Compare anchors, values and transform triggers case-insensitively"
    )
    parser.add_argument(
        "--ignore",
        action="append",
        metavar="COLUMN",
        help="Column to leave out of the comparison (repeatable)"
    )
    parser.add_argument(
        "--transform",
        action="append",
        nargs=3,
        metavar=("COLUMN", "TRIGGER", "DIRECTIVE"),
        help="Comparison transform: TRIGGER may be '*', DIRECTIVE may start "
             "with '>>' (append) or '<<' (prepend) (repeatable)"
    )
    parser.add_argument("--batch-size", type=int, help="Rows per batch (default: 10000)")
    parser.add_argument("--delimiter", help="comma, tab, semicolon or pipe (default: comma)")
    parser.add_argument("--encoding", help="Text encoding (default: utf-8)")
    parser.add_argument("--temp-dir", help="Parent directory for sort-merge temporary files")
    parser.add_argument("--log-file", help="Append JSON log entries to this file")
    parser.add_argument(
        "--verbose", "-v",
        action="store_true",
        help="Enable debug logging"
    )
    parser.add_argument(
        "--create-sample",
        action="store_true",
        help="Create sample configuration file"
    )
    parser.add_argument(
        "--version",
        action="version",
        version=f"Record Diff v{__version__}"
    )
    return parser


def collect_overrides(args: argparse.Namespace) -> dict:
    """Command-line values that replace configuration file settings."""
    overrides = {
        "previous": args.previous,
        "current": args.current,
        "anchor": args.anchor,
        "output": args.output,
        "strategy": args.strategy,
        "detailed": args.detailed,
        "ignore_columns": args.ignore,
        "batch_size": args.batch_size,
        "delimiter": args.delimiter,
        "encoding": args.encoding,
        "temp_dir": args.temp_dir,
        "log_file": args.log_file,
    }
    if args.ignore_case:
        overrides["case_sensitive"] = False
    if args.transform:
        transforms = {}
        for column, trigger, directive in args.transform:
            transforms.setdefault(column, {})[trigger] = directive
        overrides["transforms"] = transforms
    return overrides


def main(argv=None) -> int:
    """Main entry point."""
    parser = build_parser()
    args = parser.parse_args(argv)
    printer = ResultPrinter()

    if args.verbose:
        logger.set_level("DEBUG")

    if args.create_sample:
        create_sample_config(Path(args.config or "recdiff_sample.yaml"))
        print(f"Sample configuration created: {args.config or 'recdiff_sample.yaml'}")
        return 0

    manager = ConfigManager(Path(args.config) if args.config else None)

    try:
        if args.config:
            manager.load()
        config = manager.build(collect_overrides(args))
    except FileNotFoundError as e:
        printer.error(str(e))
        print("Use --create-sample to create a sample configuration")
        return 2
    except RecDiffError as e:
        printer.error(str(e))
        return 1

    if config.log_file:
        logger.set_log_file(Path(config.log_file))

    try:
        result = ChangeReportPipeline(config).run()
    except RecDiffError as e:
        printer.error(str(e))
        return 1

    printer.result(result)
    return 0


if __name__ == "__main__":
    sys.exit(main())
