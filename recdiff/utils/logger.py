"""
Structured logging utility.
Single responsibility: provide consistent logging across application.
"""

import sys
from datetime import datetime
from pathlib import Path
from typing import Any, Dict, Optional
import json


LEVELS = {
    "DEBUG": 10,
    "INFO": 20,
    "WARN": 30,
    "ERROR": 40,
    "CRITICAL": 50,
}


class StructuredLogger:
    """
    Structured logger for consistent application logging.

    Events are dotted names (``join.streaming.complete``) with keyword
    context. Console output is human readable, the optional log file
    receives one JSON document per line.
    """

    def __init__(self, name: str = "recdiff",
                 log_file: Optional[Path] = None,
                 level: str = "INFO",
                 stream=None):
        """
        Initialize logger.

        Args:
            name: Logger name
            log_file: Optional JSON-lines file receiving every level
            level: Minimum level written to the console
            stream: Console stream (stderr when omitted)
        """
        self.name = name
        self.log_file = Path(log_file) if log_file else None
        self.stream = stream
        self.level = "INFO"
        self.set_level(level)

    def set_level(self, level: str):
        """Change the minimum console level."""
        level = level.upper()
        if level == "WARNING":
            level = "WARN"
        if level not in LEVELS:
            raise ValueError(f"Unknown log level: {level}")
        self.level = level

    def set_log_file(self, log_file: Optional[Path]):
        """Route JSON entries to a file (None disables file output)."""
        self.log_file = Path(log_file) if log_file else None

    def enabled_for(self, level: str) -> bool:
        return LEVELS[level] >= LEVELS[self.level]

    def _entry(self, level: str, event: str, context: Dict[str, Any]) -> Dict[str, Any]:
        entry = {
            "timestamp": datetime.now().isoformat(),
            "level": level,
            "logger": self.name,
            "message": event,
        }
        if context:
            entry["context"] = context
        return entry

    def _write_console(self, entry: Dict[str, Any]):
        stream = self.stream or sys.stderr
        clock = entry["timestamp"].split("T")[1][:8]
        lines = [f"[{clock}] {entry['level']:5} | {entry['message']}"]
        for key, value in entry.get("context", {}).items():
            lines.append(f"  {key}={value}")
        print("\n".join(lines), file=stream)

    def _write_file(self, entry: Dict[str, Any]):
        with open(self.log_file, "a", encoding="utf-8") as f:
            f.write(json.dumps(entry, default=str) + "\n")

    def log(self, level: str, event: str, **context):
        """
        Record one event.

        Args:
            level: One of LEVELS
            event: Dotted event name
            **context: Additional context fields
        """
        entry = self._entry(level, event, context)
        if self.enabled_for(level):
            self._write_console(entry)
        if self.log_file:
            self._write_file(entry)

    def debug(self, event: str, **context):
        self.log("DEBUG", event, **context)

    def info(self, event: str, **context):
        self.log("INFO", event, **context)

    def warning(self, event: str, **context):
        self.log("WARN", event, **context)

    def error(self, event: str, **context):
        self.log("ERROR", event, **context)

    def critical(self, event: str, **context):
        self.log("CRITICAL", event, **context)


# Global logger instance
_logger: Optional[StructuredLogger] = None


def get_logger(name: str = "recdiff") -> StructuredLogger:
    """Get or create the shared logger instance."""
    global _logger
    if _logger is None:
        _logger = StructuredLogger(name)
    return _logger
