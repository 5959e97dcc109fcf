"""
Configuration management.
Single responsibility: load, validate, and manage run configuration.
"""

import codecs
import yaml
from pathlib import Path
from typing import Dict, Any, Optional, List
from dataclasses import dataclass, field

from ..core.errors import ConfigurationError
from ..utils.logger import get_logger
from ..utils.normalizers import is_blank


logger = get_logger()

STRATEGY_NAMES = ("memory", "streaming", "sort-merge")

DELIMITER_ALIASES = {
    "comma": ",",
    "tab": "\t",
    "\\t": "\t",
    "semicolon": ";",
    "pipe": "|",
}


def resolve_delimiter(value: str) -> str:
    """Accept a delimiter character or its name (comma, tab, semicolon, pipe)."""
    if value is None:
        raise ConfigurationError("Delimiter is required")
    delimiter = DELIMITER_ALIASES.get(str(value).lower(), value)
    if delimiter not in (",", "\t", ";", "|"):
        raise ConfigurationError(
            f"Unsupported delimiter {value!r}: use comma, tab, semicolon or pipe"
        )
    return delimiter


def _is_scalar(value) -> bool:
    return isinstance(value, (str, int, float))


@dataclass
class RunConfig:
    """Configuration for one comparison run."""

    previous: str
    current: str
    anchor: str
    output: Optional[str] = None
    strategy: str = "memory"
    detailed: bool = False
    case_sensitive: bool = True
    ignore_columns: List[str] = field(default_factory=list)
    transforms: Dict[str, Dict[str, str]] = field(default_factory=dict)
    batch_size: int = 10000
    delimiter: str = ","
    encoding: str = "utf-8"
    temp_dir: Optional[str] = None
    sort_memory_limit: Optional[str] = None
    log_file: Optional[str] = None

    def __post_init__(self):
        """Validate configuration after initialization."""
        if not self.previous or is_blank(str(self.previous)):
            raise ConfigurationError("Previous file path is required")
        if not self.current or is_blank(str(self.current)):
            raise ConfigurationError("Current file path is required")
        if self.anchor is None or is_blank(str(self.anchor)):
            raise ConfigurationError("Anchor column name is required")

        if self.strategy not in STRATEGY_NAMES:
            raise ConfigurationError(
                f"Unknown strategy '{self.strategy}': "
                f"choose one of {', '.join(STRATEGY_NAMES)}"
            )

        if isinstance(self.batch_size, bool) or not isinstance(self.batch_size, int) \
                or self.batch_size < 1:
            raise ConfigurationError(
                f"Batch size must be a positive integer, got {self.batch_size!r}"
            )

        self.delimiter = resolve_delimiter(self.delimiter)

        try:
            codecs.lookup(self.encoding)
        except (LookupError, TypeError) as e:
            raise ConfigurationError(f"Unknown encoding '{self.encoding}'") from e

        # YAML reads unquoted names such as 2024 as numbers
        self.previous = str(self.previous)
        self.current = str(self.current)
        self.anchor = str(self.anchor)

        if self.ignore_columns is None:
            self.ignore_columns = []
        if _is_scalar(self.ignore_columns):
            self.ignore_columns = [self.ignore_columns]
        if not isinstance(self.ignore_columns, (list, tuple)):
            raise ConfigurationError("Ignored columns must be a list of column names")
        ignored = []
        for name in self.ignore_columns:
            if name is not None and not _is_scalar(name):
                raise ConfigurationError(f"Ignored column name {name!r} is not a plain value")
            ignored.append(None if name is None else str(name))
        self.ignore_columns = ignored

        if self.transforms is None:
            self.transforms = {}
        if not isinstance(self.transforms, dict):
            raise ConfigurationError("Transforms must map column names to rule mappings")
        for column in self.transforms:
            if not _is_scalar(column):
                raise ConfigurationError(
                    f"Transform column name {column!r} is not a plain value"
                )
        self.transforms = {str(c): rules for c, rules in self.transforms.items()}

    @property
    def output_path(self) -> Path:
        """Explicit output, or ``<current stem>_changes.csv`` beside the current file."""
        if self.output:
            return Path(self.output)
        current = Path(self.current)
        return current.with_name(f"{current.stem}_changes.csv")

    def to_dict(self) -> Dict[str, Any]:
        data = {
            "previous": self.previous,
            "current": self.current,
            "anchor": self.anchor,
            "strategy": self.strategy,
            "detailed": self.detailed,
            "case_sensitive": self.case_sensitive,
            "ignore_columns": list(self.ignore_columns),
            "transforms": {c: dict(r) for c, r in self.transforms.items()},
            "batch_size": self.batch_size,
            "delimiter": self.delimiter,
            "encoding": self.encoding,
        }
        for optional in ("output", "temp_dir", "sort_memory_limit", "log_file"):
            value = getattr(self, optional)
            if value:
                data[optional] = value
        return data


class ConfigManager:
    """
    Manage run configuration files.

    The YAML document holds a single ``comparison`` mapping whose keys
    match the RunConfig fields.
    """

    SECTION = "comparison"

    def __init__(self, config_path: Optional[Path] = None):
        """
        Initialize config manager.

        Args:
            config_path: Path to configuration file
        """
        self.config_path = Path(config_path or "recdiff.yaml")
        self.config: Dict[str, Any] = {}

    def load(self) -> Dict[str, Any]:
        """
        Load the raw comparison section from file.

        Returns:
            Comparison settings dictionary

        Raises:
            FileNotFoundError: If config file doesn't exist
            ConfigurationError: If config is invalid YAML or misses the section
        """
        if not self.config_path.exists():
            raise FileNotFoundError(f"Config not found: {self.config_path}")

        logger.info("config.loading", file=str(self.config_path))

        try:
            with open(self.config_path, encoding="utf-8") as f:
                document = yaml.safe_load(f) or {}
        except yaml.YAMLError as e:
            raise ConfigurationError(f"Invalid YAML in {self.config_path}: {e}") from e

        section = document.get(self.SECTION) if isinstance(document, dict) else None
        if not isinstance(section, dict):
            raise ConfigurationError(
                f"{self.config_path} must contain a '{self.SECTION}' mapping"
            )

        self.config = section
        logger.info("config.loaded", keys=sorted(section))
        return self.config

    def build(self, overrides: Optional[Dict[str, Any]] = None) -> RunConfig:
        """
        Build a validated RunConfig from loaded settings plus overrides.

        Args:
            overrides: Values that replace file settings (None values are skipped)
        """
        settings = dict(self.config)
        for key, value in (overrides or {}).items():
            if value is not None:
                settings[key] = value

        known = set(RunConfig.__dataclass_fields__)
        unknown = sorted(set(settings) - known)
        if unknown:
            raise ConfigurationError(f"Unknown configuration keys: {', '.join(unknown)}")

        try:
            return RunConfig(**settings)
        except TypeError as e:
            raise ConfigurationError(f"Incomplete configuration: {e}") from e

    def save(self, run_config: RunConfig, path: Optional[Path] = None):
        """
        Save configuration to file.

        Args:
            run_config: Configuration to persist
            path: Output path (uses original path if not specified)
        """
        output_path = Path(path or self.config_path)

        logger.info("config.saving", file=str(output_path))

        with open(output_path, "w", encoding="utf-8") as f:
            yaml.safe_dump({self.SECTION: run_config.to_dict()}, f,
                           default_flow_style=False, sort_keys=False)

        logger.info("config.saved", file=str(output_path))


SAMPLE_CONFIG = """# Record Diff Configuration
# =========================

comparison:
  previous: "data/previous.csv"
  current: "data/current.csv"
  anchor: "id"

  # memory | streaming | sort-merge
  strategy: "memory"
  # Add old/new/match triplets for every column plus a summary row
  detailed: false
  case_sensitive: true

  ignore_columns: []
  #  - last_modified

  # Rules change previous values before comparison only.
  #   "value": "replacement"   exact trigger
  #   "*": ">>suffix"          wildcard, append
  #   "*": "<<prefix"          wildcard, prepend
  transforms: {}
  #  status:
  #    "Active": "1"
  #    "Inactive": "0"

  batch_size: 10000
  delimiter: ","
  encoding: "utf-8"
"""


def create_sample_config(output_path: Path) -> Path:
    """
    Create a sample configuration file.

    Args:
        output_path: Where to save the config
    """
    output_path = Path(output_path)
    output_path.write_text(SAMPLE_CONFIG, encoding="utf-8")
    logger.info("config.sample_created", file=str(output_path))
    return output_path
