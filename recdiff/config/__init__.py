"""Configuration management."""

from .manager import ConfigManager, RunConfig, create_sample_config

__all__ = ["ConfigManager", "RunConfig", "create_sample_config"]
