"""Configuration system for dailyborg.

This module provides TOML-based configuration loading, validation,
and schema definitions for the daily backup job.
"""

from .loader import ConfigError, find_config_file, load_config
from .schema import (
    Config,
    GlobalConfig,
    MountConfig,
    NotifyConfig,
    RepositoryConfig,
)

__all__ = [
    "Config",
    "GlobalConfig",
    "MountConfig",
    "NotifyConfig",
    "RepositoryConfig",
    "load_config",
    "find_config_file",
    "ConfigError",
]
