"""kce configuration system.

Usage:
    from kce.core.config import ConfigManager
    from kce.core.config.domains import HistoryConfig

    config = ConfigManager().load_config()
    limit = HistoryConfig().max_versions_total

    # Cached config access
    from kce.core.config.cache import get_cached_config, clear_all_caches
"""
from __future__ import annotations

from .base import BaseDomainConfig
from .cache import clear_all_caches, get_cached_config, is_cached
from .domains import (
    CodecConfig,
    FileLockingConfig,
    HistoryConfig,
    LoggingConfig,
    PathsConfig,
    TimeConfig,
    TimeoutsConfig,
    ValidationConfig,
)
from .manager import ConfigManager

__all__ = [
    "ConfigManager",
    "BaseDomainConfig",
    "get_cached_config",
    "clear_all_caches",
    "is_cached",
    "CodecConfig",
    "FileLockingConfig",
    "HistoryConfig",
    "LoggingConfig",
    "PathsConfig",
    "TimeConfig",
    "TimeoutsConfig",
    "ValidationConfig",
]
