"""Domain-specific configuration accessors."""
from __future__ import annotations

from .codec import CodecConfig
from .history import HistoryConfig
from .logging import LoggingConfig
from .paths import PathsConfig
from .time import TimeConfig
from .timeouts import FileLockingConfig, TimeoutsConfig
from .validation import ValidationConfig

__all__ = [
    "CodecConfig",
    "HistoryConfig",
    "LoggingConfig",
    "PathsConfig",
    "TimeConfig",
    "FileLockingConfig",
    "TimeoutsConfig",
    "ValidationConfig",
]
