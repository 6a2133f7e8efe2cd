"""Shared base for the typed configuration sections under ``domains/``."""
from __future__ import annotations

from abc import ABC, abstractmethod
from functools import cached_property
from pathlib import Path
from typing import Any, Dict, Optional

from .cache import get_cached_config


class BaseDomainConfig(ABC):
    """Typed view over one top-level section of the merged configuration.

    Subclasses name their section and expose each setting as a
    ``cached_property``, so a value is read and coerced once per instance::

        class CodecConfig(BaseDomainConfig):
            def _config_section(self) -> str:
                return "codec"

            @cached_property
            def yaml_width(self) -> int:
                return int(self.section.get("yaml_width", 1000000))

    Instances are cheap; the merged configuration itself is shared through
    :func:`kce.core.config.cache.get_cached_config`.
    """

    def __init__(self, user_config_dir: Optional[Path] = None) -> None:
        self._config = get_cached_config(user_config_dir=user_config_dir)

    @abstractmethod
    def _config_section(self) -> str:
        ...

    @cached_property
    def section(self) -> Dict[str, Any]:
        return self._config.get(self._config_section(), {}) or {}

    def _subsection(self, name: str) -> Dict[str, Any]:
        """Nested mapping ``<section>.<name>``; empty when absent or null."""
        value = self.section.get(name)
        return value if isinstance(value, dict) else {}


__all__ = ["BaseDomainConfig"]
