"""Domain-specific configuration for document validation."""
from __future__ import annotations

from functools import cached_property
from typing import List

from ..base import BaseDomainConfig


class ValidationConfig(BaseDomainConfig):
    def _config_section(self) -> str:
        return "validation"

    @cached_property
    def background(self) -> bool:
        return bool(self.section.get("background", True))

    @cached_property
    def external_enabled(self) -> bool:
        return bool(self._subsection("external").get("enabled", True))

    @cached_property
    def external_command(self) -> List[str]:
        command = self._subsection("external").get("command") or ["kubectl", "config", "view", "--raw"]
        return [str(part) for part in command]


__all__ = ["ValidationConfig"]
