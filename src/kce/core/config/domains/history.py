"""Domain-specific configuration for version history and change logs."""
from __future__ import annotations

from functools import cached_property

from ..base import BaseDomainConfig


class HistoryConfig(BaseDomainConfig):
    def _config_section(self) -> str:
        return "history"

    @cached_property
    def max_versions_per_lineage(self) -> int:
        """Maximum versions read from a single lineage when listing."""
        return int(self.section.get("max_versions_per_lineage", 300))

    @cached_property
    def max_versions_total(self) -> int:
        """Maximum versions returned by a listing across all lineages."""
        return int(self.section.get("max_versions_total", 1000))

    @cached_property
    def changelog_max_lines(self) -> int:
        """Maximum removed/added lines recorded per change-log entry."""
        return int(self.section.get("changelog_max_lines", 30))


__all__ = ["HistoryConfig"]
