"""Domain-specific configuration for timestamp formatting."""
from __future__ import annotations

from functools import cached_property

from ..base import BaseDomainConfig


class TimeConfig(BaseDomainConfig):
    """``time.iso8601``: how version, undo and change-log timestamps are written."""

    def _config_section(self) -> str:
        return "time"

    @cached_property
    def iso8601(self) -> dict:
        iso = self._subsection("iso8601")
        missing = [k for k in ("timespec", "use_z_suffix", "strip_microseconds") if k not in iso]
        if missing:
            raise RuntimeError(f"time.iso8601 configuration missing required fields: {missing}")
        return iso

    @cached_property
    def timespec(self) -> str:
        return str(self.iso8601["timespec"] or "auto")

    @cached_property
    def use_z_suffix(self) -> bool:
        return bool(self.iso8601["use_z_suffix"])

    @cached_property
    def strip_microseconds(self) -> bool:
        return bool(self.iso8601["strip_microseconds"])


__all__ = ["TimeConfig"]
