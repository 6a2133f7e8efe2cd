"""Domain-specific configuration for filesystem locations."""
from __future__ import annotations

from functools import cached_property
from pathlib import Path

from ..base import BaseDomainConfig


class PathsConfig(BaseDomainConfig):
    """Resolved storage locations.

    Every directory below ``storage_root`` is derived here so callers never
    join path fragments themselves.
    """

    def _config_section(self) -> str:
        return "paths"

    def _path(self, key: str) -> Path:
        raw = self.section.get(key)
        if not raw:
            raise RuntimeError(f"paths.{key} missing from configuration")
        return Path(str(raw)).expanduser()

    @cached_property
    def storage_root(self) -> Path:
        return self._path("storage_root")

    @cached_property
    def default_kubeconfig(self) -> Path:
        return self._path("default_kubeconfig")

    @cached_property
    def workspaces_dir(self) -> Path:
        return self.storage_root / "workspaces"

    @cached_property
    def drafts_dir(self) -> Path:
        return self.storage_root / "drafts"

    @cached_property
    def history_dir(self) -> Path:
        return self.storage_root / "history"

    @cached_property
    def logs_dir(self) -> Path:
        return self.storage_root / "logs"

    @cached_property
    def detached_store_dir(self) -> Path:
        return self.storage_root / "detached-store"


__all__ = ["PathsConfig"]
