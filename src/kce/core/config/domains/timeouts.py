"""Domain-specific configuration for operation timeouts and file locking."""
from __future__ import annotations

from functools import cached_property
from typing import Dict

from ..base import BaseDomainConfig

_REQUIRED_TIMEOUT_KEYS = (
    "default_seconds",
    "external_validation_seconds",
)


class TimeoutsConfig(BaseDomainConfig):
    """Typed, cached access to the ``timeouts`` section."""

    def _config_section(self) -> str:
        return "timeouts"

    def _validate_required_keys(self) -> None:
        if not self.section:
            raise RuntimeError("timeouts section missing from configuration")
        for key in _REQUIRED_TIMEOUT_KEYS:
            if key not in self.section:
                raise RuntimeError(f"timeouts.{key} missing from configuration")

    @cached_property
    def default_seconds(self) -> float:
        self._validate_required_keys()
        return float(self.section["default_seconds"])

    @cached_property
    def external_validation_seconds(self) -> float:
        """Timeout for the external kubeconfig validator."""
        self._validate_required_keys()
        return float(self.section["external_validation_seconds"])

    def get_all_settings(self) -> Dict[str, float]:
        return {
            "default_seconds": self.default_seconds,
            "external_validation_seconds": self.external_validation_seconds,
        }


class FileLockingConfig(BaseDomainConfig):
    """Typed access to the ``file_locking`` section."""

    def _config_section(self) -> str:
        return "file_locking"

    @cached_property
    def timeout_seconds(self) -> float:
        return float(self.section.get("timeout_seconds", 10))

    @cached_property
    def poll_interval_seconds(self) -> float:
        return float(self.section.get("poll_interval_seconds", 0.05))

    @cached_property
    def fail_open(self) -> bool:
        return bool(self.section.get("fail_open", False))


__all__ = ["TimeoutsConfig", "FileLockingConfig"]
