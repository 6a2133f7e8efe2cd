"""Domain-specific configuration for the document codec."""
from __future__ import annotations

from functools import cached_property
from typing import FrozenSet

from ..base import BaseDomainConfig


class CodecConfig(BaseDomainConfig):
    def _config_section(self) -> str:
        return "codec"

    @cached_property
    def boolean_keys(self) -> FrozenSet[str]:
        """Field keys whose boolean-like values are written as YAML booleans."""
        keys = self.section.get("boolean_keys")
        if keys is None:
            raise RuntimeError("codec.boolean_keys missing from configuration")
        return frozenset(str(k) for k in keys)

    @cached_property
    def loopback_host(self) -> str:
        return str(self.section.get("loopback_host", "127.0.0.1"))

    @cached_property
    def yaml_width(self) -> int:
        return int(self.section.get("yaml_width", 1000000))


__all__ = ["CodecConfig"]
