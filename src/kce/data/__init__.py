"""Bundled defaults for kce.

``config/`` holds one YAML file per configuration section and ``schemas/``
the JSON Schemas (written as YAML) the merged configuration is checked
against. Both ship inside the package and are located with
``importlib.resources``.
"""
from __future__ import annotations

from functools import lru_cache
from importlib import resources
from pathlib import Path
from typing import Any, Dict

import yaml


def get_data_path(subpackage: str, filename: str = "") -> Path:
    """Filesystem path of ``kce/data/<subpackage>[/<filename>]``."""
    base = Path(str(resources.files("kce.data") / subpackage))
    return base / filename if filename else base


@lru_cache(maxsize=32)
def read_yaml(subpackage: str, filename: str) -> Dict[str, Any]:
    """Parsed bundled YAML file; cached until :func:`clear_caches`."""
    text = get_data_path(subpackage, filename).read_text(encoding="utf-8")
    return yaml.safe_load(text) or {}


def clear_caches() -> None:
    read_yaml.cache_clear()


__all__ = ["get_data_path", "read_yaml", "clear_caches"]
