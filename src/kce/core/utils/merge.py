"""Overlay helpers for layered configuration.

Each configuration layer (bundled defaults, user overlay files, environment)
is applied on top of the previous one with :func:`overlay`. Mappings merge
key by key; any other value in the upper layer wins outright.

Lists are replaced unless the upper list starts with the ``"+"`` marker, in
which case its remaining items extend the lower list::

    codec:
      boolean_keys: ["+", exec-interactive]
"""
from __future__ import annotations

from pathlib import Path
from typing import Any, Dict, List

from kce.core.utils.io import iter_yaml_files, read_yaml

LIST_EXTEND_MARKER = "+"


def overlay(lower: Dict[str, Any], upper: Dict[str, Any]) -> Dict[str, Any]:
    """Return ``upper`` laid over ``lower``; neither input is mutated."""
    merged: Dict[str, Any] = dict(lower)
    for key, value in (upper or {}).items():
        below = merged.get(key)
        if isinstance(below, dict) and isinstance(value, dict):
            merged[key] = overlay(below, value)
        elif isinstance(below, list) and isinstance(value, list):
            merged[key] = _overlay_list(below, value)
        else:
            merged[key] = value
    return merged


def _overlay_list(lower: List[Any], upper: List[Any]) -> List[Any]:
    if upper and upper[0] == LIST_EXTEND_MARKER:
        return [*lower, *upper[1:]]
    return list(upper)


def overlay_yaml_directory(lower: Dict[str, Any], directory: Path) -> Dict[str, Any]:
    """Overlay every ``*.yaml`` file of ``directory`` onto ``lower`` in name order.

    A missing directory contributes nothing. Unparseable YAML or a file whose
    top level is not a mapping raises.
    """
    folder = Path(directory)
    if not folder.is_dir():
        return lower

    merged = dict(lower)
    for path in iter_yaml_files(folder):
        layer = read_yaml(path, default={}, raise_on_error=True) or {}
        if not isinstance(layer, dict):
            raise ValueError(f"Config file must contain a mapping: {path}")
        merged = overlay(merged, layer)
    return merged


__all__ = ["LIST_EXTEND_MARKER", "overlay", "overlay_yaml_directory"]
