"""Workspace sidecar annotations.

The workspace form of a document is the plain YAML of every entity (hidden
ones included) with one comment line in front of each top-level sequence item
of ``contexts:``, ``clusters:`` and ``users:``::

    contexts:
    # kce:export=false
    - context:
        cluster: cluster-b
      name: ctx-2

The comment is the only place the export flag is persisted. On load a missing
comment means visible; ``true``/``1``/``yes``/``on`` (any case) mean visible
and every other value means hidden.
"""
from __future__ import annotations

from typing import Dict, List, Optional

from kce.core.entity import Document, EntityKind

from .document import build_root, dump_root, parse_document

ANNOTATION_PREFIX = "# kce:export="
_TRUTHY = frozenset({"true", "1", "yes", "on"})
_SECTIONS = {f"{kind.collection}:": kind for kind in EntityKind}


def _ends_section(line: str, trimmed: str) -> bool:
    return bool(trimmed) and not trimmed.startswith("-") and not trimmed.startswith("#") and not line.startswith(" ")


def annotate_workspace_yaml(yaml_text: str, document: Document) -> str:
    """Insert export annotations before each top-level item of the three sections."""
    result: List[str] = []
    section: Optional[EntityKind] = None
    counters: Dict[EntityKind, int] = {kind: 0 for kind in EntityKind}

    for line in yaml_text.split("\n"):
        trimmed = line.strip()
        if trimmed in _SECTIONS:
            section = _SECTIONS[trimmed]
            result.append(line)
            continue
        if section is not None and _ends_section(line, trimmed):
            section = None

        if section is not None and line.startswith("- "):
            items = document.collection(section)
            index = counters[section]
            if index < len(items):
                flag = "true" if items[index].include_in_export else "false"
                result.append(f"{ANNOTATION_PREFIX}{flag}")
            counters[section] = index + 1

        result.append(line)

    return "\n".join(result)


def parse_export_flags(yaml_text: str) -> Dict[EntityKind, List[bool]]:
    """Read the per-item export flags back from workspace text."""
    flags: Dict[EntityKind, List[bool]] = {kind: [] for kind in EntityKind}
    section: Optional[EntityKind] = None
    pending: Optional[bool] = None

    for line in yaml_text.split("\n"):
        trimmed = line.strip()
        if trimmed in _SECTIONS:
            section = _SECTIONS[trimmed]
            pending = None
            continue
        if section is not None and _ends_section(line, trimmed):
            section = None
            pending = None

        if trimmed.startswith(ANNOTATION_PREFIX):
            value = trimmed[len(ANNOTATION_PREFIX):].strip().lower()
            pending = value in _TRUTHY
            continue

        if not line.startswith("- "):
            continue
        flag = True if pending is None else pending
        pending = None
        if section is not None:
            flags[section].append(flag)

    return flags


def has_annotations(yaml_text: str) -> bool:
    return ANNOTATION_PREFIX in yaml_text


def apply_export_flags(document: Document, flags: Dict[EntityKind, List[bool]]) -> None:
    """Copy flags onto entities by position; missing positions keep their value."""
    for kind, values in flags.items():
        if not values:
            continue
        for item, flag in zip(document.collection(kind), values):
            item.include_in_export = flag


def build_workspace_yaml(document: Document) -> str:
    """Full document YAML carrying export annotations."""
    return annotate_workspace_yaml(dump_root(build_root(document)), document)


def parse_workspace(text: str) -> Document:
    """Parse workspace (or plain kubeconfig) text and reapply export flags.

    Used for file load, undo/redo and rollback alike.
    """
    document = parse_document(text)
    apply_export_flags(document, parse_export_flags(text))
    return document


__all__ = [
    "ANNOTATION_PREFIX",
    "annotate_workspace_yaml",
    "parse_export_flags",
    "apply_export_flags",
    "has_annotations",
    "build_workspace_yaml",
    "parse_workspace",
]
