"""Document codec: YAML ⇄ entity model, value coercion and workspace annotations."""
from __future__ import annotations

from .document import (
    build_root,
    dump_root,
    load_root,
    parse_document,
    serialize_document,
)
from .values import any_to_string, string_to_any
from .workspace import (
    annotate_workspace_yaml,
    apply_export_flags,
    build_workspace_yaml,
    parse_export_flags,
    parse_workspace,
)

__all__ = [
    "any_to_string",
    "string_to_any",
    "load_root",
    "parse_document",
    "build_root",
    "dump_root",
    "serialize_document",
    "annotate_workspace_yaml",
    "parse_export_flags",
    "apply_export_flags",
    "build_workspace_yaml",
    "parse_workspace",
]
