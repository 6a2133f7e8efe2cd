"""Merge and import of foreign kubeconfig documents."""
from __future__ import annotations

from .importer import ImportResult, apply_prefix, merge_import, normalize_import_text, replace_loopback_server
from .preview import (
    ContextMergePreview,
    MergeFieldChange,
    apply_context_merge_preview,
    build_context_merge_preview,
)

__all__ = [
    "ImportResult",
    "merge_import",
    "normalize_import_text",
    "replace_loopback_server",
    "apply_prefix",
    "MergeFieldChange",
    "ContextMergePreview",
    "build_context_merge_preview",
    "apply_context_merge_preview",
]
