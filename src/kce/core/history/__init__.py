"""Undo/redo snapshots, change logs and durable version lineages."""
from __future__ import annotations

from .changelog import append_entry, format_entry
from .lineage import (
    candidate_stores,
    canonical_store,
    collect_saved_versions,
    find_version_content,
    latest_snapshot,
    legacy_session_keys,
    migrate_legacy_lineage,
    path_identity,
)
from .store import SavedVersion, VersionStore
from .undo import Snapshot, UndoStack

__all__ = [
    "SavedVersion",
    "VersionStore",
    "Snapshot",
    "UndoStack",
    "append_entry",
    "format_entry",
    "path_identity",
    "legacy_session_keys",
    "canonical_store",
    "candidate_stores",
    "collect_saved_versions",
    "find_version_content",
    "latest_snapshot",
    "migrate_legacy_lineage",
]
