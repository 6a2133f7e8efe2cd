"""Lineage identity and lookup across current and legacy store locations.

A kubeconfig file maps to one canonical lineage,
``<storage_root>/history/file-<sha256(resolved path)[:16]>``. Older releases
kept history under the path itself with ``/`` replaced by ``_`` (raw,
normalized and symlink-resolved spellings) or in a ``.<name>.kce-history``
directory next to the file. Listing, rollback and recovery read all of them.
"""
from __future__ import annotations

import hashlib
import logging
import os
from pathlib import Path
from typing import Iterable, List, Optional

from kce.core.config.domains import HistoryConfig, PathsConfig

from .store import SavedVersion, VersionStore

logger = logging.getLogger(__name__)

IDENTITY_PREFIX = "file-"
UNSAVED_PREFIX = "unsaved-"


def path_identity(path: Path | str) -> str:
    """Deterministic lineage key for a kubeconfig path."""
    resolved = str(Path(path).expanduser().resolve())
    return IDENTITY_PREFIX + hashlib.sha256(resolved.encode("utf-8")).hexdigest()[:16]


def _flatten(path_text: str) -> str:
    return path_text.replace("/", "_")


def legacy_session_keys(path: Path | str) -> List[str]:
    """Old path-derived keys, most literal spelling first, without duplicates."""
    raw = str(path)
    expanded = os.path.expanduser(raw)
    spellings = [
        raw,
        os.path.normpath(os.path.abspath(expanded)),
        str(Path(expanded).resolve()),
    ]
    keys: List[str] = []
    for spelling in spellings:
        key = _flatten(spelling)
        if key and key not in keys:
            keys.append(key)
    return keys


def sibling_history_dir(path: Path | str) -> Path:
    target = Path(path).expanduser()
    return target.parent / f".{target.name}.kce-history"


def lineage_dir(session_key: str) -> Path:
    return PathsConfig().history_dir / session_key


def canonical_store(session_key: str) -> VersionStore:
    return VersionStore(lineage_dir(session_key), lineage_key=session_key)


def legacy_stores(path: Path | str) -> List[VersionStore]:
    """Sibling store first, then the flattened-path keys."""
    stores = [VersionStore(sibling_history_dir(path), lineage_key=sibling_history_dir(path).name)]
    stores.extend(canonical_store(key) for key in legacy_session_keys(path))
    return stores


def candidate_stores(session_key: str, path: Optional[Path | str] = None) -> List[VersionStore]:
    """Every lineage that may hold versions of the current document.

    An unsaved document only has its session lineage.
    """
    stores = [canonical_store(session_key)]
    if path is not None:
        stores.extend(legacy_stores(path))

    unique: List[VersionStore] = []
    seen = set()
    for store in stores:
        key = os.path.normpath(os.path.abspath(store.root))
        if key in seen:
            continue
        seen.add(key)
        unique.append(store)
    return unique


def collect_saved_versions(
    stores: Iterable[VersionStore],
    *,
    per_lineage: Optional[int] = None,
    total: Optional[int] = None,
) -> List[SavedVersion]:
    """Versions from all ``stores``, newest first, deduplicated by id and capped.

    Touches only the durable stores, so it is safe to run in a worker thread.
    """
    cfg = HistoryConfig()
    per_lineage = cfg.max_versions_per_lineage if per_lineage is None else per_lineage
    total = cfg.max_versions_total if total is None else total

    by_id = {}
    for store in stores:
        for version in store.list_versions(limit=per_lineage):
            by_id.setdefault(version.id, version)

    versions = sorted(by_id.values(), key=SavedVersion.sort_key, reverse=True)
    return versions[:total]


def find_version_content(stores: Iterable[VersionStore], version_id: str) -> Optional[str]:
    for store in stores:
        content = store.get_content(version_id)
        if content is not None:
            return content
    return None


def latest_snapshot(stores: Iterable[VersionStore]) -> Optional[str]:
    """Content of the newest version across ``stores``."""
    newest: Optional[SavedVersion] = None
    newest_store: Optional[VersionStore] = None
    for store in stores:
        version = store.latest()
        if version is None:
            continue
        if newest is None or version.sort_key() > newest.sort_key():
            newest, newest_store = version, store
    if newest is None or newest_store is None:
        return None
    return newest_store.get_content(newest.id)


def migrate_legacy_lineage(session_key: str, path: Path | str) -> bool:
    """Copy the first non-empty legacy lineage into an empty canonical one.

    Safe to call on every load: it does nothing once the canonical lineage
    holds any version.
    """
    target = canonical_store(session_key)
    if not target.is_empty():
        return False
    for store in legacy_stores(path):
        if store.root == target.root or store.is_empty():
            continue
        copied = store.copy_into(target)
        logger.info("Migrated %d version(s) from %s to %s", copied, store.root, target.root)
        return copied > 0
    return False


__all__ = [
    "IDENTITY_PREFIX",
    "UNSAVED_PREFIX",
    "path_identity",
    "legacy_session_keys",
    "sibling_history_dir",
    "lineage_dir",
    "canonical_store",
    "legacy_stores",
    "candidate_stores",
    "collect_saved_versions",
    "find_version_content",
    "latest_snapshot",
    "migrate_legacy_lineage",
]
