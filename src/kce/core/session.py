"""Per-document storage locations outside the kubeconfig itself.

Every editing session is keyed: a saved file uses its lineage identity
(``file-<hash>``), a document that was never saved uses ``unsaved-<uuid>``.
The key names the workspace sidecar, the draft, the change log, the version
lineage and the legacy detached store.
"""
from __future__ import annotations

import logging
import shutil
import uuid
from dataclasses import dataclass
from pathlib import Path
from typing import Dict, List, Optional

from kce.core.codec.document import dictionary_to_fields
from kce.core.config.domains import PathsConfig
from kce.core.entity import Document, Entity, EntityKind
from kce.core.history.lineage import UNSAVED_PREFIX, lineage_dir, path_identity
from kce.core.utils.io import ensure_directory, read_yaml

logger = logging.getLogger(__name__)

WORKSPACE_SUFFIX = ".kce.yaml"
DETACHED_STORE_KIND = "DetachedStore"
EXPORT_ENABLED_KEY = "export-enabled"


def new_unsaved_key() -> str:
    return f"{UNSAVED_PREFIX}{uuid.uuid4().hex}"


def session_key_for(path: Optional[Path]) -> str:
    return path_identity(path) if path is not None else new_unsaved_key()


@dataclass(frozen=True)
class StorageLayout:
    """Paths derived from a session key and, when saved, the kubeconfig path."""

    session_key: str
    kubeconfig_path: Optional[Path] = None

    @property
    def _paths(self) -> PathsConfig:
        return PathsConfig()

    @property
    def workspace_path(self) -> Path:
        return self._paths.workspaces_dir / f"{self.session_key}{WORKSPACE_SUFFIX}"

    @property
    def legacy_workspace_path(self) -> Optional[Path]:
        if self.kubeconfig_path is None:
            return None
        return self.kubeconfig_path.parent / f".{self.kubeconfig_path.name}{WORKSPACE_SUFFIX}"

    @property
    def draft_path(self) -> Path:
        return self._paths.drafts_dir / f"{self.session_key}.yaml"

    @property
    def changelog_path(self) -> Path:
        return self._paths.logs_dir / f"{self.session_key}.changes.log"

    @property
    def lineage_dir(self) -> Path:
        return lineage_dir(self.session_key)

    @property
    def detached_store_path(self) -> Path:
        return self._paths.detached_store_dir / f"{self.session_key}.yaml"


def _move_if_free(source: Path, dest: Path) -> bool:
    if not source.exists() or dest.exists():
        return False
    try:
        ensure_directory(dest.parent)
        shutil.move(str(source), str(dest))
    except OSError as exc:
        logger.warning("Cannot move %s to %s: %s", source, dest, exc)
        return False
    return True


def migrate_session_storage(old_key: str, new_key: str) -> List[Path]:
    """Move history, change log and draft from ``old_key`` to ``new_key``.

    Each piece moves only when the new location is still free. Returns the
    destinations that were filled.
    """
    if old_key == new_key:
        return []
    old = StorageLayout(old_key)
    new = StorageLayout(new_key)
    moved = []
    for source, dest in (
        (old.lineage_dir, new.lineage_dir),
        (old.changelog_path, new.changelog_path),
        (old.draft_path, new.draft_path),
    ):
        if _move_if_free(source, dest):
            moved.append(dest)
    if moved:
        logger.info("Moved session storage %s -> %s (%d item(s))", old_key, new_key, len(moved))
    return moved


def _parse_store_items(raw: object, kind: EntityKind) -> List[Entity]:
    if not isinstance(raw, list):
        return []
    items = []
    for item in raw:
        if not isinstance(item, dict):
            continue
        include = item.get(EXPORT_ENABLED_KEY, True)
        items.append(
            Entity(
                name=str(item.get("name") or ""),
                fields=dictionary_to_fields(item.get(kind.nested_key)),
                include_in_export=include if isinstance(include, bool) else True,
            )
        )
    return items


def restore_detached_store(document: Document, layout: StorageLayout) -> Dict[EntityKind, int]:
    """Append entities from the legacy detached store that the document lacks.

    Returns the number of entities restored per kind.
    """
    restored = {kind: 0 for kind in EntityKind}
    root = read_yaml(layout.detached_store_path)
    if not isinstance(root, dict):
        return restored

    for kind in EntityKind:
        existing = document.names(kind)
        collection = document.collection(kind)
        for item in _parse_store_items(root.get(kind.collection), kind):
            if item.name in existing:
                continue
            collection.append(item)
            existing.add(item.name)
            restored[kind] += 1

    if any(restored.values()):
        logger.info("Restored detached entities from %s: %s", layout.detached_store_path, restored)
    return restored


__all__ = [
    "StorageLayout",
    "new_unsaved_key",
    "session_key_for",
    "migrate_session_storage",
    "restore_detached_store",
]
