"""Deletion with optional cascade.

Every delete runs the same sequence: select the entities, remove them, prune
orphans when cascading, then repair ``current-context``. Deleting one id is
the bulk delete of a one-element set, so both paths end in the same state.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import AbstractSet, Iterable, List, Set

from kce.core.entity import Document, Entity, EntityId, EntityKind
from kce.core.exceptions import EmptySelectionError, EntityNotFoundError

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class DeletionResult:
    """How many entities of each kind a delete call removed."""

    contexts: int = 0
    clusters: int = 0
    users: int = 0
    cascade: bool = False

    @property
    def total(self) -> int:
        return self.contexts + self.clusters + self.users


def _referenced_names(contexts: Iterable[Entity], key: str) -> Set[str]:
    names = {c.ref(key) for c in contexts}
    names.discard("")
    return names


def _prune_orphans(document: Document, kind: EntityKind, candidates: Set[str]) -> int:
    """Remove entities named in ``candidates`` that no remaining context references."""
    if not candidates:
        return 0
    key = kind.value
    still_used = {c.field_value(key) for c in document.contexts}
    items = document.collection(kind)
    kept = [e for e in items if not (e.name in candidates and e.name not in still_used)]
    document.replace_collection(kind, kept)
    return len(items) - len(kept)


def _fix_current_context(document: Document, removed: List[Entity]) -> None:
    if document.current_context in {c.name for c in removed}:
        document.current_context = document.contexts[0].name if document.contexts else ""


def _require_ids(ids: AbstractSet[EntityId], kind: EntityKind) -> None:
    if not ids:
        raise EmptySelectionError(
            f"Select at least one {kind.value} to delete",
            context={"entity_type": kind.value},
        )


def delete_contexts(document: Document, ids: AbstractSet[EntityId], *, cascade: bool) -> DeletionResult:
    """Remove contexts; with ``cascade`` also drop their now-unused clusters/users."""
    _require_ids(ids, EntityKind.CONTEXT)
    removed = [c for c in document.contexts if c.id in ids]
    document.contexts = [c for c in document.contexts if c.id not in ids]
    _fix_current_context(document, removed)

    clusters = users = 0
    if cascade:
        clusters = _prune_orphans(document, EntityKind.CLUSTER, _referenced_names(removed, "cluster"))
        users = _prune_orphans(document, EntityKind.USER, _referenced_names(removed, "user"))

    logger.debug("Deleted %d contexts (cascade=%s, clusters=%d, users=%d)", len(removed), cascade, clusters, users)
    return DeletionResult(contexts=len(removed), clusters=clusters, users=users, cascade=cascade)


def _delete_referenced(
    document: Document,
    kind: EntityKind,
    ids: AbstractSet[EntityId],
    *,
    cascade: bool,
) -> DeletionResult:
    """Shared cluster/user delete: dependents first, then the opposite orphans."""
    _require_ids(ids, kind)
    opposite = EntityKind.USER if kind is EntityKind.CLUSTER else EntityKind.CLUSTER
    items = document.collection(kind)
    removed_names = {e.name for e in items if e.id in ids}
    kept = [e for e in items if e.id not in ids]
    removed_count = len(items) - len(kept)
    document.replace_collection(kind, kept)

    removed_contexts: List[Entity] = []
    opposite_removed = 0
    if cascade:
        removed_contexts = [c for c in document.contexts if c.field_value(kind.value) in removed_names]
        if removed_contexts:
            dropped = {c.id for c in removed_contexts}
            document.contexts = [c for c in document.contexts if c.id not in dropped]
            _fix_current_context(document, removed_contexts)
            opposite_removed = _prune_orphans(
                document, opposite, _referenced_names(removed_contexts, opposite.value)
            )

    logger.debug(
        "Deleted %d %ss (cascade=%s, contexts=%d, %ss=%d)",
        removed_count, kind.value, cascade, len(removed_contexts), opposite.value, opposite_removed,
    )
    counts = {kind: removed_count, opposite: opposite_removed}
    return DeletionResult(
        contexts=len(removed_contexts),
        clusters=counts[EntityKind.CLUSTER],
        users=counts[EntityKind.USER],
        cascade=cascade,
    )


def delete_clusters(document: Document, ids: AbstractSet[EntityId], *, cascade: bool) -> DeletionResult:
    return _delete_referenced(document, EntityKind.CLUSTER, ids, cascade=cascade)


def delete_users(document: Document, ids: AbstractSet[EntityId], *, cascade: bool) -> DeletionResult:
    return _delete_referenced(document, EntityKind.USER, ids, cascade=cascade)


def delete_entities(
    document: Document,
    kind: EntityKind,
    ids: AbstractSet[EntityId],
    *,
    cascade: bool,
) -> DeletionResult:
    """Bulk delete dispatching on ``kind``."""
    kind = EntityKind.parse(kind)
    if kind is EntityKind.CONTEXT:
        return delete_contexts(document, ids, cascade=cascade)
    if kind is EntityKind.CLUSTER:
        return delete_clusters(document, ids, cascade=cascade)
    return delete_users(document, ids, cascade=cascade)


def delete_entity(document: Document, kind: EntityKind, entity_id: EntityId, *, cascade: bool) -> DeletionResult:
    """Delete a single entity; identical to the bulk delete of ``{entity_id}``.

    Raises:
        EntityNotFoundError: ``entity_id`` is not in the collection.
    """
    kind = EntityKind.parse(kind)
    if document.get(kind, entity_id) is None:
        raise EntityNotFoundError(f"{kind.label} not found", entity_type=kind.value, entity_id=entity_id)
    return delete_entities(document, kind, {entity_id}, cascade=cascade)


__all__ = [
    "DeletionResult",
    "delete_contexts",
    "delete_clusters",
    "delete_users",
    "delete_entities",
    "delete_entity",
]
