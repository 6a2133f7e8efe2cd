"""Export projection and explicit export.

The projection decides what canonical save writes: visible contexts whose
cluster and user both resolve to visible entities, plus exactly the clusters
and users those contexts use. Explicit export ignores visibility and writes
the selected contexts with everything they reference.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from typing import AbstractSet, List

from kce.core.codec.document import build_root, dump_root
from kce.core.entity import Document, Entity, EntityId
from kce.core.exceptions import EmptySelectionError, EntityNotFoundError, MissingReferencesError


@dataclass(frozen=True)
class ExportProjection:
    contexts: List[Entity] = field(default_factory=list)
    clusters: List[Entity] = field(default_factory=list)
    users: List[Entity] = field(default_factory=list)
    current_context: str = ""
    dropped_contexts: int = 0
    dropped_clusters: int = 0
    dropped_users: int = 0

    @property
    def has_drops(self) -> bool:
        return bool(self.dropped_contexts or self.dropped_clusters or self.dropped_users)


def project_for_export(document: Document) -> ExportProjection:
    """Compute the canonical-save projection of ``document``."""
    exportable_clusters = {c.name for c in document.clusters if c.include_in_export}
    exportable_users = {u.name for u in document.users if u.include_in_export}

    contexts = []
    for context in document.contexts:
        if not context.include_in_export:
            continue
        cluster = context.ref("cluster")
        user = context.ref("user")
        if cluster and user and cluster in exportable_clusters and user in exportable_users:
            contexts.append(context)

    used_clusters = {c.ref("cluster") for c in contexts}
    used_users = {c.ref("user") for c in contexts}
    clusters = [c for c in document.clusters if c.include_in_export and c.name in used_clusters]
    users = [u for u in document.users if u.include_in_export and u.name in used_users]

    if any(c.name == document.current_context for c in contexts):
        current = document.current_context
    else:
        current = contexts[0].name if contexts else ""

    return ExportProjection(
        contexts=contexts,
        clusters=clusters,
        users=users,
        current_context=current,
        dropped_contexts=len(document.contexts) - len(contexts),
        dropped_clusters=len(document.clusters) - len(clusters),
        dropped_users=len(document.users) - len(users),
    )


def select_for_export(document: Document, ids: AbstractSet[EntityId]) -> ExportProjection:
    """Projection for explicitly selected contexts, hidden ones included.

    Raises:
        EmptySelectionError: ``ids`` is empty.
        EntityNotFoundError: None of ``ids`` names a live context.
        MissingReferencesError: A selected context references a cluster/user
            that does not exist.
    """
    if not ids:
        raise EmptySelectionError("Select at least one context to export")

    selected = [c for c in document.contexts if c.id in ids]
    if not selected:
        raise EntityNotFoundError("Selected contexts not found", entity_type="context")

    cluster_names = {c.ref("cluster") for c in selected} - {""}
    user_names = {c.ref("user") for c in selected} - {""}
    missing_clusters = cluster_names - {c.name for c in document.clusters}
    missing_users = user_names - {u.name for u in document.users}
    if missing_clusters or missing_users:
        raise MissingReferencesError(missing_clusters=missing_clusters, missing_users=missing_users)

    return ExportProjection(
        contexts=selected,
        clusters=[c for c in document.clusters if c.name in cluster_names],
        users=[u for u in document.users if u.name in user_names],
        current_context=selected[0].name,
    )


def build_export_yaml(document: Document, projection: ExportProjection) -> str:
    """Serialize ``projection`` with the document's extras."""
    return dump_root(
        build_root(
            document,
            contexts=projection.contexts,
            clusters=projection.clusters,
            users=projection.users,
            current_context=projection.current_context,
        )
    )


__all__ = [
    "ExportProjection",
    "project_for_export",
    "select_for_export",
    "build_export_yaml",
]
