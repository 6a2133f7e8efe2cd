"""Name-based reference lookups between contexts, clusters and users.

Contexts point at clusters and users by name only; no back-pointers are
stored. Every lookup here is a read-only scan of the document.
"""
from __future__ import annotations

from typing import List

from kce.core.entity import Document, Entity


def contexts_linked_to_cluster(document: Document, cluster_name: str) -> List[Entity]:
    """Contexts whose ``cluster`` field equals ``cluster_name``, in document order."""
    return [c for c in document.contexts if c.field_value("cluster") == cluster_name]


def contexts_linked_to_user(document: Document, user_name: str) -> List[Entity]:
    """Contexts whose ``user`` field equals ``user_name``, in document order."""
    return [c for c in document.contexts if c.field_value("user") == user_name]


def _sorted_by_name(items: List[Entity]) -> List[Entity]:
    return sorted(items, key=lambda e: (e.name.casefold(), e.name))


def users_linked_to_cluster(document: Document, cluster_name: str) -> List[Entity]:
    """Users reachable from ``cluster_name`` through a shared context."""
    names = {c.ref("user") for c in contexts_linked_to_cluster(document, cluster_name)}
    names.discard("")
    return _sorted_by_name([u for u in document.users if u.name in names])


def clusters_linked_to_user(document: Document, user_name: str) -> List[Entity]:
    """Clusters reachable from ``user_name`` through a shared context."""
    names = {c.ref("cluster") for c in contexts_linked_to_user(document, user_name)}
    names.discard("")
    return _sorted_by_name([c for c in document.clusters if c.name in names])


def is_cluster_referenced(document: Document, cluster_name: str) -> bool:
    return any(c.field_value("cluster") == cluster_name for c in document.contexts)


def is_user_referenced(document: Document, user_name: str) -> bool:
    return any(c.field_value("user") == user_name for c in document.contexts)


__all__ = [
    "contexts_linked_to_cluster",
    "contexts_linked_to_user",
    "users_linked_to_cluster",
    "clusters_linked_to_user",
    "is_cluster_referenced",
    "is_user_referenced",
]
