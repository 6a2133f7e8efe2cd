"""Per-entity referential warnings.

Warnings are pulled on demand and never raised: a document may be
inconsistent while it is being edited, and saving is never blocked by them.
"""
from __future__ import annotations

from typing import Dict, Optional

from kce.core.entity import Document, Entity, EntityId, EntityKind

AUTH_FIELDS = (
    "token",
    "client-certificate-data",
    "client-key-data",
    "client-certificate",
    "client-key",
    "exec",
    "auth-provider",
    "username",
)


def context_warning(document: Document, context: Entity) -> Optional[str]:
    cluster_name = context.ref("cluster")
    user_name = context.ref("user")
    if not cluster_name:
        return "No cluster"
    if not user_name:
        return "No user"
    if document.find(EntityKind.CLUSTER, cluster_name) is None:
        return f"Cluster '{cluster_name}' not found"
    if document.find(EntityKind.USER, user_name) is None:
        return f"User '{user_name}' not found"
    return None


def cluster_warning(document: Document, cluster: Entity) -> Optional[str]:
    refs = [c for c in document.contexts if c.field_value("cluster") == cluster.name]
    if not refs:
        return "Cluster is not used in any context"
    if not cluster.ref("server"):
        return "Cluster has an empty server"
    for context in refs:
        user_name = context.ref("user")
        if not user_name or document.find(EntityKind.USER, user_name) is None:
            return "A context uses this cluster without a valid user"
    return None


def user_warning(document: Document, user: Entity) -> Optional[str]:
    refs = [c for c in document.contexts if c.field_value("user") == user.name]
    if not refs:
        return "User is not used in any context"
    for context in refs:
        cluster_name = context.ref("cluster")
        if not cluster_name or document.find(EntityKind.CLUSTER, cluster_name) is None:
            return "A context uses this user without a valid cluster"
    if not any(user.ref(key) for key in AUTH_FIELDS):
        return "User has no auth fields"
    return None


def entity_warning(document: Document, kind: EntityKind, entity: Entity) -> Optional[str]:
    kind = EntityKind.parse(kind)
    if kind is EntityKind.CONTEXT:
        return context_warning(document, entity)
    if kind is EntityKind.CLUSTER:
        return cluster_warning(document, entity)
    return user_warning(document, entity)


def collect_warnings(document: Document) -> Dict[EntityKind, Dict[EntityId, str]]:
    """Every current warning, keyed by kind and entity id."""
    out: Dict[EntityKind, Dict[EntityId, str]] = {}
    for kind in EntityKind:
        found: Dict[EntityId, str] = {}
        for entity in document.collection(kind):
            message = entity_warning(document, kind, entity)
            if message:
                found[entity.id] = message
        out[kind] = found
    return out


__all__ = [
    "AUTH_FIELDS",
    "context_warning",
    "cluster_warning",
    "user_warning",
    "entity_warning",
    "collect_warnings",
]
