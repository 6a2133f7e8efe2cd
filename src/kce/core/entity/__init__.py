"""Entity model: kubeconfig contexts, clusters and users."""
from __future__ import annotations

from .base import REFERENCE_FIELDS, Entity, EntityId, EntityKind, Field, new_entity_id
from .document import Document

__all__ = [
    "Document",
    "Entity",
    "EntityId",
    "EntityKind",
    "Field",
    "REFERENCE_FIELDS",
    "new_entity_id",
]
