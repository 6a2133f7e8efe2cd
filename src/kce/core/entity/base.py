"""Entity model primitives.

This module provides the foundational data structures of a kubeconfig:
- EntityKind: the closed set of collections (contexts, clusters, users)
- Field: one key/value pair with its value kept as text
- Entity: a named record with ordered fields and an export flag
"""
from __future__ import annotations

import uuid
from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, Iterable, List, Optional


# Type alias for in-memory entity identifiers (never persisted)
EntityId = str


def new_entity_id() -> EntityId:
    return uuid.uuid4().hex


class EntityKind(str, Enum):
    """The three kubeconfig collections.

    ``value`` doubles as the nested mapping key of each list item
    (``{name: ..., context: {...}}``) and as the context field that references
    an entity of this kind (``cluster``/``user``).
    """

    CONTEXT = "context"
    CLUSTER = "cluster"
    USER = "user"

    @property
    def collection(self) -> str:
        """Top-level document key holding this collection."""
        return f"{self.value}s"

    @property
    def nested_key(self) -> str:
        return self.value

    @property
    def label(self) -> str:
        return self.value.capitalize()

    @classmethod
    def parse(cls, raw: "EntityKind | str") -> "EntityKind":
        if isinstance(raw, EntityKind):
            return raw
        text = str(raw).strip().lower()
        if text.endswith("s"):
            text = text[:-1]
        return cls(text)


# Context fields that hold cross-references, keyed by the referenced kind.
REFERENCE_FIELDS: Dict[EntityKind, str] = {
    EntityKind.CLUSTER: "cluster",
    EntityKind.USER: "user",
}


@dataclass
class Field:
    """Ordered key/value pair.

    ``value`` is always text; booleans are "true"/"false" and nested
    structures are JSON (see :mod:`kce.core.codec.values`).
    """

    key: str
    value: str = ""


@dataclass
class Entity:
    """A context, cluster or user.

    Attributes:
        name: Join key used by every cross-reference
        fields: Ordered fields; keys are unique within one entity
        include_in_export: Whether canonical save may write this entity
        id: In-memory identity, stable for the lifetime of the object
    """

    name: str
    fields: List[Field] = field(default_factory=list)
    include_in_export: bool = True
    id: EntityId = field(default_factory=new_entity_id)

    @classmethod
    def create(
        cls,
        name: str,
        fields: Optional[Iterable[tuple[str, str]]] = None,
        *,
        include_in_export: bool = True,
    ) -> "Entity":
        """Build an entity from ``(key, value)`` pairs."""
        return cls(
            name=name,
            fields=[Field(key=k, value=v) for k, v in (fields or [])],
            include_in_export=include_in_export,
        )

    def field_value(self, key: str) -> str:
        """Return the value of ``key`` or ``""`` when absent."""
        for f in self.fields:
            if f.key == key:
                return f.value
        return ""

    def ref(self, key: str) -> str:
        """Return a reference field value with surrounding whitespace removed."""
        return self.field_value(key).strip()

    def has_field(self, key: str) -> bool:
        return any(f.key == key for f in self.fields)

    def set_field(self, key: str, value: str) -> None:
        """Upsert ``key``: update in place, or append when absent."""
        for f in self.fields:
            if f.key == key:
                f.value = value
                return
        self.fields.append(Field(key=key, value=value))

    def remove_field(self, key: str) -> bool:
        """Remove every field named ``key``; return True if any was removed."""
        before = len(self.fields)
        self.fields = [f for f in self.fields if f.key != key]
        return len(self.fields) != before

    def field_map(self) -> Dict[str, str]:
        """Return fields as a dict (first occurrence wins)."""
        out: Dict[str, str] = {}
        for f in self.fields:
            out.setdefault(f.key, f.value)
        return out

    def copy(self) -> "Entity":
        """Deep copy that keeps the same ``id``."""
        return Entity(
            name=self.name,
            fields=[Field(key=f.key, value=f.value) for f in self.fields],
            include_in_export=self.include_in_export,
            id=self.id,
        )


__all__ = [
    "EntityId",
    "EntityKind",
    "Entity",
    "Field",
    "REFERENCE_FIELDS",
    "new_entity_id",
]
