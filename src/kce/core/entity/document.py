"""The in-memory kubeconfig document."""
from __future__ import annotations

import copy
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Set

from .base import Entity, EntityId, EntityKind


@dataclass
class Document:
    """Contexts, clusters and users plus the current context and extras.

    ``extras`` keeps every unrecognized top-level key (``apiVersion``,
    ``kind``, ``preferences``...) verbatim. Duplicate names inside one
    collection are tolerated; name lookups return the first match.
    """

    contexts: List[Entity] = field(default_factory=list)
    clusters: List[Entity] = field(default_factory=list)
    users: List[Entity] = field(default_factory=list)
    current_context: str = ""
    extras: Dict[str, Any] = field(default_factory=dict)

    @classmethod
    def new_empty(cls) -> "Document":
        """A minimal, fully bound skeleton document."""
        return cls(
            contexts=[Entity.create("new-context", [("cluster", "new-cluster"), ("user", "new-user")])],
            clusters=[Entity.create("new-cluster", [("server", "https://127.0.0.1:6443")])],
            users=[Entity.create("new-user", [("token", "")])],
            current_context="new-context",
            extras={"apiVersion": "v1", "kind": "Config", "preferences": {}},
        )

    def collection(self, kind: EntityKind) -> List[Entity]:
        kind = EntityKind.parse(kind)
        if kind is EntityKind.CONTEXT:
            return self.contexts
        if kind is EntityKind.CLUSTER:
            return self.clusters
        return self.users

    def replace_collection(self, kind: EntityKind, items: List[Entity]) -> None:
        kind = EntityKind.parse(kind)
        if kind is EntityKind.CONTEXT:
            self.contexts = items
        elif kind is EntityKind.CLUSTER:
            self.clusters = items
        else:
            self.users = items

    def get(self, kind: EntityKind, entity_id: EntityId) -> Optional[Entity]:
        for item in self.collection(kind):
            if item.id == entity_id:
                return item
        return None

    def find(self, kind: EntityKind, name: str) -> Optional[Entity]:
        """First entity of ``kind`` named ``name``."""
        for item in self.collection(kind):
            if item.name == name:
                return item
        return None

    def names(self, kind: EntityKind) -> Set[str]:
        return {item.name for item in self.collection(kind)}

    def has_context(self, name: str) -> bool:
        return self.find(EntityKind.CONTEXT, name) is not None

    def first_entity(self) -> Optional[tuple[EntityKind, Entity]]:
        """The first context, else first cluster, else first user."""
        for kind in EntityKind:
            items = self.collection(kind)
            if items:
                return kind, items[0]
        return None

    def copy(self) -> "Document":
        """Deep copy preserving entity ids."""
        return Document(
            contexts=[e.copy() for e in self.contexts],
            clusters=[e.copy() for e in self.clusters],
            users=[e.copy() for e in self.users],
            current_context=self.current_context,
            extras=copy.deepcopy(self.extras),
        )

    def counts(self) -> Dict[str, int]:
        return {kind.collection: len(self.collection(kind)) for kind in EntityKind}


__all__ = ["Document"]
