"""Importing foreign kubeconfig text.

Two operations live here:

- :func:`merge_import` appends every entity of a foreign document to the live
  one, renaming colliding names and rewriting the foreign contexts'
  references so nothing dangles afterwards.
- :func:`normalize_import_text` prepares a document for sharing: replaces the
  loopback host in cluster servers and prefixes every name. It never touches
  the live document.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Dict, List, MutableSet

from kce.core.codec.document import build_root, dump_root, parse_document
from kce.core.config.domains.codec import CodecConfig
from kce.core.entity import Document, Entity, EntityKind
from kce.core.naming import make_unique_name

logger = logging.getLogger(__name__)


@dataclass
class ImportResult:
    """Entities appended by :func:`merge_import` (already renamed)."""

    contexts: List[Entity] = field(default_factory=list)
    clusters: List[Entity] = field(default_factory=list)
    users: List[Entity] = field(default_factory=list)
    renamed: Dict[EntityKind, Dict[str, str]] = field(default_factory=dict)

    @property
    def first(self) -> Entity | None:
        for items in (self.contexts, self.clusters, self.users):
            if items:
                return items[0]
        return None


def _rename_all(items: List[Entity], used: MutableSet[str], *, prefix: str = "") -> Dict[str, str]:
    """Rename ``items`` in place to unique names; returns old→new.

    When the same old name occurs twice the later mapping wins.
    """
    mapping: Dict[str, str] = {}
    for item in items:
        old = item.name
        base = f"{prefix}-{old}" if prefix else old
        new = make_unique_name(base, used)
        item.name = new
        mapping[old] = new
    return mapping


def _rewrite_references(contexts: List[Entity], cluster_map: Dict[str, str], user_map: Dict[str, str]) -> None:
    for context in contexts:
        cluster_ref = context.field_value("cluster")
        if cluster_ref and cluster_ref in cluster_map:
            context.set_field("cluster", cluster_map[cluster_ref])
        user_ref = context.field_value("user")
        if user_ref and user_ref in user_map:
            context.set_field("user", user_map[user_ref])


def merge_import(document: Document, text: str) -> ImportResult:
    """Append the entities of ``text`` to ``document`` without breaking references.

    Names colliding with the live collection of the same kind get ``-1``,
    ``-2``... suffixes. If the live document has no current context it adopts
    the (renamed) foreign current context, else the first imported context.

    Raises:
        MalformedDocumentError: ``text`` is not a kubeconfig mapping. The live
            document is left untouched.
    """
    foreign = parse_document(text)

    cluster_map = _rename_all(foreign.clusters, document.names(EntityKind.CLUSTER))
    user_map = _rename_all(foreign.users, document.names(EntityKind.USER))
    context_map = _rename_all(foreign.contexts, document.names(EntityKind.CONTEXT))
    _rewrite_references(foreign.contexts, cluster_map, user_map)

    document.clusters.extend(foreign.clusters)
    document.users.extend(foreign.users)
    document.contexts.extend(foreign.contexts)

    if not document.current_context:
        imported_current = context_map.get(foreign.current_context)
        if imported_current is None:
            imported_current = foreign.contexts[0].name if foreign.contexts else ""
        document.current_context = imported_current

    logger.info(
        "Imported contexts=%d clusters=%d users=%d",
        len(foreign.contexts), len(foreign.clusters), len(foreign.users),
    )
    return ImportResult(
        contexts=foreign.contexts,
        clusters=foreign.clusters,
        users=foreign.users,
        renamed={
            EntityKind.CLUSTER: {k: v for k, v in cluster_map.items() if k != v},
            EntityKind.USER: {k: v for k, v in user_map.items() if k != v},
            EntityKind.CONTEXT: {k: v for k, v in context_map.items() if k != v},
        },
    )


def replace_loopback_server(clusters: List[Entity], replacement_host: str, *, loopback_host: str | None = None) -> int:
    """Replace the loopback host inside every ``server`` field; returns the count."""
    host = replacement_host.strip()
    if not host:
        return 0
    loopback = loopback_host or CodecConfig().loopback_host
    changed = 0
    for cluster in clusters:
        server = cluster.field_value("server")
        if loopback in server:
            cluster.set_field("server", server.replace(loopback, host))
            changed += 1
    return changed


def apply_prefix(document: Document, prefix: str) -> Document:
    """Prefix every entity name with ``<prefix>-`` and rewrite references.

    Unlike :func:`merge_import`, renaming is unconditional; uniqueness is only
    enforced among the renamed names themselves.
    """
    clean = prefix.strip()
    if not clean:
        return document

    cluster_map = _rename_all(document.clusters, set(), prefix=clean)
    user_map = _rename_all(document.users, set(), prefix=clean)
    context_map = _rename_all(document.contexts, set(), prefix=clean)
    _rewrite_references(document.contexts, cluster_map, user_map)
    document.current_context = context_map.get(document.current_context, document.current_context)
    return document


def normalize_import_text(text: str, server_host_replacement: str = "", name_prefix: str = "") -> str:
    """Return ``text`` re-serialized with host replacement and name prefixing applied."""
    parsed = parse_document(text)
    if server_host_replacement.strip():
        replace_loopback_server(parsed.clusters, server_host_replacement)
    if name_prefix.strip():
        apply_prefix(parsed, name_prefix)
    return dump_root(build_root(parsed))


__all__ = [
    "ImportResult",
    "merge_import",
    "normalize_import_text",
    "replace_loopback_server",
    "apply_prefix",
]
