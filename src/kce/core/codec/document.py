"""Conversion between kubeconfig YAML and the entity model.

Parsing always yields a fresh :class:`~kce.core.entity.Document`; nothing is
mutated until the whole text has been understood, so a malformed input never
leaves a half-loaded document behind.
"""
from __future__ import annotations

import logging
from typing import Any, Dict, List, Optional, Sequence

import yaml

from kce.core.config.domains.codec import CodecConfig
from kce.core.entity import Document, Entity, EntityKind, Field
from kce.core.exceptions import MalformedDocumentError
from kce.core.utils.io import dump_yaml_string

from .values import any_to_string, string_to_any

logger = logging.getLogger(__name__)

MANAGED_KEYS = ("contexts", "clusters", "users", "current-context")
DEFAULT_API_VERSION = "v1"
DEFAULT_KIND = "Config"


def load_root(text: str) -> Dict[str, Any]:
    """Parse YAML text and require a mapping at the root.

    Raises:
        MalformedDocumentError: On a YAML syntax error or a non-mapping root.
    """
    try:
        loaded = yaml.safe_load(text)
    except yaml.YAMLError as exc:
        raise MalformedDocumentError(
            f"Invalid kubeconfig YAML: {exc}", context={"reason": "yaml"}
        ) from exc
    if not isinstance(loaded, dict):
        raise MalformedDocumentError(
            "Invalid kubeconfig: root must be a mapping",
            context={"reason": "root", "rootType": type(loaded).__name__},
        )
    return loaded


def dictionary_to_fields(data: Any) -> List[Field]:
    """Mapping → fields sorted by key."""
    if not isinstance(data, dict):
        return []
    return [Field(key=str(k), value=any_to_string(data[k])) for k in sorted(data, key=str)]


def fields_to_dictionary(fields: Sequence[Field]) -> Dict[str, Any]:
    output: Dict[str, Any] = {}
    for f in fields:
        key = f.key.strip()
        if not key:
            continue
        output[key] = string_to_any(f.value, key)
    return output


def _item_name(raw: Any) -> str:
    if raw is None:
        return ""
    if isinstance(raw, bool):
        return "true" if raw else "false"
    return str(raw)


def parse_named_items(array: Any, kind: EntityKind) -> List[Entity]:
    """Decode a ``[{name, <kind>: {...}}]`` sequence; non-mapping items are skipped."""
    if not isinstance(array, list):
        return []
    items: List[Entity] = []
    for raw in array:
        if not isinstance(raw, dict):
            logger.debug("Skipping non-mapping %s item: %r", kind.value, raw)
            continue
        items.append(
            Entity(
                name=_item_name(raw.get("name")),
                fields=dictionary_to_fields(raw.get(kind.nested_key)),
            )
        )
    return items


def encode_named_items(items: Sequence[Entity], kind: EntityKind) -> List[Dict[str, Any]]:
    return [{"name": item.name, kind.nested_key: fields_to_dictionary(item.fields)} for item in items]


def extract_extras(root: Dict[str, Any]) -> Dict[str, Any]:
    return {k: v for k, v in root.items() if k not in MANAGED_KEYS}


def document_from_root(root: Dict[str, Any]) -> Document:
    current = root.get("current-context")
    return Document(
        contexts=parse_named_items(root.get("contexts"), EntityKind.CONTEXT),
        clusters=parse_named_items(root.get("clusters"), EntityKind.CLUSTER),
        users=parse_named_items(root.get("users"), EntityKind.USER),
        current_context=current if isinstance(current, str) else "",
        extras=extract_extras(root),
    )


def parse_document(text: str) -> Document:
    """Parse kubeconfig text into a new document (all entities visible)."""
    return document_from_root(load_root(text))


def build_root(
    document: Document,
    *,
    contexts: Optional[Sequence[Entity]] = None,
    clusters: Optional[Sequence[Entity]] = None,
    users: Optional[Sequence[Entity]] = None,
    current_context: Optional[str] = None,
) -> Dict[str, Any]:
    """Assemble the generic tree for ``document`` or a projection of it.

    Collections default to the document's own; ``apiVersion`` and ``kind``
    are filled in when the extras lack them.
    """
    output: Dict[str, Any] = dict(document.extras)
    output["current-context"] = document.current_context if current_context is None else current_context
    output["contexts"] = encode_named_items(document.contexts if contexts is None else contexts, EntityKind.CONTEXT)
    output["clusters"] = encode_named_items(document.clusters if clusters is None else clusters, EntityKind.CLUSTER)
    output["users"] = encode_named_items(document.users if users is None else users, EntityKind.USER)
    output.setdefault("apiVersion", DEFAULT_API_VERSION)
    output.setdefault("kind", DEFAULT_KIND)
    return output


def dump_root(root: Dict[str, Any]) -> str:
    """Serialize a generic tree to YAML (sorted keys, no line folding)."""
    return dump_yaml_string(root, sort_keys=True, width=CodecConfig().yaml_width)


def serialize_document(document: Document) -> str:
    """Plain YAML for the whole document, hidden entities included."""
    return dump_root(build_root(document))


__all__ = [
    "MANAGED_KEYS",
    "load_root",
    "parse_document",
    "document_from_root",
    "parse_named_items",
    "encode_named_items",
    "dictionary_to_fields",
    "fields_to_dictionary",
    "extract_extras",
    "build_root",
    "dump_root",
    "serialize_document",
]
