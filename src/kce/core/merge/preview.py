"""Field-level merge of one foreign context into a live context.

The preview is a pure computation: it lists every field of the foreign
context (and of the cluster and user it points at) whose value differs from
the live counterpart. The caller picks change ids and hands them to
:func:`apply_context_merge_preview`.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import AbstractSet, Dict, List, Optional, Sequence

from kce.core.codec.document import parse_document
from kce.core.entity import Document, Entity, EntityId, EntityKind, Field
from kce.core.exceptions import EntityNotFoundError, NoContextsError

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class MergeFieldChange:
    """One field value that the merge would write.

    ``id`` is ``"<entity>|<targetName>|<key>"``: deterministic for the same
    inputs, so a selection survives recomputing the preview.
    """

    id: str
    entity: EntityKind
    target_name: str
    key: str
    old_value: str
    new_value: str


@dataclass(frozen=True)
class ContextMergePreview:
    imported_context_names: List[str]
    selected_imported_context_name: str
    changes: List[MergeFieldChange] = field(default_factory=list)
    warnings: List[str] = field(default_factory=list)

    @property
    def change_ids(self) -> List[str]:
        return [c.id for c in self.changes]


def change_id(entity: EntityKind, target_name: str, key: str) -> str:
    return f"{entity.value}|{target_name}|{key}"


def field_changes(
    entity: EntityKind,
    target_name: str,
    target_fields: Sequence[Field],
    source_fields: Sequence[Field],
) -> List[MergeFieldChange]:
    """Changes for every source field whose value differs from the target's.

    A key missing on the target compares as ``""``.
    """
    target_map: Dict[str, str] = {}
    for f in target_fields:
        target_map.setdefault(f.key, f.value)

    changes: List[MergeFieldChange] = []
    for source in source_fields:
        old_value = target_map.get(source.key, "")
        if old_value == source.value:
            continue
        changes.append(
            MergeFieldChange(
                id=change_id(entity, target_name, source.key),
                entity=entity,
                target_name=target_name,
                key=source.key,
                old_value=old_value,
                new_value=source.value,
            )
        )
    return changes


def _diff_referenced(
    kind: EntityKind,
    live: Document,
    foreign: Document,
    target_context: Entity,
    imported_context: Entity,
    changes: List[MergeFieldChange],
    warnings: List[str],
) -> None:
    """Diff the ``kind`` entity both contexts point at, or explain why not."""
    target_ref = target_context.ref(kind.value)
    imported_ref = imported_context.ref(kind.value)
    if not target_ref:
        warnings.append(f"Target context has an empty {kind.value} reference, {kind.value} fields skipped.")
        return
    if not imported_ref:
        warnings.append(f"Imported context has an empty {kind.value} reference, {kind.value} fields skipped.")
        return

    target_entity = live.find(kind, target_ref)
    if target_entity is None:
        warnings.append(f"{kind.label} '{target_ref}' of the target context not found, {kind.value} fields skipped.")
        return
    imported_entity = foreign.find(kind, imported_ref)
    if imported_entity is None:
        warnings.append(f"{kind.label} '{imported_ref}' not found in import, {kind.value} fields skipped.")
        return

    changes.extend(field_changes(kind, target_entity.name, target_entity.fields, imported_entity.fields))


def build_context_merge_preview(
    document: Document,
    import_text: str,
    into_context_id: EntityId,
    imported_context_name: Optional[str] = None,
) -> ContextMergePreview:
    """Compute the changes that would bring a live context in line with a foreign one.

    The foreign context is ``imported_context_name`` when given, else the
    foreign ``current-context``, else the first foreign context.

    Raises:
        EntityNotFoundError: The target context or the chosen foreign context is missing.
        NoContextsError: The foreign document has no contexts.
        MalformedDocumentError: ``import_text`` is not a kubeconfig mapping.
    """
    target_context = document.get(EntityKind.CONTEXT, into_context_id)
    if target_context is None:
        raise EntityNotFoundError("Target context not found", entity_type="context", entity_id=into_context_id)

    foreign = parse_document(import_text)
    names = [c.name for c in foreign.contexts]
    if not names:
        raise NoContextsError("Imported kubeconfig has no contexts")

    explicit = (imported_context_name or "").strip()
    if explicit:
        selected = explicit
    elif foreign.current_context.strip():
        selected = foreign.current_context
    else:
        selected = names[0]

    imported_context = foreign.find(EntityKind.CONTEXT, selected)
    if imported_context is None:
        raise EntityNotFoundError(
            f"Context '{selected}' not found in import", entity_type="context", name=selected
        )

    changes = field_changes(EntityKind.CONTEXT, target_context.name, target_context.fields, imported_context.fields)
    warnings: List[str] = []
    for kind in (EntityKind.CLUSTER, EntityKind.USER):
        _diff_referenced(kind, document, foreign, target_context, imported_context, changes, warnings)

    return ContextMergePreview(
        imported_context_names=sorted(names),
        selected_imported_context_name=selected,
        changes=changes,
        warnings=warnings,
    )


def apply_context_merge_preview(
    document: Document,
    into_context_id: EntityId,
    preview: ContextMergePreview,
    selected_change_ids: AbstractSet[str],
) -> int:
    """Write the selected changes; returns how many were applied.

    Context changes go to the target context. Cluster and user changes go to
    the entity that carries ``target_name`` at apply time. An empty selection
    applies nothing and returns 0.

    Raises:
        EntityNotFoundError: The target context no longer exists.
    """
    if not selected_change_ids:
        return 0
    target_context = document.get(EntityKind.CONTEXT, into_context_id)
    if target_context is None:
        raise EntityNotFoundError("Target context not found", entity_type="context", entity_id=into_context_id)

    applied = 0
    for change in preview.changes:
        if change.id not in selected_change_ids:
            continue
        if change.entity is EntityKind.CONTEXT:
            target: Optional[Entity] = target_context
        else:
            target = document.find(change.entity, change.target_name)
        if target is None:
            logger.debug("Skipping change %s: %s no longer exists", change.id, change.target_name)
            continue
        target.set_field(change.key, change.new_value)
        applied += 1

    logger.info("Applied %d of %d merge changes", applied, len(preview.changes))
    return applied


__all__ = [
    "MergeFieldChange",
    "ContextMergePreview",
    "change_id",
    "field_changes",
    "build_context_merge_preview",
    "apply_context_merge_preview",
]
