"""Unique-name generation and rename propagation."""
from __future__ import annotations

import logging
from typing import Iterable, MutableSet

from kce.core.entity import Document, Entity, EntityKind
from kce.core.exceptions import EmptyNameError, EntityExistsError, EntityNotFoundError

logger = logging.getLogger(__name__)


def make_unique_name(base: str, used: MutableSet[str]) -> str:
    """Return ``base`` or ``base-1``, ``base-2``... not yet in ``used``.

    A blank base becomes ``item``. The chosen name is added to ``used`` so
    repeated calls in one batch never hand out the same name twice.
    """
    initial = base.strip() or "item"
    candidate = initial
    index = 1
    while candidate in used:
        candidate = f"{initial}-{index}"
        index += 1
    used.add(candidate)
    return candidate


def unique_name(base: str, items: Iterable[Entity]) -> str:
    """Numbered name for a new entity; numbering always starts at ``-1``."""
    taken = {item.name for item in items}
    index = 1
    candidate = f"{base}-{index}"
    while candidate in taken:
        index += 1
        candidate = f"{base}-{index}"
    return candidate


def sync_context_references(document: Document, old_name: str, new_name: str, kind: EntityKind) -> int:
    """Point every context field ``<kind>: old_name`` at ``new_name``.

    For ``EntityKind.CONTEXT`` this updates the current context instead.
    Returns the number of rewritten references.
    """
    kind = EntityKind.parse(kind)
    if old_name == new_name:
        return 0

    changed = 0
    for context in document.contexts:
        for f in context.fields:
            if f.key == kind.value and f.value == old_name:
                f.value = new_name
                changed += 1

    if kind is EntityKind.CONTEXT and document.current_context == old_name:
        document.current_context = new_name
        changed += 1
    return changed


def rename_everywhere(document: Document, kind: EntityKind, old_name: str, new_name: str) -> bool:
    """Rename an entity and every reference to it.

    Returns:
        False when the trimmed names are equal (nothing to do), else True.

    Raises:
        EmptyNameError: Either name is blank.
        EntityNotFoundError: No entity of ``kind`` is named ``old_name``.
        EntityExistsError: ``new_name`` is already taken in the collection.
    """
    kind = EntityKind.parse(kind)
    old = old_name.strip()
    new = new_name.strip()
    if not old or not new:
        raise EmptyNameError(
            f"Old/new {kind.value} name must not be empty",
            context={"entity_type": kind.value},
        )
    if old == new:
        return False

    target = document.find(kind, old)
    if target is None:
        raise EntityNotFoundError(f"{kind.label} '{old}' not found", entity_type=kind.value, name=old)
    if document.find(kind, new) is not None:
        raise EntityExistsError(f"{kind.label} '{new}' already exists", entity_type=kind.value, name=new)

    target.name = new
    rewritten = sync_context_references(document, old, new, kind)
    logger.info("Renamed %s %r -> %r (%d references)", kind.value, old, new, rewritten)
    return True


__all__ = [
    "make_unique_name",
    "unique_name",
    "sync_context_references",
    "rename_everywhere",
]
