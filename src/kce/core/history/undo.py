"""In-memory undo/redo over serialized workspace snapshots."""
from __future__ import annotations

from dataclasses import dataclass, field
from typing import List, Optional

from kce.core.utils.time import utc_timestamp


@dataclass(frozen=True)
class Snapshot:
    text: str
    reason: str
    created_at: str = field(default_factory=utc_timestamp)


class UndoStack:
    """Undo and redo stacks; the undo stack always keeps a baseline once reset.

    The stack only stores text. Turning a snapshot back into a document is the
    caller's job so that undo, redo and file load share one parse path.
    """

    def __init__(self) -> None:
        self._undo: List[Snapshot] = []
        self._redo: List[Snapshot] = []

    @property
    def can_undo(self) -> bool:
        return len(self._undo) > 1

    @property
    def can_redo(self) -> bool:
        return bool(self._redo)

    @property
    def current(self) -> Optional[Snapshot]:
        return self._undo[-1] if self._undo else None

    def __len__(self) -> int:
        return len(self._undo)

    def reset(self, text: str, reason: str) -> Snapshot:
        """Drop both stacks and start over from ``text``."""
        baseline = Snapshot(text, reason)
        self._undo = [baseline]
        self._redo = []
        return baseline

    def register(self, text: str, reason: str) -> Optional[Snapshot]:
        """Push ``text`` unless it equals the top snapshot.

        Returns the previous top when something was pushed, else None.
        """
        previous = self.current
        if previous is not None and previous.text == text:
            return None
        self._undo.append(Snapshot(text, reason))
        self._redo.clear()
        return previous

    def undo(self) -> Optional[Snapshot]:
        """Move the top snapshot to redo; returns the new top, or None at the baseline."""
        if not self.can_undo:
            return None
        self._redo.append(self._undo.pop())
        return self._undo[-1]

    def redo(self) -> Optional[Snapshot]:
        """Re-apply the last undone snapshot; returns it, or None when redo is empty."""
        if not self._redo:
            return None
        snapshot = self._redo.pop()
        self._undo.append(snapshot)
        return snapshot


__all__ = ["Snapshot", "UndoStack"]
