"""Snapshot undo/redo for the reference host view."""

from __future__ import annotations

from dataclasses import dataclass
from typing import List, Optional


@dataclass(slots=True)
class Snapshot:
    text: str
    caret: int


class EditHistory:
    """Linear undo/redo stack; recording after an undo drops the redo branch."""

    def __init__(self, limit: int = 500) -> None:
        self._undo: List[Snapshot] = []
        self._redo: List[Snapshot] = []
        self._limit = limit

    def record(self, before: Snapshot) -> None:
        self._undo.append(before)
        if len(self._undo) > self._limit:
            del self._undo[0]
        self._redo.clear()

    def can_undo(self) -> bool:
        return bool(self._undo)

    def can_redo(self) -> bool:
        return bool(self._redo)

    def undo(self, current: Snapshot) -> Optional[Snapshot]:
        if not self._undo:
            return None
        self._redo.append(current)
        return self._undo.pop()

    def redo(self, current: Snapshot) -> Optional[Snapshot]:
        if not self._redo:
            return None
        self._undo.append(current)
        return self._redo.pop()
