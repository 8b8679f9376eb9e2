"""Undo/redo over whole-text snapshots of the lyrics editor."""

from __future__ import annotations

from collections import deque

MAX_UNDO = 30


class EditHistory:
    """Tracks the current lyrics text with bounded undo and redo stacks.

    A plain edit records the previous text for undo and clears redo.
    Undo and redo move the current text onto the opposite stack.
    """

    def __init__(self, text: str = "", depth: int = MAX_UNDO):
        self.current = text
        self.depth = depth
        self._undo: deque[str] = deque(maxlen=depth)
        self._redo: deque[str] = deque(maxlen=depth)

    @property
    def can_undo(self) -> bool:
        return bool(self._undo)

    @property
    def can_redo(self) -> bool:
        return bool(self._redo)

    @property
    def undo_snapshots(self) -> list[str]:
        return list(self._undo)

    @property
    def redo_snapshots(self) -> list[str]:
        return list(self._redo)

    def push_undo(self, text: str) -> None:
        self._undo.append(text)

    def clear_redo(self) -> None:
        self._redo.clear()

    def edit(self, text: str) -> bool:
        """Replace the current text. Returns False when nothing changed."""
        if text == self.current:
            return False
        self.clear_redo()
        self.push_undo(self.current)
        self.current = text
        return True

    def undo(self) -> str | None:
        if not self._undo:
            return None
        self._redo.append(self.current)
        self.current = self._undo.pop()
        return self.current

    def redo(self) -> str | None:
        if not self._redo:
            return None
        self._undo.append(self.current)
        self.current = self._redo.pop()
        return self.current
