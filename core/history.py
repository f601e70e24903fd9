from __future__ import annotations

from dataclasses import dataclass
from typing import List, Optional, Tuple

from core.buffer import PixelBuffer
from core.state import FilterSettings

DEFAULT_MAX_HISTORY = 20


@dataclass(frozen=True)
class Checkpoint:
    source: PixelBuffer
    settings: FilterSettings

    @classmethod
    def capture(cls, source: PixelBuffer, settings: FilterSettings) -> "Checkpoint":
        # Stored buffers are never handed out for mutation; restore clones again.
        return cls(source=source.clone(), settings=settings)


class HistoryStack:
    """
    Bounded undo/redo of (source buffer, filter settings) checkpoints.

    Checkpoints are taken before an edit, so the top of the undo stack is the
    state just before the latest change. The first checkpoint after a load is
    the baseline and is never popped by undo.
    """

    def __init__(self, max_history: int = DEFAULT_MAX_HISTORY):
        if int(max_history) < 1:
            raise ValueError("max_history must be >= 1")
        self.max_history = int(max_history)
        self._undo_stack: List[Checkpoint] = []
        self._redo_stack: List[Checkpoint] = []

    def _push_bounded(self, stack: List[Checkpoint], entry: Checkpoint) -> None:
        stack.append(entry)
        if len(stack) > self.max_history:
            stack.pop(0)

    def checkpoint(self, source: PixelBuffer, settings: FilterSettings) -> None:
        self._push_bounded(self._undo_stack, Checkpoint.capture(source, settings))
        self._redo_stack.clear()

    def can_undo(self) -> bool:
        return len(self._undo_stack) > 1

    def can_redo(self) -> bool:
        return len(self._redo_stack) > 0

    def undo(self, source: PixelBuffer, settings: FilterSettings) -> Optional[Checkpoint]:
        if not self.can_undo():
            return None
        self._push_bounded(self._redo_stack, Checkpoint.capture(source, settings))
        return self._undo_stack.pop()

    def redo(self, source: PixelBuffer, settings: FilterSettings) -> Optional[Checkpoint]:
        if not self.can_redo():
            return None
        self._push_bounded(self._undo_stack, Checkpoint.capture(source, settings))
        return self._redo_stack.pop()

    def reset(self) -> None:
        self._undo_stack.clear()
        self._redo_stack.clear()

    @property
    def undo_depth(self) -> int:
        return len(self._undo_stack)

    @property
    def redo_depth(self) -> int:
        return len(self._redo_stack)

    def undo_entries(self) -> Tuple[Checkpoint, ...]:
        return tuple(self._undo_stack)

    def redo_entries(self) -> Tuple[Checkpoint, ...]:
        return tuple(self._redo_stack)
