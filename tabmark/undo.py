from dataclasses import dataclass

from .constants import EditorConstants
from .model import Block, CursorPosition, EditMode


@dataclass
class EditorSnapshot:
    blocks: list[Block]
    cursor: CursorPosition
    mode: EditMode
    line_length: int


class UndoManager:
    """Bounded stack of full editor snapshots.

    Snapshots are taken before a mutation, so popping one restores the
    state the mutation started from. The oldest entry is evicted once the
    stack grows past max_entries.
    """

    def __init__(self, max_entries: int = EditorConstants.MAX_UNDO_STEPS):
        self._undo_stack: list[EditorSnapshot] = []
        self._max_entries = max_entries

    def __len__(self):
        return len(self._undo_stack)

    def push(self, snapshot: EditorSnapshot):
        self._undo_stack.append(snapshot)
        # Cap history
        if len(self._undo_stack) > self._max_entries:
            self._undo_stack.pop(0)

    def can_undo(self) -> bool:
        return bool(self._undo_stack)

    def pop(self):
        if not self._undo_stack:
            return None
        return self._undo_stack.pop()
