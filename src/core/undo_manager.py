from typing import Optional

from src.utils.logger import logger

from .config import PushFlags
from .types import ProjectSnapshot


class UndoState:
    __slots__ = ('description', 'short_description', 'state', 'consolidate')

    def __init__(self, description, short_description, state, consolidate=False):
        self.description = description
        self.short_description = short_description
        self.state = state
        self.consolidate = consolidate

    def __repr__(self):
        return f"UndoState({self.short_description!r}: {self.description!r})"


class UndoManager:
    """
    Linear history of project snapshots.

    The entry at `current` is the present state of the project; undo/redo
    move the cursor and hand back the snapshot to restore.
    """
    def __init__(self, max_depth=20):
        self.stack: list[UndoState] = []
        self.current = -1
        self.max_depth = max_depth

    def push_state(self, description: str, short_description: str, state: ProjectSnapshot,
                   flags: PushFlags = PushFlags.NONE) -> None:
        # A new edit discards anything redoable
        del self.stack[self.current + 1:]

        consolidate = PushFlags.CONSOLIDATE in flags
        top = self.stack[-1] if self.stack else None
        if (consolidate and top is not None and top.consolidate
                and top.short_description == short_description):
            top.state = state
            top.description = description
            logger.debug(f"Undo state consolidated: {description}")
            return

        self.stack.append(UndoState(description, short_description or description, state, consolidate))
        if len(self.stack) > self.max_depth:
            self.stack.pop(0)
        self.current = len(self.stack) - 1
        logger.debug(f"Undo state pushed: {description}")

    def current_state(self) -> Optional[ProjectSnapshot]:
        if self.current < 0:
            return None
        return self.stack[self.current].state

    @property
    def can_undo(self) -> bool:
        return self.current > 0

    @property
    def can_redo(self) -> bool:
        return self.current < len(self.stack) - 1

    def undo(self) -> Optional[ProjectSnapshot]:
        if not self.can_undo:
            logger.debug("Nothing to undo")
            return None
        logger.info(f"Undo: {self.stack[self.current].description}")
        self.current -= 1
        return self.stack[self.current].state

    def redo(self) -> Optional[ProjectSnapshot]:
        if not self.can_redo:
            logger.debug("Nothing to redo")
            return None
        self.current += 1
        logger.info(f"Redo: {self.stack[self.current].description}")
        return self.stack[self.current].state

    @property
    def undo_description(self) -> str:
        return self.stack[self.current].short_description if self.can_undo else ""

    @property
    def redo_description(self) -> str:
        return self.stack[self.current + 1].short_description if self.can_redo else ""

    def __len__(self):
        return len(self.stack)

    def clear(self):
        self.stack.clear()
        self.current = -1
        logger.debug("Undo/Redo history cleared")
