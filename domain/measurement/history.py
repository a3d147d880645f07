"""Vertex edit history (undo/redo).

A linear action log: two stacks of EditAction. Actions record deltas
(vertex + index), never a reference to a live polygon, so every undo/redo
produces a new immutable Polygon from the one passed in.

Guarantee: any state reached via undo/redo equals a state previously reached
by forward mutation. A push after an undo clears the redo stack, so the log
never branches.
"""

from __future__ import annotations

import logging
from typing import Annotated, Literal, Union

from pydantic import BaseModel, ConfigDict, Field

from domain.errors import HistoryMismatchError
from domain.geometry.value_objects import Polygon, Vertex

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Actions
# ---------------------------------------------------------------------------
class AddVertex(BaseModel):
    """Vertex was inserted at index."""

    kind: Literal["add"] = "add"
    vertex: Vertex
    index: int = Field(ge=0)

    model_config = ConfigDict(frozen=True)

    def apply(self, polygon: Polygon) -> Polygon:
        if self.index > len(polygon):
            raise HistoryMismatchError(self, len(polygon))
        return polygon.inserted(self.index, self.vertex)

    def revert(self, polygon: Polygon) -> Polygon:
        if self.index >= len(polygon) or polygon.vertices[self.index] != self.vertex:
            raise HistoryMismatchError(self, len(polygon))
        return polygon.removed_at(self.index)


class RemoveVertex(BaseModel):
    """Vertex was removed from index."""

    kind: Literal["remove"] = "remove"
    vertex: Vertex
    index: int = Field(ge=0)

    model_config = ConfigDict(frozen=True)

    def apply(self, polygon: Polygon) -> Polygon:
        if self.index >= len(polygon) or polygon.vertices[self.index] != self.vertex:
            raise HistoryMismatchError(self, len(polygon))
        return polygon.removed_at(self.index)

    def revert(self, polygon: Polygon) -> Polygon:
        if self.index > len(polygon):
            raise HistoryMismatchError(self, len(polygon))
        return polygon.inserted(self.index, self.vertex)


EditAction = Annotated[Union[AddVertex, RemoveVertex], Field(discriminator="kind")]


# ---------------------------------------------------------------------------
# History
# ---------------------------------------------------------------------------
class EditHistory:
    """Undo/redo stacks over polygon edit actions.

    Not thread-safe; owned by a single PolygonEditor.
    """

    def __init__(self) -> None:
        self._undo: list[EditAction] = []
        self._redo: list[EditAction] = []

    def __len__(self) -> int:
        return len(self._undo)

    @property
    def can_undo(self) -> bool:
        return bool(self._undo)

    @property
    def can_redo(self) -> bool:
        return bool(self._redo)

    def push(self, action: EditAction) -> None:
        """Record an applied action and drop any redoable actions."""
        self._undo.append(action)
        if self._redo:
            logger.debug("Discarding %d redo action(s) after new edit", len(self._redo))
            self._redo.clear()

    def undo(self, current: Polygon) -> Polygon | None:
        """Revert the most recent action against current.

        Returns:
            The polygon after the revert, or None if nothing to undo
        """
        if not self._undo:
            return None
        action = self._undo[-1]
        previous = action.revert(current)
        # Pop only after revert succeeded so a mismatch leaves the stacks intact
        self._undo.pop()
        self._redo.append(action)
        return previous

    def redo(self, current: Polygon) -> Polygon | None:
        """Re-apply the most recently undone action against current.

        Returns:
            The polygon after re-applying, or None if nothing to redo
        """
        if not self._redo:
            return None
        action = self._redo[-1]
        following = action.apply(current)
        self._redo.pop()
        self._undo.append(action)
        return following

    def clear(self) -> None:
        self._undo.clear()
        self._redo.clear()
