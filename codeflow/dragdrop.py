"""
Drag-and-drop transition controller.

Two states only: ``Idle`` and ``Dragging(task_id)``. A drop always ends
the gesture; it commits ``Board.move_task`` at most once.
"""

from __future__ import annotations

from dataclasses import dataclass

from loguru import logger

from .board import Board
from .domain import Status, ValidationError


@dataclass(frozen=True)
class Idle:
    pass


@dataclass(frozen=True)
class Dragging:
    task_id: str


DragState = Idle | Dragging


class DragController:
    def __init__(self, board: Board) -> None:
        self._board = board
        self.state: DragState = Idle()

    @property
    def dragging_id(self) -> str | None:
        return self.state.task_id if isinstance(self.state, Dragging) else None

    def drag_start(self, task_id: str) -> None:
        """Capture the dragged card. A second start overwrites the first."""
        if isinstance(self.state, Dragging):
            logger.debug("Drag {} replaced by {}", self.state.task_id, task_id)
        self.state = Dragging(task_id)

    def drag_over(self, status: Status | str) -> bool:
        """Whether the column under the pointer would accept a drop."""
        return isinstance(self.state, Dragging)

    def drop(self, status: Status | str) -> bool:
        """
        Drop over the column for ``status``.

        Returns:
            True if a task changed column. A drop without a captured id,
            onto the same column or for a vanished task changes nothing.
        """
        task_id = self.dragging_id
        self.state = Idle()
        if task_id is None:
            logger.debug("Stray drop on {} ignored", status)
            return False
        try:
            target = Status(status)
        except ValueError as exc:
            raise ValidationError(f"Invalid status: {status!r}") from exc
        return self._board.move_task(task_id, target)

    def drag_end(self) -> None:
        """Gesture finished or cancelled without a drop."""
        self.state = Idle()
