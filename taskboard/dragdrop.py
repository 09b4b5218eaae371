"""
Drag and drop coordination.

Turns low-level pointer events into at most one MoveIntent per drag.

Session states:
  Idle                                  no drag in progress
  Dragging(active_task_id, hovered_lane) pointer is carrying a task

drag_end always returns to Idle. Dropping outside any lane or task is a
cancellation: no intent, no state change on the board.
"""
import logging
import math
from dataclasses import dataclass
from typing import Callable, Optional, Tuple, Union

from .errors import DragStateError
from .schema import MoveIntent, TaskStatus
from .store import TaskStore

logger = logging.getLogger(__name__)

DEFAULT_ACTIVATION_DISTANCE = 8.0  # pixels


@dataclass(frozen=True)
class Idle:
    pass


@dataclass(frozen=True)
class Dragging:
    active_task_id: str
    hovered_lane: Optional[TaskStatus] = None


DragSession = Union[Idle, Dragging]

IDLE = Idle()


class DragCoordinator:
    """Tracks the single drag session and resolves drop targets."""

    def __init__(self, store: TaskStore):
        self.store = store
        self.session: DragSession = IDLE

    @property
    def is_dragging(self) -> bool:
        return isinstance(self.session, Dragging)

    @property
    def active_task_id(self) -> Optional[str]:
        return self.session.active_task_id if isinstance(self.session, Dragging) else None

    @property
    def hovered_lane(self) -> Optional[TaskStatus]:
        return self.session.hovered_lane if isinstance(self.session, Dragging) else None

    def resolve_lane(self, over_id: Optional[str]) -> Optional[TaskStatus]:
        """Map a drop target id (lane id or task id) to a lane."""
        if over_id is None:
            return None
        lane = _as_lane(over_id)
        if lane is not None:
            return lane
        task = self.store.get(over_id)
        return task.status if task else None

    def drag_start(self, task_id: str) -> bool:
        """Begin dragging a task. Returns False if the task is unknown."""
        if self.is_dragging:
            raise DragStateError(
                f"Drag of {task_id} started while {self.active_task_id} is still active"
            )
        if task_id not in self.store:
            logger.debug(f"Ignoring drag start on unknown task {task_id}")
            return False
        self.session = Dragging(active_task_id=task_id)
        logger.debug(f"Drag started: {task_id}")
        return True

    def drag_over(self, over_id: Optional[str]) -> Optional[TaskStatus]:
        """Pointer crossed a lane or task boundary. Returns the hovered lane."""
        if not isinstance(self.session, Dragging):
            return None
        lane = self.resolve_lane(over_id)
        self.session = Dragging(self.session.active_task_id, lane)
        return lane

    def drag_end(self, over_id: Optional[str]) -> Optional[MoveIntent]:
        """Drop. Returns the move intent, or None if there is nothing to move."""
        session = self.session
        self.session = IDLE
        if not isinstance(session, Dragging):
            return None
        if over_id is None:
            logger.debug(f"Drag of {session.active_task_id} dropped outside the board")
            return None

        task_id = session.active_task_id
        source = self.store.get(task_id)
        if source is None:
            logger.debug(f"Dragged task {task_id} vanished before drop")
            return None
        source_index = self.store.index_in_lane(task_id)

        target = self._resolve_target(over_id, source.status)
        if target is None:
            return None
        destination_status, destination_index = target

        return MoveIntent(
            task_id=task_id,
            source_status=source.status,
            destination_status=destination_status,
            source_index=source_index,
            destination_index=destination_index,
        )

    def cancel(self) -> None:
        """Abort the drag without emitting anything."""
        self.session = IDLE

    def _resolve_target(
        self, over_id: str, source_status: TaskStatus
    ) -> Optional[Tuple[TaskStatus, int]]:
        lane = _as_lane(over_id)
        if lane is not None:
            # Dropped on the lane itself: append. In its own lane the dragged
            # task is already counted, so the last slot is count - 1, not the
            # lane length.
            count = self.store.count_in(lane)
            if lane == source_status:
                count -= 1
            return lane, count

        over_task = self.store.get(over_id)
        if over_task is None:
            return None
        return over_task.status, self.store.index_in_lane(over_id)


def _as_lane(over_id: str) -> Optional[TaskStatus]:
    try:
        return TaskStatus(over_id)
    except ValueError:
        return None


class PointerSensor:
    """
    Starts a drag only after the pointer travelled activation_distance
    pixels. A press and release below that threshold is a click.
    """

    def __init__(
        self,
        coordinator: DragCoordinator,
        activation_distance: float = DEFAULT_ACTIVATION_DISTANCE,
        on_click: Optional[Callable[[str], None]] = None,
    ):
        self.coordinator = coordinator
        self.activation_distance = activation_distance
        self.on_click = on_click
        self._pressed: Optional[Tuple[str, float, float]] = None

    def pointer_down(self, task_id: str, x: float, y: float) -> None:
        self._pressed = (task_id, x, y)

    def pointer_move(self, x: float, y: float, over_id: Optional[str] = None) -> None:
        if self._pressed is not None and not self.coordinator.is_dragging:
            task_id, x0, y0 = self._pressed
            if math.hypot(x - x0, y - y0) < self.activation_distance:
                return
            if not self.coordinator.drag_start(task_id):
                self._pressed = None
                return
        if self.coordinator.is_dragging:
            self.coordinator.drag_over(over_id)

    def pointer_up(self, over_id: Optional[str] = None) -> Optional[MoveIntent]:
        pressed, self._pressed = self._pressed, None
        if self.coordinator.is_dragging:
            return self.coordinator.drag_end(over_id)
        if pressed is not None and self.on_click:
            self.on_click(pressed[0])
        return None

    def pointer_cancel(self) -> None:
        self._pressed = None
        self.coordinator.cancel()
