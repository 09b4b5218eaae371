"""
In-memory task store: the board's single source of truth.

Holds the flat task list. Lane membership is each task's status; order in
a lane is list order. Only three entry points mutate it:

  replace_all   - authoritative snapshot from the API layer
  apply_move    - a move the persistence layer confirmed
  apply_update  - a direct field update made outside the board
"""
import copy
import logging
from dataclasses import fields, replace
from typing import Callable, Dict, Iterable, List, Optional, Any

from .errors import TaskNotFound
from .schema import TaskItem, TaskStatus, TaskPriority, MoveIntent, _parse_dt
from .projector import lane_tasks, lane_index, reorder

logger = logging.getLogger(__name__)

_TASK_FIELDS = {f.name for f in fields(TaskItem)}


class TaskStore:
    """Owns the task list. Readers get copies, never the live objects."""

    def __init__(self, tasks: Optional[Iterable[TaskItem]] = None):
        self._tasks: List[TaskItem] = []
        self._subscribers: List[Callable[[List[TaskItem]], None]] = []
        if tasks is not None:
            self._tasks = self._validated(tasks)

    # ── Reads ────────────────────────────────────────────────────────────

    def snapshot(self) -> List[TaskItem]:
        """Deep copy of the current task list."""
        return copy.deepcopy(self._tasks)

    def get(self, task_id: str) -> Optional[TaskItem]:
        task = self._find(task_id)
        return copy.deepcopy(task) if task else None

    def __contains__(self, task_id: str) -> bool:
        return self._find(task_id) is not None

    def __len__(self) -> int:
        return len(self._tasks)

    def count_in(self, status: TaskStatus) -> int:
        """Current occupancy of a lane."""
        return sum(1 for t in self._tasks if t.status == status)

    def lane(self, status: TaskStatus) -> List[TaskItem]:
        return copy.deepcopy(lane_tasks(self._tasks, status))

    def index_in_lane(self, task_id: str) -> Optional[int]:
        return lane_index(self._tasks, task_id)

    # ── Change notification ──────────────────────────────────────────────

    def subscribe(self, callback: Callable[[List[TaskItem]], None]) -> None:
        """Register a callback run with a fresh snapshot after every change."""
        self._subscribers.append(callback)

    def _emit(self) -> None:
        for callback in self._subscribers:
            try:
                callback(self.snapshot())
            except Exception:
                logger.exception("Store subscriber failed")

    # ── Writes ───────────────────────────────────────────────────────────

    def replace_all(self, tasks: Iterable[TaskItem]) -> None:
        """Adopt an authoritative snapshot. No diffing against the old list."""
        self._tasks = self._validated(tasks)
        logger.debug(f"Store replaced with snapshot of {len(self._tasks)} tasks")
        self._emit()

    def apply_move(self, intent: MoveIntent) -> bool:
        """
        Apply a confirmed move: set the status and place the task at
        destination_index within its destination lane.

        Returns False (and changes nothing) if the task is no longer here,
        e.g. a snapshot dropped it while the move was in flight.
        """
        task = self._find(intent.task_id)
        if task is None:
            logger.warning(f"Confirmed move for {intent.task_id} skipped: task no longer in store")
            return False

        self._tasks = reorder(
            self._tasks, intent.task_id, intent.destination_status, intent.destination_index
        )
        task.status = intent.destination_status
        logger.info(
            f"Task {intent.task_id} moved to "
            f"{intent.destination_status.value}[{self.index_in_lane(intent.task_id)}]"
        )
        self._emit()
        return True

    def apply_update(self, task_id: str, updates: Dict[str, Any]) -> TaskItem:
        """
        Apply a direct update from outside the board. Returns a copy of the task.

        All values are parsed before anything changes; a bad field leaves the
        task exactly as it was.
        """
        task = self._find(task_id)
        if task is None:
            raise TaskNotFound(task_id)
        unknown = set(updates) - _TASK_FIELDS
        if unknown:
            raise ValueError(f"Unknown task fields: {sorted(unknown)}")
        if "id" in updates and updates["id"] != task_id:
            raise ValueError("Task id cannot be changed")

        parsed: Dict[str, Any] = {}
        for name, value in updates.items():
            if name == "status":
                value = TaskStatus.from_str(value)
            elif name == "priority":
                value = TaskPriority.from_str(value.value if isinstance(value, TaskPriority) else value)
            elif name in ("due_date", "completed_at"):
                value = _parse_dt(value)
            parsed[name] = value
        try:
            updated = replace(task, **parsed)
        except TypeError as e:
            raise ValueError(str(e)) from e

        self._tasks = [updated if t.id == task_id else t for t in self._tasks]
        self._emit()
        return copy.deepcopy(updated)

    # ── Internals ────────────────────────────────────────────────────────

    def _find(self, task_id: str) -> Optional[TaskItem]:
        for task in self._tasks:
            if task.id == task_id:
                return task
        return None

    @staticmethod
    def _validated(tasks: Iterable[TaskItem]) -> List[TaskItem]:
        result = copy.deepcopy(list(tasks))
        seen = set()
        for task in result:
            if task.id in seen:
                raise ValueError(f"Duplicate task id in snapshot: {task.id}")
            seen.add(task.id)
        return result
