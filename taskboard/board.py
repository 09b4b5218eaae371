"""
TaskBoard: wires store, drag coordinator, orchestrator and projector.

The UI layer feeds it snapshots and pointer events and renders whatever
columns() returns. User-facing errors go to the notify callback (the
board's toast) and to the log; the board never reports a move as done
unless the persistence layer confirmed it.
"""
import logging
from typing import Callable, Dict, Iterable, List, Optional

from .config import BoardConfig
from .dragdrop import DragCoordinator, PointerSensor
from .errors import BoardError, MoveFailed
from .gateway import TaskGateway, HttpTaskGateway
from .orchestrator import MoveOrchestrator
from .projector import project
from .schema import Column, ColumnDefinition, MoveIntent, MoveOutcome, TaskItem, TaskStatus
from .store import TaskStore
from .transitions import DEFAULT_TRANSITIONS, TransitionTable

logger = logging.getLogger(__name__)

Notifier = Callable[[str, str, str], None]   # (level, title, message)


def _log_notifier(level: str, title: str, message: str) -> None:
    logger.log(logging.ERROR if level == "error" else logging.INFO, f"{title}: {message}")


class TaskBoard:
    """One board instance per rendered board."""

    def __init__(
        self,
        gateway: TaskGateway,
        tasks: Optional[Iterable[TaskItem]] = None,
        columns: Optional[Dict[TaskStatus, ColumnDefinition]] = None,
        transitions: TransitionTable = DEFAULT_TRANSITIONS,
        compensate: bool = True,
        activation_distance: float = 8.0,
        on_task_click: Optional[Callable[[TaskItem], None]] = None,
        on_create_task: Optional[Callable[[], None]] = None,
        notify: Optional[Notifier] = None,
    ):
        self.store = TaskStore(tasks)
        self.column_definitions = columns
        self.coordinator = DragCoordinator(self.store)
        self.sensor = PointerSensor(
            self.coordinator,
            activation_distance=activation_distance,
            on_click=self._click_by_id,
        )
        self.orchestrator = MoveOrchestrator(
            self.store,
            gateway,
            transitions=transitions,
            columns=columns,
            compensate=compensate,
        )
        self.on_task_click = on_task_click
        self.on_create_task = on_create_task
        self.notify = notify or _log_notifier
        self._columns: List[Column] = project(self.store.snapshot(), columns)
        self._listeners: List[Callable[[List[Column]], None]] = []
        self.store.subscribe(self._reproject)

    @classmethod
    def from_config(cls, config: BoardConfig, gateway: Optional[TaskGateway] = None, **kwargs) -> "TaskBoard":
        """Build a board from BoardConfig; defaults to the HTTP gateway."""
        if gateway is None:
            gateway = HttpTaskGateway(
                config.api_url, timeout=config.request_timeout, api_key=config.api_key
            )
        return cls(
            gateway,
            columns=config.column_definitions(),
            transitions=config.transition_table(),
            compensate=config.compensate_on_update_failure,
            activation_distance=config.activation_distance,
            **kwargs,
        )

    # ── Projection ───────────────────────────────────────────────────────

    def columns(self) -> List[Column]:
        """Current lanes, re-derived after every store change."""
        return self._columns

    def subscribe(self, callback: Callable[[List[Column]], None]) -> None:
        """Register a callback run with new lanes after every change."""
        self._listeners.append(callback)

    def _reproject(self, tasks: List[TaskItem]) -> None:
        self._columns = project(tasks, self.column_definitions)
        for callback in self._listeners:
            callback(self._columns)

    # ── Inbound ──────────────────────────────────────────────────────────

    def load_snapshot(self, tasks: Iterable[TaskItem]) -> None:
        """Adopt a snapshot from the API layer as the new truth."""
        self.store.replace_all(tasks)

    def task_clicked(self, task: TaskItem) -> None:
        if self.on_task_click:
            self.on_task_click(task)

    def create_task(self) -> None:
        if self.on_create_task:
            self.on_create_task()

    def _click_by_id(self, task_id: str) -> None:
        task = self.store.get(task_id)
        if task:
            self.task_clicked(task)

    # ── Drag and drop ────────────────────────────────────────────────────

    def drag_start(self, task_id: str) -> bool:
        return self.coordinator.drag_start(task_id)

    def drag_over(self, over_id: Optional[str]) -> Optional[TaskStatus]:
        return self.coordinator.drag_over(over_id)

    async def drag_end(self, over_id: Optional[str]) -> Optional[MoveOutcome]:
        """Drop and run the resulting move. Returns None if nothing moved."""
        intent = self.coordinator.drag_end(over_id)
        if intent is None:
            return None
        return await self.submit(intent)

    async def pointer_up(self, over_id: Optional[str] = None) -> Optional[MoveOutcome]:
        """Pointer-level counterpart of drag_end, via the activation sensor."""
        intent = self.sensor.pointer_up(over_id)
        if intent is None:
            return None
        return await self.submit(intent)

    async def submit(self, intent: MoveIntent) -> Optional[MoveOutcome]:
        """Run a move intent; report failures instead of raising them."""
        try:
            return await self.orchestrator.move(intent)
        except MoveFailed as e:
            self.notify(
                "error",
                e.title,
                "There was an error moving the task. Please try again.",
            )
            logger.error(f"{e} (compensated={e.compensated})")
            return None
        except BoardError as e:
            self.notify("error", e.title, str(e))
            logger.info(f"Move of {intent.task_id} refused: {e}")
            return None
