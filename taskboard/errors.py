"""
Board errors.

Validation errors (InvalidTransition, WipLimitExceeded) are raised before
any I/O and leave the board untouched. MoveFailed wraps whatever the
persistence layer raised, together with the intent that failed.
"""
from typing import Optional, Iterable, TYPE_CHECKING

if TYPE_CHECKING:
    from .schema import MoveIntent, TaskStatus


class BoardError(Exception):
    """Base class for everything the board reports to the user."""
    title = "Board error"


class ConfigError(BoardError):
    """Raised when board configuration is invalid or incomplete."""
    title = "Configuration error"


class TaskNotFound(BoardError):
    """Raised when a move references a task the store does not hold."""
    title = "Task not found"

    def __init__(self, task_id: str):
        super().__init__(f"Task {task_id} is not on the board")
        self.task_id = task_id


class DragStateError(BoardError):
    """Raised when drag events arrive out of order."""
    title = "Drag error"


class InvalidTransition(BoardError):
    """Attempted lane change is not in the transition table."""
    title = "Invalid status transition"

    def __init__(
        self,
        source: "TaskStatus",
        destination: "TaskStatus",
        allowed: Iterable["TaskStatus"] = (),
    ):
        self.source = source
        self.destination = destination
        self.allowed = list(allowed)
        targets = ", ".join(s.value for s in self.allowed) or "nothing"
        super().__init__(
            f"Cannot move a task from {source.value} to {destination.value}. "
            f"From {source.value} it can move to: {targets}"
        )


class WipLimitExceeded(BoardError):
    """Destination lane is at its work-in-progress limit."""
    title = "WIP limit reached"

    def __init__(self, status: "TaskStatus", limit: int, count: int):
        self.status = status
        self.limit = limit
        self.count = count
        super().__init__(
            f"Lane {status.value} already holds {count} of {limit} allowed tasks"
        )


class GatewayError(BoardError):
    """Raised by a gateway when the persistence layer rejects a call."""
    title = "Persistence error"

    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.status_code = status_code


class MoveFailed(BoardError):
    """The external persistence call(s) for a move rejected or raised."""
    title = "Failed to move task"

    def __init__(
        self,
        intent: "MoveIntent",
        cause: BaseException,
        stage: str = "move",
        compensated: Optional[bool] = None,
    ):
        self.intent = intent
        self.cause = cause
        self.stage = stage              # "move" or "update"
        self.compensated = compensated  # None when no compensation was attempted
        super().__init__(
            f"Moving task {intent.task_id} from {intent.source_status.value} "
            f"to {intent.destination_status.value} failed during {stage}: {cause}"
        )
