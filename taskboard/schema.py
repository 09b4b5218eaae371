"""
Task board schema.

Lanes, left to right:
  Todo → In progress → Review → Completed

A task's lane is its status field. Order within a lane is the relative
order of the tasks sharing that status in the flat task list; it is never
stored separately.
"""
from enum import Enum
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Optional, List, Dict, Any


class TaskStatus(Enum):
    """Lanes of the board, in display order."""
    TODO = "todo"
    IN_PROGRESS = "in_progress"
    REVIEW = "review"
    COMPLETED = "completed"

    @classmethod
    def from_str(cls, value: str) -> "TaskStatus":
        """Parse a status value. Raises ValueError on unknown input."""
        if isinstance(value, cls):
            return value
        try:
            return cls(str(value).strip().lower())
        except ValueError:
            raise ValueError(f"Invalid status: {value}") from None


LANE_ORDER: List[TaskStatus] = list(TaskStatus)


class TaskPriority(Enum):
    """Informational only; the engine never acts on it."""
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    URGENT = "urgent"

    @classmethod
    def from_str(cls, value: str) -> "TaskPriority":
        try:
            return cls[str(value).upper()]
        except KeyError:
            return cls.MEDIUM


def _parse_dt(value: Any) -> Optional[datetime]:
    if not value:
        return None
    if isinstance(value, datetime):
        return value
    # Accept the trailing "Z" that browser clients send
    return datetime.fromisoformat(str(value).replace("Z", "+00:00"))


def _format_dt(value: Optional[datetime]) -> Optional[str]:
    return value.isoformat() if value else None


@dataclass
class TaskItem:
    """A unit of work on the board. Created elsewhere and handed to the engine."""

    id: str
    title: str
    status: TaskStatus = TaskStatus.TODO
    description: str = ""
    priority: TaskPriority = TaskPriority.MEDIUM
    progress: int = 0
    due_date: Optional[datetime] = None
    completed_at: Optional[datetime] = None
    tags: List[str] = field(default_factory=list)

    # Owned by the user directory, never mutated here
    assigned_to: Optional[Dict[str, Any]] = None

    # Opaque records, read-only to the engine
    comments: List[Dict[str, Any]] = field(default_factory=list)
    attachments: List[Dict[str, Any]] = field(default_factory=list)

    def __post_init__(self):
        self.progress = max(0, min(100, int(self.progress or 0)))

    def is_overdue(self, now: Optional[datetime] = None) -> bool:
        """Past its due date and not yet completed."""
        if not self.due_date or self.status == TaskStatus.COMPLETED:
            return False
        now = now or datetime.now(timezone.utc)
        due = self.due_date
        if due.tzinfo is None:
            due = due.replace(tzinfo=timezone.utc)
        return due < now

    def to_dict(self) -> Dict[str, Any]:
        """Serialize using the wire names the API layer speaks."""
        return {
            "id": self.id,
            "title": self.title,
            "description": self.description,
            "status": self.status.value,
            "priority": self.priority.value,
            "progress": self.progress,
            "dueDate": _format_dt(self.due_date),
            "completedAt": _format_dt(self.completed_at),
            "tags": list(self.tags),
            "assignedTo": dict(self.assigned_to) if self.assigned_to else None,
            "comments": list(self.comments),
            "attachments": list(self.attachments),
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "TaskItem":
        """Deserialize. Accepts both camelCase and snake_case field names."""
        if not data.get("id"):
            raise ValueError("Task is missing an id")

        def pick(camel: str, snake: str, default=None):
            if camel in data:
                return data[camel]
            return data.get(snake, default)

        return cls(
            id=str(data["id"]),
            title=data.get("title", ""),
            status=TaskStatus.from_str(data.get("status", "todo")),
            description=data.get("description") or "",
            priority=TaskPriority.from_str(data.get("priority", "medium")),
            progress=data.get("progress", 0),
            due_date=_parse_dt(pick("dueDate", "due_date")),
            completed_at=_parse_dt(pick("completedAt", "completed_at")),
            tags=list(data.get("tags") or []),
            assigned_to=pick("assignedTo", "assigned_to"),
            comments=list(data.get("comments") or []),
            attachments=list(data.get("attachments") or []),
        )


@dataclass(frozen=True)
class ColumnDefinition:
    """Presentation and capacity settings for one lane."""
    status: TaskStatus
    title: str
    color: str = ""
    limit: Optional[int] = None     # None = unbounded


@dataclass
class Column:
    """A projected lane. Derived from the task list, never stored."""
    id: TaskStatus
    title: str
    color: str = ""
    limit: Optional[int] = None
    tasks: List[TaskItem] = field(default_factory=list)

    @property
    def count(self) -> int:
        return len(self.tasks)

    @property
    def is_full(self) -> bool:
        return self.limit is not None and self.count >= self.limit

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id.value,
            "title": self.title,
            "color": self.color,
            "limit": self.limit,
            "count": self.count,
            "tasks": [t.to_dict() for t in self.tasks],
        }


@dataclass(frozen=True)
class MoveIntent:
    """A fully resolved request to relocate one task."""
    task_id: str
    source_status: TaskStatus
    destination_status: TaskStatus
    source_index: int
    destination_index: int

    @property
    def changes_lane(self) -> bool:
        return self.source_status != self.destination_status

    @property
    def is_noop(self) -> bool:
        return not self.changes_lane and self.source_index == self.destination_index

    def reversed(self) -> "MoveIntent":
        """The intent that undoes this one."""
        return MoveIntent(
            task_id=self.task_id,
            source_status=self.destination_status,
            destination_status=self.source_status,
            source_index=self.destination_index,
            destination_index=self.source_index,
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "taskId": self.task_id,
            "sourceStatus": self.source_status.value,
            "destinationStatus": self.destination_status.value,
            "sourceIndex": self.source_index,
            "destinationIndex": self.destination_index,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "MoveIntent":
        try:
            return cls(
                task_id=str(data["taskId"]),
                source_status=TaskStatus.from_str(data["sourceStatus"]),
                destination_status=TaskStatus.from_str(data["destinationStatus"]),
                source_index=int(data["sourceIndex"]),
                destination_index=int(data["destinationIndex"]),
            )
        except KeyError as e:
            raise ValueError(f"Move intent is missing {e.args[0]}") from None


@dataclass(frozen=True)
class MoveOutcome:
    """Result of a move that did not raise."""
    intent: MoveIntent
    persisted: bool = False         # at least one external call was made
    status_changed: bool = False
