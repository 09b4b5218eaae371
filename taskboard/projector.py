"""
Board projection: flat task list -> ordered lanes.

Pure and deterministic. Lane order is fixed; within a lane, tasks keep
their relative order from the input list.
"""
from typing import Callable, Dict, Iterable, List, Optional, Sequence, TypeVar

from .schema import Column, ColumnDefinition, TaskItem, TaskStatus, LANE_ORDER

T = TypeVar("T")

DEFAULT_COLUMNS: Dict[TaskStatus, ColumnDefinition] = {
    TaskStatus.TODO: ColumnDefinition(TaskStatus.TODO, "To Do", "gray"),
    TaskStatus.IN_PROGRESS: ColumnDefinition(TaskStatus.IN_PROGRESS, "In Progress", "blue", limit=3),
    TaskStatus.REVIEW: ColumnDefinition(TaskStatus.REVIEW, "Review", "yellow", limit=2),
    TaskStatus.COMPLETED: ColumnDefinition(TaskStatus.COMPLETED, "Completed", "green"),
}


def lane_tasks(tasks: Iterable[TaskItem], status: TaskStatus) -> List[TaskItem]:
    """Tasks in one lane, in list order."""
    return [t for t in tasks if t.status == status]


def lane_index(tasks: Sequence[TaskItem], task_id: str) -> Optional[int]:
    """Position of a task within its own lane, or None if absent."""
    task = next((t for t in tasks if t.id == task_id), None)
    if task is None:
        return None
    for i, t in enumerate(lane_tasks(tasks, task.status)):
        if t.id == task_id:
            return i
    return None


def project(
    tasks: Sequence[TaskItem],
    definitions: Optional[Dict[TaskStatus, ColumnDefinition]] = None,
) -> List[Column]:
    """Derive the four lanes from a task list."""
    definitions = definitions or DEFAULT_COLUMNS
    columns = []
    for status in LANE_ORDER:
        definition = definitions.get(status) or DEFAULT_COLUMNS[status]
        columns.append(Column(
            id=status,
            title=definition.title,
            color=definition.color,
            limit=definition.limit,
            tasks=lane_tasks(tasks, status),
        ))
    return columns


def reorder(
    items: Sequence[T],
    item_id: str,
    destination: TaskStatus,
    destination_index: int,
    id_of: Callable[[T], str] = lambda t: t.id,
    status_of: Callable[[T], TaskStatus] = lambda t: t.status,
) -> List[T]:
    """
    Return a new flat sequence with item_id placed so that it sits at
    destination_index among the destination lane's other members.

    Status is not changed here; callers set it separately. Indexes past the
    end of the lane append. An empty destination lane keeps the item where
    it was in the flat sequence.
    """
    position = next((i for i, t in enumerate(items) if id_of(t) == item_id), None)
    if position is None:
        raise KeyError(item_id)
    item = items[position]
    remaining = [t for i, t in enumerate(items) if i != position]
    members = [i for i, t in enumerate(remaining) if status_of(t) == destination]
    index = max(0, min(destination_index, len(members)))

    if not members:
        insert_at = min(position, len(remaining))
    elif index < len(members):
        insert_at = members[index]
    else:
        insert_at = members[-1] + 1
    remaining.insert(insert_at, item)
    return remaining
