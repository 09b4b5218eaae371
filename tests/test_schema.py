"""
Tests for the board data model: tasks, move intents.
"""
from datetime import datetime, timedelta, timezone

import pytest

from taskboard.schema import MoveIntent, TaskItem, TaskPriority, TaskStatus


def test_task_defaults():
    """New tasks land in todo with medium priority"""
    task = TaskItem(id="T1", title="Write docs")
    assert task.status == TaskStatus.TODO
    assert task.priority == TaskPriority.MEDIUM
    assert task.progress == 0
    assert task.tags == []


def test_progress_is_clamped():
    assert TaskItem(id="a", title="a", progress=140).progress == 100
    assert TaskItem(id="b", title="b", progress=-5).progress == 0


def test_status_parsing():
    assert TaskStatus.from_str("in_progress") == TaskStatus.IN_PROGRESS
    assert TaskStatus.from_str(" Review ") == TaskStatus.REVIEW
    with pytest.raises(ValueError):
        TaskStatus.from_str("archived")


def test_unknown_priority_falls_back_to_medium():
    assert TaskPriority.from_str("critical") == TaskPriority.MEDIUM
    assert TaskPriority.from_str("urgent") == TaskPriority.URGENT


def test_overdue():
    """Overdue only while not completed"""
    now = datetime(2026, 1, 10, tzinfo=timezone.utc)
    task = TaskItem(id="T1", title="x", due_date=now - timedelta(days=1))
    assert task.is_overdue(now)

    task.status = TaskStatus.COMPLETED
    assert not task.is_overdue(now)

    assert not TaskItem(id="T2", title="y").is_overdue(now)
    assert not TaskItem(id="T3", title="z", due_date=now + timedelta(days=1)).is_overdue(now)


def test_task_from_wire_dict():
    """camelCase wire names and the trailing Z are understood"""
    task = TaskItem.from_dict({
        "id": "T9",
        "title": "Ship",
        "status": "review",
        "priority": "high",
        "progress": 40,
        "dueDate": "2026-03-01T12:00:00Z",
        "assignedTo": {"id": "u1", "name": "Sam"},
        "tags": ["release"],
    })
    assert task.status == TaskStatus.REVIEW
    assert task.priority == TaskPriority.HIGH
    assert task.due_date == datetime(2026, 3, 1, 12, tzinfo=timezone.utc)
    assert task.assigned_to["id"] == "u1"

    data = task.to_dict()
    assert data["status"] == "review"
    assert data["dueDate"].startswith("2026-03-01T12:00:00")
    assert data["assignedTo"] == {"id": "u1", "name": "Sam"}


def test_task_without_id_is_rejected():
    with pytest.raises(ValueError):
        TaskItem.from_dict({"title": "orphan"})


def test_move_intent_properties():
    reorder = MoveIntent("T1", TaskStatus.TODO, TaskStatus.TODO, 2, 0)
    assert not reorder.changes_lane
    assert not reorder.is_noop

    same = MoveIntent("T1", TaskStatus.TODO, TaskStatus.TODO, 1, 1)
    assert same.is_noop

    cross = MoveIntent("T1", TaskStatus.REVIEW, TaskStatus.IN_PROGRESS, 0, 2)
    assert cross.changes_lane
    back = cross.reversed()
    assert back.source_status == TaskStatus.IN_PROGRESS
    assert back.destination_status == TaskStatus.REVIEW
    assert (back.source_index, back.destination_index) == (2, 0)


def test_move_intent_wire_format():
    intent = MoveIntent("T1", TaskStatus.TODO, TaskStatus.IN_PROGRESS, 0, 3)
    data = intent.to_dict()
    assert data == {
        "taskId": "T1",
        "sourceStatus": "todo",
        "destinationStatus": "in_progress",
        "sourceIndex": 0,
        "destinationIndex": 3,
    }
    assert MoveIntent.from_dict(data) == intent

    with pytest.raises(ValueError):
        MoveIntent.from_dict({"taskId": "T1"})
