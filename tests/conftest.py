"""Shared test fixtures for the task board tests."""

import pytest

from taskboard.schema import TaskItem, TaskStatus
from taskboard.store import TaskStore


def make_task(task_id, status=TaskStatus.TODO, **kwargs):
    return TaskItem(id=task_id, title=kwargs.pop("title", f"Task {task_id}"), status=status, **kwargs)


class FakeGateway:
    """Records every external call; fails on demand."""

    def __init__(self, fail_move=None, fail_update=None, fail_compensation=None):
        self.calls = []
        self.fail_move = fail_move
        self.fail_update = fail_update
        self.fail_compensation = fail_compensation

    async def on_task_move(self, intent):
        self.calls.append(("move", intent))
        moves = [c for c in self.calls if c[0] == "move"]
        if len(moves) > 1 and self.fail_compensation:
            raise self.fail_compensation
        if len(moves) == 1 and self.fail_move:
            raise self.fail_move

    async def on_task_update(self, task_id, updates):
        self.calls.append(("update", task_id, updates))
        if self.fail_update:
            raise self.fail_update

    @property
    def kinds(self):
        return [c[0] for c in self.calls]


@pytest.fixture
def tasks():
    """Two todo, three in progress, one review, one completed."""
    return [
        make_task("T1"),
        make_task("P1", TaskStatus.IN_PROGRESS),
        make_task("T2"),
        make_task("P2", TaskStatus.IN_PROGRESS),
        make_task("R1", TaskStatus.REVIEW),
        make_task("P3", TaskStatus.IN_PROGRESS),
        make_task("C1", TaskStatus.COMPLETED),
    ]


@pytest.fixture
def store(tasks):
    return TaskStore(tasks)


@pytest.fixture
def gateway():
    return FakeGateway()
