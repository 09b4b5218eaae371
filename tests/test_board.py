"""
Tests for the TaskBoard facade: end-to-end drag flows and callbacks.
"""
import asyncio

import pytest

from conftest import FakeGateway, make_task
from taskboard.board import TaskBoard
from taskboard.config import BoardConfig
from taskboard.errors import GatewayError
from taskboard.gateway import HttpTaskGateway
from taskboard.schema import TaskStatus

TODO, IN_PROGRESS, REVIEW, COMPLETED = list(TaskStatus)


def lanes(board):
    return {c.id: [t.id for t in c.tasks] for c in board.columns()}


@pytest.fixture
def notices():
    return []


@pytest.fixture
def board(tasks, gateway, notices):
    return TaskBoard(gateway, tasks, notify=lambda *args: notices.append(args))


def test_initial_projection(board):
    assert lanes(board) == {
        TODO: ["T1", "T2"],
        IN_PROGRESS: ["P1", "P2", "P3"],
        REVIEW: ["R1"],
        COMPLETED: ["C1"],
    }


def test_drag_review_to_completed(board, gateway, notices):
    board.drag_start("R1")
    board.drag_over("completed")
    outcome = asyncio.run(board.drag_end("completed"))

    assert outcome.status_changed
    assert gateway.kinds == ["move", "update"]
    assert lanes(board)[COMPLETED] == ["C1", "R1"]
    assert notices == []


def test_wip_violation_is_reported_not_raised(board, gateway, notices):
    before = lanes(board)
    board.drag_start("T1")
    assert asyncio.run(board.drag_end("in_progress")) is None
    assert gateway.calls == []
    assert lanes(board) == before
    level, title, message = notices[0]
    assert level == "error"
    assert title == "WIP limit reached"
    assert "3 of 3" in message


def test_invalid_transition_is_reported(board, notices):
    board.drag_start("T1")
    assert asyncio.run(board.drag_end("C1")) is None
    assert notices[0][1] == "Invalid status transition"


def test_persistence_failure_is_reported(tasks, notices):
    gateway = FakeGateway(fail_move=GatewayError("offline"))
    board = TaskBoard(gateway, tasks, notify=lambda *args: notices.append(args))
    before = lanes(board)

    board.drag_start("T2")
    assert asyncio.run(board.drag_end("T1")) is None

    assert lanes(board) == before
    assert notices == [("error", "Failed to move task", "There was an error moving the task. Please try again.")]


def test_drop_outside_is_silent(board, gateway, notices):
    board.drag_start("T1")
    assert asyncio.run(board.drag_end(None)) is None
    assert gateway.calls == []
    assert notices == []


def test_pointer_flow(board, gateway):
    board.sensor.pointer_down("T2", 10, 10)
    board.sensor.pointer_move(10, 40, over_id="T1")
    outcome = asyncio.run(board.pointer_up("T1"))
    assert outcome.persisted
    assert gateway.kinds == ["move"]
    assert lanes(board)[TODO] == ["T2", "T1"]


def test_click_without_drag_notifies(tasks, gateway):
    clicked = []
    board = TaskBoard(gateway, tasks, on_task_click=clicked.append)
    board.sensor.pointer_down("R1", 0, 0)
    assert asyncio.run(board.pointer_up("R1")) is None
    assert [t.id for t in clicked] == ["R1"]
    assert gateway.calls == []


def test_create_task_callback(gateway):
    opened = []
    board = TaskBoard(gateway, on_create_task=lambda: opened.append(True))
    board.create_task()
    assert opened == [True]


def test_snapshot_reprojects_and_notifies(board):
    seen = []
    board.subscribe(seen.append)
    board.load_snapshot([make_task("N1", REVIEW), make_task("N2", REVIEW)])
    assert lanes(board)[REVIEW] == ["N1", "N2"]
    assert lanes(board)[TODO] == []
    assert len(seen) == 1


def test_lane_membership_matches_status_after_moves(board):
    """Every reachable state keeps lanes in line with status fields"""
    for task_id, target in [("R1", "completed"), ("P1", "review"), ("T1", "in_progress")]:
        board.drag_start(task_id)
        asyncio.run(board.drag_end(target))

    for column in board.columns():
        for task in column.tasks:
            assert task.status == column.id
    assert sum(c.count for c in board.columns()) == 7


def test_from_config_uses_custom_rules(tmp_path):
    path = tmp_path / "board.yaml"
    path.write_text(
        "columns:\n"
        "  in_progress: {limit: 1}\n"
        "transitions: ['todo->completed']\n"
    )
    cfg = BoardConfig.load(str(path))

    board = TaskBoard.from_config(cfg, gateway=FakeGateway(), tasks=[make_task("A")])
    board.drag_start("A")
    outcome = asyncio.run(board.drag_end("completed"))
    assert outcome.status_changed
    assert board.orchestrator.limit_for(IN_PROGRESS) == 1


def test_from_config_defaults_to_http_gateway():
    board = TaskBoard.from_config(BoardConfig())
    assert isinstance(board.orchestrator.gateway, HttpTaskGateway)
