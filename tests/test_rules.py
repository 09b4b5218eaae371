"""
Tests for the transition table and the WIP limit check.
"""
import itertools

import pytest

from taskboard.errors import ConfigError
from taskboard.schema import TaskStatus
from taskboard.transitions import DEFAULT_TRANSITIONS, TransitionTable, is_valid_transition
from taskboard.wip import has_capacity

TODO, IN_PROGRESS, REVIEW, COMPLETED = list(TaskStatus)


# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━
# Transition Table
# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━


def test_default_forward_path():
    assert is_valid_transition(TODO, IN_PROGRESS)
    assert is_valid_transition(IN_PROGRESS, REVIEW)
    assert is_valid_transition(REVIEW, COMPLETED)


def test_default_backward_edge():
    """Reviewers may send work back to in progress"""
    assert is_valid_transition(REVIEW, IN_PROGRESS)


def test_everything_else_is_rejected():
    allowed = {(TODO, IN_PROGRESS), (IN_PROGRESS, REVIEW), (REVIEW, COMPLETED), (REVIEW, IN_PROGRESS)}
    for pair in itertools.permutations(TaskStatus, 2):
        assert is_valid_transition(*pair) == (pair in allowed), pair


def test_no_direct_todo_to_completed():
    assert not is_valid_transition(TODO, COMPLETED)


def test_same_lane_is_always_valid():
    empty = TransitionTable()
    for status in TaskStatus:
        assert is_valid_transition(status, status, empty)


def test_custom_table_from_mapping():
    table = TransitionTable.from_mapping({"todo": ["completed"], "completed": ["todo"]})
    assert is_valid_transition(TODO, COMPLETED, table)
    assert is_valid_transition(COMPLETED, TODO, table)
    assert not is_valid_transition(TODO, IN_PROGRESS, table)
    assert table.allowed_from(TODO) == [COMPLETED]


def test_table_from_strings():
    table = TransitionTable.from_strings(["todo->review", " review -> completed "])
    assert table.allows(TODO, REVIEW)
    assert table.allows(REVIEW, COMPLETED)
    assert len(table) == 2


@pytest.mark.parametrize("entry", ["todo-in_progress", "todo->archived"])
def test_bad_table_entries(entry):
    with pytest.raises(ConfigError):
        TransitionTable.from_strings([entry])


def test_to_mapping_lists_targets_in_lane_order():
    assert DEFAULT_TRANSITIONS.to_mapping() == {
        "todo": ["in_progress"],
        "in_progress": ["review"],
        "review": ["in_progress", "completed"],
        "completed": [],
    }


# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━
# WIP Limits
# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━


def test_unbounded_lane_always_has_capacity():
    assert has_capacity(TODO, 10_000, None)


def test_capacity_below_and_at_limit():
    assert has_capacity(IN_PROGRESS, 2, 3)
    assert not has_capacity(IN_PROGRESS, 3, 3)
    assert not has_capacity(IN_PROGRESS, 4, 3)


def test_zero_limit_blocks_lane():
    assert not has_capacity(REVIEW, 0, 0)
