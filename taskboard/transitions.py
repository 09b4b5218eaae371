"""
Status transition table.

Which lane-to-lane moves are legal is configuration, not engine policy.
The engine only asks the table; the default mirrors the usual workflow
with one backward edge so reviewers can send work back.
"""
from typing import Dict, FrozenSet, Iterable, List, Mapping, Tuple

from .errors import ConfigError
from .schema import TaskStatus, LANE_ORDER

Pair = Tuple[TaskStatus, TaskStatus]


class TransitionTable:
    """Immutable set of allowed (from, to) status pairs."""

    def __init__(self, pairs: Iterable[Pair] = ()):
        self._pairs: FrozenSet[Pair] = frozenset(
            (TaskStatus.from_str(a), TaskStatus.from_str(b)) for a, b in pairs
        )

    @classmethod
    def from_mapping(cls, mapping: Mapping[str, Iterable[str]]) -> "TransitionTable":
        """Build from {"todo": ["in_progress"], ...}."""
        try:
            return cls(
                (source, target)
                for source, targets in mapping.items()
                for target in targets
            )
        except ValueError as e:
            raise ConfigError(f"Bad transition table: {e}") from e

    @classmethod
    def from_strings(cls, entries: Iterable[str]) -> "TransitionTable":
        """Build from ["todo->in_progress", ...]."""
        pairs = []
        for entry in entries:
            source, sep, target = str(entry).partition("->")
            if not sep:
                raise ConfigError(f"Transition '{entry}' must look like 'from->to'")
            try:
                pairs.append((TaskStatus.from_str(source), TaskStatus.from_str(target)))
            except ValueError as e:
                raise ConfigError(f"Bad transition '{entry}': {e}") from e
        return cls(pairs)

    def allows(self, source: TaskStatus, target: TaskStatus) -> bool:
        return (source, target) in self._pairs

    def allowed_from(self, source: TaskStatus) -> List[TaskStatus]:
        """Legal targets from a status, in lane order."""
        return [s for s in LANE_ORDER if (source, s) in self._pairs]

    def to_mapping(self) -> Dict[str, List[str]]:
        return {
            s.value: [t.value for t in self.allowed_from(s)]
            for s in LANE_ORDER
        }

    def __contains__(self, pair: Pair) -> bool:
        return pair in self._pairs

    def __len__(self) -> int:
        return len(self._pairs)

    def __repr__(self) -> str:
        edges = sorted(f"{a.value}->{b.value}" for a, b in self._pairs)
        return f"TransitionTable({edges})"


DEFAULT_TRANSITIONS = TransitionTable([
    (TaskStatus.TODO, TaskStatus.IN_PROGRESS),
    (TaskStatus.IN_PROGRESS, TaskStatus.REVIEW),
    (TaskStatus.REVIEW, TaskStatus.COMPLETED),
    (TaskStatus.REVIEW, TaskStatus.IN_PROGRESS),   # sent back by reviewer
])


def is_valid_transition(
    source: TaskStatus,
    target: TaskStatus,
    table: TransitionTable = DEFAULT_TRANSITIONS,
) -> bool:
    """True if a task may move from source to target. Reorders always pass."""
    if source == target:
        return True
    return table.allows(source, target)
