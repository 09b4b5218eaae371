"""
Move orchestration: validate, persist, then commit.

  1. same lane, same index      -> no-op
  2. lane change                -> transition table check
  3. lane change                -> WIP limit check (occupancy plus moves
                                   already heading into the lane)
  4. gateway.on_task_move(intent)
  5. lane change                -> gateway.on_task_update(id, {status})
  6. success                    -> store.apply_move(intent)

Nothing touches the store before step 6, so a failure in 4 or 5 needs no
local rollback. If 5 fails after 4 succeeded, the server already holds the
reorder; with compensation enabled a reversed move is sent to undo it.
"""
import logging
from typing import Dict, Optional

from .errors import InvalidTransition, MoveFailed, TaskNotFound, WipLimitExceeded
from .gateway import TaskGateway
from .projector import DEFAULT_COLUMNS
from .schema import ColumnDefinition, MoveIntent, MoveOutcome, TaskStatus
from .store import TaskStore
from .transitions import DEFAULT_TRANSITIONS, TransitionTable, is_valid_transition
from .wip import has_capacity

logger = logging.getLogger(__name__)


class MoveOrchestrator:
    """Runs one move intent through validation, persistence and commit."""

    def __init__(
        self,
        store: TaskStore,
        gateway: TaskGateway,
        transitions: TransitionTable = DEFAULT_TRANSITIONS,
        columns: Optional[Dict[TaskStatus, ColumnDefinition]] = None,
        compensate: bool = True,
    ):
        self.store = store
        self.gateway = gateway
        self.transitions = transitions
        self.columns = columns or DEFAULT_COLUMNS
        self.compensate = compensate
        self._entering: Dict[TaskStatus, int] = {}

    def limit_for(self, status: TaskStatus) -> Optional[int]:
        definition = self.columns.get(status)
        return definition.limit if definition else None

    def validate(self, intent: MoveIntent) -> None:
        """Raise if the move may not happen. Never does I/O."""
        if intent.task_id not in self.store:
            raise TaskNotFound(intent.task_id)
        if not intent.changes_lane:
            return

        source, destination = intent.source_status, intent.destination_status
        if not is_valid_transition(source, destination, self.transitions):
            raise InvalidTransition(source, destination, self.transitions.allowed_from(source))

        # Moves still waiting on the gateway already hold a slot
        limit = self.limit_for(destination)
        count = self.store.count_in(destination) + self._entering.get(destination, 0)
        if not has_capacity(destination, count, limit):
            raise WipLimitExceeded(destination, limit, count)

    async def move(self, intent: MoveIntent) -> MoveOutcome:
        if intent.is_noop:
            return MoveOutcome(intent=intent)

        self.validate(intent)

        destination = intent.destination_status
        if intent.changes_lane:
            self._entering[destination] = self._entering.get(destination, 0) + 1
        try:
            await self._persist(intent)
            self.store.apply_move(intent)
        finally:
            if intent.changes_lane:
                self._entering[destination] -= 1
        return MoveOutcome(intent=intent, persisted=True, status_changed=intent.changes_lane)

    async def _persist(self, intent: MoveIntent) -> None:
        try:
            await self.gateway.on_task_move(intent)
        except Exception as e:
            logger.error(f"Move of {intent.task_id} rejected by persistence layer: {e}")
            raise MoveFailed(intent, e, stage="move") from e

        if intent.changes_lane:
            try:
                await self.gateway.on_task_update(
                    intent.task_id, {"status": intent.destination_status.value}
                )
            except Exception as e:
                logger.error(f"Status update of {intent.task_id} rejected: {e}")
                compensated = await self._compensate(intent) if self.compensate else None
                raise MoveFailed(intent, e, stage="update", compensated=compensated) from e

    async def _compensate(self, intent: MoveIntent) -> bool:
        """Undo a persisted reorder whose status update failed."""
        try:
            await self.gateway.on_task_move(intent.reversed())
        except Exception as e:
            logger.error(
                f"Compensating move for {intent.task_id} failed, server may hold "
                f"{intent.destination_status.value} ordering: {e}"
            )
            return False
        logger.info(f"Compensated move for {intent.task_id}")
        return True
