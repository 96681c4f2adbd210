"""Move Engine: status/position changes with WIP checks and timer bookkeeping.

Planning is a pure function of the task list and the clock. Applying a plan
issues exactly one store command per moved task; timer stops are folded into
that command (``add_minutes`` plus ``timer_start_time = None``) so a task
never ends up with its timer cleared but its minutes uncredited.
"""

from __future__ import annotations

import logging
from contextlib import nullcontext
from dataclasses import dataclass, field, replace
from typing import TYPE_CHECKING, Any

from wipboard.core.board.commands import CommandSerializer
from wipboard.core.board.placement import end_position
from wipboard.core.board.transitions import side_effects_for
from wipboard.core.board.wip import can_enter_column, wip_rejection_message
from wipboard.core.constants import WIP_LIMIT, WIP_STATUS
from wipboard.core.errors import StoreError, TaskNotFoundError
from wipboard.core.models.enums import SideEffect, TaskStatus
from wipboard.core.time import utc_now, whole_minutes_between

if TYPE_CHECKING:
    from collections.abc import Sequence
    from datetime import datetime

    from wipboard.core.board.timers import TaskTimers
    from wipboard.core.models.entities import Task
    from wipboard.core.services.tasks import TaskStore
    from wipboard.core.time import Clock

logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class Destination:
    """Target column and position; ``position=None`` means end of column."""

    status: TaskStatus
    position: int | None = None


@dataclass(frozen=True, slots=True)
class MoveCommand:
    """A single planned store update for one task."""

    task_id: str
    fields: dict[str, Any]
    at: datetime
    add_minutes: int = 0
    side_effects: frozenset[SideEffect] = frozenset()
    # Anchor of a timer this move starts / stops, if any.
    start_anchor: datetime | None = None
    stop_anchor: datetime | None = None


@dataclass(frozen=True, slots=True)
class Rejection:
    """A move refused because the destination column is full."""

    task_id: str
    reason: str


type MoveOutcome = MoveCommand | Rejection | None


@dataclass(slots=True)
class MoveEngine:
    """Plans and applies task moves between and within columns."""

    store: TaskStore
    timers: TaskTimers
    clock: Clock = utc_now
    wip_limit: int = WIP_LIMIT
    overwrite_started_at: bool = True
    serializer: CommandSerializer = field(default_factory=lambda: CommandSerializer(enabled=False))

    def plan_move(
        self, tasks: Sequence[Task], task_id: str, destination: Destination
    ) -> MoveOutcome:
        """Plan moving ``task_id`` to ``destination`` against ``tasks``.

        Returns None when the task is unknown or already sits at the
        destination, a ``Rejection`` when the WIP limit forbids the move,
        and a ``MoveCommand`` otherwise.
        """
        task = next((candidate for candidate in tasks if candidate.id == task_id), None)
        if task is None:
            logger.warning("Ignoring move of unknown task %s", task_id)
            return None
        target = TaskStatus.coerce(destination.status)
        if target is None:
            logger.warning("Ignoring move of %s to unknown status %r", task_id, destination.status)
            return None

        position = destination.position
        if position is None:
            position = end_position(tasks, task_id, target)
        if task.status == target and task.position == position:
            return None

        if task.status != target and not can_enter_column(
            tasks, task_id, target, wip_limit=self.wip_limit
        ):
            logger.info("Rejected move of %s: WIP limit %d reached", task_id, self.wip_limit)
            return Rejection(task_id=task_id, reason=wip_rejection_message(self.wip_limit))

        effects = side_effects_for(task.status, target)
        now = self.clock()
        fields: dict[str, Any] = {"status": target, "position": position}
        add_minutes = 0
        start_anchor: datetime | None = None
        stop_anchor: datetime | None = None

        if SideEffect.STAMP_STARTED in effects and (
            self.overwrite_started_at or task.started_at is None
        ):
            fields["started_at"] = now
        if SideEffect.STAMP_COMPLETED in effects:
            fields["completed_at"] = now
        if SideEffect.START_TIMER in effects and not self._timer_running(task):
            fields["timer_start_time"] = now
            start_anchor = now
        if SideEffect.STOP_TIMER in effects:
            stop_anchor = self.timers.anchor(task_id) or task.timer_start_time
            if stop_anchor is not None:
                fields["timer_start_time"] = None
                add_minutes = whole_minutes_between(stop_anchor, now)

        return MoveCommand(
            task_id=task_id,
            fields=fields,
            at=now,
            add_minutes=add_minutes,
            side_effects=effects,
            start_anchor=start_anchor,
            stop_anchor=stop_anchor,
        )

    def _timer_running(self, task: Task) -> bool:
        return self.timers.is_running(task.id) or task.timer_start_time is not None

    async def apply(self, command: MoveCommand) -> Task:
        """Issue the store command for a planned move and sync the timers."""
        stopping = command.stop_anchor is not None
        restore_anchor: datetime | None = None
        if stopping:
            restore_anchor = self.timers.anchor(command.task_id) or command.stop_anchor
            minutes = self.timers.release(command.task_id, command.at, fallback=command.stop_anchor)
            if minutes != command.add_minutes:
                command = replace(command, add_minutes=minutes)
        try:
            task = await self.store.update_task(
                command.task_id, command.fields, add_minutes=command.add_minutes
            )
        except TaskNotFoundError:
            raise
        except StoreError:
            if restore_anchor is not None:
                self.timers.restore(command.task_id, restore_anchor)
            raise
        if command.start_anchor is not None:
            self.timers.start(command.task_id, command.start_anchor)
        logger.info(
            "Moved %s to %s@%d (+%d min)",
            command.task_id,
            command.fields["status"],
            command.fields["position"],
            command.add_minutes,
        )
        return task

    async def move(
        self, project_id: str, task_id: str, destination: Destination
    ) -> Task | Rejection | None:
        """Re-read the board, plan and apply one move under the command locks."""
        admission = (
            self.serializer.admission()
            if TaskStatus.coerce(destination.status) == WIP_STATUS
            else nullcontext()
        )
        async with admission, self.serializer.task(task_id):
            tasks = await self.store.list_tasks(project_id)
            outcome = self.plan_move(tasks, task_id, destination)
            if not isinstance(outcome, MoveCommand):
                return outcome
            return await self.apply(outcome)
