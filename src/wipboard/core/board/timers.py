"""Per-task timers that turn In Progress time into ``time_spent_minutes``.

Each running timer is anchored at the persisted ``timer_start_time``. A tick
credits the whole minutes elapsed since the anchor and moves the anchor
forward by exactly that amount in the same store command, so a crash loses
less than a minute and a later stop never credits the same minute twice.
"""

from __future__ import annotations

import asyncio
import contextlib
import logging
from dataclasses import dataclass
from typing import TYPE_CHECKING

from wipboard.core.board.commands import CommandSerializer
from wipboard.core.constants import TIMER_TICK_SECONDS
from wipboard.core.errors import StoreError, TaskNotFoundError
from wipboard.core.time import add_minutes, utc_now, whole_minutes_between

if TYPE_CHECKING:
    from collections.abc import Iterable
    from datetime import datetime

    from wipboard.core.models.entities import Task
    from wipboard.core.services.tasks import TaskStore
    from wipboard.core.time import Clock

logger = logging.getLogger(__name__)


@dataclass(slots=True)
class ActiveTimer:
    """A running timer and its background tick loop."""

    task_id: str
    anchor: datetime
    loop: asyncio.Task[None] | None = None


class TaskTimers:
    """Registry of running timers, at most one per task."""

    def __init__(
        self,
        store: TaskStore,
        *,
        clock: Clock = utc_now,
        tick_seconds: int = TIMER_TICK_SECONDS,
        serializer: CommandSerializer | None = None,
    ) -> None:
        self._store = store
        self._clock = clock
        self._tick_seconds = tick_seconds
        self._serializer = serializer or CommandSerializer(enabled=False)
        self._timers: dict[str, ActiveTimer] = {}
        self._stopping: set[str] = set()
        self._closed = False

    def is_running(self, task_id: str) -> bool:
        return task_id in self._timers

    @property
    def running_ids(self) -> frozenset[str]:
        return frozenset(self._timers)

    def anchor(self, task_id: str) -> datetime | None:
        timer = self._timers.get(task_id)
        return timer.anchor if timer is not None else None

    def elapsed_minutes(self, task_id: str) -> int:
        """Whole minutes accrued since the last credit (for live display)."""
        timer = self._timers.get(task_id)
        if timer is None:
            return 0
        return whole_minutes_between(timer.anchor, self._clock())

    def start(self, task_id: str, now: datetime) -> bool:
        """Register a timer anchored at ``now``; no-op if one is running."""
        if self._closed or task_id in self._timers:
            return False
        timer = ActiveTimer(task_id=task_id, anchor=now)
        self._timers[task_id] = timer
        if self._tick_seconds > 0:
            timer.loop = asyncio.create_task(
                self._run(timer), name=f"wipboard-timer-{task_id}"
            )
        logger.debug("Timer started for %s", task_id)
        return True

    async def start_timer(self, task_id: str) -> bool:
        """Persist and register a timer for ``task_id``.

        Returns False when a timer is already running for the task.
        """
        async with self._serializer.task(task_id):
            if task_id in self._timers:
                return False
            now = self._clock()
            await self._store.update_task(task_id, {"timer_start_time": now})
            return self.start(task_id, now)

    def release(self, task_id: str, now: datetime, *, fallback: datetime | None = None) -> int:
        """Unregister the timer of ``task_id`` and return its uncredited minutes.

        ``fallback`` (the persisted ``timer_start_time``) is used when the
        timer was never registered locally. The caller persists the returned
        minutes together with clearing ``timer_start_time``.
        """
        timer = self._drop(task_id)
        anchor = timer.anchor if timer is not None else fallback
        if anchor is None:
            return 0
        return whole_minutes_between(anchor, now)

    def restore(self, task_id: str, anchor: datetime) -> None:
        """Re-register a released timer whose stop command failed."""
        self.start(task_id, anchor)

    async def stop_timer(self, task_id: str) -> int:
        """Stop the timer of ``task_id`` and credit its elapsed minutes.

        Returns the minutes credited; stopping a task without a running timer
        (or one already being stopped) is a no-op returning 0.
        """
        if task_id in self._stopping:
            return 0
        self._stopping.add(task_id)
        try:
            async with self._serializer.task(task_id):
                task = await self._store.get_task(task_id)
                if task is None:
                    self.discard(task_id)
                    return 0
                if task_id not in self._timers and task.timer_start_time is None:
                    return 0
                anchor = self.anchor(task_id) or task.timer_start_time
                minutes = self.release(task_id, self._clock(), fallback=task.timer_start_time)
                try:
                    await self._store.update_task(
                        task_id, {"timer_start_time": None}, add_minutes=minutes
                    )
                except StoreError:
                    if anchor is not None:
                        self.restore(task_id, anchor)
                    raise
                logger.info("Timer stopped for %s (+%d min)", task_id, minutes)
                return minutes
        finally:
            self._stopping.discard(task_id)

    async def tick(self, task_id: str | None = None) -> int:
        """Credit accrued whole minutes for one or all running timers."""
        task_ids = [task_id] if task_id is not None else list(self._timers)
        credited = 0
        for current in task_ids:
            credited += await self._tick_one(current)
        return credited

    async def _tick_one(self, task_id: str) -> int:
        async with self._serializer.task(task_id):
            timer = self._timers.get(task_id)
            if timer is None or task_id in self._stopping:
                return 0
            minutes = whole_minutes_between(timer.anchor, self._clock())
            if minutes <= 0:
                return 0
            previous = timer.anchor
            # Advance before awaiting so a concurrent release never re-credits these minutes.
            timer.anchor = add_minutes(previous, minutes)
            try:
                await self._store.update_task(
                    task_id, {"timer_start_time": timer.anchor}, add_minutes=minutes
                )
            except TaskNotFoundError:
                self._drop(task_id)
                return 0
            except StoreError:
                if self._timers.get(task_id) is timer:
                    timer.anchor = previous
                raise
            logger.debug("Timer tick for %s (+%d min)", task_id, minutes)
            return minutes

    async def _run(self, timer: ActiveTimer) -> None:
        while self._timers.get(timer.task_id) is timer:
            await asyncio.sleep(self._tick_seconds)
            if self._timers.get(timer.task_id) is not timer:
                return
            try:
                await self._tick_one(timer.task_id)
            except StoreError:
                logger.warning("Timer tick failed for %s; retrying next tick", timer.task_id)

    def discard(self, task_id: str) -> None:
        """Drop a timer without crediting anything (used before delete)."""
        if self._drop(task_id) is not None:
            logger.debug("Timer discarded for %s", task_id)

    def _drop(self, task_id: str) -> ActiveTimer | None:
        timer = self._timers.pop(task_id, None)
        if timer is not None and timer.loop is not None:
            if timer.loop is not asyncio.current_task():
                timer.loop.cancel()
        return timer

    def adopt(self, tasks: Iterable[Task]) -> None:
        """Reconcile the registry with an authoritative task list.

        Timers persisted by an earlier session are resumed from their stored
        anchor; local timers whose task vanished or no longer carries a
        ``timer_start_time`` are dropped without crediting.
        """
        persisted = {task.id: task.timer_start_time for task in tasks}
        for task_id in list(self._timers):
            if task_id in self._stopping:
                continue
            if persisted.get(task_id) is None:
                self._drop(task_id)
        for task_id, anchor in persisted.items():
            if anchor is not None and task_id not in self._timers:
                if self.start(task_id, anchor):
                    logger.info("Resumed timer for %s", task_id)

    async def close(self) -> None:
        """Cancel tick loops; persisted anchors let the next session resume."""
        self._closed = True
        loops = [timer.loop for timer in self._timers.values() if timer.loop is not None]
        self._timers.clear()
        for loop in loops:
            loop.cancel()
        for loop in loops:
            with contextlib.suppress(asyncio.CancelledError):
                await loop
