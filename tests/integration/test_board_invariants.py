"""Property tests: random command sequences never break the board's invariants.

Each example builds a fresh board, then drives it through a random mix of
single moves, drops, bulk moves, racing moves, timer commands, clock jumps,
deletes and restarts. After every step the store must hold no more than
``wip_limit`` tasks in progress and no task may have lost credited minutes.
"""

from __future__ import annotations

import asyncio

import pytest
from hypothesis import given, settings
from hypothesis import strategies as st
from tests.helpers import FakeClock, YieldingTaskStore

from wipboard.core.board.moves import Destination
from wipboard.core.board.orchestrator import BoardOrchestrator
from wipboard.core.config import WipboardConfig
from wipboard.core.constants import COLUMN_ORDER, WIP_STATUS
from wipboard.core.models.enums import TaskPriority

pytestmark = pytest.mark.integration

_status = st.sampled_from(COLUMN_ORDER)
_index = st.integers(min_value=0, max_value=7)

_step = st.one_of(
    st.tuples(st.just("move"), _index, _status),
    st.tuples(st.just("drop"), _index, _status, st.integers(min_value=0, max_value=7)),
    st.tuples(st.just("bulk"), st.sets(_index, min_size=1, max_size=5), _status),
    st.tuples(st.just("race"), st.lists(_index, min_size=2, max_size=4)),
    st.tuples(st.just("start"), _index),
    st.tuples(st.just("stop"), _index),
    st.tuples(st.just("tick")),
    st.tuples(
        st.just("advance"),
        st.integers(min_value=0, max_value=90),
        st.integers(min_value=0, max_value=59),
    ),
    st.tuples(st.just("delete"), _index),
    st.tuples(st.just("restart")),
)


class BoardScenario:
    """A board over a yielding in-memory store, plus the invariant checks."""

    def __init__(self, wip_limit: int) -> None:
        self.clock = FakeClock()
        self.store = YieldingTaskStore(clock=self.clock)
        self.config = WipboardConfig()
        self.config.board.timer_tick_seconds = 0
        self.config.board.wip_limit = wip_limit
        self.wip_limit = wip_limit
        self.project_id = ""
        self.board: BoardOrchestrator | None = None
        self.spent: dict[str, int] = {}

    async def open(self, task_count: int) -> None:
        self.project_id = (await self.store.ensure_project("Invariants")).id
        await self._start_board()
        for n in range(task_count):
            await self.board.create_task(f"Task {n}")

    async def _start_board(self) -> None:
        self.board = BoardOrchestrator(
            self.store, self.project_id, config=self.config, clock=self.clock
        )
        await self.board.start()

    async def close(self) -> None:
        if self.board is not None:
            await self.board.close()

    def _pick(self, index: int) -> str | None:
        tasks = self.board.tasks
        return tasks[index % len(tasks)].id if tasks else None

    async def apply(self, step: tuple) -> None:
        board = self.board
        match step:
            case ("move", index, status):
                if task_id := self._pick(index):
                    await board.move_task(task_id, Destination(status))
            case ("drop", index, status, slot):
                if task_id := self._pick(index):
                    await board.on_reorder(task_id, status, slot)
            case ("bulk", indices, status):
                chosen = {self._pick(index) for index in indices} - {None}
                if not chosen:
                    return
                board.toggle_selection_mode()
                for task_id in chosen:
                    await board.click_task(task_id)
                await board.bulk_update({"status": status, "priority": TaskPriority.HIGH})
                if board.selection_mode:
                    board.toggle_selection_mode()
            case ("race", indices):
                ids = {self._pick(index) for index in indices} - {None}
                await asyncio.gather(
                    *(
                        board.moves.move(self.project_id, task_id, Destination(WIP_STATUS))
                        for task_id in ids
                    ),
                    board.timers.tick(),
                )
                await board.refresh()
            case ("start", index):
                if task_id := self._pick(index):
                    await board.start_timer(task_id)
            case ("stop", index):
                if task_id := self._pick(index):
                    await board.stop_timer(task_id)
            case ("tick",):
                await board.timers.tick()
                await board.refresh()
            case ("advance", minutes, seconds):
                self.clock.advance(minutes=minutes, seconds=seconds)
            case ("delete", index):
                if task_id := self._pick(index):
                    await board.delete_task(task_id)
            case ("restart",):
                await board.close()
                await self._start_board()

    async def check(self) -> None:
        tasks = await self.store.list_tasks(self.project_id)
        in_progress = [task for task in tasks if task.status == WIP_STATUS]
        assert len(in_progress) <= self.wip_limit
        assert self.board.wip_count <= self.wip_limit
        for task in tasks:
            assert task.time_spent_minutes >= self.spent.get(task.id, 0), task.id
        self.spent = {task.id: task.time_spent_minutes for task in tasks}


async def _play(wip_limit: int, task_count: int, steps: list[tuple]) -> None:
    scenario = BoardScenario(wip_limit)
    await scenario.open(task_count)
    try:
        await scenario.check()
        for step in steps:
            await scenario.apply(step)
            await scenario.check()
    finally:
        await scenario.close()


@settings(deadline=None)
@given(
    wip_limit=st.integers(min_value=1, max_value=4),
    task_count=st.integers(min_value=1, max_value=7),
    steps=st.lists(_step, max_size=25),
)
def test_random_commands_keep_wip_and_time_invariants(
    wip_limit: int, task_count: int, steps: list[tuple]
):
    asyncio.run(_play(wip_limit, task_count, steps))


@settings(deadline=None)
@given(
    wip_limit=st.integers(min_value=1, max_value=3),
    selected=st.integers(min_value=1, max_value=6),
    racers=st.integers(min_value=1, max_value=4),
)
def test_bulk_move_racing_single_moves_respects_limit(
    wip_limit: int, selected: int, racers: int
):
    async def play() -> None:
        scenario = BoardScenario(wip_limit)
        await scenario.open(selected + racers)
        board = scenario.board
        try:
            ids = [task.id for task in board.tasks]
            board.toggle_selection_mode()
            for task_id in ids[:selected]:
                await board.click_task(task_id)
            await asyncio.gather(
                board.bulk_update({"status": WIP_STATUS}),
                *(
                    board.moves.move(scenario.project_id, task_id, Destination(WIP_STATUS))
                    for task_id in ids[selected:]
                ),
            )
            await board.refresh()
            await scenario.check()
            assert board.wip_count == min(wip_limit, selected + racers)
        finally:
            await scenario.close()

    asyncio.run(play())
