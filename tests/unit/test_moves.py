"""Tests for the move engine: planning, WIP checks and timer bookkeeping."""

from __future__ import annotations

import asyncio

import pytest
from tests.helpers import FakeClock, FlakyTaskStore, column, make_task

from wipboard.core.board.commands import CommandSerializer
from wipboard.core.board.moves import Destination, MoveCommand, MoveEngine, Rejection
from wipboard.core.board.timers import TaskTimers
from wipboard.core.constants import POSITION_STEP
from wipboard.core.errors import StoreError
from wipboard.core.models.enums import SideEffect, TaskStatus
from wipboard.core.time import add_minutes

pytestmark = pytest.mark.unit


@pytest.fixture
def store(clock: FakeClock) -> FlakyTaskStore:
    return FlakyTaskStore(clock=clock)


@pytest.fixture
async def project_id(store: FlakyTaskStore) -> str:
    return (await store.ensure_project("Moves")).id


@pytest.fixture
async def engine(store: FlakyTaskStore, clock: FakeClock):
    timers = TaskTimers(store, clock=clock, tick_seconds=0)
    yield MoveEngine(store=store, timers=timers, clock=clock)
    await timers.close()


class TestPlanMove:
    def test_unknown_task_is_ignored(self, engine: MoveEngine):
        assert engine.plan_move([], "nope", Destination(TaskStatus.TODO)) is None

    def test_same_destination_is_idempotent(self, engine: MoveEngine):
        tasks = column(TaskStatus.TODO, "a", "b")
        assert engine.plan_move(tasks, "a", Destination(TaskStatus.TODO, POSITION_STEP)) is None
        # End of its own column when already last.
        assert engine.plan_move(tasks, "b", Destination(TaskStatus.TODO)) is None

    def test_wip_limit_rejects(self, engine: MoveEngine):
        tasks = [*column(TaskStatus.IN_PROGRESS, "w1", "w2", "w3"), make_task("a")]
        outcome = engine.plan_move(tasks, "a", Destination(TaskStatus.IN_PROGRESS))
        assert isinstance(outcome, Rejection)
        assert "WIP limit reached" in outcome.reason

    def test_reorder_inside_full_column_is_allowed(self, engine: MoveEngine):
        tasks = column(TaskStatus.IN_PROGRESS, "w1", "w2", "w3")
        outcome = engine.plan_move(tasks, "w1", Destination(TaskStatus.IN_PROGRESS))
        assert isinstance(outcome, MoveCommand)
        assert outcome.fields == {"status": TaskStatus.IN_PROGRESS, "position": 4 * POSITION_STEP}
        assert outcome.side_effects == frozenset()

    def test_enter_progress_stamps_and_starts_timer(self, engine: MoveEngine, clock: FakeClock):
        outcome = engine.plan_move([make_task("a")], "a", Destination(TaskStatus.IN_PROGRESS))
        assert isinstance(outcome, MoveCommand)
        assert outcome.fields["started_at"] == clock.now
        assert outcome.fields["timer_start_time"] == clock.now
        assert outcome.start_anchor == clock.now
        assert SideEffect.START_TIMER in outcome.side_effects

    def test_started_at_kept_when_overwrite_disabled(self, engine: MoveEngine, clock: FakeClock):
        engine.overwrite_started_at = False
        earlier = add_minutes(clock.now, -60)
        task = make_task("a", status=TaskStatus.COMPLETED, started_at=earlier)
        outcome = engine.plan_move([task], "a", Destination(TaskStatus.IN_PROGRESS))
        assert isinstance(outcome, MoveCommand)
        assert "started_at" not in outcome.fields

    def test_completion_folds_timer_stop_into_command(self, engine: MoveEngine, clock: FakeClock):
        anchor = add_minutes(clock.now, -25)
        task = make_task("a", status=TaskStatus.IN_PROGRESS, timer_start_time=anchor)
        outcome = engine.plan_move([task], "a", Destination(TaskStatus.COMPLETED))
        assert isinstance(outcome, MoveCommand)
        assert outcome.add_minutes == 25
        assert outcome.fields["timer_start_time"] is None
        assert outcome.fields["completed_at"] == clock.now
        assert outcome.stop_anchor == anchor

    def test_todo_to_completed_without_timer(self, engine: MoveEngine):
        outcome = engine.plan_move([make_task("a")], "a", Destination(TaskStatus.COMPLETED))
        assert isinstance(outcome, MoveCommand)
        assert outcome.add_minutes == 0
        assert "timer_start_time" not in outcome.fields

    def test_completed_to_todo_keeps_completed_at(self, engine: MoveEngine, clock: FakeClock):
        task = make_task("a", status=TaskStatus.COMPLETED, completed_at=clock.now)
        outcome = engine.plan_move([task], "a", Destination(TaskStatus.TODO))
        assert isinstance(outcome, MoveCommand)
        assert set(outcome.fields) == {"status", "position"}


class TestMove:
    async def test_full_lifecycle_credits_time(self, engine, store, project_id, clock):
        task = await store.create_task(project_id, "Write")

        moved = await engine.move(project_id, task.id, Destination(TaskStatus.IN_PROGRESS))
        assert not isinstance(moved, Rejection) and moved is not None
        assert moved.started_at == clock.now
        assert engine.timers.is_running(task.id)

        clock.advance(minutes=12, seconds=5)
        done = await engine.move(project_id, task.id, Destination(TaskStatus.COMPLETED))
        assert not isinstance(done, Rejection) and done is not None
        assert done.time_spent_minutes == 12
        assert done.timer_start_time is None
        assert done.completed_at == clock.now
        assert not engine.timers.is_running(task.id)

    async def test_completion_is_a_single_store_command(self, engine, store, project_id, clock):
        task = await store.create_task(project_id, "One")
        await engine.move(project_id, task.id, Destination(TaskStatus.IN_PROGRESS))
        clock.advance(minutes=3)
        store.update_calls.clear()

        await engine.move(project_id, task.id, Destination(TaskStatus.COMPLETED))

        assert len(store.update_calls) == 1
        _, fields, minutes = store.update_calls[0]
        assert fields["timer_start_time"] is None
        assert minutes == 3

    async def test_failed_completion_keeps_timer(self, engine, store, project_id, clock):
        task = await store.create_task(project_id, "Flaky")
        await engine.move(project_id, task.id, Destination(TaskStatus.IN_PROGRESS))
        anchor = engine.timers.anchor(task.id)
        clock.advance(minutes=6)
        store.failing = True

        with pytest.raises(StoreError):
            await engine.move(project_id, task.id, Destination(TaskStatus.COMPLETED))

        assert engine.timers.anchor(task.id) == anchor
        stored = await store.get_task(task.id)
        assert stored is not None
        assert stored.status == TaskStatus.IN_PROGRESS
        assert stored.time_spent_minutes == 0

    async def test_reentering_progress_never_double_starts(self, engine, store, project_id, clock):
        task = await store.create_task(project_id, "Again")
        await engine.move(project_id, task.id, Destination(TaskStatus.IN_PROGRESS))
        clock.advance(minutes=2)
        await engine.move(project_id, task.id, Destination(TaskStatus.TODO))
        clock.advance(minutes=30)
        await engine.move(project_id, task.id, Destination(TaskStatus.IN_PROGRESS))
        clock.advance(minutes=1)
        done = await engine.move(project_id, task.id, Destination(TaskStatus.COMPLETED))

        assert not isinstance(done, Rejection) and done is not None
        # Time spent in To Do is never counted.
        assert done.time_spent_minutes == 3

    async def test_concurrent_admission_respects_limit(self, store, project_id, clock):
        timers = TaskTimers(store, clock=clock, tick_seconds=0)
        engine = MoveEngine(
            store=store,
            timers=timers,
            clock=clock,
            wip_limit=1,
            serializer=CommandSerializer(enabled=True),
        )
        first = await store.create_task(project_id, "First")
        second = await store.create_task(project_id, "Second")

        results = await asyncio.gather(
            engine.move(project_id, first.id, Destination(TaskStatus.IN_PROGRESS)),
            engine.move(project_id, second.id, Destination(TaskStatus.IN_PROGRESS)),
        )

        assert sum(isinstance(result, Rejection) for result in results) == 1
        tasks = await store.list_tasks(project_id)
        assert sum(task.status == TaskStatus.IN_PROGRESS for task in tasks) == 1
        await timers.close()
