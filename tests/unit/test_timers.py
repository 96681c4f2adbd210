"""Tests for per-task timers and minute crediting."""

from __future__ import annotations

import pytest
from tests.helpers import FakeClock, FlakyTaskStore

from wipboard.core.board.timers import TaskTimers
from wipboard.core.errors import StoreError
from wipboard.core.models.enums import TaskStatus
from wipboard.core.time import add_minutes

pytestmark = pytest.mark.unit


@pytest.fixture
def store(clock: FakeClock) -> FlakyTaskStore:
    return FlakyTaskStore(clock=clock)


@pytest.fixture
async def project_id(store: FlakyTaskStore) -> str:
    return (await store.ensure_project("Timers")).id


@pytest.fixture
async def timers(store: FlakyTaskStore, clock: FakeClock):
    registry = TaskTimers(store, clock=clock, tick_seconds=0)
    yield registry
    await registry.close()


async def _in_progress(store: FlakyTaskStore, project_id: str, title: str = "Work") -> str:
    task = await store.create_task(project_id, title, status=TaskStatus.IN_PROGRESS)
    return task.id


class TestStartStop:
    async def test_start_persists_anchor(self, store, project_id, timers, clock):
        task_id = await _in_progress(store, project_id)

        assert await timers.start_timer(task_id)

        task = await store.get_task(task_id)
        assert task is not None
        assert task.timer_start_time == clock.now
        assert timers.is_running(task_id)

    async def test_second_start_is_noop(self, store, project_id, timers):
        task_id = await _in_progress(store, project_id)
        assert await timers.start_timer(task_id)
        assert not await timers.start_timer(task_id)

    async def test_stop_credits_whole_minutes(self, store, project_id, timers, clock):
        task_id = await _in_progress(store, project_id)
        await timers.start_timer(task_id)
        clock.advance(minutes=7, seconds=59)

        assert await timers.stop_timer(task_id) == 7

        task = await store.get_task(task_id)
        assert task is not None
        assert task.time_spent_minutes == 7
        assert task.timer_start_time is None
        assert not timers.is_running(task_id)

    async def test_stop_without_timer_is_noop(self, store, project_id, timers):
        task_id = await _in_progress(store, project_id)
        assert await timers.stop_timer(task_id) == 0
        assert store.update_calls == []

    async def test_stop_of_deleted_task_drops_timer(self, store, project_id, timers, clock):
        task_id = await _in_progress(store, project_id)
        await timers.start_timer(task_id)
        await store.delete_task(task_id)
        clock.advance(minutes=3)

        assert await timers.stop_timer(task_id) == 0
        assert not timers.is_running(task_id)

    async def test_failed_stop_keeps_timer_running(self, store, project_id, timers, clock):
        task_id = await _in_progress(store, project_id)
        await timers.start_timer(task_id)
        anchor = timers.anchor(task_id)
        clock.advance(minutes=4)
        store.failing = True

        with pytest.raises(StoreError):
            await timers.stop_timer(task_id)

        assert timers.is_running(task_id)
        assert timers.anchor(task_id) == anchor


class TestTick:
    async def test_tick_credits_and_advances_anchor(self, store, project_id, timers, clock):
        task_id = await _in_progress(store, project_id)
        await timers.start_timer(task_id)
        start = clock.now
        clock.advance(minutes=2, seconds=30)

        assert await timers.tick() == 2

        task = await store.get_task(task_id)
        assert task is not None
        assert task.time_spent_minutes == 2
        assert timers.anchor(task_id) == add_minutes(start, 2)
        assert task.timer_start_time == add_minutes(start, 2)

    async def test_tick_then_stop_never_double_credits(self, store, project_id, timers, clock):
        task_id = await _in_progress(store, project_id)
        await timers.start_timer(task_id)
        clock.advance(minutes=2, seconds=30)
        await timers.tick()
        clock.advance(seconds=40)

        assert await timers.stop_timer(task_id) == 1

        task = await store.get_task(task_id)
        assert task is not None
        assert task.time_spent_minutes == 3

    async def test_tick_under_a_minute_writes_nothing(self, store, project_id, timers, clock):
        task_id = await _in_progress(store, project_id)
        await timers.start_timer(task_id)
        calls = len(store.update_calls)
        clock.advance(seconds=59)

        assert await timers.tick(task_id) == 0
        assert len(store.update_calls) == calls

    async def test_failed_tick_restores_anchor(self, store, project_id, timers, clock):
        task_id = await _in_progress(store, project_id)
        await timers.start_timer(task_id)
        anchor = timers.anchor(task_id)
        clock.advance(minutes=5)
        store.failing = True

        with pytest.raises(StoreError):
            await timers.tick(task_id)

        assert timers.anchor(task_id) == anchor
        store.failing = False
        assert await timers.stop_timer(task_id) == 5

    async def test_tick_of_deleted_task_drops_timer(self, store, project_id, timers, clock):
        task_id = await _in_progress(store, project_id)
        await timers.start_timer(task_id)
        await store.delete_task(task_id)
        clock.advance(minutes=2)

        assert await timers.tick() == 0
        assert not timers.is_running(task_id)

    async def test_elapsed_minutes_for_display(self, store, project_id, timers, clock):
        task_id = await _in_progress(store, project_id)
        await timers.start_timer(task_id)
        clock.advance(minutes=3, seconds=10)
        assert timers.elapsed_minutes(task_id) == 3
        assert timers.elapsed_minutes("missing") == 0


class TestAdoptAndDiscard:
    async def test_adopt_resumes_persisted_timer(self, store, project_id, clock):
        task_id = await _in_progress(store, project_id)
        anchor = add_minutes(clock.now, -10)
        await store.update_task(task_id, {"timer_start_time": anchor})

        timers = TaskTimers(store, clock=clock, tick_seconds=0)
        timers.adopt(await store.list_tasks(project_id))

        assert timers.is_running(task_id)
        assert timers.anchor(task_id) == anchor
        assert await timers.stop_timer(task_id) == 10
        await timers.close()

    async def test_adopt_drops_timers_cleared_elsewhere(self, store, project_id, timers):
        task_id = await _in_progress(store, project_id)
        await timers.start_timer(task_id)
        await store.update_task(task_id, {"timer_start_time": None})

        timers.adopt(await store.list_tasks(project_id))

        assert not timers.is_running(task_id)

    async def test_discard_credits_nothing(self, store, project_id, timers, clock):
        task_id = await _in_progress(store, project_id)
        await timers.start_timer(task_id)
        clock.advance(minutes=9)

        timers.discard(task_id)

        task = await store.get_task(task_id)
        assert task is not None
        assert task.time_spent_minutes == 0
        assert not timers.is_running(task_id)

    async def test_close_cancels_tick_loops(self, store, project_id, clock):
        task_id = await _in_progress(store, project_id)
        timers = TaskTimers(store, clock=clock, tick_seconds=60)
        await timers.start_timer(task_id)
        assert timers.is_running(task_id)

        await timers.close()

        assert timers.running_ids == frozenset()
        assert not timers.start(task_id, clock.now)
