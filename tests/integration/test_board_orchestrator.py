"""End-to-end tests of the board orchestrator over real stores."""

from __future__ import annotations

import asyncio
from typing import TYPE_CHECKING

import pytest
from tests.helpers import FlakyTaskStore, YieldingTaskStore

from wipboard.core.board.moves import Destination, Rejection
from wipboard.core.board.orchestrator import (
    LOAD_FAILED_MESSAGE,
    SAVE_FAILED_MESSAGE,
    BoardOrchestrator,
)
from wipboard.core.board.projection import FilterCriteria
from wipboard.core.board.wip import wip_rejection_message
from wipboard.core.events import TaskTimeRecorded
from wipboard.core.models.enums import NavMode, NotificationSeverity, TaskPriority, TaskStatus
from wipboard.core.time import add_minutes

if TYPE_CHECKING:
    from tests.helpers import FakeClock

    from wipboard.core.config import WipboardConfig

pytestmark = pytest.mark.integration

TODO = TaskStatus.TODO
PROGRESS = TaskStatus.IN_PROGRESS
DONE = TaskStatus.COMPLETED


def _column_ids(board: BoardOrchestrator, status: TaskStatus) -> list[str]:
    return [task.id for task in board.columns[status]]


class TestLifecycle:
    async def test_create_always_lands_in_todo(self, board: BoardOrchestrator):
        task = await board.create_task("Sneaky", status=PROGRESS)
        assert task is not None
        assert board.get_task(task.id).status == TODO  # type: ignore[union-attr]
        assert board.has_tasks

    async def test_move_through_columns_tracks_time(self, board: BoardOrchestrator, clock: FakeClock):
        task = await board.create_task("Write")
        assert task is not None

        assert await board.move_task(task.id, Destination(PROGRESS))
        assert board.timers.is_running(task.id)
        clock.advance(minutes=3)
        current = board.get_task(task.id)
        assert current is not None
        assert board.display_minutes(current) == 3

        clock.advance(minutes=17)
        assert await board.move_task(task.id, Destination(DONE))

        done = board.get_task(task.id)
        assert done is not None
        assert done.time_spent_minutes == 20
        assert done.completed_at == clock.now
        assert not board.timers.is_running(task.id)
        assert board.progress.completion_percent == 100

    async def test_wip_rejection_notifies(self, board, notifications):
        ids = [(await board.create_task(f"T{n}")).id for n in range(4)]
        for task_id in ids[:3]:
            assert await board.move_task(task_id, Destination(PROGRESS))

        assert not await board.move_task(ids[3], Destination(PROGRESS))

        assert notifications[-1] == (wip_rejection_message(3), NotificationSeverity.WARNING)
        assert board.wip_count == 3
        assert board.get_task(ids[3]).status == TODO  # type: ignore[union-attr]

    async def test_delete_discards_running_timer(self, board, clock):
        task = await board.create_task("Gone")
        await board.move_task(task.id, Destination(PROGRESS))
        clock.advance(minutes=10)

        assert await board.delete_task(task.id)

        assert not board.timers.is_running(task.id)
        assert board.get_task(task.id) is None

    async def test_update_ignores_engine_fields(self, board):
        task = await board.create_task("Edit me")
        updated = await board.update_task(
            task.id, {"title": "Edited", "status": DONE, "time_spent_minutes": 99}
        )
        assert updated is not None
        assert updated.title == "Edited"
        assert updated.status == TODO
        assert updated.time_spent_minutes == 0

    async def test_persisted_timer_resumes_on_start(
        self, memory_store, project, board_config: WipboardConfig, clock: FakeClock
    ):
        task = await memory_store.create_task(project.id, "Left running", status=PROGRESS)
        await memory_store.update_task(task.id, {"timer_start_time": add_minutes(clock.now, -5)})

        board = BoardOrchestrator(memory_store, project.id, config=board_config, clock=clock)
        await board.start()
        try:
            assert board.timers.is_running(task.id)
            current = board.get_task(task.id)
            assert current is not None
            assert board.display_minutes(current) == 5
        finally:
            await board.close()

    async def test_tick_publishes_time_recorded(self, board, event_bus, clock):
        recorded: list = []
        event_bus.add_handler(recorded.append, TaskTimeRecorded)
        task = await board.create_task("Ticking")
        await board.move_task(task.id, Destination(PROGRESS))
        clock.advance(minutes=2)

        assert await board.timers.tick() == 2

        assert [event.minutes for event in recorded] == [2]


class TestKeyboard:
    async def test_digit_moves_focused_task_and_focus_follows(self, board):
        first = await board.create_task("First")
        await board.create_task("Second")

        assert await board.handle_key("down")
        assert board.navigator.focused_task_id == first.id
        assert await board.handle_key("2")

        assert board.get_task(first.id).status == PROGRESS  # type: ignore[union-attr]
        assert board.navigator.focused_task_id == first.id
        assert board.navigator.column_index == 1

    async def test_superscript_digit_is_not_consumed(self, board):
        task = await board.create_task("Plain")
        await board.handle_key("down")

        assert not await board.handle_key("\u00b2")
        assert board.get_task(task.id).status == TODO  # type: ignore[union-attr]

    async def test_shift_down_reorders(self, board):
        a, b, c = [await board.create_task(name) for name in "ABC"]
        await board.handle_key("down")

        await board.handle_key("shift+down")

        assert _column_ids(board, TODO) == [b.id, a.id, c.id]
        assert board.navigator.focused_task_id == a.id
        assert board.navigator.task_index == 1

    async def test_enter_opens_details(self, memory_store, project, board_config, clock):
        opened: list = []
        board = BoardOrchestrator(
            memory_store,
            project.id,
            config=board_config,
            clock=clock,
            on_open_details=opened.append,
        )
        await board.start()
        task = await board.create_task("Details")
        await board.handle_key("down")
        await board.handle_key("enter")
        await board.close()

        assert [item.id for item in opened] == [task.id]

    async def test_unhandled_key_is_not_consumed(self, board):
        assert not await board.handle_key("z")

    async def test_escape_leaves_navigation(self, board):
        await board.create_task("Any")
        await board.handle_key("down")
        await board.handle_key("escape")
        assert board.navigator.mode == NavMode.IDLE


class TestDragAndDrop:
    async def test_drop_between_visible_cards_with_filter(self, board):
        a = await board.create_task("A", priority=TaskPriority.HIGH)
        await board.create_task("B", priority=TaskPriority.LOW)
        c = await board.create_task("C", priority=TaskPriority.HIGH)
        d = await board.create_task("D", priority=TaskPriority.HIGH)
        board.set_criteria(FilterCriteria(priority=TaskPriority.HIGH))

        assert await board.on_reorder(d.id, TODO, 1)

        assert _column_ids(board, TODO) == [a.id, d.id, c.id]

    async def test_drop_into_full_column_is_rejected(self, board, notifications):
        ids = [(await board.create_task(f"T{n}")).id for n in range(4)]
        for task_id in ids[:3]:
            await board.move_task(task_id, Destination(PROGRESS))

        assert not await board.on_reorder(ids[3], PROGRESS, 0)
        assert notifications[-1][1] == NotificationSeverity.WARNING

    async def test_drop_onto_unknown_column_is_ignored(self, board):
        task = await board.create_task("Lost")
        assert not await board.on_reorder(task.id, "archived", 0)


class TestSelection:
    async def test_select_all_and_bulk_complete(self, board):
        ids = [(await board.create_task(name)).id for name in ("One", "Two")]

        await board.handle_key("m")
        await board.handle_key("down")
        await board.handle_key("space")
        assert board.selected_ids == {ids[0]}
        await board.handle_key("ctrl+a")
        assert board.selected_ids == set(ids)

        result = await board.bulk_update({"status": DONE})

        assert result.ok
        assert all(board.get_task(task_id).status == DONE for task_id in ids)  # type: ignore[union-attr]

    async def test_moves_are_ignored_while_selecting(self, board):
        task = await board.create_task("Frozen")
        board.toggle_selection_mode()
        assert not await board.move_task(task.id, Destination(DONE))
        assert not await board.on_reorder(task.id, DONE, 0)

    async def test_click_toggles_selection_in_selection_mode(self, board):
        task = await board.create_task("Click")
        board.toggle_selection_mode()
        await board.click_task(task.id)
        assert board.selected_ids == {task.id}
        await board.click_task(task.id)
        assert board.selected_ids == set()

    async def test_bulk_delete(self, board):
        ids = [(await board.create_task(name)).id for name in ("One", "Two", "Three")]
        board.toggle_selection_mode()
        for task_id in ids[:2]:
            await board.click_task(task_id)

        result = await board.bulk_delete()

        assert sorted(result.updated) == sorted(ids[:2])
        assert [task.id for task in board.tasks] == [ids[2]]
        assert board.selected_ids == set()


class TestConcurrentCommands:
    @pytest.fixture
    async def yielding_board(self, clock, board_config):
        store = YieldingTaskStore(clock=clock)
        project = await store.ensure_project("Busy")
        board = BoardOrchestrator(store, project.id, config=board_config, clock=clock)
        await board.start()
        yield board
        await board.close()

    async def test_bulk_move_waits_for_concurrent_admission(self, yielding_board):
        board = yielding_board
        ids = [(await board.create_task(f"T{n}")).id for n in range(5)]
        for task_id in ids[:2]:
            assert await board.move_task(task_id, Destination(PROGRESS))
        board.toggle_selection_mode()
        for task_id in ids[2:4]:
            await board.click_task(task_id)

        moved, result = await asyncio.gather(
            board.moves.move(board.project_id, ids[4], Destination(PROGRESS)),
            board.bulk_update({"status": PROGRESS}),
        )

        assert not isinstance(moved, Rejection)
        assert len(result.rejected) == 2
        assert result.updated == []
        await board.refresh()
        assert board.wip_count == 3

    async def test_bulk_and_single_moves_never_overfill(self, yielding_board):
        board = yielding_board
        ids = [(await board.create_task(f"T{n}")).id for n in range(6)]
        board.toggle_selection_mode()
        for task_id in ids[:3]:
            await board.click_task(task_id)

        await asyncio.gather(
            board.bulk_update({"status": PROGRESS}),
            *(
                board.moves.move(board.project_id, task_id, Destination(PROGRESS))
                for task_id in ids[3:]
            ),
        )

        await board.refresh()
        assert board.wip_count == 3


class TestStoreFailures:
    @pytest.fixture
    async def flaky_board(self, clock, board_config, notifications):
        store = FlakyTaskStore(clock=clock)
        project = await store.ensure_project("Flaky")
        board = BoardOrchestrator(
            store,
            project.id,
            config=board_config,
            clock=clock,
            notify=lambda message, severity: notifications.append((message, severity)),
        )
        await board.start()
        yield board, store
        await board.close()

    async def test_failed_refresh_keeps_previous_view(self, flaky_board, notifications):
        board, store = flaky_board
        await board.create_task("Kept")
        store.fail_reads = True

        assert not await board.refresh()

        assert [task.title for task in board.tasks] == ["Kept"]
        assert notifications[-1] == (LOAD_FAILED_MESSAGE, NotificationSeverity.WARNING)

    async def test_failed_move_notifies_and_keeps_task(self, flaky_board, notifications):
        board, store = flaky_board
        task = await board.create_task("Stuck")
        store.failing = True

        assert not await board.move_task(task.id, Destination(PROGRESS))

        assert notifications[-1] == (SAVE_FAILED_MESSAGE, NotificationSeverity.WARNING)
        assert board.get_task(task.id).status == TODO  # type: ignore[union-attr]
        assert not board.timers.is_running(task.id)


async def test_sql_store_lifecycle(sql_store, board_config, clock):
    project = await sql_store.ensure_project("SQL")
    board = BoardOrchestrator(sql_store, project.id, config=board_config, clock=clock)
    await board.start()
    try:
        task = await board.create_task("Persisted")
        assert task is not None
        await board.move_task(task.id, Destination(PROGRESS))
        clock.advance(minutes=20, seconds=30)
        await board.move_task(task.id, Destination(DONE))
    finally:
        await board.close()

    stored = await sql_store.get_task(task.id)
    assert stored is not None
    assert stored.status == DONE
    assert stored.time_spent_minutes == 20
    assert stored.timer_start_time is None
    assert stored.started_at is not None
