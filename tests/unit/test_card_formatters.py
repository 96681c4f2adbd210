"""Tests for card and header text helpers."""

from __future__ import annotations

from datetime import date

import pytest
from tests.helpers import BASE_TIME, make_task

from wipboard.core.board.projection import FilterCriteria
from wipboard.core.models.enums import SortKey, SortOrder, TaskPriority, TaskStatus
from wipboard.tui.ui.card_formatters import format_due, format_tags, format_time, truncate_text
from wipboard.tui.ui.widgets.header import describe_criteria

pytestmark = pytest.mark.unit


def test_truncate_text():
    assert truncate_text("short", 10) == "short"
    assert truncate_text("a" * 12, 10) == "aaaaaaa..."


def test_format_tags():
    assert format_tags([], 18) == ""
    assert format_tags(["ui", "bug"], 18) == "#ui #bug"
    assert len(format_tags(["something", "very", "long", "indeed"], 18)) == 18


def test_format_due():
    today = date(2024, 5, 10)
    assert format_due(None, today) == ""
    assert format_due(date(2024, 5, 12), today) == "due 05-12"
    assert format_due(date(2024, 5, 9), today) == "overdue 05-09"


def test_format_time_marks_running_timer():
    idle = make_task("a")
    running = make_task("b", status=TaskStatus.IN_PROGRESS, timer_start_time=BASE_TIME)
    assert format_time(idle, 65) == "1h 5m"
    assert format_time(running, 5) == "⏱ 5m"


def test_describe_criteria():
    assert describe_criteria(FilterCriteria()) == "sort created at ↓"
    criteria = FilterCriteria(
        search_text=" report ",
        priority=TaskPriority.HIGH,
        status=TaskStatus.COMPLETED,
        sort_key=SortKey.DUE_DATE,
        sort_order=SortOrder.ASC,
    )
    assert describe_criteria(criteria) == 'sort due date ↑ · priority high · status Completed · "report"'
