"""Test helpers package."""

from tests.helpers.clock import BASE_TIME, FakeClock
from tests.helpers.factories import column, make_task
from tests.helpers.stores import FlakyTaskStore, YieldingTaskStore
from tests.helpers.wait import wait_for_modal, wait_for_screen, wait_until

__all__ = [
    "BASE_TIME",
    "FakeClock",
    "FlakyTaskStore",
    "YieldingTaskStore",
    "column",
    "make_task",
    "wait_for_modal",
    "wait_for_screen",
    "wait_until",
]
