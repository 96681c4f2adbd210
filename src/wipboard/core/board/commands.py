"""Serialization of store commands issued by the board."""

from __future__ import annotations

import asyncio
from contextlib import asynccontextmanager
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from collections.abc import AsyncIterator


class CommandSerializer:
    """Per-task command locks plus a board-wide In Progress admission lock.

    Lock order is always admission before task, so the two never deadlock.
    When disabled every context manager is a no-op and commands may
    interleave freely.
    """

    def __init__(self, *, enabled: bool = True) -> None:
        self._enabled = enabled
        self._task_locks: dict[str, asyncio.Lock] = {}
        self._admission = asyncio.Lock()

    @property
    def enabled(self) -> bool:
        return self._enabled

    @asynccontextmanager
    async def task(self, task_id: str) -> AsyncIterator[None]:
        """Hold the command lock for ``task_id``."""
        if not self._enabled:
            yield
            return
        lock = self._task_locks.setdefault(task_id, asyncio.Lock())
        async with lock:
            yield

    @asynccontextmanager
    async def admission(self) -> AsyncIterator[None]:
        """Hold the board-wide lock guarding moves into In Progress."""
        if not self._enabled:
            yield
            return
        async with self._admission:
            yield

    def forget(self, task_id: str) -> None:
        """Drop the lock of a deleted task once nobody holds it."""
        lock = self._task_locks.get(task_id)
        if lock is not None and not lock.locked():
            del self._task_locks[task_id]
