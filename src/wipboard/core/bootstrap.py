"""Application bootstrap and dependency injection.

This module provides the AppContext which wires the store, the event bus and
the active project together. It is the single point of configuration for
the TUI and the CLI and enables clean dependency injection for testing.

Usage:
    async with bootstrap_app(config=config, db_path=db_path) as ctx:
        tasks = await ctx.task_store.list_tasks(ctx.project.id)
"""

from __future__ import annotations

import asyncio
import logging
from contextlib import asynccontextmanager
from dataclasses import dataclass, field
from typing import TYPE_CHECKING

from wipboard.core.config import WipboardConfig
from wipboard.core.events import DomainEvent, EventBus, EventHandler
from wipboard.core.time import utc_now

if TYPE_CHECKING:
    from collections.abc import AsyncIterator
    from pathlib import Path

    from wipboard.core.models.entities import Project
    from wipboard.core.services.tasks import BoardStore
    from wipboard.core.time import Clock

logger = logging.getLogger(__name__)


class InMemoryEventBus:
    """Simple async event bus with fan-out to handlers and async subscribers.

    This implementation is suitable for single-process use. Events are not
    persisted or replayed; new subscribers only receive future events.
    """

    def __init__(self) -> None:
        self._handlers: list[tuple[type[DomainEvent] | None, EventHandler]] = []
        self._queues: list[tuple[type[DomainEvent] | None, asyncio.Queue[DomainEvent]]] = []
        self._lock = asyncio.Lock()

    async def publish(self, event: DomainEvent) -> None:
        """Publish event to all matching handlers and subscribers."""
        for filter_type, handler in list(self._handlers):
            if filter_type is None or isinstance(event, filter_type):
                try:
                    handler(event)
                except Exception:
                    logger.exception("Event handler failed for %s", type(event).__name__)

        async with self._lock:
            for filter_type, queue in self._queues:
                if filter_type is None or isinstance(event, filter_type):
                    if queue.full():
                        logger.warning("Dropping %s for a slow subscriber", type(event).__name__)
                        continue
                    queue.put_nowait(event)

    def add_handler(
        self,
        handler: EventHandler,
        event_type: type[DomainEvent] | None = None,
    ) -> None:
        """Register a synchronous handler for events."""
        self._handlers.append((event_type, handler))

    def remove_handler(self, handler: EventHandler) -> None:
        """Remove a previously registered handler."""
        self._handlers = [(t, h) for t, h in self._handlers if h is not handler]

    async def subscribe(
        self, event_type: type[DomainEvent] | None = None
    ) -> AsyncIterator[DomainEvent]:
        """Subscribe to events, yielding them as they arrive."""
        queue: asyncio.Queue[DomainEvent] = asyncio.Queue(maxsize=100)
        async with self._lock:
            self._queues.append((event_type, queue))
        try:
            while True:
                event = await queue.get()
                yield event
        finally:
            async with self._lock:
                self._queues = [(t, q) for t, q in self._queues if q is not queue]


@dataclass
class AppContext:
    """Central container for application dependencies.

    Attributes:
        config: Application configuration.
        config_path: Where the configuration was loaded from (None = defaults).
        db_path: SQLite database path, or None for a throwaway in-memory board.
        event_bus: Domain event bus for pub/sub.
        task_store: Store adapter for tasks and projects.
        project: Project whose board is shown.
    """

    config: WipboardConfig
    config_path: Path | None = None
    db_path: str | Path | None = None

    event_bus: EventBus = field(default_factory=InMemoryEventBus)
    task_store: BoardStore = field(init=False)
    project: Project = field(init=False)

    async def close(self) -> None:
        """Release the store (disposes the SQL engine)."""
        if hasattr(self, "task_store"):
            await self.task_store.close()

    async def switch_project(self, name: str) -> Project:
        """Open (creating if needed) the project called ``name``."""
        self.project = await self.task_store.ensure_project(name)
        logger.info("Opened project %s (%s)", self.project.name, self.project.id)
        return self.project


async def create_app_context(
    *,
    config: WipboardConfig | None = None,
    config_path: Path | None = None,
    db_path: str | Path | None = None,
    memory: bool = False,
    project_name: str | None = None,
    clock: Clock = utc_now,
) -> AppContext:
    """Create a fully initialized AppContext (non-context-manager)."""
    if config is None:
        config = WipboardConfig.load(config_path)

    event_bus = InMemoryEventBus()
    ctx = AppContext(
        config=config,
        config_path=config_path,
        db_path=None if memory else db_path,
        event_bus=event_bus,
    )

    if memory:
        from wipboard.core.adapters.memory import InMemoryTaskStore

        ctx.task_store = InMemoryTaskStore(clock=clock, event_bus=event_bus)
    else:
        from wipboard.core.adapters.db.repositories import TaskRepository
        from wipboard.core.services.tasks import TaskServiceImpl

        repo = TaskRepository(db_path)
        await repo.initialize()
        ctx.task_store = TaskServiceImpl(repo, event_bus)

    try:
        await ctx.switch_project(project_name or config.ui.default_project)
    except Exception:
        await ctx.close()
        raise
    return ctx


@asynccontextmanager
async def bootstrap_app(
    *,
    config: WipboardConfig | None = None,
    config_path: Path | None = None,
    db_path: str | Path | None = None,
    memory: bool = False,
    project_name: str | None = None,
) -> AsyncIterator[AppContext]:
    """Bootstrap the application context and close it on exit."""
    ctx = await create_app_context(
        config=config,
        config_path=config_path,
        db_path=db_path,
        memory=memory,
        project_name=project_name,
    )
    try:
        yield ctx
    finally:
        await ctx.close()


__all__ = [
    "AppContext",
    "InMemoryEventBus",
    "bootstrap_app",
    "create_app_context",
]
