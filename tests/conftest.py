"""Pytest fixtures for wipboard tests."""

from __future__ import annotations

import os
import tempfile
from pathlib import Path
from typing import TYPE_CHECKING

import pytest
from hypothesis import Phase, Verbosity, settings

_TEST_BASE_DIR = Path(tempfile.mkdtemp(prefix="wipboard-tests-"))
os.environ["WIPBOARD_DATA_DIR"] = str(_TEST_BASE_DIR / "data")
os.environ["WIPBOARD_CONFIG_DIR"] = str(_TEST_BASE_DIR / "config")

from tests.helpers.clock import FakeClock  # noqa: E402

if TYPE_CHECKING:
    from collections.abc import AsyncIterator

    from wipboard.core.adapters.memory import InMemoryTaskStore
    from wipboard.core.board.orchestrator import BoardOrchestrator
    from wipboard.core.bootstrap import InMemoryEventBus
    from wipboard.core.config import WipboardConfig
    from wipboard.core.models.entities import Project
    from wipboard.core.services.tasks import TaskServiceImpl


settings.register_profile(
    "ci",
    max_examples=100,
    deadline=None,
    phases=[Phase.explicit, Phase.reuse, Phase.generate, Phase.shrink],
)
settings.register_profile(
    "dev",
    max_examples=20,
    deadline=500,
)
settings.register_profile(
    "debug",
    max_examples=10,
    verbosity=Verbosity.verbose,
    deadline=None,
)
settings.load_profile(os.getenv("HYPOTHESIS_PROFILE", "dev"))


@pytest.fixture
def clock() -> FakeClock:
    """A manually advanced clock shared by the store and the board."""
    return FakeClock()


@pytest.fixture
def event_bus() -> InMemoryEventBus:
    """Create an in-memory event bus for service tests."""
    from wipboard.core.bootstrap import InMemoryEventBus

    return InMemoryEventBus()


@pytest.fixture
def memory_store(clock: FakeClock, event_bus: InMemoryEventBus) -> InMemoryTaskStore:
    from wipboard.core.adapters.memory import InMemoryTaskStore

    return InMemoryTaskStore(clock=clock, event_bus=event_bus)


@pytest.fixture
async def project(memory_store: InMemoryTaskStore) -> Project:
    return await memory_store.ensure_project("Test Project")


@pytest.fixture
async def sql_store(tmp_path: Path, event_bus: InMemoryEventBus) -> AsyncIterator[TaskServiceImpl]:
    """Create a TaskServiceImpl backed by a temporary SQLite database."""
    from wipboard.core.adapters.db.repositories import TaskRepository
    from wipboard.core.services.tasks import TaskServiceImpl

    repo = TaskRepository(tmp_path / "test.db")
    await repo.initialize()
    store = TaskServiceImpl(repo, event_bus)
    yield store
    await store.close()


@pytest.fixture
def board_config() -> WipboardConfig:
    """Board config with tick loops disabled; tests tick timers by hand."""
    from wipboard.core.config import WipboardConfig

    config = WipboardConfig()
    config.board.timer_tick_seconds = 0
    return config


@pytest.fixture
def notifications() -> list[tuple[str, str]]:
    """Notifications raised by the ``board`` fixture, as (message, severity)."""
    return []


@pytest.fixture
async def board(
    memory_store: InMemoryTaskStore,
    project: Project,
    board_config: WipboardConfig,
    clock: FakeClock,
    notifications: list[tuple[str, str]],
) -> AsyncIterator[BoardOrchestrator]:
    """A started orchestrator over the in-memory store."""
    from wipboard.core.board.orchestrator import BoardOrchestrator

    orchestrator = BoardOrchestrator(
        memory_store,
        project.id,
        config=board_config,
        clock=clock,
        notify=lambda message, severity: notifications.append((message, severity)),
    )
    await orchestrator.start()
    yield orchestrator
    await orchestrator.close()
