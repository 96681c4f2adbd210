"""Primary task repository."""

from __future__ import annotations

import asyncio
from pathlib import Path
from typing import TYPE_CHECKING, Any

from sqlalchemy import case, func
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker
from sqlmodel import col, select

from wipboard.core.adapters.db.engine import create_db_engine, create_db_tables
from wipboard.core.adapters.db.schema import Project, Task
from wipboard.core.constants import COLUMN_ORDER, POSITION_STEP
from wipboard.core.errors import StoreError
from wipboard.core.models.enums import TaskStatus
from wipboard.core.paths import get_database_path
from wipboard.core.time import utc_now

if TYPE_CHECKING:
    from collections.abc import Mapping, Sequence

_IMMUTABLE_FIELDS = frozenset({"id", "project_id", "created_at", "updated_at"})


class TaskRepository:
    """Async repository for project and task operations."""

    def __init__(self, db_path: str | Path | None = None) -> None:
        # ":memory:" is passed through untouched for throwaway boards.
        self.db_path: str | Path = db_path if db_path else get_database_path()
        self._engine: AsyncEngine | None = None
        self._sessions: async_sessionmaker[AsyncSession] | None = None
        self._closed = False
        self._lock = asyncio.Lock()

    @property
    def closed(self) -> bool:
        return self._closed

    async def initialize(self) -> None:
        """Initialize engine and create tables."""
        self._engine = await create_db_engine(self.db_path)
        self._sessions = async_sessionmaker(
            self._engine, class_=AsyncSession, expire_on_commit=False
        )
        self._closed = False
        await create_db_tables(self._engine)

    async def close(self) -> None:
        """Refuse new sessions, then dispose of the engine."""
        self._closed = True
        self._sessions = None
        if self._engine:
            await self._engine.dispose()
            self._engine = None

    def _get_session(self) -> AsyncSession:
        """Open a session; a closed or uninitialized repository raises StoreError."""
        if self._closed:
            raise StoreError(f"Task database {self.db_path} is closed")
        if self._sessions is None:
            raise StoreError(f"Task database {self.db_path} is not initialized")
        return self._sessions()

    async def get_or_create_project(self, name: str, description: str = "") -> Project:
        """Return the project called ``name``, creating it on first use."""
        async with self._lock:
            async with self._get_session() as session:
                result = await session.execute(select(Project).where(Project.name == name))
                project = result.scalars().first()
                if project is None:
                    project = Project(name=name, description=description)
                    session.add(project)
                    await session.commit()
                    await session.refresh(project)
                return project

    async def list_projects(self) -> Sequence[Project]:
        async with self._get_session() as session:
            result = await session.execute(select(Project).order_by(col(Project.name).asc()))
            return result.scalars().all()

    async def _next_position(
        self, session: AsyncSession, project_id: str, status: TaskStatus
    ) -> int:
        result = await session.execute(
            select(func.max(col(Task.position))).where(
                Task.project_id == project_id, Task.status == status
            )
        )
        last = result.scalar_one_or_none()
        return POSITION_STEP if last is None else last + POSITION_STEP

    async def create(self, task: Task) -> Task:
        """Create a new task, appending it to the end of its column."""
        async with self._lock:
            async with self._get_session() as session:
                task.position = await self._next_position(session, task.project_id, task.status)
                session.add(task)
                await session.commit()
                await session.refresh(task)
        return task

    async def get(self, task_id: str) -> Task | None:
        """Get a task by ID."""
        async with self._get_session() as session:
            return await session.get(Task, task_id)

    async def get_all(self, *, project_id: str | None = None) -> Sequence[Task]:
        """Get all tasks ordered by column, then position."""
        async with self._get_session() as session:
            query = select(Task)
            if project_id is not None:
                query = query.where(Task.project_id == project_id)
            column_rank = case(
                *((col(Task.status) == status, rank) for rank, status in enumerate(COLUMN_ORDER)),
                else_=len(COLUMN_ORDER),
            )
            result = await session.execute(
                query.order_by(
                    column_rank,
                    col(Task.position).asc(),
                    col(Task.created_at).asc(),
                )
            )
            return result.scalars().all()

    async def update(
        self,
        task_id: str,
        fields: Mapping[str, Any],
        *,
        add_minutes: int = 0,
    ) -> tuple[Task, TaskStatus] | None:
        """Apply ``fields`` and credit ``add_minutes`` in one transaction.

        Returns the updated row together with its previous status, or None when
        the task does not exist.
        """
        if add_minutes < 0:
            raise ValueError(f"Cannot credit a negative duration ({add_minutes} minutes)")
        update_data = {k: v for k, v in fields.items() if k not in _IMMUTABLE_FIELDS}

        async with self._lock:
            async with self._get_session() as session:
                task = await session.get(Task, task_id)
                if not task:
                    return None

                old_status = task.status
                spent = update_data.get("time_spent_minutes")
                if spent is not None and spent < task.time_spent_minutes:
                    raise ValueError(
                        f"time_spent_minutes cannot decrease "
                        f"({task.time_spent_minutes} -> {spent})"
                    )
                if update_data:
                    task.sqlmodel_update(update_data)
                if add_minutes:
                    task.time_spent_minutes = (task.time_spent_minutes or 0) + add_minutes
                task.updated_at = utc_now()

                session.add(task)
                await session.commit()
                await session.refresh(task)
                return task, old_status

    async def delete(self, task_id: str) -> bool:
        """Delete a task. Returns True if deleted."""
        async with self._lock:
            async with self._get_session() as session:
                task = await session.get(Task, task_id)
                if not task:
                    return False
                await session.delete(task)
                await session.commit()
        return True

    async def get_counts(self, *, project_id: str | None = None) -> dict[TaskStatus, int]:
        """Get task counts by status."""
        async with self._get_session() as session:
            query = select(Task.status, func.count(col(Task.id)))
            if project_id is not None:
                query = query.where(Task.project_id == project_id)
            result = await session.execute(query.group_by(Task.status))
            counts = {status: 0 for status in TaskStatus}
            for status, count in result.all():
                counts[TaskStatus(status)] = count
            return counts
