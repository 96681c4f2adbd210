"""SQLModel schema for projects and board tasks."""

# NOTE: __tablename__ overrides are typed `# type: ignore[bad-override]` because
# SQLModel declares __tablename__ as a `@declared_attr` descriptor while table
# classes override it with a plain ``str``.

# NOTE: Avoid `from __future__ import annotations` because SQLModel evaluates
# relationship annotations at class creation time.

from datetime import date, datetime
from uuid import uuid4

from sqlalchemy import JSON, Column
from sqlmodel import Field, Relationship, SQLModel

from wipboard.core.models.enums import TaskPriority, TaskStatus
from wipboard.core.time import utc_now


def new_id() -> str:
    return uuid4().hex[:8]


class Project(SQLModel, table=True):
    """Project container."""

    __tablename__ = "projects"  # type: ignore[bad-override]

    id: str = Field(default_factory=new_id, primary_key=True)
    name: str = Field(index=True, unique=True)
    description: str = Field(default="")
    created_at: datetime = Field(default_factory=utc_now)
    updated_at: datetime = Field(default_factory=utc_now)

    tasks: list["Task"] = Relationship(
        back_populates="project",
        sa_relationship_kwargs={"cascade": "all, delete-orphan"},
    )


class Task(SQLModel, table=True):
    """Unit of work (board card)."""

    __tablename__ = "tasks"  # type: ignore[bad-override]

    id: str = Field(default_factory=new_id, primary_key=True)
    project_id: str = Field(foreign_key="projects.id", index=True)
    title: str = Field(index=True)
    description: str = Field(default="")
    status: TaskStatus = Field(default=TaskStatus.TODO, index=True)
    priority: TaskPriority = Field(default=TaskPriority.MEDIUM, index=True)
    position: int = Field(default=0)
    tags: list[str] = Field(default_factory=list, sa_column=Column(JSON))
    due_date: date | None = Field(default=None)
    estimated_hours: float | None = Field(default=None)
    time_spent_minutes: int = Field(default=0)
    timer_start_time: datetime | None = Field(default=None)
    started_at: datetime | None = Field(default=None)
    completed_at: datetime | None = Field(default=None)
    created_at: datetime = Field(default_factory=utc_now)
    updated_at: datetime = Field(default_factory=utc_now)

    project: Project = Relationship(back_populates="tasks")
