"""Export and import of a project's tasks.

JSON, CSV and Markdown exports share one document model; only JSON can be
imported back. Imported tasks get new ids and are appended to their columns.
"""

from __future__ import annotations

import csv
import io
import json
import logging
import re
from datetime import date, datetime
from typing import TYPE_CHECKING

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

from wipboard.core.board.projection import board_progress
from wipboard.core.board.wip import remaining_capacity
from wipboard.core.constants import COLUMN_ORDER, WIP_LIMIT, WIP_STATUS
from wipboard.core.errors import ImportFormatError
from wipboard.core.models.enums import ExportFormat, TaskPriority, TaskStatus
from wipboard.core.time import ensure_utc, utc_now

if TYPE_CHECKING:
    from collections.abc import Sequence

    from wipboard.core.models.entities import Project, Task
    from wipboard.core.services.tasks import TaskStore

logger = logging.getLogger(__name__)

CSV_HEADERS = [
    "Title",
    "Status",
    "Priority",
    "Tags",
    "Estimated Hours",
    "Time Spent (min)",
    "Created",
    "Completed",
    "Due",
]


class _Document(BaseModel):
    model_config = ConfigDict(populate_by_name=True, extra="ignore")


class ExportedProject(_Document):
    title: str
    description: str = ""
    progress: int = 0
    created_at: datetime | None = None
    updated_at: datetime | None = None


class ExportedTask(_Document):
    title: str
    description: str = ""
    status: TaskStatus = TaskStatus.TODO
    priority: TaskPriority = TaskPriority.MEDIUM
    tags: list[str] = Field(default_factory=list)
    estimated_hours: float | None = Field(default=None, alias="estimatedHours")
    time_spent_minutes: int = Field(default=0, ge=0, alias="timeSpentMinutes")
    created_at: datetime | None = Field(default=None, alias="createdAt")
    completed_at: datetime | None = Field(default=None, alias="completedAt")
    due_date: date | None = Field(default=None, alias="dueDate")

    @field_validator("status", mode="before")
    @classmethod
    def _coerce_status(cls, value: object) -> object:
        return TaskStatus.coerce(value) or value

    @classmethod
    def from_task(cls, task: Task) -> ExportedTask:
        return cls(
            title=task.title,
            description=task.description,
            status=task.status,
            priority=task.priority,
            tags=list(task.tags),
            estimated_hours=task.estimated_hours,
            time_spent_minutes=task.time_spent_minutes,
            created_at=task.created_at,
            completed_at=task.completed_at,
            due_date=task.due_date,
        )


class ExportDocument(_Document):
    project: ExportedProject
    exported_at: datetime
    wipboard_version: str = "dev"
    tasks: list[ExportedTask] = Field(default_factory=list)


def build_export(
    project: Project,
    tasks: Sequence[Task],
    *,
    version: str,
    now: datetime | None = None,
) -> ExportDocument:
    """Snapshot ``tasks`` of ``project`` as an export document."""
    return ExportDocument(
        project=ExportedProject(
            title=project.name,
            description=project.description,
            progress=board_progress(tasks).completion_percent,
            created_at=project.created_at,
            updated_at=project.updated_at,
        ),
        exported_at=now or utc_now(),
        wipboard_version=version,
        tasks=[ExportedTask.from_task(task) for task in tasks],
    )


def export_filename(project_name: str, export_format: ExportFormat, today: date) -> str:
    """``my-project-2024-05-01.json`` style file name."""
    slug = re.sub(r"\s+", "-", project_name.strip()).lower() or "project"
    return f"{slug}-{today.isoformat()}{export_format.suffix}"


def render_json(document: ExportDocument) -> str:
    return document.model_dump_json(by_alias=True, indent=2)


def render_csv(document: ExportDocument) -> str:
    buffer = io.StringIO()
    writer = csv.writer(buffer, quoting=csv.QUOTE_ALL, lineterminator="\n")
    writer.writerow(CSV_HEADERS)
    for task in document.tasks:
        writer.writerow(
            [
                task.title,
                task.status,
                task.priority,
                ", ".join(task.tags),
                "" if task.estimated_hours is None else task.estimated_hours,
                task.time_spent_minutes,
                task.created_at.isoformat() if task.created_at else "",
                task.completed_at.isoformat() if task.completed_at else "",
                task.due_date.isoformat() if task.due_date else "",
            ]
        )
    return buffer.getvalue()


def render_markdown(document: ExportDocument) -> str:
    project = document.project
    lines = [f"# {project.title}", ""]
    if project.description:
        lines += [project.description, ""]
    lines += ["## Project Details", "", f"- **Progress:** {project.progress}%"]

    if document.tasks:
        lines += ["", f"## Tasks ({len(document.tasks)})", ""]
        for status in COLUMN_ORDER:
            members = [task for task in document.tasks if task.status == status]
            if not members:
                continue
            lines += [f"### {status.label} ({len(members)})", ""]
            for task in members:
                box = "x" if status == TaskStatus.COMPLETED else " "
                priority = "" if status == TaskStatus.COMPLETED else f" [{task.priority}]"
                lines.append(f"- [{box}] **{task.title}**{priority}")
                if task.description:
                    lines.append(f"  {task.description}")
            lines.append("")

    lines += ["---", f"*Exported from wipboard on {document.exported_at.date().isoformat()}*", ""]
    return "\n".join(lines)


def render_export(document: ExportDocument, export_format: ExportFormat) -> str:
    match export_format:
        case ExportFormat.JSON:
            return render_json(document)
        case ExportFormat.CSV:
            return render_csv(document)
        case ExportFormat.MARKDOWN:
            return render_markdown(document)
    raise ValueError(f"Unsupported export format: {export_format}")


def parse_import(text: str) -> ExportDocument:
    """Parse a JSON export document."""
    try:
        data = json.loads(text)
    except json.JSONDecodeError as exc:
        raise ImportFormatError(f"Import file is not valid JSON: {exc.msg}") from exc
    if not isinstance(data, dict) or not isinstance(data.get("project"), dict):
        raise ImportFormatError("Invalid project data format")
    data.setdefault("exported_at", utc_now().isoformat())
    try:
        return ExportDocument.model_validate(data)
    except ValidationError as exc:
        count = exc.error_count()
        raise ImportFormatError(f"Invalid project data format: {count} error(s)") from exc


async def export_project(
    store: TaskStore,
    project: Project,
    export_format: ExportFormat,
    *,
    version: str,
) -> str:
    """Render the current tasks of ``project``."""
    tasks = await store.list_tasks(project.id)
    return render_export(build_export(project, tasks, version=version), export_format)


async def import_tasks(
    store: TaskStore,
    project_id: str,
    document: ExportDocument,
    *,
    wip_limit: int = WIP_LIMIT,
) -> list[Task]:
    """Create the document's tasks in ``project_id``.

    In Progress tasks beyond the remaining WIP capacity are imported into
    To Do instead. No timer is resumed for imported tasks.
    """
    capacity = remaining_capacity(await store.list_tasks(project_id), wip_limit)
    created: list[Task] = []
    for item in document.tasks:
        status = item.status
        if status == WIP_STATUS:
            if capacity > 0:
                capacity -= 1
            else:
                logger.info("Importing %r into To Do: WIP limit reached", item.title)
                status = TaskStatus.TODO
        fields: dict[str, object] = {
            "description": item.description,
            "status": status,
            "priority": item.priority,
            "tags": item.tags,
            "estimated_hours": item.estimated_hours,
            "time_spent_minutes": item.time_spent_minutes,
            "due_date": item.due_date,
        }
        if item.created_at is not None:
            fields["created_at"] = ensure_utc(item.created_at)
        if status == TaskStatus.COMPLETED:
            completed_at = item.completed_at or utc_now()
            fields["completed_at"] = ensure_utc(completed_at)
        created.append(await store.create_task(project_id, item.title, **fields))
    logger.info("Imported %d tasks into %s", len(created), project_id)
    return created
