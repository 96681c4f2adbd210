"""Pure formatting functions for task cards."""

from __future__ import annotations

from datetime import date
from typing import TYPE_CHECKING

from wipboard.core.time import format_minutes

if TYPE_CHECKING:
    from wipboard.core.models.entities import Task


def truncate_text(text: str, max_length: int) -> str:
    """Truncate text if too long.

    Args:
        text: Text to truncate
        max_length: Maximum length including ellipsis

    Returns:
        Truncated text with ellipsis if needed
    """
    if len(text) <= max_length:
        return text
    return text[: max_length - 3] + "..."


def format_tags(tags: list[str], max_length: int) -> str:
    if not tags:
        return ""
    return truncate_text(" ".join(f"#{tag}" for tag in tags), max_length)


def format_due(due: date | None, today: date) -> str:
    """``due 05-01`` or ``overdue 05-01``; empty when there is no due date."""
    if due is None:
        return ""
    prefix = "overdue" if due < today else "due"
    return f"{prefix} {due:%m-%d}"


def format_time(task: Task, minutes: int) -> str:
    """Tracked time with a running marker."""
    label = format_minutes(minutes)
    return f"⏱ {label}" if task.timer_running else label
