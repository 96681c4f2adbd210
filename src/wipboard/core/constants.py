"""Board constants - no circular dependencies."""

from __future__ import annotations

from wipboard.core.models.enums import TaskPriority, TaskStatus

WIP_LIMIT = 3
WIP_STATUS = TaskStatus.IN_PROGRESS

TIMER_TICK_SECONDS = 60

# Gap left between neighbouring positions so that most drops need no renumbering.
POSITION_STEP = 1024

COLUMN_ORDER = [
    TaskStatus.TODO,
    TaskStatus.IN_PROGRESS,
    TaskStatus.COMPLETED,
]

STATUS_LABELS = {status: status.label for status in COLUMN_ORDER}

PRIORITY_LABELS = {
    TaskPriority.LOW: "Low",
    TaskPriority.MEDIUM: "Medium",
    TaskPriority.HIGH: "High",
}

CARD_TITLE_LINE_WIDTH = 28
CARD_DESC_MAX_LENGTH = 28
CARD_ID_MAX_LENGTH = 4
CARD_TAGS_MAX_LENGTH = 18
NOTIFICATION_TITLE_MAX_LENGTH = 40

MIN_SCREEN_WIDTH = 80
MIN_SCREEN_HEIGHT = 20

MAX_LOG_MESSAGE_LENGTH = 4096
MAX_LOG_LINES = 2000

DEFAULT_PROJECT_NAME = "Personal"

__all__ = [
    "CARD_DESC_MAX_LENGTH",
    "CARD_ID_MAX_LENGTH",
    "CARD_TAGS_MAX_LENGTH",
    "CARD_TITLE_LINE_WIDTH",
    "COLUMN_ORDER",
    "DEFAULT_PROJECT_NAME",
    "MAX_LOG_LINES",
    "MAX_LOG_MESSAGE_LENGTH",
    "MIN_SCREEN_HEIGHT",
    "MIN_SCREEN_WIDTH",
    "NOTIFICATION_TITLE_MAX_LENGTH",
    "POSITION_STEP",
    "PRIORITY_LABELS",
    "STATUS_LABELS",
    "TIMER_TICK_SECONDS",
    "WIP_LIMIT",
    "WIP_STATUS",
]
