"""BoardColumn widget for displaying a status column."""

from __future__ import annotations

from itertools import pairwise
from typing import TYPE_CHECKING

from textual.containers import Container, ScrollableContainer, Vertical
from textual.css.query import NoMatches
from textual.widget import Widget
from textual.widgets import Label

from wipboard.core.constants import STATUS_LABELS, WIP_STATUS
from wipboard.tui.ui.widgets.card import TaskCard

if TYPE_CHECKING:
    from collections.abc import Callable, Collection

    from textual.app import ComposeResult

    from wipboard.core.models.entities import Task
    from wipboard.core.models.enums import TaskStatus

EMPTY_MESSAGE = "No tasks"
EMPTY_FILTERED_MESSAGE = "No tasks match current filters"


class _NSLabel(Label):
    ALLOW_SELECT = False
    can_focus = False


class _NSVertical(Vertical):
    ALLOW_SELECT = False
    can_focus = False


class _NSScrollable(ScrollableContainer):
    ALLOW_SELECT = False
    can_focus = False


class _NSContainer(Container):
    ALLOW_SELECT = False
    can_focus = False


class BoardColumn(Widget):
    """One board column; the In Progress column also shows WIP usage."""

    ALLOW_SELECT = False
    can_focus = False

    def __init__(self, status: TaskStatus, *, wip_limit: int, **kwargs) -> None:
        super().__init__(id=f"column-{status.value}", **kwargs)
        self.status = status
        self.wip_limit = wip_limit
        self._tasks: list[Task] = []
        self._total = 0
        # The placeholder stays mounted and is only shown or hidden.
        self._empty = _NSContainer(classes="column-empty", id=f"empty-{status.value}")
        self._empty_label = _NSLabel(EMPTY_MESSAGE, classes="empty-message")
        self._empty_message = EMPTY_MESSAGE

    @property
    def tasks(self) -> list[Task]:
        return list(self._tasks)

    @property
    def empty_message(self) -> str | None:
        """Placeholder text, or None while the column shows cards."""
        return None if self._tasks else self._empty_message

    def compose(self) -> ComposeResult:
        with _NSVertical():
            with _NSVertical(classes="column-header"):
                yield _NSLabel(
                    self._header_text(),
                    id=f"header-{self.status.value}",
                    classes="column-header-text",
                )
            with _NSScrollable(classes="column-content", id=f"content-{self.status.value}"):
                with self._empty:
                    yield self._empty_label

    def get_cards(self) -> list[TaskCard]:
        return list(self.query(TaskCard))

    def get_card(self, task_id: str) -> TaskCard | None:
        for card in self.get_cards():
            if card.task_model is not None and card.task_model.id == task_id:
                return card
        return None

    def update_tasks(
        self,
        tasks: list[Task],
        *,
        total: int,
        minutes_for: Callable[[Task], int],
        selected_ids: Collection[str] = (),
        selecting: bool = False,
        focused_id: str | None = None,
        filtering: bool = False,
    ) -> None:
        """Update cards with minimal DOM changes - no full recompose.

        ``tasks`` are the visible members in display order; ``total`` counts
        every member of the column, including filtered-out ones. With
        ``filtering`` set an empty column says that filters hide its tasks.
        """
        self._tasks = list(tasks)
        self._total = total
        self.set_class(self.status == WIP_STATUS and total >= self.wip_limit, "wip-full")

        try:
            header = self.query_one(f"#header-{self.status.value}", _NSLabel)
            header.update(self._header_text())
        except NoMatches:
            pass

        try:
            content = self.query_one(f"#content-{self.status.value}", _NSScrollable)
        except NoMatches:
            return
        if not content.is_attached:
            return

        current_cards = {card.task_model.id: card for card in self.get_cards() if card.task_model}
        new_ids = {task.id for task in tasks}

        for task_id in set(current_cards) - new_ids:
            current_cards.pop(task_id).remove()

        for task in tasks:
            card = current_cards.get(task.id)
            if card is None:
                card = TaskCard(task, minutes=minutes_for(task))
                current_cards[task.id] = card
                content.mount(card)
            else:
                card.task_model = task
                card.minutes = minutes_for(task)
            card.selecting = selecting
            card.is_selected = task.id in selected_ids
            card.is_focused = task.id == focused_id

        # Keep existing card widgets but make the visual order match the task order.
        ordered = [current_cards[task.id] for task in tasks]
        attached = [card for card in ordered if card in content.children]
        if attached:
            first = next((child for child in content.children if isinstance(child, TaskCard)), None)
            if first is not None and first is not attached[0]:
                content.move_child(attached[0], before=first)
            for previous, card in pairwise(attached):
                content.move_child(card, after=previous)

        self._empty_message = EMPTY_FILTERED_MESSAGE if filtering else EMPTY_MESSAGE
        self._empty_label.update(self._empty_message)
        self._empty.display = not tasks

    def refresh_minutes(self, minutes_for: Callable[[Task], int]) -> None:
        for card in self.get_cards():
            if card.task_model is not None:
                card.minutes = minutes_for(card.task_model)

    def _header_text(self) -> str:
        text = f"{self.status.icon} {STATUS_LABELS[self.status]} ({self._total})"
        if self.status == WIP_STATUS:
            usage = "FULL" if self._total >= self.wip_limit else f"{self._total}/{self.wip_limit}"
            return f"{text} • WIP {usage}"
        return text
