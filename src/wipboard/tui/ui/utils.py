"""Small helpers shared by screens and widgets."""

from __future__ import annotations

from contextlib import suppress

from textual.css.query import NoMatches
from textual.widget import Widget


def safe_query_one[T: Widget](
    parent: Widget,
    selector: str,
    widget_class: type[T],
    default: T | None = None,
) -> T | None:
    """Query widget safely, returning default on NoMatches."""
    with suppress(NoMatches):
        return parent.query_one(selector, widget_class)
    return default
