"""Options shared by commands that open a board."""

from __future__ import annotations

from collections.abc import Callable
from typing import Any

import click

db_option = click.option(
    "--db",
    "db_path",
    default=None,
    envvar="WIPBOARD_DB",
    type=click.Path(dir_okay=False),
    help="Path to SQLite database (defaults to the user data directory)",
)
project_option = click.option(
    "--project",
    "project_name",
    default=None,
    help="Project to open (defaults to the configured default project)",
)


def board_options(func: Callable[..., Any]) -> Callable[..., Any]:
    return db_option(project_option(func))
