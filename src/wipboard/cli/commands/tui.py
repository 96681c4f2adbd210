"""TUI command (the default when no subcommand is given)."""

from __future__ import annotations

import click

from wipboard.core.paths import get_config_path

from .options import board_options


@click.command()
@board_options
@click.option(
    "--memory",
    is_flag=True,
    help="Use a throwaway in-memory board; nothing is saved",
)
def tui(db_path: str | None, project_name: str | None, memory: bool) -> None:
    """Run the board TUI (default command)."""
    from wipboard.tui.app import WipboardApp

    app = WipboardApp(
        db_path=db_path,
        config_path=get_config_path(),
        memory=memory,
        project_name=project_name,
    )
    app.run()
