"""Root CLI command registration."""

from __future__ import annotations

import click

from wipboard.version import version_banner

from .list_projects import list_cmd
from .options import board_options
from .transfer import export_cmd, import_cmd
from .tui import tui


@click.group(invoke_without_command=True)
@click.option("--version", is_flag=True, help="Show version and exit")
@board_options
@click.option("--memory", is_flag=True, help="Use a throwaway in-memory board")
@click.pass_context
def cli(
    ctx: click.Context,
    version: bool,
    db_path: str | None,
    project_name: str | None,
    memory: bool,
) -> None:
    """WIP-limited personal task board for the terminal."""
    if version:
        click.echo(version_banner())
        ctx.exit(0)

    if ctx.invoked_subcommand is None:
        ctx.invoke(tui, db_path=db_path, project_name=project_name, memory=memory)


cli.add_command(tui)
cli.add_command(list_cmd)
cli.add_command(export_cmd)
cli.add_command(import_cmd)
