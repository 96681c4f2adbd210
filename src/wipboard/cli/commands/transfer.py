"""Export and import commands."""

from __future__ import annotations

import asyncio
from pathlib import Path

import click

from wipboard.core.bootstrap import bootstrap_app
from wipboard.core.errors import ImportFormatError
from wipboard.core.models.enums import ExportFormat
from wipboard.core.paths import get_config_path
from wipboard.core.services.transfer import (
    export_filename,
    export_project,
    import_tasks,
    parse_import,
)
from wipboard.core.time import utc_now
from wipboard.version import get_wipboard_version

from .options import board_options


async def _export(db_path: str | None, project_name: str | None, fmt: ExportFormat) -> tuple[str, str]:
    async with bootstrap_app(
        config_path=get_config_path(), db_path=db_path, project_name=project_name
    ) as ctx:
        content = await export_project(
            ctx.task_store, ctx.project, fmt, version=get_wipboard_version()
        )
        return ctx.project.name, content


async def _import(db_path: str | None, project_name: str | None, text: str) -> tuple[str, int, int]:
    document = parse_import(text)
    async with bootstrap_app(
        config_path=get_config_path(), db_path=db_path, project_name=project_name
    ) as ctx:
        created = await import_tasks(
            ctx.task_store,
            ctx.project.id,
            document,
            wip_limit=ctx.config.board.wip_limit,
        )
        demoted = sum(
            1 for item, task in zip(document.tasks, created, strict=True) if item.status != task.status
        )
        return ctx.project.name, len(created), demoted


@click.command(name="export")
@board_options
@click.option(
    "--format",
    "fmt",
    type=click.Choice([f.value for f in ExportFormat]),
    default=ExportFormat.JSON.value,
    show_default=True,
    help="Export document format",
)
@click.argument(
    "output",
    required=False,
    type=click.Path(dir_okay=False, writable=True, allow_dash=True, path_type=Path),
)
def export_cmd(
    db_path: str | None, project_name: str | None, fmt: str, output: Path | None
) -> None:
    """Export the tasks of a project to OUTPUT.

    OUTPUT defaults to <project>-<date><suffix> in the current directory;
    pass - to print to stdout.
    """
    export_format = ExportFormat(fmt)
    try:
        name, content = asyncio.run(_export(db_path, project_name, export_format))
    except Exception as e:
        click.secho(f"Export failed: {e}", fg="red")
        raise SystemExit(1) from e

    if output is not None and str(output) == "-":
        click.echo(content, nl=False)
        return

    target = output or Path(export_filename(name, export_format, utc_now().date()))
    try:
        target.write_text(content, encoding="utf-8")
    except OSError as e:
        click.secho(f"Could not write {target}: {e}", fg="red")
        raise SystemExit(1) from e
    click.secho(f"Exported {name} to {target}", fg="green")


@click.command(name="import")
@board_options
@click.argument("path", type=click.Path(exists=True, dir_okay=False, path_type=Path))
def import_cmd(db_path: str | None, project_name: str | None, path: Path) -> None:
    """Import tasks from a JSON export into a project."""
    try:
        text = path.read_text(encoding="utf-8")
        name, count, demoted = asyncio.run(_import(db_path, project_name, text))
    except ImportFormatError as e:
        click.secho(f"Cannot import {path}: {e}", fg="red")
        raise SystemExit(1) from e
    except Exception as e:
        click.secho(f"Import failed: {e}", fg="red")
        raise SystemExit(1) from e

    click.secho(f"Imported {count} task(s) into {name}", fg="green")
    if demoted:
        click.secho(
            f"{demoted} in-progress task(s) were placed in To Do because the WIP limit was reached",
            fg="yellow",
        )
