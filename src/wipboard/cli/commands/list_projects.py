"""Project list command."""

from __future__ import annotations

import asyncio
from pathlib import Path

import click

from wipboard.core.constants import COLUMN_ORDER
from wipboard.core.paths import get_database_path


async def _list_projects_data(db_path: str | Path) -> list[dict[str, object]]:
    """Fetch projects with per-column task counts for display."""
    from wipboard.core.adapters.db.repositories import TaskRepository

    repo = TaskRepository(db_path)
    await repo.initialize()
    try:
        output: list[dict[str, object]] = []
        for project in await repo.list_projects():
            by_status = await repo.get_counts(project_id=project.id)
            counts = {status: by_status[status] for status in COLUMN_ORDER}
            output.append({"name": project.name, "created_at": project.created_at, "counts": counts})
        return output
    finally:
        await repo.close()


@click.command(name="list")
@click.option("--db", "db_path", default=None, envvar="WIPBOARD_DB", help="Path to SQLite database")
def list_cmd(db_path: str | None) -> None:
    """List all projects and their task counts."""
    db_file = Path(db_path) if db_path else get_database_path()
    if not db_file.exists():
        click.echo("No projects found")
        return

    try:
        projects = asyncio.run(_list_projects_data(db_file))
    except Exception as e:
        click.secho(f"Failed to read database: {e}", fg="red")
        raise SystemExit(1) from e

    if not projects:
        click.echo("No projects found")
        return

    click.echo()
    for project in projects:
        click.secho(f"  {project['name']}", bold=True)
        counts = project["counts"]
        assert isinstance(counts, dict)
        summary = "  ".join(
            f"{status.label}: {click.style(str(count), fg='cyan')}"
            for status, count in counts.items()
        )
        click.echo(f"    {summary}")
    click.echo()
