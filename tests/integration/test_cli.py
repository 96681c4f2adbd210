"""CLI commands against a throwaway SQLite database."""

from __future__ import annotations

import json
from typing import TYPE_CHECKING

import pytest
from click.testing import CliRunner

from wipboard.cli import cli

if TYPE_CHECKING:
    from pathlib import Path

pytestmark = pytest.mark.integration


@pytest.fixture
def runner() -> CliRunner:
    return CliRunner()


@pytest.fixture
def db_file(tmp_path: Path) -> Path:
    return tmp_path / "board.db"


def _write_document(path: Path, statuses: list[str]) -> Path:
    document = {
        "project": {"title": "Imported"},
        "tasks": [
            {"title": f"Task {n}", "status": status, "timeSpentMinutes": 5}
            for n, status in enumerate(statuses)
        ],
    }
    path.write_text(json.dumps(document), encoding="utf-8")
    return path


def test_version(runner: CliRunner):
    result = runner.invoke(cli, ["--version"])
    assert result.exit_code == 0
    assert result.output.startswith("wipboard ")


def test_list_without_database(runner: CliRunner, db_file: Path):
    result = runner.invoke(cli, ["list", "--db", str(db_file)])
    assert result.exit_code == 0
    assert "No projects found" in result.output


def test_import_demotes_over_limit_then_lists(runner: CliRunner, db_file: Path, tmp_path: Path):
    source = _write_document(tmp_path / "in.json", ["in_progress"] * 5 + ["done"])

    result = runner.invoke(
        cli, ["import", "--db", str(db_file), "--project", "Work", str(source)]
    )

    assert result.exit_code == 0, result.output
    assert "Imported 6 task(s) into Work" in result.output
    assert "2 in-progress task(s)" in result.output

    listing = runner.invoke(cli, ["list", "--db", str(db_file)])
    assert listing.exit_code == 0
    assert "Work" in listing.output
    assert "To Do: 2" in listing.output
    assert "In Progress: 3" in listing.output
    assert "Completed: 1" in listing.output


def test_export_to_stdout(runner: CliRunner, db_file: Path, tmp_path: Path):
    source = _write_document(tmp_path / "in.json", ["todo", "completed"])
    runner.invoke(cli, ["import", "--db", str(db_file), "--project", "Work", str(source)])

    result = runner.invoke(cli, ["export", "--db", str(db_file), "--project", "Work", "-"])

    assert result.exit_code == 0, result.output
    document = json.loads(result.output)
    assert document["project"]["title"] == "Work"
    assert document["project"]["progress"] == 50
    assert [task["title"] for task in document["tasks"]] == ["Task 0", "Task 1"]


def test_export_markdown_to_file(runner: CliRunner, db_file: Path, tmp_path: Path):
    target = tmp_path / "board.md"

    result = runner.invoke(
        cli,
        ["export", "--db", str(db_file), "--project", "Notes", "--format", "markdown", str(target)],
    )

    assert result.exit_code == 0, result.output
    assert "Exported Notes" in result.output
    assert "Notes" in target.read_text(encoding="utf-8")


def test_import_rejects_invalid_json(runner: CliRunner, db_file: Path, tmp_path: Path):
    source = tmp_path / "broken.json"
    source.write_text("{not json", encoding="utf-8")

    result = runner.invoke(cli, ["import", "--db", str(db_file), str(source)])

    assert result.exit_code == 1
    assert "Cannot import" in result.output
