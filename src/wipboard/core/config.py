"""Configuration loader for wipboard."""

from __future__ import annotations

import asyncio
import os
import tempfile
import tomllib
from pathlib import Path

import tomlkit
from pydantic import BaseModel, Field, field_validator

from wipboard.core.constants import DEFAULT_PROJECT_NAME, TIMER_TICK_SECONDS, WIP_LIMIT
from wipboard.core.models.enums import SortKey, SortOrder
from wipboard.core.paths import ensure_directories, get_config_path


def atomic_write(path: Path, content: str) -> None:
    """Write file atomically to avoid partial/corrupt writes."""
    path.parent.mkdir(parents=True, exist_ok=True)
    fd, tmp_path = tempfile.mkstemp(dir=path.parent, prefix=".tmp_")
    try:
        with os.fdopen(fd, "w", encoding="utf-8") as handle:
            handle.write(content)
        Path(tmp_path).replace(path)
    except Exception:
        Path(tmp_path).unlink(missing_ok=True)
        raise


class BoardConfig(BaseModel):
    """Task board behaviour."""

    wip_limit: int = Field(default=WIP_LIMIT, description="Maximum tasks in progress")
    timer_tick_seconds: int = Field(
        default=TIMER_TICK_SECONDS,
        description="Seconds between persisted timer ticks (0 disables ticking)",
    )
    overwrite_started_at: bool = Field(
        default=True,
        description="Re-stamp started_at every time a task enters In Progress",
    )
    serialize_commands: bool = Field(
        default=True,
        description="Serialize store commands per task and In Progress admission per board",
    )

    @field_validator("wip_limit", mode="before")
    @classmethod
    def validate_wip_limit(cls, value: object) -> int:
        """Coerce invalid limits to the default."""
        match value:
            case bool():
                pass
            case int() as limit if limit >= 1:
                return limit
            case _:
                pass
        return WIP_LIMIT

    @field_validator("timer_tick_seconds", mode="before")
    @classmethod
    def validate_timer_tick_seconds(cls, value: object) -> int:
        """Coerce negative or non-numeric intervals to the default."""
        match value:
            case bool():
                pass
            case int() as seconds if seconds >= 0:
                return seconds
            case _:
                pass
        return TIMER_TICK_SECONDS


class FilterConfig(BaseModel):
    """Initial sort applied when a board opens."""

    sort_key: SortKey = Field(default=SortKey.CREATED_AT)
    sort_order: SortOrder = Field(default=SortOrder.DESC)

    @field_validator("sort_key", mode="before")
    @classmethod
    def validate_sort_key(cls, value: object) -> SortKey:
        """Gracefully coerce unknown sort keys to created_at."""
        match value:
            case str() as key if key in SortKey.__members__.values():
                return SortKey(key)
            case _:
                pass
        return SortKey.CREATED_AT

    @field_validator("sort_order", mode="before")
    @classmethod
    def validate_sort_order(cls, value: object) -> SortOrder:
        """Gracefully coerce unknown sort orders to desc."""
        match value:
            case str() as order if order in SortOrder.__members__.values():
                return SortOrder(order)
            case _:
                pass
        return SortOrder.DESC


class UIConfig(BaseModel):
    """UI-related user preferences."""

    default_project: str = Field(
        default=DEFAULT_PROJECT_NAME, description="Project opened when none is given"
    )
    confirm_bulk_delete: bool = Field(
        default=True, description="Ask for confirmation before deleting selected tasks"
    )


class WipboardConfig(BaseModel):
    """Root configuration model."""

    board: BoardConfig = Field(default_factory=BoardConfig)
    filters: FilterConfig = Field(default_factory=FilterConfig)
    ui: UIConfig = Field(default_factory=UIConfig)

    @classmethod
    def load(cls, config_path: Path | None = None) -> WipboardConfig:
        """Load configuration from TOML file or use defaults."""
        if config_path is None:
            ensure_directories()
            config_path = get_config_path()

        if config_path.exists():
            with open(config_path, "rb") as f:
                data = tomllib.load(f)
            return cls.model_validate(data)

        return cls()

    async def save(self, path: Path) -> None:
        """Serialize current config to TOML file.

        Args:
            path: Path to write config file (created if missing)
        """
        doc = tomlkit.document()
        for section, model in (("board", self.board), ("filters", self.filters), ("ui", self.ui)):
            table = tomlkit.table()
            for key, value in model.model_dump(mode="json").items():
                if value is not None:
                    table[key] = value
            doc[section] = table

        content = tomlkit.dumps(doc)
        await asyncio.to_thread(atomic_write, path, content)

    async def update_filter_defaults(
        self,
        path: Path,
        *,
        sort_key: SortKey | None = None,
        sort_order: SortOrder | None = None,
    ) -> None:
        """Update the stored sort defaults in place (preserves comments).

        Args:
            path: Path to config file (created if missing)
            sort_key: New default sort key (None = no change)
            sort_order: New default sort order (None = no change)
        """
        if path.exists():
            content = await asyncio.to_thread(path.read_text, encoding="utf-8")
            doc = tomlkit.parse(content)
        else:
            doc = tomlkit.document()

        if "filters" not in doc:
            doc["filters"] = tomlkit.table()

        if sort_key is not None:
            self.filters.sort_key = sort_key
            doc["filters"]["sort_key"] = str(sort_key)  # type: ignore[index]
        if sort_order is not None:
            self.filters.sort_order = sort_order
            doc["filters"]["sort_order"] = str(sort_order)  # type: ignore[index]

        content = tomlkit.dumps(doc)
        await asyncio.to_thread(atomic_write, path, content)
