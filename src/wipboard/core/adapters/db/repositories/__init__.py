"""Async repositories for domain entities."""

from __future__ import annotations

from wipboard.core.adapters.db.repositories.task import TaskRepository

__all__ = ["TaskRepository"]
