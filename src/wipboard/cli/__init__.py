"""Command line interface for wipboard."""

from wipboard.cli.commands.root import cli

__all__ = ["cli"]
