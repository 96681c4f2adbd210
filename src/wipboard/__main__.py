"""CLI entry point for wipboard."""

from __future__ import annotations

# Python version check - must be before any imports that use 3.12+ syntax.
import sys

if sys.version_info < (3, 12):  # noqa: UP036
    print("Error: wipboard requires Python 3.12 or higher.")
    print(
        "You are running Python {}.{}".format(  # noqa: UP032
            sys.version_info.major, sys.version_info.minor
        )
    )
    sys.exit(1)

_original_unraisablehook = sys.unraisablehook


def _suppress_event_loop_closed(unraisable: sys.UnraisableHookArgs) -> None:
    """Suppress 'Event loop is closed' errors from asyncio cleanup."""
    if isinstance(unraisable.exc_value, RuntimeError) and "Event loop is closed" in str(
        unraisable.exc_value
    ):
        return
    _original_unraisablehook(unraisable)


# aiosqlite connections finalized after asyncio.run() returns trip this on 3.12.
sys.unraisablehook = _suppress_event_loop_closed


from wipboard.cli import cli  # noqa: E402


def main() -> None:
    """Entry point for the wipboard CLI."""
    cli()


if __name__ == "__main__":
    main()
