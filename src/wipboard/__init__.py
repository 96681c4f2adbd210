"""wipboard: a WIP-limited personal task board for the terminal."""

__version__ = "0.1.0"
