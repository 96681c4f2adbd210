"""Version string reported by ``wipboard --version`` and stamped on exports."""

from __future__ import annotations

from functools import lru_cache
from importlib.metadata import PackageNotFoundError, version

from wipboard import __version__

DISTRIBUTION = "wipboard"


@lru_cache(maxsize=1)
def get_wipboard_version() -> str:
    """Installed distribution version; a source checkout reports ``__version__``."""
    try:
        return version(DISTRIBUTION)
    except PackageNotFoundError:
        return __version__


def version_banner() -> str:
    return f"{DISTRIBUTION} {get_wipboard_version()}"


__all__ = ["DISTRIBUTION", "get_wipboard_version", "version_banner"]
