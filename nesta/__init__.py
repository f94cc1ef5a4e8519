"""nesta - pick your next Steam achievement."""

from __future__ import annotations

from nesta.version import __version__

__all__ = ["__version__"]
