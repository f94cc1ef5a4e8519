"""
Central version management for nesta.
"""

from __future__ import annotations

__all__ = ["__app_name__", "__version__", "__release_date__", "__author__", "__license__"]

__app_name__ = "nesta"
__version__ = "0.3.0"
__release_date__ = "2026-10-18"
__author__ = "nesta contributors"
__license__ = "MIT"
