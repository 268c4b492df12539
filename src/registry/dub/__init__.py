"""Dub registry package."""

from .client import DubClient  # noqa: F401
from .selections import DubSelectionsError, read_dub_selections, selected_version  # noqa: F401

__all__ = ["DubClient", "DubSelectionsError", "read_dub_selections", "selected_version"]
