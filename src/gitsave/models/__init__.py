"""Data models for gitsave."""

from .commit import Commit
from .state import DEFAULT_LIMIT, ViewState

__all__ = ["Commit", "ViewState", "DEFAULT_LIMIT"]
