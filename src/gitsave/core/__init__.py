"""Core orchestration for gitsave."""

from .errors import BackendUnavailable, ConfigError, GitSaveError, InvalidSelection

__all__ = ["GitSaveError", "BackendUnavailable", "InvalidSelection", "ConfigError"]
