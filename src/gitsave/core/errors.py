"""Error types raised by gitsave."""

from typing import Optional


class GitSaveError(Exception):
    """Base class for errors reported to the user."""


class BackendUnavailable(GitSaveError):
    """A backend call failed or timed out."""

    def __init__(
        self, operation: str, folder: Optional[str], cause: Optional[BaseException] = None
    ):
        self.operation = operation
        self.folder = folder
        self.cause = cause
        message = f"{operation} failed for {folder}"
        if cause is not None:
            detail = str(cause).strip() or type(cause).__name__
            message = f"{message}: {detail}"
        super().__init__(message)


class InvalidSelection(GitSaveError):
    """An action needing a selected commit was invoked without a usable one."""


class ConfigError(GitSaveError):
    """The configuration file could not be read or validated."""
