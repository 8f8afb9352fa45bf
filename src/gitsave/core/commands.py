"""Commands: user actions guarded by an availability predicate."""

import logging
from typing import Awaitable, Callable, Optional

from gitsave.core.errors import GitSaveError
from gitsave.core.store import StateStore
from gitsave.models.state import ViewState

logger = logging.getLogger(__name__)

ErrorReporter = Callable[[GitSaveError], None]


def always(state: ViewState) -> bool:
    return True


class Command:
    """An async action that only runs while its predicate holds.

    Invoking a disabled command does nothing, the way clicking a disabled
    button does nothing. A command that is still running rejects further
    invocations until it finishes.
    """

    def __init__(
        self,
        name: str,
        store: StateStore,
        body: Callable[[], Awaitable[None]],
        can_execute: Callable[[ViewState], bool] = always,
        on_error: Optional[ErrorReporter] = None,
    ):
        self.name = name
        self.store = store
        self._body = body
        self._predicate = can_execute
        self._on_error = on_error
        self.busy = False

    @property
    def can_execute(self) -> bool:
        """Check if invoking the command would run it right now."""
        return not self.busy and bool(self._predicate(self.store.state))

    async def invoke(self) -> bool:
        """Run the command if it is enabled and idle.

        Returns:
            True if the action body ran (even if it reported an error).
        """
        if self.busy:
            logger.debug("command %s is busy, ignoring", self.name)
            return False
        if not self._predicate(self.store.state):
            logger.debug("command %s is disabled, ignoring", self.name)
            return False

        self.busy = True
        logger.info("running %s", self.name)
        try:
            await self._body()
        except GitSaveError as e:
            if self._on_error is None:
                raise
            self._on_error(e)
        finally:
            self.busy = False
        return True

    def __repr__(self) -> str:
        return f"Command({self.name!r}, enabled={self.can_execute})"
