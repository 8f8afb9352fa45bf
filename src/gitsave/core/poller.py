"""Background polling of the backend's "has updates" check."""

import asyncio
import logging
from typing import Callable, List, Optional

from gitsave.core.backend import Backend
from gitsave.core.commands import ErrorReporter
from gitsave.core.errors import GitSaveError
from gitsave.core.store import StateStore

logger = logging.getLogger(__name__)

Listener = Callable[[bool], None]


class UpdatePoller:
    """Checks the work folder for updates on a fixed interval.

    Checks never overlap: the next interval starts counting only after the
    previous check returned. Results are published only when they differ
    from the last published one; the first result is always published.
    """

    def __init__(
        self,
        store: StateStore,
        backend: Backend,
        interval: float = 0.8,
        on_error: Optional[ErrorReporter] = None,
    ):
        self.store = store
        self.backend = backend
        self.interval = interval
        self._on_error = on_error
        self._listeners: List[Listener] = []
        self._task: Optional[asyncio.Task] = None
        self.last_published: Optional[bool] = None

    @property
    def running(self) -> bool:
        return self._task is not None

    def add_listener(self, listener: Listener) -> None:
        """Call ``listener`` with every published value."""
        self._listeners.append(listener)

    def start(self) -> None:
        """Start polling. Must be called from the event loop."""
        if self._task is None:
            self._task = asyncio.create_task(self._loop(), name="update-poller")

    async def stop(self) -> None:
        task, self._task = self._task, None
        if task is None:
            return
        task.cancel()
        await asyncio.gather(task, return_exceptions=True)

    async def poll_once(self) -> Optional[bool]:
        """Run a single check and publish it if it changed.

        Returns:
            The checked value, or None if the check failed.
        """
        folder = self.store.get("work_folder")
        try:
            value = await self.backend.has_updates(folder)
        except GitSaveError as e:
            if self._on_error is None:
                logger.warning("update check failed: %s", e)
            else:
                self._on_error(e)
            return None

        if value != self.last_published:
            self._publish(value)
        return value

    def _publish(self, value: bool) -> None:
        logger.info("has_updates -> %s", value)
        self.last_published = value
        self.store.set("has_updates", value)
        for listener in list(self._listeners):
            listener(value)

    async def _loop(self) -> None:
        while True:
            await asyncio.sleep(self.interval)
            await self.poll_once()
