"""Reloading the commit list, directly or through the settling pipeline."""

import asyncio
import logging
from typing import Awaitable, Callable, List, Optional, Sequence

from gitsave.core.backend import Backend
from gitsave.core.commands import ErrorReporter
from gitsave.core.errors import GitSaveError
from gitsave.core.store import StateStore, Subscription
from gitsave.models.commit import Commit

logger = logging.getLogger(__name__)

_UNSET = object()


def resolve_selection(selected: Optional[Commit], commits: Sequence[Commit]) -> Optional[Commit]:
    """Find the commit with the same uuid as ``selected`` in a fresh list."""
    if selected is None:
        return None
    return next((c for c in commits if c.uuid == selected.uuid), None)


async def load_commits(store: StateStore, backend: Backend) -> List[Commit]:
    """Replace the commit list and last comment with fresh backend data.

    The limit, show-all flag and work folder are captured when the reload
    starts; later changes to them apply to the next reload.
    """
    state = store.state
    limit, show_all, folder = state.limit, state.show_all, state.work_folder
    selected = state.selected_commit

    store.set("busy", True)
    try:
        store.update(selected_commit=None, commit_list=())

        commits = await backend.get_commits(limit, show_all, folder)
        if not show_all:
            commits = commits[:limit]
        store.set("commit_list", tuple(commits))
        store.set("selected_commit", resolve_selection(selected, commits))

        store.set("last_comment", await backend.last_comment(folder))
        store.set("error", None)
        logger.debug("loaded %d commits from %s", len(commits), folder)
        return list(commits)
    finally:
        store.set("busy", False)


class ReloadPipeline:
    """Reloads after ``show_all``/``limit`` settle.

    Changes are debounced for ``settle`` seconds, a settled value equal to
    the previous one is dropped, and the surviving reloads run one after
    another in arrival order.
    """

    def __init__(
        self,
        store: StateStore,
        reload: Callable[[], Awaitable[object]],
        settle: float = 0.8,
        on_error: Optional[ErrorReporter] = None,
    ):
        self.store = store
        self._reload = reload
        self.settle = settle
        self._on_error = on_error
        self._subscription: Optional[Subscription] = None
        self._queue: "asyncio.Queue[tuple]" = asyncio.Queue()
        self._tasks: List[asyncio.Task] = []
        self.runs = 0

    @property
    def running(self) -> bool:
        return bool(self._tasks)

    def start(self) -> None:
        """Start watching the store. Must be called from the event loop."""
        if self._tasks:
            return
        self._subscription = self.store.subscribe("show_all", "limit")
        self._tasks = [
            asyncio.create_task(self._settle_loop(self._subscription), name="reload-settle"),
            asyncio.create_task(self._reload_loop(), name="reload-worker"),
        ]

    async def stop(self) -> None:
        """Stop watching and abandon queued reloads."""
        if self._subscription is not None:
            self._subscription.close()
            self._subscription = None
        tasks, self._tasks = self._tasks, []
        for task in tasks:
            task.cancel()
        await asyncio.gather(*tasks, return_exceptions=True)

        while not self._queue.empty():
            self._queue.get_nowait()
            self._queue.task_done()

    async def idle(self) -> None:
        """Wait until every queued reload has finished."""
        await self._queue.join()

    async def _settle_loop(self, subscription: Subscription) -> None:
        last_emitted = _UNSET
        try:
            value = await subscription.next()
            while True:
                try:
                    value = await subscription.next(self.settle)
                    continue
                except asyncio.TimeoutError:
                    pass

                if value != last_emitted:
                    last_emitted = value
                    logger.debug("settled on show_all=%s limit=%s", *value)
                    self._queue.put_nowait(value)
                value = await subscription.next()
        except StopAsyncIteration:
            return

    async def _reload_loop(self) -> None:
        while True:
            await self._queue.get()
            try:
                self.runs += 1
                await self._reload()
            except GitSaveError as e:
                if self._on_error is None:
                    logger.error("reload failed: %s", e)
                else:
                    self._on_error(e)
            finally:
                self._queue.task_done()
