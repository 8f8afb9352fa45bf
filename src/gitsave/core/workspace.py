"""Workspace: the view state, its commands and its background loops.

A ``Workspace`` owns one ``StateStore`` and wires it to a backend and the
user dialogs:

- commands for new, refresh, update, reset, set-work-folder and
  reset-to-commit, each gated by a predicate over the state
- a ``ReloadPipeline`` that reloads after ``show_all``/``limit`` settle
- an ``UpdatePoller`` that keeps ``has_updates`` current

Every action that changes the repository reloads immediately afterwards and
clears ``new_comment`` even when the backend call failed.
"""

import logging
from typing import List, Optional

from gitsave.core.backend import Backend
from gitsave.core.commands import Command
from gitsave.core.config import Settings
from gitsave.core.dialogs import Confirmation, ConfirmResult, FolderPicker
from gitsave.core.errors import GitSaveError, InvalidSelection
from gitsave.core.poller import UpdatePoller
from gitsave.core.reload import ReloadPipeline, load_commits
from gitsave.core.store import StateStore
from gitsave.models.commit import Commit
from gitsave.models.state import ViewState

logger = logging.getLogger(__name__)


class Workspace:
    """Orchestrates user actions against a version-control backend."""

    def __init__(
        self,
        backend: Backend,
        folder_picker: FolderPicker,
        confirmation: Confirmation,
        settings: Optional[Settings] = None,
        work_folder: Optional[str] = None,
    ):
        self.settings = settings or Settings()
        self.backend = backend
        self.folder_picker = folder_picker
        self.confirmation = confirmation

        state = ViewState(limit=self.settings.default_limit)
        if work_folder is not None:
            state.work_folder = work_folder
        self.store = StateStore(state)
        self.errors: List[GitSaveError] = []
        self.last_confirmation: Optional[ConfirmResult] = None

        self.new_command = Command(
            "new", self.store, self._new, lambda s: s.can_create, self.report_error
        )
        self.refresh_command = Command(
            "refresh", self.store, self._refresh, on_error=self.report_error
        )
        self.update_command = Command(
            "update", self.store, self._update, lambda s: s.can_update, self.report_error
        )
        self.reset_command = Command("reset", self.store, self._reset, on_error=self.report_error)
        self.set_work_folder_command = Command(
            "set-work-folder", self.store, self._set_work_folder, on_error=self.report_error
        )
        self.reset_to_commit_command = Command(
            "reset-to-commit", self.store, self._reset_to_commit, on_error=self.report_error
        )

        self.pipeline = ReloadPipeline(
            self.store, self.reload, self.settings.settle_interval, self.report_error
        )
        self.poller = UpdatePoller(
            self.store, self.backend, self.settings.poll_interval, self.report_error
        )

    @property
    def state(self) -> ViewState:
        return self.store.state

    @property
    def commands(self) -> List[Command]:
        return [
            self.new_command,
            self.refresh_command,
            self.update_command,
            self.reset_command,
            self.set_work_folder_command,
            self.reset_to_commit_command,
        ]

    # === Lifecycle ===

    def start(self) -> None:
        """Start the reload pipeline and the update poller."""
        self.pipeline.start()
        self.poller.start()

    async def stop(self) -> None:
        await self.pipeline.stop()
        await self.poller.stop()
        self.store.close()

    async def __aenter__(self) -> "Workspace":
        self.start()
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.stop()

    # === State helpers ===

    def report_error(self, error: GitSaveError) -> None:
        """Show an error to the user without stopping anything."""
        logger.warning("%s", error)
        self.errors.append(error)
        self.store.set("error", str(error))

    async def reload(self) -> List[Commit]:
        return await load_commits(self.store, self.backend)

    def select(self, commit_ref: Optional[str]) -> Optional[Commit]:
        """Select a commit of the current list by uuid or uuid prefix.

        Passing None clears the selection.

        Raises:
            InvalidSelection: If no commit, or more than one, matches.
        """
        if commit_ref is None:
            self.store.set("selected_commit", None)
            return None

        matches = [c for c in self.state.commit_list if c.uuid.startswith(commit_ref)]
        if not matches:
            raise InvalidSelection(f"No loaded commit matches {commit_ref!r}")
        if len(matches) > 1:
            raise InvalidSelection(f"Commit reference {commit_ref!r} is ambiguous")

        self.store.set("selected_commit", matches[0])
        return matches[0]

    async def _reload_after_change(self) -> None:
        # Runs after every mutating call, so a failing reload is reported
        # here rather than hiding the mutation's own error.
        try:
            await self.reload()
        except GitSaveError as e:
            self.report_error(e)

    # === Actions ===

    async def _new(self) -> None:
        folder = self.state.work_folder
        try:
            await self.backend.new(self.state.new_comment, folder)
        finally:
            self.store.set("new_comment", "")
            await self._reload_after_change()

    async def _refresh(self) -> None:
        try:
            await self.reload()
        finally:
            self.store.set("new_comment", "")

    async def _update(self) -> None:
        comment = self.state.last_comment
        folder = self.state.work_folder
        self.store.set("new_comment", "")
        try:
            await self.backend.update(comment, folder)
        finally:
            await self._reload_after_change()

    async def _reset(self) -> None:
        folder = self.state.work_folder
        try:
            await self.backend.reset(folder)
        finally:
            self.store.set("new_comment", "")
            await self._reload_after_change()

    async def _set_work_folder(self) -> None:
        folder = await self.folder_picker.pick()
        if folder is None:
            logger.debug("folder selection cancelled")
            return
        self.store.set("work_folder", folder)
        await self.reload()

    async def _reset_to_commit(self) -> None:
        self.last_confirmation = None
        selected = self.state.selected_commit
        if selected is None:
            raise InvalidSelection("Select a commit to reset to")

        result = await self.confirmation.ask(f"Reset to commit {selected.uuid}", selected.comment)
        self.last_confirmation = result
        if result != ConfirmResult.CONFIRM:
            logger.info("reset to %s aborted", selected.short_id)
            return

        folder = self.state.work_folder
        try:
            await self.backend.reset_to_commit(selected.uuid, folder)
        finally:
            await self._reload_after_change()
            self.store.set("new_comment", "")
