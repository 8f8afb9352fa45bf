"""Shared fixtures: an in-memory backend and scripted dialogs."""

import asyncio
from typing import List, Optional

import pytest

from gitsave.core.backend import Backend
from gitsave.core.config import Settings
from gitsave.core.dialogs import Confirmation, ConfirmResult, FolderPicker
from gitsave.core.errors import BackendUnavailable
from gitsave.core.workspace import Workspace
from gitsave.models.commit import Commit


def make_commit(uuid: str, comment: str, position: int = 0) -> Commit:
    return Commit(uuid=uuid, comment=comment, position=position)


class FakeBackend(Backend):
    """Backend keeping commits in memory and recording every call."""

    def __init__(self):
        self.calls: List[tuple] = []
        self.commits: List[Commit] = []
        self.comment: Optional[str] = None
        self.update_answers: List[bool] = []
        self.dirty = False
        self.failing = set()
        self.delays = {}
        self.ignore_limit = False
        self.active = 0
        self.max_active = {}

    async def _enter(self, operation: str, *args) -> None:
        self.calls.append((operation,) + args)
        self.active += 1
        self.max_active[operation] = max(self.max_active.get(operation, 0), self.active)
        try:
            delay = self.delays.get(operation)
            if delay:
                await asyncio.sleep(delay)
            if operation in self.failing:
                raise BackendUnavailable(operation, args[-1], RuntimeError("backend down"))
        finally:
            self.active -= 1

    def names(self) -> List[str]:
        return [call[0] for call in self.calls]

    async def has_updates(self, folder: str) -> bool:
        await self._enter("has_updates", folder)
        if self.update_answers:
            return self.update_answers.pop(0)
        return self.dirty

    async def new(self, comment: str, folder: str) -> None:
        await self._enter("new", comment, folder)
        uuid = f"C{len(self.commits) + 1:03d}"
        self.commits.insert(0, make_commit(uuid, comment))
        self.comment = comment

    async def update(self, comment: str, folder: str) -> None:
        await self._enter("update", comment, folder)

    async def reset(self, folder: str) -> None:
        await self._enter("reset", folder)
        self.dirty = False

    async def reset_to_commit(self, commit_id: str, folder: str) -> None:
        await self._enter("reset_to_commit", commit_id, folder)
        index = next(i for i, c in enumerate(self.commits) if c.uuid == commit_id)
        self.commits = self.commits[index:]
        self.comment = self.commits[0].comment

    async def get_commits(self, limit: int, show_all: bool, folder: str) -> List[Commit]:
        await self._enter("get_commits", limit, show_all, folder)
        commits = self.commits if show_all or self.ignore_limit else self.commits[:limit]
        return [c.model_copy(update={"position": i}) for i, c in enumerate(commits)]

    async def last_comment(self, folder: str) -> Optional[str]:
        await self._enter("last_comment", folder)
        return self.comment


class ScriptedPicker(FolderPicker):
    def __init__(self, result: Optional[str] = None):
        self.result = result
        self.asked = 0

    async def pick(self) -> Optional[str]:
        self.asked += 1
        return self.result


class ScriptedConfirmation(Confirmation):
    def __init__(self, result: ConfirmResult = ConfirmResult.CONFIRM):
        self.result = result
        self.asked = []

    async def ask(self, header: str, body: str) -> ConfirmResult:
        self.asked.append((header, body))
        return self.result


@pytest.fixture
def backend():
    """Backend preloaded with three commits, newest first."""
    fake = FakeBackend()
    fake.commits = [
        make_commit("C003", "third"),
        make_commit("C002", "second"),
        make_commit("C001", "first"),
    ]
    fake.comment = "third"
    return fake


@pytest.fixture
def picker():
    return ScriptedPicker()


@pytest.fixture
def confirmation():
    return ScriptedConfirmation()


@pytest.fixture
def settings():
    return Settings(settle_interval=0.05, poll_interval=0.02)


@pytest.fixture
def workspace(backend, picker, confirmation, settings):
    return Workspace(backend, picker, confirmation, settings=settings, work_folder="/repo")
