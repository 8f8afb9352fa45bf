"""Version-control backend used by the workspace.

``Backend`` is the asynchronous interface the orchestration layer talks to.
``GitBackend`` implements it with GitPython, running every git call in a
worker thread so the event loop is never blocked.
"""

import asyncio
import logging
from abc import ABC, abstractmethod
from datetime import datetime
from pathlib import Path
from typing import Callable, List, Optional, TypeVar

import git
from git import Repo

from gitsave.core.errors import BackendUnavailable
from gitsave.models.commit import Commit

logger = logging.getLogger(__name__)

T = TypeVar("T")


class Backend(ABC):
    """Asynchronous version-control operations, all scoped to a work folder."""

    @abstractmethod
    async def has_updates(self, folder: str) -> bool:
        """Check if the folder holds changes that are not saved yet."""

    @abstractmethod
    async def new(self, comment: str, folder: str) -> None:
        """Save all changes as a new commit."""

    @abstractmethod
    async def update(self, comment: str, folder: str) -> None:
        """Fold all changes into the most recent commit."""

    @abstractmethod
    async def reset(self, folder: str) -> None:
        """Discard all unsaved changes."""

    @abstractmethod
    async def reset_to_commit(self, commit_id: str, folder: str) -> None:
        """Move the folder back to the given commit."""

    @abstractmethod
    async def get_commits(self, limit: int, show_all: bool, folder: str) -> List[Commit]:
        """List commits, newest first."""

    @abstractmethod
    async def last_comment(self, folder: str) -> Optional[str]:
        """Get the comment of the most recent commit, if any."""


class GitBackend(Backend):
    """Backend implementation on top of a local git repository."""

    def __init__(self, timeout: Optional[float] = None):
        self.timeout = timeout

    async def has_updates(self, folder: str) -> bool:
        return await self._call(
            "has_updates", folder, lambda repo: repo.is_dirty(untracked_files=True)
        )

    async def new(self, comment: str, folder: str) -> None:
        def commit(repo: Repo) -> None:
            repo.git.add(A=True)
            repo.git.commit("--allow-empty", "-m", comment)

        await self._call("new", folder, commit)

    async def update(self, comment: str, folder: str) -> None:
        def amend(repo: Repo) -> None:
            if not repo.head.is_valid():
                raise ValueError("no commit to update")
            repo.git.add(A=True)
            repo.git.commit("--amend", "--allow-empty", "-m", comment)

        await self._call("update", folder, amend)

    async def reset(self, folder: str) -> None:
        def discard(repo: Repo) -> None:
            if repo.head.is_valid():
                repo.git.reset("--hard", "HEAD")
            repo.git.clean("-fd")

        await self._call("reset", folder, discard)

    async def reset_to_commit(self, commit_id: str, folder: str) -> None:
        def move(repo: Repo) -> None:
            repo.git.reset("--hard", commit_id)
            repo.git.clean("-fd")

        await self._call("reset_to_commit", folder, move)

    async def get_commits(self, limit: int, show_all: bool, folder: str) -> List[Commit]:
        def collect(repo: Repo) -> List[Commit]:
            if not repo.head.is_valid():
                return []
            max_count = None if show_all else limit
            return [
                _to_commit(position, commit)
                for position, commit in enumerate(repo.iter_commits(max_count=max_count))
            ]

        return await self._call("get_commits", folder, collect)

    async def last_comment(self, folder: str) -> Optional[str]:
        def read(repo: Repo) -> Optional[str]:
            if not repo.head.is_valid():
                return None
            return repo.head.commit.message.strip()

        return await self._call("last_comment", folder, read)

    async def _call(self, operation: str, folder: Optional[str], func: Callable[[Repo], T]) -> T:
        """Run ``func`` against the folder's repository in a worker thread.

        Library failures and timeouts are converted to ``BackendUnavailable``.
        """
        logger.debug("%s on %s", operation, folder)
        work = asyncio.to_thread(self._run, operation, folder, func)
        try:
            if self.timeout is None:
                return await work
            return await asyncio.wait_for(work, self.timeout)
        except asyncio.TimeoutError as e:
            raise BackendUnavailable(operation, folder, e) from e

    @staticmethod
    def _run(operation: str, folder: Optional[str], func: Callable[[Repo], T]) -> T:
        if not folder:
            raise BackendUnavailable(operation, folder, ValueError("no work folder"))
        try:
            with Repo(Path(folder)) as repo:
                return func(repo)
        except (git.exc.GitError, ValueError, OSError) as e:
            logger.warning("%s failed for %s: %s", operation, folder, e)
            raise BackendUnavailable(operation, folder, e) from e


def _to_commit(position: int, commit: git.Commit) -> Commit:
    return Commit(
        uuid=commit.hexsha,
        comment=commit.message.strip(),
        position=position,
        author=commit.author.name,
        timestamp=datetime.fromtimestamp(commit.committed_date),
    )
