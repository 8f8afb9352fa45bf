"""User dialogs the workspace depends on: folder picking and confirmation."""

import asyncio
from abc import ABC, abstractmethod
from enum import Enum
from pathlib import Path
from typing import Optional

from rich.console import Console
from rich.panel import Panel
from rich.prompt import Confirm, Prompt


class ConfirmResult(str, Enum):
    """Button pressed in a confirmation dialog."""

    CONFIRM = "confirm"
    ABORT = "abort"


class FolderPicker(ABC):
    """Lets the user choose a work folder."""

    @abstractmethod
    async def pick(self) -> Optional[str]:
        """Return the chosen folder, or None if the user cancelled."""


class Confirmation(ABC):
    """Asks the user to confirm or abort an action."""

    @abstractmethod
    async def ask(self, header: str, body: str) -> ConfirmResult:
        """Show the dialog and return the pressed button."""


class AutoConfirm(Confirmation):
    """Confirms everything. Used for non-interactive runs."""

    async def ask(self, header: str, body: str) -> ConfirmResult:
        return ConfirmResult.CONFIRM


class ConsoleFolderPicker(FolderPicker):
    """Prompts for a folder on the terminal."""

    def __init__(self, console: Console, title: str = "Select work folder"):
        self.console = console
        self.title = title

    async def pick(self) -> Optional[str]:
        answer = await asyncio.to_thread(
            Prompt.ask, f"[bold]{self.title}[/bold] (empty to cancel)", console=self.console, default=""
        )
        answer = answer.strip()
        if not answer:
            return None

        folder = Path(answer).expanduser().resolve()
        if not folder.is_dir():
            self.console.print(f"[red]Not a directory: {folder}[/red]")
            return None
        return str(folder)


class ConsoleConfirmation(Confirmation):
    """Shows a panel and asks yes/no on the terminal."""

    def __init__(self, console: Console):
        self.console = console

    async def ask(self, header: str, body: str) -> ConfirmResult:
        self.console.print(Panel(body or "(no comment)", title=header, border_style="yellow"))
        confirmed = await asyncio.to_thread(
            Confirm.ask, "Proceed?", console=self.console, default=False
        )
        return ConfirmResult.CONFIRM if confirmed else ConfirmResult.ABORT
