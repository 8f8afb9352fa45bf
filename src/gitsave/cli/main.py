"""Main CLI interface for gitsave."""

import asyncio
import logging
from pathlib import Path
from typing import Optional

import click
from rich.console import Console
from rich.table import Table

from gitsave import __version__
from gitsave.core.backend import GitBackend
from gitsave.core.config import Settings, load_settings
from gitsave.core.dialogs import (
    AutoConfirm,
    ConfirmResult,
    ConsoleConfirmation,
    ConsoleFolderPicker,
)
from gitsave.core.errors import ConfigError, GitSaveError
from gitsave.core.workspace import Workspace

console = Console()

SESSION_HELP = """\
[bold]n[/bold] <comment>  save changes as a new commit
[bold]u[/bold]            update the last commit with current changes
[bold]r[/bold]            refresh
[bold]x[/bold]            discard unsaved changes
[bold]s[/bold] <commit>   select a commit by id prefix
[bold]t[/bold]            reset to the selected commit
[bold]l[/bold] <number>   set how many commits to list
[bold]a[/bold]            toggle listing all commits
[bold]f[/bold]            choose another work folder
[bold]q[/bold]            quit"""


def build_workspace(settings: Settings, folder: str, yes: bool = False) -> Workspace:
    """Create a workspace on the git backend with console dialogs."""
    confirmation = AutoConfirm() if yes else ConsoleConfirmation(console)
    return Workspace(
        GitBackend(timeout=settings.backend_timeout),
        ConsoleFolderPicker(console),
        confirmation,
        settings=settings,
        work_folder=str(Path(folder).resolve()),
    )


def _exit_on_errors(workspace: Workspace) -> None:
    """Print reported errors and abort if there were any."""
    if not workspace.errors:
        return
    for error in workspace.errors:
        console.print(f"[red]Error: {error}[/red]")
    raise click.Abort()


def print_commits(workspace: Workspace) -> None:
    """Render the loaded commits as a table."""
    state = workspace.state
    title = "All commits" if state.show_all else f"Last {state.limit} commits"
    table = Table(title=f"{title} in {state.work_folder}")
    table.add_column("", width=1)
    table.add_column("Commit", style="cyan", no_wrap=True)
    table.add_column("Comment")
    table.add_column("Author", style="magenta")
    table.add_column("Date", style="green")

    selected = state.selected_commit
    for commit in state.commit_list:
        marker = "*" if selected is not None and commit.uuid == selected.uuid else ""
        date = commit.timestamp.strftime("%Y-%m-%d %H:%M") if commit.timestamp else ""
        table.add_row(marker, commit.short_id, commit.comment, commit.author or "", date)

    console.print(table)
    if state.last_comment:
        console.print(f"[bold]Last comment:[/bold] {state.last_comment}")
    else:
        console.print("[yellow]No commits yet[/yellow]")


folder_option = click.option(
    "--folder",
    type=click.Path(exists=True, file_okay=False),
    default=".",
    help="Work folder (git repository)",
)


@click.group()
@click.version_option(__version__)
@click.option(
    "--config",
    "config_path",
    type=click.Path(dir_okay=False),
    default=None,
    help="Path to a JSON config file",
)
@click.option("--log-level", default=None, help="Logging level (DEBUG, INFO, ...)")
@click.pass_context
def main(ctx: click.Context, config_path: Optional[str], log_level: Optional[str]):
    """gitsave - save and restore snapshots of a work folder."""
    try:
        settings = load_settings(Path(config_path) if config_path else None)
    except ConfigError as e:
        console.print(f"[red]Error: {e}[/red]")
        raise click.Abort() from e

    level = (log_level or settings.log_level).upper()
    logging.basicConfig(
        level=getattr(logging, level, logging.WARNING),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    ctx.obj = settings


@main.command()
@folder_option
@click.option("--limit", type=click.IntRange(min=1), default=None, help="Number of commits to show")
@click.option("--all", "show_all", is_flag=True, help="Show all commits")
@click.pass_obj
def log(settings: Settings, folder: str, limit: Optional[int], show_all: bool):
    """Show recent commits."""
    workspace = build_workspace(settings, folder)
    workspace.store.update(limit=limit or settings.default_limit, show_all=show_all)

    asyncio.run(workspace.refresh_command.invoke())
    _exit_on_errors(workspace)
    print_commits(workspace)


@main.command()
@folder_option
@click.pass_obj
def status(settings: Settings, folder: str):
    """Show whether the work folder has unsaved changes."""
    workspace = build_workspace(settings, folder)

    value = asyncio.run(workspace.poller.poll_once())
    _exit_on_errors(workspace)

    console.print(f"[bold]Work folder:[/bold] {workspace.state.work_folder}")
    if value:
        console.print("[yellow]Unsaved changes[/yellow]")
    else:
        console.print("[green]Nothing to save[/green]")


@main.command()
@click.argument("comment")
@folder_option
@click.pass_obj
def new(settings: Settings, folder: str, comment: str):
    """Save all changes as a new commit."""
    workspace = build_workspace(settings, folder)
    workspace.store.set("new_comment", comment)

    if not asyncio.run(workspace.new_command.invoke()):
        console.print("[yellow]A comment is required[/yellow]")
        raise click.Abort()
    _exit_on_errors(workspace)
    console.print(f"[green]✅ Saved: {workspace.state.last_comment}[/green]")


@main.command()
@folder_option
@click.pass_obj
def update(settings: Settings, folder: str):
    """Fold all changes into the last commit."""
    workspace = build_workspace(settings, folder)

    async def run() -> bool:
        await workspace.reload()
        return await workspace.update_command.invoke()

    try:
        ran = asyncio.run(run())
    except GitSaveError as e:
        console.print(f"[red]Error: {e}[/red]")
        raise click.Abort() from e
    if not ran:
        console.print("[yellow]No commit to update[/yellow]")
        raise click.Abort()
    _exit_on_errors(workspace)
    console.print(f"[green]✅ Updated: {workspace.state.last_comment}[/green]")


@main.command()
@folder_option
@click.option("--yes", "-y", is_flag=True, help="Do not ask for confirmation")
@click.pass_obj
def reset(settings: Settings, folder: str, yes: bool):
    """Discard all unsaved changes."""
    if not yes and not click.confirm("Discard all unsaved changes?", default=False):
        console.print("Nothing changed")
        return

    workspace = build_workspace(settings, folder, yes=yes)
    asyncio.run(workspace.reset_command.invoke())
    _exit_on_errors(workspace)
    console.print("[green]✅ Work folder reset[/green]")


@main.command("reset-to")
@click.argument("commit_ref")
@folder_option
@click.option("--yes", "-y", is_flag=True, help="Do not ask for confirmation")
@click.pass_obj
def reset_to(settings: Settings, folder: str, commit_ref: str, yes: bool):
    """Reset the work folder to COMMIT_REF (a commit id or prefix)."""
    workspace = build_workspace(settings, folder, yes=yes)
    workspace.store.set("show_all", True)

    async def run() -> None:
        await workspace.reload()
        workspace.select(commit_ref)
        await workspace.reset_to_commit_command.invoke()

    try:
        asyncio.run(run())
    except GitSaveError as e:
        console.print(f"[red]Error: {e}[/red]")
        raise click.Abort() from e
    _exit_on_errors(workspace)

    if workspace.last_confirmation != ConfirmResult.CONFIRM:
        console.print("Nothing changed")
        return
    target = workspace.state.selected_commit
    console.print(f"[green]✅ Reset to {target.short_id} - {target.comment}[/green]")


@main.command()
@folder_option
@click.pass_obj
def session(settings: Settings, folder: str):
    """Run an interactive session with live change detection."""
    workspace = build_workspace(settings, folder)
    try:
        asyncio.run(run_session(workspace))
    except (EOFError, KeyboardInterrupt):
        console.print()


async def run_session(workspace: Workspace) -> None:
    """Read session commands until the user quits."""

    def on_updates(value: bool) -> None:
        if value:
            console.print("[yellow]● Unsaved changes detected[/yellow]")
        else:
            console.print("[green]● Work folder is clean[/green]")

    workspace.poller.add_listener(on_updates)
    async with workspace:
        await workspace.refresh_command.invoke()
        print_commits(workspace)
        console.print(SESSION_HELP)

        while True:
            line = await asyncio.to_thread(console.input, "[bold]gitsave>[/bold] ")
            command, _, argument = line.strip().partition(" ")
            argument = argument.strip()
            if not command:
                continue
            if command == "q":
                return
            await handle_session_command(workspace, command, argument)


async def handle_session_command(workspace: Workspace, command: str, argument: str) -> None:
    """Apply one interactive command and show the result."""
    store = workspace.store
    store.set("error", None)

    if command == "n":
        store.set("new_comment", argument)
        if not await workspace.new_command.invoke():
            console.print("[yellow]Type a comment after 'n'[/yellow]")
    elif command == "u":
        if not await workspace.update_command.invoke():
            console.print("[yellow]No commit to update[/yellow]")
    elif command == "r":
        await workspace.refresh_command.invoke()
    elif command == "x":
        if await asyncio.to_thread(click.confirm, "Discard all unsaved changes?", default=False):
            await workspace.reset_command.invoke()
    elif command == "s":
        try:
            workspace.select(argument or None)
        except GitSaveError as e:
            workspace.report_error(e)
    elif command == "t":
        await workspace.reset_to_commit_command.invoke()
    elif command in ("l", "a"):
        if command == "a":
            store.set("show_all", not store.get("show_all"))
        elif argument.isdigit() and int(argument) > 0:
            store.set("limit", int(argument))
        else:
            console.print("[yellow]Usage: l <number>[/yellow]")
            return
        await asyncio.sleep(workspace.pipeline.settle * 1.5)
        await workspace.pipeline.idle()
    elif command == "f":
        await workspace.set_work_folder_command.invoke()
    else:
        console.print(SESSION_HELP)
        return

    if store.get("error"):
        console.print(f"[red]Error: {store.get('error')}[/red]")
    print_commits(workspace)


if __name__ == "__main__":
    main()
