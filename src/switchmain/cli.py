"""Command line interface for switchmain."""

import logging
from pathlib import Path
from typing import Annotated, Optional

import typer
from git import GitCommandError
from rich import print
from rich.console import Console
from rich.logging import RichHandler
from rich.markup import escape
from rich.panel import Panel

from switchmain import __version__
from switchmain.credentials import CredentialError
from switchmain.git import GitError, GitRepo
from switchmain.reconcile import OrphanReconciler, ReconcileReport
from switchmain.sync import RemoteSync
from switchmain.ui import ConsoleUI

app = typer.Typer(help="Fetch, fast-forward main and tidy orphan branches", add_completion=False)
console = Console()


def configure_logging(verbose: bool) -> None:
    """Send log records to stderr so they never mix with status output."""
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(console=Console(stderr=True), rich_tracebacks=True)],
    )


def get_repo(path: Path) -> GitRepo:
    """Get git repository instance."""
    try:
        return GitRepo(path)
    except GitError as err:
        print(f"Error: {escape(str(err))}")
        raise typer.Exit(code=1) from err


def show_summary(report: ReconcileReport) -> None:
    if report.deleted:
        msg = f"Deleted {len(report.deleted)} orphan branch(es) 🧹\n" + "\n".join(
            f"  [blue]{escape(branch)}[/blue]" for branch in report.deleted
        )
        console.print(
            Panel(
                msg,
                title="Orphan Branches",
                title_align="left",
                padding=(0, 2),
                expand=False,
            )
        )
    elif not (report.skipped or report.protected or report.not_tracking):
        console.print(
            Panel(
                "[green]Your branches are clean ✨[/green]",
                style="green",
                padding=(0, 2),
                expand=False,
            )
        )


def version_callback(value: bool) -> None:
    if value:
        print(f"switch-main {__version__}")
        raise typer.Exit()


@app.command()
def main(
    path: Annotated[Path, typer.Option(help="Path inside the git repository", envvar="SWITCHMAIN_PATH")] = Path("."),
    protect: str = typer.Option(
        "",
        "--protect",
        "-p",
        envvar="SWITCHMAIN_PROTECT",
        help="Comma-separated list of branch patterns never to delete",
    ),
    yes: bool = typer.Option(
        False, "--yes", "-y", envvar="SWITCHMAIN_YES", help="Delete orphan branches without asking"
    ),
    verbose: bool = typer.Option(False, "--verbose", "-v", envvar="SWITCHMAIN_VERBOSE", help="Show debug logging"),
    version: Annotated[
        Optional[bool], typer.Option("--version", callback=version_callback, is_eager=True, help="Show version")
    ] = None,
) -> None:
    """Fetch from the remote, fast-forward main and clean up orphan branches."""
    configure_logging(verbose)
    ui = ConsoleUI(console)
    protect_list = [p.strip() for p in protect.split(",")]

    with get_repo(path) as repo:
        try:
            RemoteSync(repo, ui).run()
            report = OrphanReconciler(repo, ui, protect=protect_list, assume_yes=yes).run()
        except (GitError, CredentialError, GitCommandError) as err:
            ui.error(f"[red]Error:[/red] {escape(str(err))}")
            raise typer.Exit(code=1) from err

    show_summary(report)


if __name__ == "__main__":
    app()
