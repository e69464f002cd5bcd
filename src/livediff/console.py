"""UI rendering, display, and terminal utilities."""

import logging
import sys

from rich.console import Console
from rich.logging import RichHandler
from rich.syntax import Syntax

from livediff.models import SaveResult


def is_terminal() -> bool:
    """Checks if stdout is a TTY."""
    return sys.stdout.isatty()


def configure_logging(verbose: bool) -> None:
    handler = RichHandler(console=Console(stderr=True), show_path=False, show_time=False)
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(message)s",
        handlers=[handler],
        force=True,
    )


def render_save_result(result: SaveResult, rel_path: str, console: Console) -> None:
    """Prints what happened to the file on save: user edits, formatter changes and new problems."""
    if result.user_edits:
        console.print(f"[yellow]Edits made to {rel_path} before saving:[/yellow]")
        console.print(Syntax(result.user_edits, "diff"))
    if result.auto_formatting_edits:
        console.print(f"[yellow]Auto-formatting applied to {rel_path} on save:[/yellow]")
        console.print(Syntax(result.auto_formatting_edits, "diff"))
    if result.new_problems_message:
        console.print(f"[red]{result.new_problems_message.strip()}[/red]")
    console.print(f"[green]Saved {rel_path}.[/green]")
