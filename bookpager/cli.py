"""
Command-line interface for bookpager.
"""

import logging
import sys
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

import click
from rich.console import Console
from rich.logging import RichHandler
from rich.table import Table

from . import __version__
from .errors import BookPagerError
from .linestore import book_title
from .models import MAX_LIMIT, Command
from .pager import Pager
from .registry import DEFAULT_SLOTS, Registry
from .server import Router, serve
from .state import DEFAULT_STATE_FILE, StateStore

console = Console()
err_console = Console(stderr=True)

DEFAULT_HOST = "0.0.0.0"
DEFAULT_PORT = 80


@dataclass
class Settings:
    """Options shared by all commands."""

    state_file: Path
    slots: int
    max_limit: int

    def store(self) -> StateStore:
        return StateStore(self.state_file, max_limit=self.max_limit)

    def registry(self, seed: tuple[str, ...] = ()) -> Registry:
        return Registry.load(self.store(), size=self.slots, seed=seed)


def setup_logging(verbose: int) -> None:
    """Send log records to stderr through rich."""
    if verbose >= 2:
        level = logging.DEBUG
    elif verbose == 1:
        level = logging.INFO
    else:
        level = logging.WARNING
    logging.basicConfig(
        level=level,
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(console=err_console, show_path=False)],
    )


def fail(error: Exception) -> None:
    err_console.print(f"[red]Error:[/red] {error}")
    sys.exit(1)


@click.group()
@click.version_option(version=__version__, prog_name="bookpager")
@click.option(
    "--state-file",
    type=click.Path(dir_okay=False, path_type=Path),
    default=DEFAULT_STATE_FILE,
    envvar="BOOKPAGER_STATE_FILE",
    show_default=True,
    help="JSON file holding the reading position of every book",
)
@click.option(
    "--slots",
    type=click.IntRange(min=1),
    default=DEFAULT_SLOTS,
    envvar="BOOKPAGER_SLOTS",
    show_default=True,
    help="Number of book slots",
)
@click.option(
    "--max-limit",
    type=click.IntRange(min=1),
    default=MAX_LIMIT,
    envvar="BOOKPAGER_MAX_LIMIT",
    show_default=True,
    help="Largest page size 'more' can reach",
)
@click.option("--verbose", "-v", count=True, help="Increase log verbosity")
@click.pass_context
def cli(
    ctx: click.Context, state_file: Path, slots: int, max_limit: int, verbose: int
):
    """
    bookpager - Serve plaintext books page by page.

    Keeps the reading position and page size of each book on the server so
    that a small client only has to ask for the next or previous page.
    """
    setup_logging(verbose)
    ctx.obj = Settings(state_file=state_file, slots=slots, max_limit=max_limit)


@cli.command("serve")
@click.option(
    "--host",
    default=DEFAULT_HOST,
    envvar="BOOKPAGER_HOST",
    show_default=True,
    help="Address to listen on",
)
@click.option(
    "--port",
    type=click.IntRange(min=0, max=65535),
    default=DEFAULT_PORT,
    envvar="BOOKPAGER_PORT",
    show_default=True,
    help="Port to listen on",
)
@click.option(
    "--book",
    "books",
    multiple=True,
    type=click.Path(exists=True, dir_okay=False),
    help="Book file for the next free slot (repeatable)",
)
@click.pass_obj
def serve_command(settings: Settings, host: str, port: int, books: tuple[str, ...]):
    """Run the HTTP server."""
    try:
        registry = settings.registry(
            seed=tuple(str(Path(book).resolve()) for book in books)
        )
        router = Router(Pager(registry))
        err_console.print(
            f"[green]Serving {len(registry)} book slot(s) on {host}:{port}[/green]"
        )
        serve(router, host, port)
    except (BookPagerError, OSError) as e:
        fail(e)


@cli.command("add")
@click.argument("index", type=int)
@click.argument("filepath", type=click.Path(exists=True, dir_okay=False, path_type=Path))
@click.option(
    "--limit",
    type=click.IntRange(min=1),
    default=None,
    help="Page size for this book (default: keep the slot's current size)",
)
@click.pass_obj
def add_book(settings: Settings, index: int, filepath: Path, limit: Optional[int]):
    """Put a book into slot INDEX, starting from its first line."""
    try:
        registry = settings.registry()
        slot = registry.configure(index, str(filepath.resolve()), limit=limit)
    except BookPagerError as e:
        fail(e)
    else:
        console.print(
            f"[green]✓[/green] Slot {index}: {book_title(slot.file)} "
            f"[dim]({slot.limit} lines per page)[/dim]"
        )


@cli.command("list")
@click.pass_obj
def list_books(settings: Settings):
    """List all book slots and their reading positions."""
    registry = settings.registry()

    table = Table(title="📚 Books", show_header=True, header_style="bold magenta")
    table.add_column("#", style="dim", width=4)
    table.add_column("Title", style="cyan")
    table.add_column("File", style="dim")
    table.add_column("Line", justify="right", style="green")
    table.add_column("Limit", justify="right", style="yellow")

    for index, slot in enumerate(registry.slots()):
        table.add_row(
            str(index),
            book_title(slot.file),
            slot.file,
            f"{slot.line:,}",
            str(slot.limit),
        )

    console.print(table)


@cli.command("page")
@click.argument(
    "command", type=click.Choice([c.value for c in Command], case_sensitive=False)
)
@click.option("--index", "-i", type=int, default=0, help="Book slot (default: 0)")
@click.pass_obj
def page(settings: Settings, command: str, index: int):
    """Run COMMAND against a book locally and print the result."""
    try:
        pager = Pager(settings.registry(), max_limit=settings.max_limit)
        result = pager.apply(index, Command(command.lower()))
    except BookPagerError as e:
        fail(e)
    else:
        # Write to stdout (bypass rich console)
        print(result.text)


@cli.command("reset")
@click.argument("index", type=int)
@click.pass_obj
def reset(settings: Settings, index: int):
    """Move the cursor of slot INDEX back to the first line."""
    try:
        registry = settings.registry()
        with registry.locked(index) as slot:
            registry.update(index, 0, slot.limit)
    except BookPagerError as e:
        fail(e)
    else:
        console.print(f"[green]✓[/green] Slot {index} rewound to line 0")


def main():
    """Main entry point for CLI."""
    cli()


if __name__ == "__main__":
    main()
