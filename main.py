import logging
import os
import sys
from typing import Optional, List

import typer
from rich.console import Console
from rich.table import Table
from rich.panel import Panel
from rich.prompt import Prompt, Confirm
from rich import box

from config import settings
from library import Library, BookNotFoundError, BookStateError
from utils.ui_helpers import (
    OUTPUT_MODE_ENV,
    set_output_mode,
    print_book,
    print_list_result,
    print_stats_result,
    print_warnings,
)
from utils.validators import TextValidator, IDValidator

APP_NAME = settings.app_name

logging.basicConfig(
    level=getattr(logging, settings.log_level, logging.WARNING),
    format="%(levelname)s: %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)

console = Console()


class LibraryManager:
    """Holds the Library instance shared by all commands of one process."""

    _instance: Optional[Library] = None
    _paths_snapshot: Optional[tuple] = None

    @classmethod
    def get_instance(cls) -> Library:
        paths = (settings.catalog_file, settings.history_file)
        # Recreate the store if the configured files changed (e.g. per-test paths)
        if cls._instance is None or paths != cls._paths_snapshot:
            cls._instance = Library(catalog_file=paths[0], history_file=paths[1])
            cls._paths_snapshot = paths
            logger.info(f"Library opened: {paths[0]} (history: {paths[1]})")
        return cls._instance

    @classmethod
    def reset(cls) -> None:
        cls._instance = None
        cls._paths_snapshot = None


def _flush_warnings(lib: Library) -> None:
    print_warnings(lib.pop_warnings())


# --- Typer CLI application ---
app = typer.Typer(help="Library CLI")


def _version_callback(value: bool) -> None:
    if value:
        print(f"{APP_NAME} {settings.app_version}")
        raise typer.Exit()


@app.callback()
def _global_options(
    output: Optional[str] = typer.Option(
        None,
        "--output",
        "-o",
        help="Output format: plain | json | rich (default: plain)",
    ),
    version: Optional[bool] = typer.Option(
        None,
        "--version",
        callback=_version_callback,
        is_eager=True,
        help="Show the application name and version and exit",
    ),
):
    """Global options for the CLI (e.g. output mode)."""
    if output:
        set_output_mode(output)


@app.command("list")
def cli_list(
    issued: bool = typer.Option(False, "--issued", help="Only show issued books"),
    available: bool = typer.Option(False, "--available", help="Only show available books"),
):
    """List books in catalog order."""
    lib = LibraryManager.get_instance()
    if issued and available:
        print("Error: --issued and --available cannot be combined.")
    elif issued:
        print_list_result(lib.list_issued(), title="Issued Books", empty_message="No books are currently issued.")
    elif available:
        print_list_result(lib.list_available(), title="Available Books", empty_message="No books are currently available.")
    else:
        print_list_result(lib.list_books())
    _flush_warnings(lib)


@app.command("add")
def cli_add(
    title: str = typer.Argument(..., help="Book title"),
    author: str = typer.Argument(..., help="Book author"),
    start_id: int = typer.Argument(..., min=1, help="ID of the first copy"),
    copies: int = typer.Option(1, "--copies", "-n", min=1, help="Number of copies to add under consecutive IDs"),
):
    """Add one or more copies of a book."""
    lib = LibraryManager.get_instance()
    try:
        added, failed = lib.add_copies(title, author, start_id, copies)
    except ValueError as e:
        print(f"Error: {e}")
        _flush_warnings(lib)
        return

    for book_id in added:
        print(f"Added copy with ID: {book_id}")
    for book_id in failed:
        print(f"Failed to add copy with ID: {book_id} (ID already exists)")
    if failed:
        print("Some copies were not added due to duplicate IDs.")
    else:
        print("All copies added successfully!")
    _flush_warnings(lib)


@app.command("update")
def cli_update(
    book_id: int = typer.Argument(..., min=1, help="Book ID"),
    title: Optional[str] = typer.Option(None, "--title", "-t", help="New title (omit to keep)"),
    author: Optional[str] = typer.Option(None, "--author", "-a", help="New author (omit to keep)"),
):
    """Update the title and/or author of a book."""
    lib = LibraryManager.get_instance()
    try:
        book = lib.update_book(book_id, title=title, author=author)
    except ValueError as e:
        print(f"Error: {e}")
    else:
        if book:
            print("Book updated successfully!")
            print_book(book)
        else:
            print(f"Book with ID {book_id} not found.")
    _flush_warnings(lib)


@app.command("delete")
def cli_delete(book_id: int = typer.Argument(..., min=1, help="Book ID")):
    """Delete a book by ID."""
    lib = LibraryManager.get_instance()
    if lib.remove_book(book_id):
        print(f"Book with ID {book_id} has been deleted.")
    else:
        print(f"Book with ID {book_id} not found.")
    _flush_warnings(lib)


@app.command("find")
def cli_find(book_id: int = typer.Argument(..., min=1, help="Book ID")):
    """Find a book by ID and show its details."""
    lib = LibraryManager.get_instance()
    book = lib.get_book(book_id)
    if book:
        print_book(book)
    else:
        print(f"Book with ID {book_id} not found.")
    _flush_warnings(lib)


@app.command("search")
def cli_search(term: str = typer.Argument("", help="Text to match in title/author, or an exact ID")):
    """Search books by title, author or ID."""
    lib = LibraryManager.get_instance()
    books = lib.search_books(term)
    print_list_result(books, title=f"Search results for '{term}'", empty_message="No matching book found.")
    _flush_warnings(lib)


@app.command("issue")
def cli_issue(book_id: int = typer.Argument(..., min=1, help="Book ID")):
    """Issue a book."""
    lib = LibraryManager.get_instance()
    try:
        lib.issue_book(book_id)
        print("Book issued successfully!")
    except (BookNotFoundError, BookStateError) as e:
        print(f"Error: {e}")
    _flush_warnings(lib)


@app.command("return")
def cli_return(book_id: int = typer.Argument(..., min=1, help="Book ID")):
    """Return an issued book."""
    lib = LibraryManager.get_instance()
    try:
        lib.return_book(book_id)
        print("Book returned successfully!")
    except (BookNotFoundError, BookStateError) as e:
        print(f"Error: {e}")
    _flush_warnings(lib)


@app.command("stats")
def cli_stats():
    """Show library statistics."""
    lib = LibraryManager.get_instance()
    print_stats_result(lib.get_statistics(), lib.stats_by_author(), lib.stats_by_title())
    _flush_warnings(lib)


# --- Interactive menu ---
def _pause() -> None:
    Prompt.ask("\n[dim]Press Enter to continue[/]", default="", show_default=False)


def _ask_text(label: str) -> str:
    while True:
        value = Prompt.ask(label).strip()
        if TextValidator.validate_title(value):
            return value
        console.print("[yellow]Input cannot be empty or contain commas. Please try again.[/]")


def _ask_optional_text(label: str) -> str:
    while True:
        value = Prompt.ask(f"{label} [dim](leave blank to keep unchanged)[/]", default="", show_default=False)
        if TextValidator.validate_optional(value):
            return value.strip()
        console.print("[yellow]Input cannot contain commas. Please try again.[/]")


def _ask_id(label: str) -> int:
    while True:
        value = IDValidator.parse_positive_int(Prompt.ask(label))
        if value is not None:
            return value
        console.print("[yellow]Invalid ID! Enter an integer greater than 0.[/]")


def add_interactive(lib: Library) -> None:
    title = _ask_text("Enter Title")
    author = _ask_text("Enter Author")
    while True:
        start_id = _ask_id("Enter starting Book ID (integer > 0)")
        if not lib.exists(start_id):
            break
        console.print(f"[yellow]This starting ID ({start_id}) is already occupied. Please enter a new starting ID.[/]")
    quantity = _ask_id("How many copies of this book do you want to add?")

    added, failed = lib.add_copies(title, author, start_id, quantity)
    for book_id in added:
        console.print(f"[green]✅ Added copy with ID: {book_id}[/]")
    for book_id in failed:
        console.print(f"[red]❌ Failed to add copy with ID: {book_id} (ID already exists)[/]")
    if failed:
        console.print("[yellow]Some copies may not have been added due to duplicate IDs.[/]")
    else:
        console.print("[bold green]All copies added successfully![/]")


def update_interactive(lib: Library) -> None:
    book_id = _ask_id("Enter Book ID to update")
    title = _ask_optional_text("Enter new Title")
    author = _ask_optional_text("Enter new Author")
    book = lib.update_book(book_id, title=title, author=author)
    if book:
        console.print("[green]✅ Book updated successfully![/]")
    else:
        console.print("[yellow]Book ID not found.[/]")


def delete_interactive(lib: Library) -> None:
    book_id = _ask_id("Enter Book ID to delete")
    book = lib.get_book(book_id)
    if not book:
        console.print("[yellow]Book ID not found.[/]")
        return
    print_book(book)
    if Confirm.ask("🗑️ Are you sure you want to delete this book?", default=False):
        lib.remove_book(book_id)
        console.print("[green]✅ Book deleted successfully![/]")
    else:
        console.print("[blue]🚫 Deletion cancelled.[/]")


def search_interactive(lib: Library) -> None:
    term = Prompt.ask("Enter search term (Title/Author/ID)", default="", show_default=False)
    print_list_result(lib.search_books(term), title=f"Search results for '{term}'", empty_message="No matching book found.")


def issue_interactive(lib: Library) -> None:
    available = lib.list_available()
    if not available:
        console.print("[yellow]No books are available for issuing.[/]")
        return
    print_list_result(available, title="Available Books")
    book_id = _ask_id("Enter Book ID to issue")
    try:
        lib.issue_book(book_id)
        console.print("[green]✅ Book issued successfully![/]")
    except (BookNotFoundError, BookStateError) as e:
        console.print(f"[yellow]{e}[/]")


def return_interactive(lib: Library) -> None:
    book_id = _ask_id("Enter Book ID to return")
    try:
        lib.return_book(book_id)
        console.print("[green]✅ Book returned successfully![/]")
    except (BookNotFoundError, BookStateError) as e:
        console.print(f"[yellow]{e}[/]")


def run_menu():
    """Simple interactive menu for the Library CLI."""
    menu_items = [
        ("1", "Add Book", "➕"),
        ("2", "Update Book", "✏️"),
        ("3", "Delete Book", "🗑️"),
        ("4", "Search Book", "🔎"),
        ("5", "Issue Book", "📤"),
        ("6", "Return Book", "📥"),
        ("7", "Show All Books", "📚"),
        ("8", "Show Issued Books", "📕"),
        ("9", "Show Available Books", "📗"),
        ("10", "Show Statistics", "📊"),
        ("11", "Exit", "🚪"),
    ]

    def render_menu() -> None:
        table = Table.grid(padding=(0, 2))
        table.add_column(justify="right", style="bold cyan", width=4)
        table.add_column(justify="left", style="white")
        for key, label, icon in menu_items:
            table.add_row(f"[reverse]{key}[/]", f"{icon} {label}")

        console.print(Panel(
            table,
            title=APP_NAME,
            border_style="cyan",
            box=box.HEAVY,
            padding=(1, 2),
        ))

    if OUTPUT_MODE_ENV not in os.environ:
        set_output_mode("rich")

    lib = LibraryManager.get_instance()
    choices: List[str] = [key for key, _, _ in menu_items]

    while True:
        console.clear()
        render_menu()
        _flush_warnings(lib)
        choice = Prompt.ask("Enter choice", choices=choices, show_choices=False)
        console.clear()

        if choice == "1":
            add_interactive(lib)
        elif choice == "2":
            update_interactive(lib)
        elif choice == "3":
            delete_interactive(lib)
        elif choice == "4":
            search_interactive(lib)
        elif choice == "5":
            issue_interactive(lib)
        elif choice == "6":
            return_interactive(lib)
        elif choice == "7":
            print_list_result(lib.list_books())
        elif choice == "8":
            print_list_result(lib.list_issued(), title="Issued Books", empty_message="No books are currently issued.")
        elif choice == "9":
            print_list_result(lib.list_available(), title="Available Books", empty_message="No books are currently available.")
        elif choice == "10":
            print_stats_result(lib.get_statistics(), lib.stats_by_author(), lib.stats_by_title())
        elif choice == "11":
            console.print("[green]Exiting... Goodbye![/]")
            break
        _flush_warnings(lib)
        _pause()


def run() -> None:
    if len(sys.argv) > 1:
        app()
    else:
        run_menu()


if __name__ == "__main__":
    run()
