import os
import sys
import json
from typing import List, Any, Dict, Iterable
from rich.console import Console
from rich.table import Table
from rich.panel import Panel
from rich.markup import escape

# Environment variable to control CLI output mode
# Allowed values: 'plain' (default), 'json', 'rich'
OUTPUT_MODE_ENV = "LIB_CLI_OUTPUT"

_console = Console()

def set_output_mode(mode: str) -> None:
    mode = (mode or "").lower().strip()
    if mode in {"plain", "json", "rich"}:
        os.environ[OUTPUT_MODE_ENV] = mode
    # unknown values are ignored and the current mode is kept

def get_output_mode() -> str:
    return os.environ.get(OUTPUT_MODE_ENV, "plain").lower()

def format_book_row(book: Any) -> str:
    """Fixed-width plain row: ID, Title, Author, Status."""
    return f"{book.id:<6}{book.title:<25}{book.author:<20}{book.status}"

def print_list_result(books: List[Any], title: str = "Library Books", empty_message: str = "No books in library.") -> None:
    """Print a list of books in the current output mode.
    - plain: fixed-width columns under a header, or ``empty_message``
    - json: JSON array of book dicts
    - rich: Rich table
    """
    mode = get_output_mode()

    if mode == "json":
        print(json.dumps([b.to_dict() for b in books], ensure_ascii=False))
        return

    if not books:
        print(empty_message)
        return

    if mode == "rich":
        table = Table(title=f"📚 {escape(title)}", show_lines=True, header_style="bold cyan")
        table.add_column("ID", style="magenta", no_wrap=True, justify="right")
        table.add_column("Title", style="white")
        table.add_column("Author", style="white")
        table.add_column("Status")
        for b in books:
            status = "[yellow]Issued[/]" if b.issued else "[green]Available[/]"
            table.add_row(str(b.id), escape(b.title), escape(b.author), status)
        _console.print(table)
    else:
        print(f"====== {title} ======")
        print(f"{'ID':<6}{'Title':<25}{'Author':<20}Status")
        print("-" * 62)
        for b in books:
            print(format_book_row(b))
        print("-" * 62)

def print_book(book: Any) -> None:
    mode = get_output_mode()
    if mode == "json":
        print(json.dumps(book.to_dict(), ensure_ascii=False))
    elif mode == "rich":
        _console.print(Panel.fit(
            f"[bold]ID:[/] {book.id}\n"
            f"[bold]Title:[/] {escape(book.title)}\n"
            f"[bold]Author:[/] {escape(book.author)}\n"
            f"[bold]Status:[/] {book.status}",
            title="🔍 Book",
            border_style="green",
        ))
    else:
        print(f"ID: {book.id}")
        print(f"Title: {book.title}")
        print(f"Author: {book.author}")
        print(f"Status: {book.status}")

def _print_counts(heading: str, counts: Dict[str, int]) -> None:
    print(f"\n--- {heading} ---")
    for name, count in counts.items():
        print(f"{name:>22} : {count}")

def print_stats_result(stats: Dict[str, Any], by_author: Dict[str, int], by_title: Dict[str, int]) -> None:
    """Print statistics in the current output mode.
    - plain: totals, then per-author and per-title counts
    - json: one JSON object
    - rich: Panel for totals plus two tables
    """
    mode = get_output_mode()

    if mode == "json":
        payload = dict(stats)
        payload["by_author"] = by_author
        payload["by_title"] = by_title
        print(json.dumps(payload, ensure_ascii=False))
    elif mode == "rich":
        content = (
            f"[bold]Total Books:[/] {stats.get('total_books', 0)}\n"
            f"[bold]Issued Books:[/] {stats.get('issued_books', 0)}\n"
            f"[bold]Available Books:[/] {stats.get('available_books', 0)}\n"
            f"[bold]Unique Authors:[/] {stats.get('unique_authors', 0)}"
        )
        _console.print(Panel.fit(content, title="📊 Stats", border_style="blue"))
        for heading, counts in (("Books by Author", by_author), ("Books by Title", by_title)):
            table = Table(title=heading, header_style="bold cyan")
            table.add_column(heading.split()[-1], style="white")
            table.add_column("Count", justify="right", style="magenta")
            for name, count in counts.items():
                table.add_row(escape(name), str(count))
            _console.print(table)
    else:
        print("====== Library Statistics ======")
        print(f"Total books: {stats.get('total_books', 0)}")
        print(f"Issued books: {stats.get('issued_books', 0)}")
        print(f"Available books: {stats.get('available_books', 0)}")
        _print_counts("Books by Author", by_author)
        _print_counts("Books by Title", by_title)

def print_warnings(warnings: Iterable[str]) -> None:
    """Report non-fatal storage warnings. Outside rich mode they go to stderr so json output stays parseable."""
    for message in warnings:
        if get_output_mode() == "rich":
            _console.print(f"[yellow]⚠️  Warning:[/] {escape(message)}")
        else:
            print(f"Warning: {message}", file=sys.stderr)
