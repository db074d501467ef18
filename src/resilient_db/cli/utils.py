"""
CLI utility helpers — output formatting and error reporting.
"""

from __future__ import annotations

import json
from typing import Any

import typer
from rich.console import Console
from rich.markup import escape
from rich.table import Table

from resilient_db.errors import ConnectionFailure, NotificationError

console = Console()
err_console = Console(stderr=True)


def output_rows(rows: list[dict[str, Any]], *, as_json: bool = False, title: str = "") -> None:
    """Render query rows as a Rich table or JSON array."""
    if as_json:
        console.print_json(json.dumps(rows, default=str))
        return

    if not rows:
        console.print("[dim]No rows.[/dim]")
        return

    table = Table(title=title or None, show_lines=False, pad_edge=False)
    for col in rows[0]:
        table.add_column(str(col), overflow="fold")
    for row in rows:
        table.add_row(*(escape(str(v)) for v in row.values()))
    console.print(table)


def output_dict(data: dict[str, Any], *, as_json: bool = False, title: str = "") -> None:
    """Render a single dict as key-value pairs."""
    if as_json:
        console.print_json(json.dumps(data, default=str))
        return
    if title:
        console.print(f"[bold]{title}[/bold]")
    for k, v in data.items():
        console.print(f"  [cyan]{k}[/cyan]: {escape(str(v))}")


def fail(exc: BaseException) -> typer.Exit:
    """Print ``exc`` to stderr and return the Exit to raise."""
    if isinstance(exc, ConnectionFailure):
        err_console.print(
            f"[bold red]Connection failure[/bold red] after {exc.attempts} attempt(s): {escape(exc.message)}"
        )
    elif isinstance(exc, NotificationError):
        err_console.print(f"[bold red]Error[/bold red]: {escape(exc.message)}")
    else:
        err_console.print(f"[bold red]Error[/bold red] ({type(exc).__name__}): {escape(str(exc))}")
    return typer.Exit(code=1)
