"""
Root Typer application for the resilient-db CLI.

Runs statements through a ``RetryingConnection`` so connection problems are
retried exactly as they would be inside an application.
"""

from __future__ import annotations

import typer
from typer import Typer

from resilient_db.cli.utils import console, fail, output_dict, output_rows

app = Typer(
    name="resilient-db",
    help="Run SQL through a reconnecting, retrying connection.",
    no_args_is_help=True,
    rich_markup_mode="rich",
)


def _version_callback(value: bool) -> None:
    if value:
        from resilient_db import __version__

        typer.echo(f"resilient-db {__version__}")
        raise typer.Exit()


@app.callback()
def main(
    version: bool | None = typer.Option(  # noqa: UP007
        None,
        "--version",
        "-V",
        help="Show version and exit.",
        callback=_version_callback,
        is_eager=True,
    ),
    log_level: str | None = typer.Option(None, "--log-level", help="Override RESILIENT_DB_LOG_LEVEL."),
) -> None:
    """resilient-db command line: query, ping and show configuration."""
    from resilient_db.logging import configure_logging
    from resilient_db.settings import get_settings

    settings = get_settings()
    configure_logging(
        level=log_level or settings.log_level,
        json_format=settings.json_logs,
    )


@app.command()
def query(
    sql: str = typer.Argument(..., help="SQL statement to run"),
    params: list[str] = typer.Option([], "--param", "-p", help="Positional parameter (repeatable)"),
    database: str | None = typer.Option(None, "--database", "-d", help="Database URL or path"),
    max_attempts: int | None = typer.Option(None, "--max-attempts", "-n", min=1),
    json_out: bool = typer.Option(False, "--json", help="JSON output"),
) -> None:
    """Run a statement and print the rows it returns."""
    from resilient_db.factory import create_connection

    db = create_connection(database, max_attempts=max_attempts)
    try:
        statement = db.run_query(sql, params or None)
        rows = statement.fetch_all()
        affected = statement.row_count
    except Exception as exc:
        raise fail(exc) from exc
    finally:
        db.close()

    if rows:
        output_rows(rows, as_json=json_out, title="Result")
    else:
        output_dict({"rows_affected": affected}, as_json=json_out)


@app.command()
def ping(
    database: str | None = typer.Option(None, "--database", "-d", help="Database URL or path"),
    max_attempts: int | None = typer.Option(None, "--max-attempts", "-n", min=1),
    json_out: bool = typer.Option(False, "--json"),
) -> None:
    """Check connectivity (with retries) and show driver details."""
    from resilient_db.factory import create_connection
    from resilient_db.types import Attribute

    db = create_connection(database, max_attempts=max_attempts)
    try:
        db.run_query("SELECT 1").fetch_all()
        info = {
            "status": "ok",
            "driver": db.get_attribute(Attribute.DRIVER_NAME),
            "server_version": db.get_attribute(Attribute.SERVER_VERSION),
            "attempts": db.current_attempt,
        }
    except Exception as exc:
        raise fail(exc) from exc
    finally:
        db.close()

    output_dict(info, as_json=json_out, title="Database Ping")


@app.command("config")
def show_config(
    json_out: bool = typer.Option(False, "--json", help="JSON output"),
) -> None:
    """Show the effective RESILIENT_DB_* configuration."""
    from resilient_db.settings import get_settings

    settings = get_settings()
    if json_out:
        console.print_json(settings.model_dump_json())
        return
    output_dict(settings.model_dump(), title="Configuration")
