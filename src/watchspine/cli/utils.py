"""
CLI utility helpers: store access and output formatting.
"""

from __future__ import annotations

import json
from collections.abc import Iterator
from contextlib import contextmanager
from typing import Any

import typer
from rich.console import Console
from rich.table import Table as RichTable

from watchspine.core.errors import WatchSpineError
from watchspine.core.logging import configure_logging
from watchspine.core.settings import WatchSpineSettings, get_settings
from watchspine.store.sqlite import SqliteTabularStore

console = Console()
err_console = Console(stderr=True)


def load_settings(database: str | None = None) -> WatchSpineSettings:
    """Cached settings with an optional ``--database`` override; configures logging."""
    settings = get_settings()
    if database:
        settings = settings.model_copy(update={"database": database})
    configure_logging(level=settings.log_level, json_format=settings.json_logs)
    return settings


@contextmanager
def open_store(settings: WatchSpineSettings) -> Iterator[SqliteTabularStore]:
    """Open the SQLite store and turn watch-spine errors into exit code 1."""
    store = SqliteTabularStore(settings.database)
    try:
        yield store
    except WatchSpineError as e:
        err_console.print(f"[bold red]Error[/bold red] ({e.category.value}): {e.message}")
        raise typer.Exit(code=1) from e
    finally:
        store.close()


def output_dict(data: dict[str, Any], *, as_json: bool = False, title: str = "") -> None:
    """Render a flat dict as JSON or a two-column table."""
    if as_json:
        console.print_json(json.dumps(data, default=str))
        return
    table = RichTable(title=title or None, show_header=False)
    table.add_column("Key", style="cyan")
    table.add_column("Value")
    for key, value in data.items():
        if isinstance(value, list):
            value = ", ".join(str(v) for v in value) or "-"
        table.add_row(str(key), "-" if value is None else str(value))
    console.print(table)


def output_rows(header: list[str], rows: list[list[Any]], *, title: str = "") -> None:
    """Render table rows."""
    if not rows:
        console.print("[dim]No rows.[/dim]")
        return
    table = RichTable(title=title or None)
    for name in header:
        table.add_column(str(name))
    for row in rows:
        padded = list(row) + [""] * max(0, len(header) - len(row))
        table.add_row(*("" if v is None else str(v) for v in padded[: len(header)]))
    console.print(table)
