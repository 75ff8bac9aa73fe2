"""
CLI: ``watchspine tables``: import CSV files and inspect tables.
"""

from __future__ import annotations

from pathlib import Path

import typer

from watchspine.cli.utils import console, load_settings, open_store, output_rows

app = typer.Typer(no_args_is_help=True)


@app.command("import")
def import_table(
    name: str = typer.Argument(..., help="Table name (e.g. Meta, Merged, LookupAll)"),
    path: Path = typer.Argument(..., exists=True, dir_okay=False, help="CSV file with a header row"),
    database: str | None = typer.Option(None, "--database", "-d"),
) -> None:
    """Create or replace a table from a CSV file."""
    settings = load_settings(database)
    with open_store(settings) as store:
        count = store.import_csv(name, path)
    console.print(f"[green]Imported[/green] {count} row(s) into {name}")


@app.command("list")
def list_tables(
    database: str | None = typer.Option(None, "--database", "-d"),
) -> None:
    """List table names."""
    settings = load_settings(database)
    with open_store(settings) as store:
        names = store.list_tables()
    if not names:
        console.print("[dim]No tables.[/dim]")
    for name in names:
        console.print(name)


@app.command("show")
def show_table(
    name: str = typer.Argument(..., help="Table name"),
    limit: int = typer.Option(20, "--limit", "-n"),
    database: str | None = typer.Option(None, "--database", "-d"),
) -> None:
    """Print the first rows of a table."""
    settings = load_settings(database)
    with open_store(settings) as store:
        table = store.read_table(name)
    output_rows(table.header, table.rows[:limit], title=f"{name} ({len(table)} rows)")
