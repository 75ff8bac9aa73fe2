"""
CLI: ``watchspine config``: scalar config slots.

Slots hold scoring tuning values (``Weighted Spread``, ``Genres Rec Max``),
cursors and run report values.
"""

from __future__ import annotations

import typer

from watchspine.cli.utils import console, load_settings, open_store, output_dict

app = typer.Typer(no_args_is_help=True)


@app.command("show")
def show_config(
    database: str | None = typer.Option(None, "--database", "-d"),
    json_out: bool = typer.Option(False, "--json"),
) -> None:
    """Show every config slot."""
    settings = load_settings(database)
    with open_store(settings) as store:
        data = store.list_config()
    output_dict(data, as_json=json_out, title="Config")


@app.command("set")
def set_config(
    name: str = typer.Argument(..., help="Slot name, e.g. 'Weighted Spread'"),
    value: str = typer.Argument(..., help="Value; numbers are stored as numbers"),
    database: str | None = typer.Option(None, "--database", "-d"),
) -> None:
    """Write a config slot."""
    from watchspine.schema import parse_number

    number = parse_number(value)
    settings = load_settings(database)
    with open_store(settings) as store:
        store.write_config(name, number if number is not None else value)
    console.print(f"[green]Set[/green] {name} = {value}")
