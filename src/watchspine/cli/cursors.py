"""
CLI: ``watchspine cursors``: sync cursor inspection and reset.
"""

from __future__ import annotations

import typer

from watchspine.cli.utils import console, load_settings, open_store, output_dict

app = typer.Typer(no_args_is_help=True)


@app.command("show")
def show_cursors(
    database: str | None = typer.Option(None, "--database", "-d"),
    json_out: bool = typer.Option(False, "--json"),
) -> None:
    """Show the cursor of every channel."""
    from watchspine.core.cursors import SyncCursorStore
    from watchspine.core.timestamps import to_iso8601
    from watchspine.pipeline import CHANNELS

    settings = load_settings(database)
    with open_store(settings) as store:
        cursors = SyncCursorStore(store)
        data = {}
        for name in CHANNELS:
            cursor = cursors.get(name)
            data[name] = to_iso8601(cursor.value) if cursor else None
    output_dict(data, as_json=json_out, title="Cursors")


@app.command("reset")
def reset_cursor(
    channel: str = typer.Argument(..., help="Channel whose cursor to clear"),
    database: str | None = typer.Option(None, "--database", "-d"),
) -> None:
    """Clear a cursor so the next run reprocesses every row."""
    from watchspine.core.cursors import SyncCursorStore
    from watchspine.pipeline import CHANNELS

    if channel not in CHANNELS:
        raise typer.BadParameter(f"expected one of {', '.join(CHANNELS)}", param_hint="CHANNEL")

    settings = load_settings(database)
    with open_store(settings) as store:
        SyncCursorStore(store).reset(channel)
    console.print(f"[green]Cursor cleared:[/green] {channel}")
