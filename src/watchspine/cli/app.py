"""
Root Typer application for the watch-spine CLI.
"""

from __future__ import annotations

import typer
from typer import Typer

from watchspine.cli.utils import load_settings, open_store, output_dict

app = Typer(
    name="watchspine",
    help="watch-spine: incremental watch-history sync and tag analytics.",
    no_args_is_help=True,
    rich_markup_mode="rich",
)


def _version_callback(value: bool) -> None:
    if value:
        from watchspine import __version__

        typer.echo(f"watch-spine {__version__}")
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
) -> None:
    """watch-spine CLI: sync channels, score tags, inspect the store."""


@app.command()
def sync(
    channel: str = typer.Argument(..., help="Channel to run: meta, user or lookup"),
    database: str | None = typer.Option(None, "--database", "-d"),
    json_out: bool = typer.Option(False, "--json"),
) -> None:
    """Run one sync channel and advance its cursor."""
    from watchspine.pipeline import CHANNELS, run_channel

    if channel not in CHANNELS:
        raise typer.BadParameter(f"expected one of {', '.join(CHANNELS)}", param_hint="CHANNEL")

    settings = load_settings(database)
    with open_store(settings) as store:
        report = run_channel(store, settings, channel)
    output_dict(report.to_dict(), as_json=json_out, title=f"Sync: {channel}")


@app.command()
def analytics(
    database: str | None = typer.Option(None, "--database", "-d"),
    json_out: bool = typer.Option(False, "--json"),
) -> None:
    """Aggregate tags from the merged store and rescore the lookup table."""
    from watchspine.pipeline import run_analytics

    settings = load_settings(database)
    with open_store(settings) as store:
        report = run_analytics(store, settings)
    output_dict(report.to_dict(), as_json=json_out, title="Analytics")


@app.command("run-all")
def run_all(
    database: str | None = typer.Option(None, "--database", "-d"),
    json_out: bool = typer.Option(False, "--json"),
) -> None:
    """Run meta, user and lookup syncs, then analytics."""
    from watchspine.pipeline import run_all as _run_all

    settings = load_settings(database)
    with open_store(settings) as store:
        result = _run_all(store, settings)

    if json_out:
        output_dict(result.to_dict(), as_json=True)
        return
    for report in result.syncs:
        output_dict(report.to_dict(), title=f"Sync: {report.channel}")
    if result.scoring is not None:
        output_dict(result.scoring.to_dict(), title="Analytics")


# ── Sub-command registration ─────────────────────────────────────────────

from watchspine.cli.config import app as config_app  # noqa: E402
from watchspine.cli.cursors import app as cursors_app  # noqa: E402
from watchspine.cli.tables import app as tables_app  # noqa: E402

app.add_typer(cursors_app, name="cursors", help="Sync cursor inspection and reset.")
app.add_typer(tables_app, name="tables", help="Import and inspect store tables.")
app.add_typer(config_app, name="config", help="Scalar config slots (tuning values).")
