"""
CLI layer for watch-spine.

A Typer application whose commands delegate to :mod:`watchspine.pipeline`.
All sync and scoring logic lives in the engines; this package handles
argument parsing, coloured output and table formatting.

Entry point::

    watchspine --help
"""

from watchspine.cli.app import app

__all__ = ["app"]
