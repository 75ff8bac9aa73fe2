"""
watch-spine - incremental sync and tag analytics for personal watch history.

- watchspine.core:       errors, logging, timestamps, cursors, settings
- watchspine.store:      tabular store protocol and adapters
- watchspine.sync:       meta / user / lookup sync channels
- watchspine.analytics:  tag aggregation, distribution stats, scoring
- watchspine.pipeline:   run orchestration
"""

__version__ = "0.1.0"

from watchspine.core.errors import (  # noqa: E402
    MissingColumnError,
    MissingTableError,
    PartialRunError,
    WatchSpineError,
)
from watchspine.store import MemoryTabularStore, SqliteTabularStore, TabularStore  # noqa: E402

__all__ = [
    "__version__",
    "WatchSpineError",
    "MissingTableError",
    "MissingColumnError",
    "PartialRunError",
    "MemoryTabularStore",
    "SqliteTabularStore",
    "TabularStore",
]
