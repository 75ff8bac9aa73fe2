"""
Sync cursors for incremental channel runs.

A sync cursor is the high-water mark of one channel (``meta``, ``user``,
``lookup``): the instant its last complete run started. Source rows or
lookup groups modified before the cursor are skipped on the next run.

Manifesto:
    Cursors live in the store's scalar config slots (``"Meta Last Sync"``)
    so that whoever edits the tables can also see, and reset, how far each
    channel has read.

    - **Forward-only advancement:** a cursor never moves backward
    - **Advance after success:** callers advance only once a pass has
      completed; a failed run leaves the old cursor in place
    - **Absent means first run:** no cursor → process everything

Architecture:
    ::

        SyncCursorStore(store)
              │ get("meta")          read_config("Meta Last Sync")
              │ advance("meta", ts)  write_config("Meta Last Sync", iso)
              ▼
        ┌───────────────────────────────┐
        │ config slots                  │
        │ Meta Last Sync   | 2026-...Z  │
        │ User Last Sync   | 2026-...Z  │
        │ Lookup Last Sync | (blank)    │
        └───────────────────────────────┘

Examples:
    >>> cursors = SyncCursorStore(MemoryTabularStore())
    >>> cursors.get("meta") is None
    True
    >>> cursors.advance("meta", from_iso8601("2026-02-15T00:00:00Z")).value.isoformat()
    '2026-02-15T00:00:00+00:00'

Tags:
    cursor, watermark, incremental, sync, checkpoint, watch-spine
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import TYPE_CHECKING

from watchspine.core.errors import ConfigSlotError
from watchspine.core.logging import get_logger
from watchspine.core.timestamps import parse_timestamp, to_iso8601

if TYPE_CHECKING:
    from watchspine.store.protocol import TabularStore

log = get_logger(__name__)


def cursor_slot(channel: str) -> str:
    """Config slot name holding a channel's cursor (``"Meta Last Sync"``)."""
    return f"{channel.title()} Last Sync"


@dataclass(frozen=True, slots=True)
class SyncCursor:
    """High-water mark for a single sync channel.

    Attributes:
        channel: Channel name (``"meta"``, ``"user"``, ``"lookup"``).
        value: Aware UTC instant of the last successful run.
    """

    channel: str
    value: datetime

    def admits(self, ts: datetime | None) -> bool:
        """Row-level gate: absent or strictly older timestamps are skipped."""
        return ts is not None and ts >= self.value

    def is_newer(self, ts: datetime | None) -> bool:
        """Group-level gate: only strictly newer markers pass."""
        return ts is not None and ts > self.value


class SyncCursorStore:
    """Reads and advances channel cursors through the store's config slots."""

    def __init__(self, store: TabularStore) -> None:
        self._store = store

    def get(self, channel: str) -> SyncCursor | None:
        """Return the channel cursor, or ``None`` when no run has completed."""
        try:
            raw = self._store.read_config(cursor_slot(channel))
        except ConfigSlotError:
            return None
        value = parse_timestamp(raw)
        if value is None:
            if raw not in (None, ""):
                log.warning("cursor.unparsable", channel=channel, raw=str(raw))
            return None
        return SyncCursor(channel=channel, value=value)

    def advance(self, channel: str, value: datetime) -> SyncCursor:
        """Move the cursor forward (forward-only).

        If *value* is not later than the stored cursor the call is a no-op
        and the existing cursor is returned.
        """
        existing = self.get(channel)
        value = parse_timestamp(value)
        if existing is not None and value <= existing.value:
            return existing
        self._store.write_config(cursor_slot(channel), to_iso8601(value))
        log.debug("cursor.advanced", channel=channel, cursor=to_iso8601(value))
        return SyncCursor(channel=channel, value=value)

    def reset(self, channel: str) -> None:
        """Clear a cursor so the next run reprocesses every row."""
        self._store.write_config(cursor_slot(channel), "")
