"""Run reports and best-effort report slots.

Each completed run yields a :class:`SyncReport`. :class:`RunReporter`
logs it and copies the headline numbers into named config slots
(``"Meta Sync Count"``, ``"Meta Sync IDs"``, ...) so they are visible next
to the data. Slots are optional: a store that lacks one raises
``ConfigSlotError``, which is logged and ignored.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any

from watchspine.core.cursors import SyncCursor
from watchspine.core.errors import ConfigSlotError
from watchspine.core.logging import get_logger
from watchspine.core.timestamps import to_iso8601
from watchspine.store.protocol import TabularStore

log = get_logger(__name__)


@dataclass
class SyncReport:
    """Outcome of one channel run."""

    channel: str
    started_at: datetime
    updated: list[str] = field(default_factory=list)
    appended: list[str] = field(default_factory=list)
    skipped: int = 0
    unchanged: int = 0
    elapsed_seconds: float = 0.0
    cursor: SyncCursor | None = None

    @property
    def touched(self) -> list[str]:
        """Identifiers written this run, updates first."""
        return self.updated + self.appended

    @property
    def item_count(self) -> int:
        return len(self.updated) + len(self.appended)

    def to_dict(self) -> dict[str, Any]:
        return {
            "channel": self.channel,
            "item_count": self.item_count,
            "updated": list(self.updated),
            "appended": list(self.appended),
            "skipped": self.skipped,
            "unchanged": self.unchanged,
            "elapsed_seconds": round(self.elapsed_seconds, 3),
            "cursor": to_iso8601(self.cursor.value) if self.cursor else None,
        }


def report_slots(channel: str) -> dict[str, str]:
    """Slot names a channel's report is written to."""
    prefix = channel.title()
    return {
        "count": f"{prefix} Sync Count",
        "ids": f"{prefix} Sync IDs",
        "seconds": f"{prefix} Sync Seconds",
    }


class RunReporter:
    """Writes run reports to the log and to optional config slots."""

    def __init__(self, store: TabularStore) -> None:
        self._store = store

    def report(self, report: SyncReport) -> list[str]:
        """Log *report* and fill its slots. Returns the slots that were missing."""
        log.info(
            "sync.report",
            channel=report.channel,
            item_count=report.item_count,
            touched=report.touched,
            skipped=report.skipped,
            elapsed_seconds=round(report.elapsed_seconds, 3),
            cursor=to_iso8601(report.cursor.value) if report.cursor else None,
        )
        slots = report_slots(report.channel)
        values: dict[str, Any] = {
            slots["count"]: report.item_count,
            slots["ids"]: ", ".join(report.touched),
            slots["seconds"]: round(report.elapsed_seconds, 3),
        }
        missing = []
        for name, value in values.items():
            try:
                self._store.write_config(name, value)
            except ConfigSlotError:
                missing.append(name)
        if missing:
            log.warning("sync.report_slots_missing", channel=report.channel, slots=missing)
        return missing
