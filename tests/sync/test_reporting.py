"""
Tests for watchspine.sync.reporting.
"""

from datetime import UTC, datetime

from watchspine.core.cursors import SyncCursor
from watchspine.store.memory import MemoryTabularStore
from watchspine.sync.reporting import RunReporter, SyncReport, report_slots

STARTED = datetime(2026, 3, 1, tzinfo=UTC)


def _report():
    return SyncReport(
        channel="meta",
        started_at=STARTED,
        updated=["1", "2"],
        appended=["3"],
        skipped=4,
        elapsed_seconds=1.23456,
        cursor=SyncCursor("meta", STARTED),
    )


class TestSyncReport:
    def test_touched_and_count(self):
        report = _report()

        assert report.touched == ["1", "2", "3"]
        assert report.item_count == 3

    def test_to_dict(self):
        data = _report().to_dict()

        assert data["channel"] == "meta"
        assert data["item_count"] == 3
        assert data["elapsed_seconds"] == 1.235
        assert data["cursor"] == "2026-03-01T00:00:00+00:00"

    def test_to_dict_without_cursor(self):
        assert SyncReport(channel="user", started_at=STARTED).to_dict()["cursor"] is None


class TestReportSlots:
    def test_names(self):
        assert report_slots("lookup") == {
            "count": "Lookup Sync Count",
            "ids": "Lookup Sync IDs",
            "seconds": "Lookup Sync Seconds",
        }


class TestRunReporter:
    def test_writes_slots(self):
        store = MemoryTabularStore()

        missing = RunReporter(store).report(_report())

        assert missing == []
        assert store.read_config("Meta Sync Count") == 3
        assert store.read_config("Meta Sync IDs") == "1, 2, 3"
        assert store.read_config("Meta Sync Seconds") == 1.235

    def test_missing_slots_are_not_fatal(self):
        store = MemoryTabularStore(config={"Meta Sync Count": 0}, strict_config=True)

        missing = RunReporter(store).report(_report())

        assert missing == ["Meta Sync IDs", "Meta Sync Seconds"]
        assert store.read_config("Meta Sync Count") == 3
