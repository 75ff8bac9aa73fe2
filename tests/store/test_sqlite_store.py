"""
Tests for watchspine.store.sqlite.

Tests cover:
- Table creation, replacement and listing
- Row reads, writes, bulk writes and appends with protocol indices
- Cell types preserved through JSON
- Config slots
- CSV import
- Persistence across connections
"""

from datetime import UTC, datetime

import pytest

from watchspine.core.errors import ConfigSlotError, MissingTableError, StorageError
from watchspine.store.protocol import TabularStore
from watchspine.store.sqlite import SqliteTabularStore


@pytest.fixture
def db():
    store = SqliteTabularStore()
    store.create_table("T", ["ID", "Name", "Score"], [["1", "a", 80], ["2", "b", None]])
    yield store
    store.close()


class TestSqliteTables:
    def test_satisfies_protocol(self, db):
        assert isinstance(db, TabularStore)

    def test_read_table(self, db):
        table = db.read_table("T")

        assert table.name == "T"
        assert table.header == ["ID", "Name", "Score"]
        assert table.rows == [["1", "a", 80], ["2", "b", None]]
        assert table.last_row == 3

    def test_types_preserved(self, db):
        db.append_rows("T", [["3", "12", 12.5]])

        row = db.read_row("T", 4)
        assert row == ["3", "12", 12.5]
        assert isinstance(row[1], str)

    def test_datetimes_stored_as_iso(self, db):
        ts = datetime(2026, 1, 1, tzinfo=UTC)
        db.append_rows("T", [["3", "c", ts]])

        assert db.read_row("T", 4)[2] == ts.isoformat()

    def test_create_replaces(self, db):
        db.create_table("T", ["ID"], [["9"]])

        assert db.read_table("T").rows == [["9"]]

    def test_list_tables(self, db):
        db.create_table("A", ["ID"])

        assert db.list_tables() == ["A", "T"]

    def test_missing_table(self, db):
        with pytest.raises(MissingTableError):
            db.read_table("Nope")
        with pytest.raises(MissingTableError):
            db.append_rows("Nope", [["1"]])


class TestSqliteRows:
    def test_read_header_row(self, db):
        assert db.read_row("T", 1) == ["ID", "Name", "Score"]

    def test_read_row_out_of_range(self, db):
        with pytest.raises(StorageError):
            db.read_row("T", 10)

    def test_write_row(self, db):
        db.write_row("T", 3, ["2", "B", 1])

        assert db.read_table("T").rows[1] == ["2", "B", 1]

    def test_write_row_refuses_header(self, db):
        with pytest.raises(StorageError):
            db.write_row("T", 1, ["x", "y", "z"])

    def test_write_rows_range_checked(self, db):
        with pytest.raises(StorageError):
            db.write_rows("T", 2, [["1"], ["2"], ["3"]])

        assert db.read_table("T").rows[0] == ["1", "a", 80]

    def test_write_rows(self, db):
        db.write_rows("T", 2, [["1", "x", 1], ["2", "y", 2]])

        assert db.read_table("T").rows == [["1", "x", 1], ["2", "y", 2]]

    def test_append_after_last_row(self, db):
        db.append_rows("T", [["3", "c", 1], ["4", "d", 2]])

        assert [r[0] for r in db.read_table("T").rows] == ["1", "2", "3", "4"]

    def test_append_to_empty_table(self):
        store = SqliteTabularStore()
        store.create_table("E", ["ID"])
        store.append_rows("E", [["1"]])

        assert store.read_row("E", 2) == ["1"]
        store.close()


class TestSqliteConfig:
    def test_missing_slot(self, db):
        with pytest.raises(ConfigSlotError):
            db.read_config("Meta Last Sync")

    def test_round_trip(self, db):
        db.write_config("Meta Last Sync", "2026-01-01T00:00:00+00:00")
        db.write_config("Weighted Spread", 1.6)
        db.write_config("Weighted Spread", 1.7)

        assert db.read_config("Weighted Spread") == 1.7
        assert db.list_config() == {
            "Meta Last Sync": "2026-01-01T00:00:00+00:00",
            "Weighted Spread": 1.7,
        }


class TestSqliteFiles:
    def test_import_csv(self, tmp_path):
        path = tmp_path / "meta.csv"
        path.write_text("Anime ID,Title\n1,Cowboy Bebop\n2,Trigun\n", encoding="utf-8")
        store = SqliteTabularStore()

        count = store.import_csv("Meta", path)

        assert count == 2
        assert store.read_table("Meta").rows == [["1", "Cowboy Bebop"], ["2", "Trigun"]]
        store.close()

    def test_import_empty_csv(self, tmp_path):
        path = tmp_path / "empty.csv"
        path.write_text("", encoding="utf-8")
        store = SqliteTabularStore()

        with pytest.raises(StorageError):
            store.import_csv("Meta", path)
        store.close()

    def test_persists_across_connections(self, tmp_path):
        path = tmp_path / "nested" / "store.db"
        first = SqliteTabularStore(path)
        first.create_table("T", ["ID"], [["1"]])
        first.write_config("Meta Last Sync", "x")
        first.close()

        second = SqliteTabularStore(path)
        assert second.read_table("T").rows == [["1"]]
        assert second.read_config("Meta Last Sync") == "x"
        second.close()
