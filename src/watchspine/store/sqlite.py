"""SQLite-backed tabular store.

Persists tables and config slots in a single SQLite file so the CLI can
run channels across invocations. Cells are stored as JSON, which keeps
numbers and strings distinct on the round trip: the User channel's
literal change detection depends on that.

Usage::

    from watchspine.store.sqlite import SqliteTabularStore

    store = SqliteTabularStore("~/.watchspine/watchspine.db")
    store.import_csv("Meta", "meta.csv")
    table = store.read_table("Meta")
    store.close()
"""

from __future__ import annotations

import csv
import json
import sqlite3
from collections.abc import Iterable, Sequence
from datetime import date, datetime
from pathlib import Path
from typing import Any

from watchspine.core.errors import ConfigSlotError, MissingTableError, StorageError
from watchspine.core.logging import get_logger
from watchspine.store.protocol import FIRST_DATA_ROW, HEADER_ROW, Table

log = get_logger(__name__)

_SCHEMA = (
    "CREATE TABLE IF NOT EXISTS tab_headers ("
    "  table_name TEXT PRIMARY KEY,"
    "  header_json TEXT NOT NULL)",
    "CREATE TABLE IF NOT EXISTS tab_rows ("
    "  table_name TEXT NOT NULL,"
    "  row_index INTEGER NOT NULL,"
    "  cells_json TEXT NOT NULL,"
    "  PRIMARY KEY (table_name, row_index))",
    "CREATE TABLE IF NOT EXISTS config_values ("
    "  name TEXT PRIMARY KEY,"
    "  value_json TEXT)",
)


def _json_default(value: Any) -> str:
    if isinstance(value, datetime | date):
        return value.isoformat()
    raise TypeError(f"Cell value of type {type(value).__name__} is not storable")


def _dumps(value: Any) -> str:
    return json.dumps(value, default=_json_default)


class SqliteTabularStore:
    """``TabularStore`` persisted in SQLite.

    Row indices follow the protocol: row 1 is the header (kept in
    ``tab_headers``), data rows are stored from index 2 upward with no gaps.
    """

    def __init__(self, path: str | Path = ":memory:") -> None:
        if str(path) != ":memory:":
            path = Path(path).expanduser()
            path.parent.mkdir(parents=True, exist_ok=True)
        self._conn = sqlite3.connect(str(path))
        for stmt in _SCHEMA:
            self._conn.execute(stmt)
        self._conn.commit()

    # -- setup ---------------------------------------------------------------

    def create_table(
        self,
        name: str,
        header: Sequence[str],
        rows: Iterable[Sequence[Any]] = (),
    ) -> None:
        """Create or replace a table."""
        with self._conn:
            self._conn.execute("DELETE FROM tab_rows WHERE table_name = ?", (name,))
            self._conn.execute(
                "INSERT INTO tab_headers (table_name, header_json) VALUES (?, ?) "
                "ON CONFLICT(table_name) DO UPDATE SET header_json = excluded.header_json",
                (name, _dumps([str(h) for h in header])),
            )
            self._conn.executemany(
                "INSERT INTO tab_rows (table_name, row_index, cells_json) VALUES (?, ?, ?)",
                [(name, i + FIRST_DATA_ROW, _dumps(list(r))) for i, r in enumerate(rows)],
            )

    def import_csv(self, name: str, path: str | Path) -> int:
        """Replace *name* with the contents of a CSV file. Returns data row count."""
        with open(Path(path).expanduser(), newline="", encoding="utf-8-sig") as f:
            reader = csv.reader(f)
            try:
                header = next(reader)
            except StopIteration:
                raise StorageError(f"CSV file {path} is empty").with_context(table=name) from None
            rows = [row for row in reader]
        self.create_table(name, header, rows)
        log.info("store.csv_imported", table=name, rows=len(rows), path=str(path))
        return len(rows)

    def list_tables(self) -> list[str]:
        cur = self._conn.execute("SELECT table_name FROM tab_headers ORDER BY table_name")
        return [r[0] for r in cur.fetchall()]

    def list_config(self) -> dict[str, Any]:
        cur = self._conn.execute("SELECT name, value_json FROM config_values ORDER BY name")
        return {name: json.loads(v) if v is not None else None for name, v in cur.fetchall()}

    def close(self) -> None:
        self._conn.close()

    # -- TabularStore protocol ---------------------------------------------------

    def read_table(self, name: str) -> Table:
        header = self._header(name)
        cur = self._conn.execute(
            "SELECT cells_json FROM tab_rows WHERE table_name = ? ORDER BY row_index",
            (name,),
        )
        return Table(name=name, header=header, rows=[json.loads(r[0]) for r in cur.fetchall()])

    def read_row(self, name: str, row_index: int) -> list[Any]:
        header = self._header(name)
        if row_index == HEADER_ROW:
            return list(header)
        row = self._conn.execute(
            "SELECT cells_json FROM tab_rows WHERE table_name = ? AND row_index = ?",
            (name, row_index),
        ).fetchone()
        if row is None:
            raise StorageError(f"Row {row_index} out of range for table {name!r}").with_context(
                table=name, row_index=row_index
            )
        return json.loads(row[0])

    def write_row(self, name: str, row_index: int, cells: Sequence[Any]) -> None:
        self.write_rows(name, row_index, [cells])

    def write_rows(self, name: str, start_row: int, rows: Sequence[Sequence[Any]]) -> None:
        self._header(name)
        if start_row < FIRST_DATA_ROW:
            raise StorageError(f"Refusing to overwrite header of {name!r}").with_context(
                table=name, row_index=start_row
            )
        last = self._last_row(name)
        if start_row + len(rows) - 1 > last:
            raise StorageError(
                f"Rows {start_row}..{start_row + len(rows) - 1} out of range for table {name!r}"
            ).with_context(table=name, row_index=start_row)
        with self._conn:
            self._conn.executemany(
                "UPDATE tab_rows SET cells_json = ? WHERE table_name = ? AND row_index = ?",
                [(_dumps(list(cells)), name, start_row + i) for i, cells in enumerate(rows)],
            )

    def append_rows(self, name: str, rows: Sequence[Sequence[Any]]) -> None:
        self._header(name)
        start = self._last_row(name) + 1
        with self._conn:
            self._conn.executemany(
                "INSERT INTO tab_rows (table_name, row_index, cells_json) VALUES (?, ?, ?)",
                [(name, start + i, _dumps(list(cells))) for i, cells in enumerate(rows)],
            )

    def read_config(self, name: str) -> Any:
        row = self._conn.execute(
            "SELECT value_json FROM config_values WHERE name = ?", (name,)
        ).fetchone()
        if row is None:
            raise ConfigSlotError(name)
        return json.loads(row[0]) if row[0] is not None else None

    def write_config(self, name: str, value: Any) -> None:
        with self._conn:
            self._conn.execute(
                "INSERT INTO config_values (name, value_json) VALUES (?, ?) "
                "ON CONFLICT(name) DO UPDATE SET value_json = excluded.value_json",
                (name, _dumps(value)),
            )

    # -- internal ------------------------------------------------------------

    def _header(self, name: str) -> list[str]:
        row = self._conn.execute(
            "SELECT header_json FROM tab_headers WHERE table_name = ?", (name,)
        ).fetchone()
        if row is None:
            raise MissingTableError(name)
        return json.loads(row[0])

    def _last_row(self, name: str) -> int:
        row = self._conn.execute(
            "SELECT MAX(row_index) FROM tab_rows WHERE table_name = ?", (name,)
        ).fetchone()
        return row[0] if row[0] is not None else HEADER_ROW

    def __repr__(self) -> str:
        return f"SqliteTabularStore({self._conn!r})"
