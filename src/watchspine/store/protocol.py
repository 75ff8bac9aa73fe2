"""
Tabular store contract.

The engines never see a spreadsheet, a database, or a file: they see a
:class:`TabularStore`, a narrow protocol of named tables addressed by
1-based row index (row 1 is the header) plus scalar config slots.

Architecture:
    ::

        protocol.py (YOU ARE HERE)
        ├── Table          header + ordered rows snapshot
        └── TabularStore   read/write rows, append, config slots

        Implementations:
          store/memory.py  MemoryTabularStore  (tests, embedding)
          store/sqlite.py  SqliteTabularStore  (CLI, persistent)

Guardrails:
    ❌ DON'T: Rewrite a whole table from a sync channel
    ✅ DO: Use write_row per record; foreign columns survive

    ❌ DON'T: Use write_rows outside the scoring pass
    ✅ DO: Reserve bulk rewrites for wholly engine-owned columns

Tags:
    protocol, store, table, adapter, watch-spine
"""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass, field
from typing import Any, Protocol, runtime_checkable

HEADER_ROW = 1
FIRST_DATA_ROW = 2


def is_blank(value: Any) -> bool:
    """A cell is blank when it is ``None`` or whitespace-only text."""
    if value is None:
        return True
    if isinstance(value, str):
        return not value.strip()
    return False


@dataclass(frozen=True)
class Table:
    """Snapshot of one table.

    Attributes:
        name: Table name in the store.
        header: Column names from row 1.
        rows: Data rows in store order; ``rows[0]`` lives at store row 2.
    """

    name: str
    header: list[str]
    rows: list[list[Any]] = field(default_factory=list)

    @staticmethod
    def row_index(position: int) -> int:
        """Convert a 0-based position in ``rows`` to a 1-based store row."""
        return position + FIRST_DATA_ROW

    def column_index(self, column: str) -> int | None:
        """Return the 0-based index of *column* (trimmed match), else ``None``."""
        wanted = column.strip()
        for i, name in enumerate(self.header):
            if str(name).strip() == wanted:
                return i
        return None

    def cell(self, row: Sequence[Any], index: int | None) -> Any:
        """Read ``row[index]`` tolerating short rows and missing columns."""
        if index is None or index >= len(row):
            return None
        return row[index]

    @property
    def last_row(self) -> int:
        """1-based index of the last occupied row (1 when only the header exists)."""
        return len(self.rows) + HEADER_ROW

    def __len__(self) -> int:
        return len(self.rows)


@runtime_checkable
class TabularStore(Protocol):
    """Named tables with row/column addressing plus scalar config slots."""

    def read_table(self, name: str) -> Table:
        """Read header and all rows. Raises ``MissingTableError``."""
        ...

    def read_row(self, name: str, row_index: int) -> list[Any]:
        """Read one row by 1-based index."""
        ...

    def write_row(self, name: str, row_index: int, cells: Sequence[Any]) -> None:
        """Replace one row by 1-based index."""
        ...

    def write_rows(self, name: str, start_row: int, rows: Sequence[Sequence[Any]]) -> None:
        """Replace a contiguous block of rows starting at *start_row*."""
        ...

    def append_rows(self, name: str, rows: Sequence[Sequence[Any]]) -> None:
        """Append rows after the current last row."""
        ...

    def read_config(self, name: str) -> Any:
        """Read a scalar config slot. Raises ``ConfigSlotError`` if absent."""
        ...

    def write_config(self, name: str, value: Any) -> None:
        """Write a scalar config slot."""
        ...
