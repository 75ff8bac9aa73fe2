"""In-memory tabular store.

Keeps every table as a header plus a list of row lists, and records each
mutation in :attr:`MemoryTabularStore.writes` so callers (mostly tests)
can assert exactly which rows a run touched.
"""

from __future__ import annotations

import copy
from collections.abc import Iterable, Sequence
from dataclasses import dataclass
from typing import Any

from watchspine.core.errors import ConfigSlotError, MissingTableError, StorageError
from watchspine.store.protocol import FIRST_DATA_ROW, HEADER_ROW, Table


@dataclass(frozen=True, slots=True)
class WriteRecord:
    """One mutation applied to the store."""

    kind: str  # "write_row" | "append"
    table: str
    row_index: int


class MemoryTabularStore:
    """``TabularStore`` backed by plain lists.

    Args:
        tables: Optional initial tables as ``{name: [header, *rows]}``.
        config: Optional initial config slots.
        strict_config: When true, ``write_config`` only accepts slots that
            already exist (mirrors stores whose slots are pre-declared).
    """

    def __init__(
        self,
        tables: dict[str, list[list[Any]]] | None = None,
        config: dict[str, Any] | None = None,
        *,
        strict_config: bool = False,
    ) -> None:
        self._tables: dict[str, list[list[Any]]] = {}
        self._config: dict[str, Any] = dict(config or {})
        self._strict_config = strict_config
        self.writes: list[WriteRecord] = []
        for name, rows in (tables or {}).items():
            self.create_table(name, rows[0], rows[1:])

    # -- setup ---------------------------------------------------------------

    def create_table(
        self,
        name: str,
        header: Sequence[str],
        rows: Iterable[Sequence[Any]] = (),
    ) -> None:
        self._tables[name] = [list(header)] + [list(r) for r in rows]

    def has_table(self, name: str) -> bool:
        return name in self._tables

    def rows(self, name: str) -> list[list[Any]]:
        """Deep copy of all data rows (header excluded)."""
        return copy.deepcopy(self._get(name)[1:])

    def mutations(self, name: str | None = None) -> list[WriteRecord]:
        """Recorded writes, optionally for one table."""
        if name is None:
            return list(self.writes)
        return [w for w in self.writes if w.table == name]

    # -- TabularStore protocol ---------------------------------------------------

    def read_table(self, name: str) -> Table:
        data = self._get(name)
        return Table(
            name=name,
            header=[str(h) for h in data[0]],
            rows=copy.deepcopy(data[1:]),
        )

    def read_row(self, name: str, row_index: int) -> list[Any]:
        data = self._get(name)
        self._check_index(name, data, row_index)
        return list(data[row_index - 1])

    def write_row(self, name: str, row_index: int, cells: Sequence[Any]) -> None:
        data = self._get(name)
        if row_index < FIRST_DATA_ROW:
            raise StorageError(f"Refusing to overwrite header of {name!r}").with_context(
                table=name, row_index=row_index
            )
        self._check_index(name, data, row_index)
        data[row_index - 1] = list(cells)
        self.writes.append(WriteRecord("write_row", name, row_index))

    def write_rows(self, name: str, start_row: int, rows: Sequence[Sequence[Any]]) -> None:
        for offset, cells in enumerate(rows):
            self.write_row(name, start_row + offset, cells)

    def append_rows(self, name: str, rows: Sequence[Sequence[Any]]) -> None:
        data = self._get(name)
        for cells in rows:
            data.append(list(cells))
            self.writes.append(WriteRecord("append", name, len(data)))

    def read_config(self, name: str) -> Any:
        if name not in self._config:
            raise ConfigSlotError(name)
        return self._config[name]

    def write_config(self, name: str, value: Any) -> None:
        if self._strict_config and name not in self._config:
            raise ConfigSlotError(name)
        self._config[name] = value

    # -- internal ------------------------------------------------------------

    def _get(self, name: str) -> list[list[Any]]:
        try:
            return self._tables[name]
        except KeyError:
            raise MissingTableError(name) from None

    @staticmethod
    def _check_index(name: str, data: list[list[Any]], row_index: int) -> None:
        if row_index < HEADER_ROW or row_index > len(data):
            raise StorageError(
                f"Row {row_index} out of range for table {name!r} ({len(data)} rows)"
            ).with_context(table=name, row_index=row_index)
