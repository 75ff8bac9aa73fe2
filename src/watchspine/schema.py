"""
Schema mapping: column roles to header names.

Every header the engines depend on is declared here once, and each pass
resolves the roles it needs against a table's header before touching any
row. A missing required role is a precondition failure raised before any
write; a missing optional role resolves to ``None``.

Architecture:
    ::

        Role              Header / convention
        ───────────────   ─────────────────────────────
        RECORD_ID         "Anime ID"
        PRESENCE          "Episodes Watched"
        DURATION          "User Watchtime"   (minutes)
        SCORE             "User Score"
        tag dimension     header ending in " ID" (record id excluded)

        ColumnMap.resolve(table, required=[...], optional=[...])
              │
              ├─ all found      → {header: index}
              └─ required miss  → MissingColumnError(table, header)

Examples:
    >>> split_tags(" G1, G2,,G1 ")
    ['G1', 'G2', 'G1']
    >>> parse_number("80")
    80.0
    >>> parse_number("n/a") is None
    True

Tags:
    schema, columns, mapping, validation, watch-spine
"""

from __future__ import annotations

import math
from collections.abc import Iterable
from dataclasses import dataclass
from typing import Any

from watchspine.core.errors import MissingColumnError
from watchspine.store.protocol import Table, is_blank

# ── Record store ─────────────────────────────────────────────────
RECORD_ID = "Anime ID"
PRESENCE = "Episodes Watched"
DURATION = "User Watchtime"
SCORE = "User Score"
DIMENSION_SUFFIX = " ID"
TAG_SEPARATOR = ","

# ── Lookup tables ────────────────────────────────────────────────
GROUP = "Group"
SOURCE_COLUMN = "Source Column"
LOOKUP_ID = "ID"
LOOKUP_NAME = "Name"
USER_COUNT = "User Count"
USER_HOURS = "User Hours"
USER_MEAN = "User Mean Score"
WEIGHTED_SCORE = "Weighted Score"
REC_VALUE = "Rec Value"
ANALYTIC_COLUMNS = (USER_COUNT, USER_HOURS, USER_MEAN, WEIGHTED_SCORE, REC_VALUE)

# ── Lookup index (group metadata) ────────────────────────────────
START_ROW = "Start Row"
END_ROW = "End Row"
LAST_UPDATED = "Last Updated"


@dataclass(frozen=True)
class ColumnMap:
    """Resolved header → 0-based index mapping for one table."""

    table: str
    indices: dict[str, int | None]

    @classmethod
    def resolve(
        cls,
        table: Table,
        required: Iterable[str] = (),
        optional: Iterable[str] = (),
    ) -> ColumnMap:
        """Resolve roles against *table*'s header.

        Raises:
            MissingColumnError: if any *required* header is absent.
        """
        indices: dict[str, int | None] = {}
        for column in required:
            idx = table.column_index(column)
            if idx is None:
                raise MissingColumnError(table.name, column)
            indices[column] = idx
        for column in optional:
            indices[column] = table.column_index(column)
        return cls(table=table.name, indices=indices)

    def __getitem__(self, column: str) -> int | None:
        return self.indices.get(column)

    def __contains__(self, column: str) -> bool:
        return self.indices.get(column) is not None


def dimension_columns(table: Table) -> dict[str, int]:
    """Discover multi-valued tag columns by the ``" ID"`` suffix convention.

    The record-id column also ends in ``" ID"`` but is a single key, not a
    tag list, so it is excluded.
    """
    found: dict[str, int] = {}
    for i, name in enumerate(table.header):
        header = str(name).strip()
        if header == RECORD_ID:
            continue
        if header.endswith(DIMENSION_SUFFIX) and header not in found:
            found[header] = i
    return found


def split_tags(value: Any) -> list[str]:
    """Split a comma-separated cell into trimmed, non-blank tokens.

    Duplicates are kept in order; each one counts as a separate occurrence.
    A numeric cell is a single id keyed like :func:`normalize_key` (``7.0``
    becomes ``"7"``).
    """
    if is_blank(value):
        return []
    if not isinstance(value, str):
        return [normalize_key(value)]
    return [token.strip() for token in str(value).split(TAG_SEPARATOR) if token.strip()]


def normalize_key(value: Any) -> str:
    """Render an identifier cell as a trimmed string key ("" for blank).

    Whole floats (``101.0`` from numeric cells) render as ``"101"`` so ids
    match their text form in other tables.
    """
    if is_blank(value):
        return ""
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    return str(value).strip()


def parse_number(value: Any) -> float | None:
    """Parse a cell as a finite number, else ``None``."""
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, int | float):
        number = float(value)
    elif isinstance(value, str):
        text = value.strip()
        if not text:
            return None
        try:
            number = float(text)
        except ValueError:
            return None
    else:
        return None
    if not math.isfinite(number):
        return None
    return number
