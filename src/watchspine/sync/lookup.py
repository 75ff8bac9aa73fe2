"""
Grouped lookup sync.

Flattens the named groups of a structured lookup table (one group per
dimension: genres, studios, themes, ...) into a flat ``LookupAll`` table
keyed by ``(Group, ID)``.

Manifesto:
    The lookup source encodes structure by position: each group is a
    contiguous block of rows, and where each block lives is recorded in a
    separate index table along with the block's "Last Updated" marker.
    Resolving *where* a group lives is kept apart from *what* it contains:
    :func:`resolve_groups` turns the index into explicit descriptors, and
    the sync only ever walks those ranges.

    - **Per-group gating:** a group whose marker is not strictly newer than
      the cursor is skipped wholesale, even if some rows differ
    - **Sparse tolerant:** blank-id rows are skipped; a fully blank row ends
      the group
    - **Canonical fields only:** ``Name`` and ``Source Column`` are the only
      cells updated on existing rows; analytics and user columns survive
    - **Batched:** updates and appends are collected during the scan and
      flushed once it completes

Architecture:
    ::

        Lookup Index                       Lookup (source)
        ┌──────────┬───────┬─────┬──────┐  row 2 ┌────┬─────────┐
        │ Group    │ Start │ End │ Upd  │  ...   │ ID │ Name    │ ← Genres
        │ Genres   │ 2     │ 40  │ 2026 │  row 41├────┼─────────┤
        │ Studios  │ 41    │ 900 │ 2025 │  ...   │ ID │ Name    │ ← Studios
        └──────────┴───────┴─────┴──────┘        └────┴─────────┘
              │ resolve_groups
              ▼
        [LookupGroup(Genres, 2..40), LookupGroup(Studios, 41..900)]
              │ gate on cursor, walk range, key "Group|ID"
              ▼
        updates[] + appends[]  ──flush──►  LookupAll

Tags:
    sync, lookup, groups, batching, incremental, watch-spine
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Any

from watchspine.core.cursors import SyncCursor, SyncCursorStore
from watchspine.core.errors import PartialRunError, SchemaError
from watchspine.core.logging import LogContext, get_logger, log_step
from watchspine.core.settings import WatchSpineSettings
from watchspine.core.timestamps import parse_timestamp, utc_now
from watchspine.schema import (
    END_ROW,
    GROUP,
    LAST_UPDATED,
    LOOKUP_ID,
    LOOKUP_NAME,
    SOURCE_COLUMN,
    START_ROW,
    ColumnMap,
    normalize_key,
    parse_number,
)
from watchspine.store.protocol import FIRST_DATA_ROW, Table, TabularStore, is_blank
from watchspine.sync.reporting import SyncReport

log = get_logger(__name__)


@dataclass(frozen=True, slots=True)
class LookupGroup:
    """Where one group lives inside the lookup source table.

    Attributes:
        name: Group name (``"Genres"``).
        source_column: Merged-store dimension header the group enumerates
            (``"Genre ID"``).
        start_row: First 1-based store row of the group.
        end_row: Last 1-based store row of the group (inclusive).
        last_updated: Group's "Last Updated" marker, if any.
    """

    name: str
    source_column: str
    start_row: int
    end_row: int
    last_updated: datetime | None = None


@dataclass(frozen=True)
class LookupChannel:
    """Tables the grouped lookup sync reads and writes."""

    source_table: str
    index_table: str
    dest_table: str
    name: str = "lookup"


def lookup_channel(settings: WatchSpineSettings) -> LookupChannel:
    return LookupChannel(
        source_table=settings.lookup_table,
        index_table=settings.lookup_index_table,
        dest_table=settings.lookup_all_table,
    )


def composite_key(group: Any, tag_id: Any) -> str:
    """``"Group|ID"`` key, trimmed and case-sensitive."""
    return f"{normalize_key(group)}|{normalize_key(tag_id)}"


def resolve_groups(index: Table) -> list[LookupGroup]:
    """Turn the lookup index table into group descriptors.

    Rows with a blank group name, blank source column or non-integer
    bounds are skipped with a warning.

    Raises:
        MissingColumnError: if the index lacks a required header.
        SchemaError: if a group's range is inverted or overlaps the header.
    """
    cols = ColumnMap.resolve(
        index, required=[GROUP, SOURCE_COLUMN, START_ROW, END_ROW], optional=[LAST_UPDATED]
    )
    groups: list[LookupGroup] = []
    for position, row in enumerate(index.rows):
        name = normalize_key(index.cell(row, cols[GROUP]))
        source_column = normalize_key(index.cell(row, cols[SOURCE_COLUMN]))
        start = parse_number(index.cell(row, cols[START_ROW]))
        end = parse_number(index.cell(row, cols[END_ROW]))
        if not name or not source_column or start is None or end is None:
            log.warning("lookup.index_row_skipped", row=Table.row_index(position), group=name)
            continue
        if not (start.is_integer() and end.is_integer()):
            log.warning("lookup.index_row_skipped", row=Table.row_index(position), group=name)
            continue
        start_row, end_row = int(start), int(end)
        if start_row < FIRST_DATA_ROW or end_row < start_row:
            raise SchemaError(
                f"Group {name!r} has invalid row range {start_row}..{end_row}"
            ).with_context(table=index.name, row_index=Table.row_index(position))
        groups.append(
            LookupGroup(
                name=name,
                source_column=source_column,
                start_row=start_row,
                end_row=end_row,
                last_updated=parse_timestamp(index.cell(row, cols[LAST_UPDATED])),
            )
        )
    return groups


class GroupedLookupSync:
    """Flattens lookup groups into the ``LookupAll`` table."""

    def __init__(self, store: TabularStore, cursors: SyncCursorStore | None = None) -> None:
        self._store = store
        self._cursors = cursors or SyncCursorStore(store)

    def run(self, channel: LookupChannel) -> SyncReport:
        """Run one pass and advance the lookup cursor.

        Raises:
            MissingTableError, MissingColumnError, SchemaError: before any write.
            PartialRunError: if the flush fails part-way.
        """
        report = SyncReport(channel=channel.name, started_at=utc_now())

        with LogContext(channel=channel.name), log_step(
            f"sync.{channel.name}", source=channel.source_table, dest=channel.dest_table
        ) as timer:
            groups = resolve_groups(self._store.read_table(channel.index_table))
            source = self._store.read_table(channel.source_table)
            dest = self._store.read_table(channel.dest_table)
            src_cols = ColumnMap.resolve(source, required=[LOOKUP_ID, LOOKUP_NAME])
            dst_cols = ColumnMap.resolve(dest, required=[GROUP, SOURCE_COLUMN, LOOKUP_ID, LOOKUP_NAME])
            cursor = self._cursors.get(channel.name)

            updates, appends = self._scan(groups, source, dest, src_cols, dst_cols, cursor, report)

            written: list[str] = []
            try:
                for row_index, key, cells in updates:
                    self._store.write_row(channel.dest_table, row_index, cells)
                    written.append(key)
                if appends:
                    self._store.append_rows(channel.dest_table, appends)
                    written.extend(report.appended)
            except Exception as e:
                raise PartialRunError(channel.name, written, cause=e) from e

            report.cursor = self._cursors.advance(channel.name, report.started_at)
            timer.add_metric("groups", len(groups))
            timer.add_metric("updated", len(report.updated))
            timer.add_metric("appended", len(report.appended))

        report.elapsed_seconds = timer.duration_seconds
        return report

    def _scan(
        self,
        groups: list[LookupGroup],
        source: Table,
        dest: Table,
        src_cols: ColumnMap,
        dst_cols: ColumnMap,
        cursor: SyncCursor | None,
        report: SyncReport,
    ) -> tuple[list[tuple[int, str, list[Any]]], list[list[Any]]]:
        g_idx, c_idx = dst_cols[GROUP], dst_cols[SOURCE_COLUMN]
        i_idx, n_idx = dst_cols[LOOKUP_ID], dst_cols[LOOKUP_NAME]
        width = len(dest.header)

        index: dict[str, list[Any] | None] = {}
        rows_at: dict[str, int] = {}
        for position, row in enumerate(dest.rows):
            key = composite_key(dest.cell(row, g_idx), dest.cell(row, i_idx))
            if key.endswith("|") or key in index:
                continue
            index[key] = list(row) + [""] * max(0, width - len(row))
            rows_at[key] = Table.row_index(position)

        pending: dict[int, tuple[str, list[Any]]] = {}
        appends: list[list[Any]] = []

        for group in groups:
            if cursor is not None and not cursor.is_newer(group.last_updated):
                log.debug("lookup.group_skipped", group=group.name, last_updated=str(group.last_updated))
                report.skipped += group.end_row - group.start_row + 1
                continue

            for row_index in range(group.start_row, group.end_row + 1):
                position = row_index - FIRST_DATA_ROW
                if position >= len(source.rows):
                    break
                row = source.rows[position]
                if all(is_blank(v) for v in row):
                    break
                raw_id = source.cell(row, src_cols[LOOKUP_ID])
                if is_blank(raw_id):
                    report.skipped += 1
                    continue
                name = source.cell(row, src_cols[LOOKUP_NAME])
                name = "" if name is None else name
                key = composite_key(group.name, raw_id)

                if key not in index:
                    cells: list[Any] = [""] * width
                    cells[g_idx] = group.name
                    cells[c_idx] = group.source_column
                    cells[i_idx] = raw_id
                    cells[n_idx] = name
                    appends.append(cells)
                    index[key] = None
                    report.appended.append(key)
                    continue

                stored = index[key]
                if stored is None:
                    # appended earlier in this pass
                    continue
                if (
                    normalize_key(stored[n_idx]) == normalize_key(name)
                    and normalize_key(stored[c_idx]) == group.source_column
                ):
                    continue
                stored[n_idx] = name
                stored[c_idx] = group.source_column
                if rows_at[key] not in pending:
                    report.updated.append(key)
                pending[rows_at[key]] = (key, stored)

        updates = [(row_index, key, cells) for row_index, (key, cells) in sorted(pending.items())]
        return updates, appends
