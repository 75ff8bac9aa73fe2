"""
Column-ownership sync.

Copies a whitelisted set of columns from an authoritative source table
into the shared merged record store, one row at a time, never touching
columns the channel does not own.

Manifesto:
    The merged store is edited by hand as well as by two feeds (catalogue
    metadata and the user's own list). Each feed owns a disjoint slice of
    columns. A sync that rewrote whole rows, or the whole table, would
    clobber notes and formulas someone typed in the meantime.

    - **Ownership isolation:** only owned cells change; every other cell in
      a touched row is written back exactly as it was read
    - **Row-level writes:** one ``write_row`` per record, never a full-table write
    - **Append, never insert:** unseen record ids go after the last row
    - **Incremental:** rows older than the channel cursor are skipped
    - **Drift tolerant:** whitelist entries missing on either side are ignored

Architecture:
    ::

        source table ──read once──┐        ┌──read once── merged table
                                  ▼        ▼
                          ColumnMap.resolve (record id, timestamp)
                                  │
                    index: record id → merged row
                                  │
          for each source row newer than cursor:
              id in index?  ── yes → read_row → patch owned cells → write_row
                             └─ no  → blank row + id + owned cells → append_rows
                                  │
                    cursor.advance(run start)  (only after the loop completes)

Examples:
    >>> engine = ColumnOwnershipSync(store)
    >>> report = engine.run(meta_channel(settings))
    >>> report.appended
    ['5114']

Tags:
    sync, ownership, incremental, merge, row-level-write, watch-spine
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any

from watchspine.core.cursors import SyncCursor, SyncCursorStore
from watchspine.core.errors import PartialRunError
from watchspine.core.logging import LogContext, get_logger, log_step
from watchspine.core.settings import WatchSpineSettings
from watchspine.core.timestamps import parse_timestamp, utc_now
from watchspine.schema import RECORD_ID, ColumnMap, normalize_key
from watchspine.store.protocol import Table, TabularStore
from watchspine.sync.reporting import SyncReport

log = get_logger(__name__)


@dataclass(frozen=True)
class SyncChannel:
    """One source → destination ownership channel.

    Attributes:
        name: Channel name; also keys the cursor (``"meta"``, ``"user"``).
        source_table: Authoritative table to read.
        dest_table: Shared table to write.
        owned_columns: Headers this channel may write.
        source_timestamp_column: Per-row "Last Modified" header in the
            source. Required in the source when set.
        dest_timestamp_column: Owned destination header that receives the
            source timestamp. Written only when it is listed in
            ``owned_columns`` and both sides have their column.
        skip_unchanged: Compare owned cells before writing and skip rows
            where nothing changed.
    """

    name: str
    source_table: str
    dest_table: str
    owned_columns: tuple[str, ...]
    source_timestamp_column: str | None = None
    dest_timestamp_column: str | None = None
    skip_unchanged: bool = False


def meta_channel(settings: WatchSpineSettings) -> SyncChannel:
    """Catalogue metadata → merged store. Every eligible row is rewritten."""
    return SyncChannel(
        name="meta",
        source_table=settings.meta_table,
        dest_table=settings.merged_table,
        owned_columns=tuple(settings.meta_columns),
        source_timestamp_column=settings.meta_timestamp_column,
        dest_timestamp_column=settings.meta_dest_timestamp_column,
        skip_unchanged=False,
    )


def user_channel(settings: WatchSpineSettings) -> SyncChannel:
    """User list → merged store. Rows are written only when a cell changed."""
    return SyncChannel(
        name="user",
        source_table=settings.user_table,
        dest_table=settings.merged_table,
        owned_columns=tuple(settings.user_columns),
        source_timestamp_column=settings.user_timestamp_column,
        dest_timestamp_column=settings.user_dest_timestamp_column,
        skip_unchanged=True,
    )


def _owned_pairs(channel: SyncChannel, source: Table, dest: Table) -> list[tuple[int, int]]:
    """(source index, dest index) for each owned column present on both sides."""
    wanted: list[tuple[str, str]] = []
    for column in channel.owned_columns:
        if column.strip() == RECORD_ID:
            continue
        if column == channel.dest_timestamp_column and channel.source_timestamp_column:
            wanted.append((channel.source_timestamp_column, column))
        else:
            wanted.append((column, column))

    pairs: list[tuple[int, int]] = []
    for src_name, dst_name in wanted:
        s = source.column_index(src_name)
        d = dest.column_index(dst_name)
        if s is None or d is None:
            log.debug("sync.column_not_shared", column=dst_name, in_source=s is not None, in_dest=d is not None)
            continue
        pairs.append((s, d))
    return pairs


def _cell(row: list[Any], index: int) -> Any:
    """Cell value with short rows padded as blank."""
    if index >= len(row):
        return ""
    value = row[index]
    return "" if value is None else value


class ColumnOwnershipSync:
    """Runs :class:`SyncChannel` passes against a :class:`TabularStore`."""

    def __init__(self, store: TabularStore, cursors: SyncCursorStore | None = None) -> None:
        self._store = store
        self._cursors = cursors or SyncCursorStore(store)

    def run(self, channel: SyncChannel) -> SyncReport:
        """Run one pass of *channel* and advance its cursor.

        Raises:
            MissingTableError, MissingColumnError: before any write.
            PartialRunError: if a write fails mid-pass; earlier writes stand
                and the cursor is left unchanged.
        """
        report = SyncReport(channel=channel.name, started_at=utc_now())

        with LogContext(channel=channel.name), log_step(
            f"sync.{channel.name}", source=channel.source_table, dest=channel.dest_table
        ) as timer:
            source = self._store.read_table(channel.source_table)
            dest = self._store.read_table(channel.dest_table)

            required = [RECORD_ID]
            if channel.source_timestamp_column:
                required.append(channel.source_timestamp_column)
            src_cols = ColumnMap.resolve(source, required=required)
            dst_cols = ColumnMap.resolve(dest, required=[RECORD_ID])

            pairs = _owned_pairs(channel, source, dest)
            index = self._index_destination(dest, dst_cols[RECORD_ID])
            cursor = self._cursors.get(channel.name)
            log.debug(
                "sync.prepared",
                owned=len(pairs),
                dest_rows=len(dest),
                cursor=cursor.value.isoformat() if cursor else None,
            )

            try:
                self._apply(channel, source, dest, src_cols, dst_cols, pairs, index, cursor, report)
            except Exception as e:
                raise PartialRunError(channel.name, report.touched, cause=e) from e

            report.cursor = self._cursors.advance(channel.name, report.started_at)
            timer.add_metric("updated", len(report.updated))
            timer.add_metric("appended", len(report.appended))
            timer.add_metric("skipped", report.skipped)

        report.elapsed_seconds = timer.duration_seconds
        return report

    @staticmethod
    def _index_destination(dest: Table, id_idx: int) -> dict[str, int]:
        index: dict[str, int] = {}
        for position, row in enumerate(dest.rows):
            key = normalize_key(dest.cell(row, id_idx))
            if not key:
                continue
            if key in index:
                log.warning("sync.duplicate_record_id", record_id=key, row=Table.row_index(position))
                continue
            index[key] = Table.row_index(position)
        return index

    def _apply(
        self,
        channel: SyncChannel,
        source: Table,
        dest: Table,
        src_cols: ColumnMap,
        dst_cols: ColumnMap,
        pairs: list[tuple[int, int]],
        index: dict[str, int],
        cursor: SyncCursor | None,
        report: SyncReport,
    ) -> None:
        src_id = src_cols[RECORD_ID]
        dst_id = dst_cols[RECORD_ID]
        ts_idx = src_cols[channel.source_timestamp_column] if channel.source_timestamp_column else None
        width = len(dest.header)
        next_row = dest.last_row + 1

        for row in source.rows:
            raw_id = source.cell(row, src_id)
            record_id = normalize_key(raw_id)
            if not record_id:
                report.skipped += 1
                continue

            if cursor is not None and ts_idx is not None:
                if not cursor.admits(parse_timestamp(source.cell(row, ts_idx))):
                    report.skipped += 1
                    continue

            row_index = index.get(record_id)
            if row_index is None:
                cells: list[Any] = [""] * width
                cells[dst_id] = raw_id
                for s, d in pairs:
                    cells[d] = _cell(row, s)
                self._store.append_rows(channel.dest_table, [cells])
                index[record_id] = next_row
                next_row += 1
                report.appended.append(record_id)
                continue

            current = self._store.read_row(channel.dest_table, row_index)
            cells = list(current) + [""] * max(0, width - len(current))
            changed = False
            for s, d in pairs:
                value = _cell(row, s)
                if cells[d] != value:
                    changed = True
                cells[d] = value

            if channel.skip_unchanged and not changed:
                report.unchanged += 1
                continue

            self._store.write_row(channel.dest_table, row_index, cells)
            report.updated.append(record_id)
