"""
Tag aggregation.

One read-only scan of the merged record store producing, for every
``(dimension, tag id)`` pair, how often the tag occurs in watched records,
how long those records took to watch, and their score sum.

Manifesto:
    A record counts as watched when its "Episodes Watched" cell is not
    blank; that is the only gate. A watched record with no score still
    counts toward occurrence and duration, and a record with zero minutes
    still counts toward occurrence.

    Tag columns are discovered by header convention (``"Genre ID"``,
    ``"Studio ID"``, ...), so adding a dimension to the merged store needs
    no code change.

    Repeated tokens in one cell ("G1,G1") count twice; the cell is taken
    as written.

Examples:
    >>> aggregates = aggregate_tags(store.read_table("Merged"))
    >>> agg = aggregates[("Genre ID", "G1")]
    >>> agg.count, agg.hours, agg.mean_score
    (1, 24.0, 80.0)

Tags:
    analytics, aggregation, tags, dimensions, watch-spine
"""

from __future__ import annotations

from collections import defaultdict
from dataclasses import dataclass

from watchspine.core.logging import get_logger
from watchspine.schema import (
    DURATION,
    PRESENCE,
    SCORE,
    ColumnMap,
    dimension_columns,
    parse_number,
    split_tags,
)
from watchspine.store.protocol import Table, is_blank

log = get_logger(__name__)

TagKey = tuple[str, str]


@dataclass
class TagAggregate:
    """Accumulated statistics for one (dimension, tag id)."""

    count: int = 0
    minutes: float = 0.0
    score_sum: float = 0.0
    score_count: int = 0

    def add(self, minutes: float, score: float | None) -> None:
        self.count += 1
        self.minutes += minutes
        if score is not None:
            self.score_sum += score
            self.score_count += 1

    @property
    def hours(self) -> float:
        """Minutes converted to hours, rounded to 2 decimals."""
        return round(self.minutes / 60, 2)

    @property
    def mean_score(self) -> float | None:
        if self.score_count == 0:
            return None
        return self.score_sum / self.score_count


def aggregate_tags(table: Table) -> dict[TagKey, TagAggregate]:
    """Aggregate tag statistics from the merged record store.

    Args:
        table: Snapshot of the merged store.

    Returns:
        Mapping of ``(source column, tag id)`` to :class:`TagAggregate`.

    Raises:
        MissingColumnError: if the presence, duration or score column is absent.
    """
    cols = ColumnMap.resolve(table, required=[PRESENCE, DURATION, SCORE])
    dimensions = dimension_columns(table)
    aggregates: dict[TagKey, TagAggregate] = defaultdict(TagAggregate)

    participating = 0
    for row in table.rows:
        if is_blank(table.cell(row, cols[PRESENCE])):
            continue
        participating += 1
        minutes = parse_number(table.cell(row, cols[DURATION])) or 0.0
        score = parse_number(table.cell(row, cols[SCORE]))
        for column, idx in dimensions.items():
            for tag_id in split_tags(table.cell(row, idx)):
                aggregates[(column, tag_id)].add(minutes, score)

    log.debug(
        "analytics.aggregated",
        records=len(table),
        participating=participating,
        dimensions=list(dimensions),
        tags=len(aggregates),
    )
    return dict(aggregates)
