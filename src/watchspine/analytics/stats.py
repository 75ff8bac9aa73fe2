"""
Distribution statistics per lookup group.

Summarises the analytic values already stored in ``LookupAll`` from the
previous run, before the scoring pass overwrites them. The medians anchor
the confidence curve and the weighted-score quartiles set the
normalisation window, so the scale moves run-over-run instead of chasing
itself inside one pass.

Examples:
    >>> median([])
    0.0
    >>> median([1, 3])
    2.0
    >>> percentile([1, 2, 3, 4], 0.25)
    1.75

Tags:
    statistics, median, percentile, quartiles, analytics, watch-spine
"""

from __future__ import annotations

import math
from collections import defaultdict
from collections.abc import Sequence
from dataclasses import dataclass, field

from watchspine.schema import (
    GROUP,
    USER_COUNT,
    USER_HOURS,
    USER_MEAN,
    WEIGHTED_SCORE,
    ColumnMap,
    normalize_key,
    parse_number,
)
from watchspine.store.protocol import Table


def median(xs: Sequence[float]) -> float:
    """Median; 0 for an empty sequence."""
    if not xs:
        return 0.0
    ordered = sorted(xs)
    mid = len(ordered) // 2
    if len(ordered) % 2 == 0:
        return (ordered[mid - 1] + ordered[mid]) / 2
    return float(ordered[mid])


def percentile(xs: Sequence[float], p: float) -> float:
    """Linearly interpolated percentile at fractional rank ``(n - 1) * p``.

    Returns 0 for an empty sequence.
    """
    if not xs:
        return 0.0
    ordered = sorted(xs)
    rank = (len(ordered) - 1) * p
    lo = math.floor(rank)
    hi = math.ceil(rank)
    if lo == hi:
        return float(ordered[lo])
    return ordered[lo] + (ordered[hi] - ordered[lo]) * (rank - lo)


@dataclass
class GroupSamples:
    """Raw prior values collected for one group."""

    counts: list[float] = field(default_factory=list)
    hours: list[float] = field(default_factory=list)
    means: list[float] = field(default_factory=list)
    weights: list[float] = field(default_factory=list)


@dataclass(frozen=True, slots=True)
class DistributionStats:
    """Per-group calibration anchors for the scoring pass."""

    median_count: float = 0.0
    median_hours: float = 0.0
    median_mean_score: float = 0.0
    p25_weight: float = 0.0
    p75_weight: float = 0.0

    @classmethod
    def from_samples(cls, samples: GroupSamples) -> DistributionStats:
        return cls(
            median_count=median(samples.counts),
            median_hours=median(samples.hours),
            median_mean_score=median(samples.means),
            p25_weight=percentile(samples.weights, 0.25),
            p75_weight=percentile(samples.weights, 0.75),
        )


def collect_samples(table: Table) -> dict[str, GroupSamples]:
    """Collect prior analytic values from ``LookupAll`` grouped by ``Group``.

    Counts and hours keep only positive values; mean and weighted scores
    keep every numeric value. Blank or non-numeric cells are ignored.
    """
    cols = ColumnMap.resolve(table, required=[GROUP, USER_COUNT, USER_HOURS, USER_MEAN, WEIGHTED_SCORE])
    samples: dict[str, GroupSamples] = defaultdict(GroupSamples)
    for row in table.rows:
        group = normalize_key(table.cell(row, cols[GROUP]))
        if not group:
            continue
        bucket = samples[group]
        count = parse_number(table.cell(row, cols[USER_COUNT]))
        if count is not None and count > 0:
            bucket.counts.append(count)
        hours = parse_number(table.cell(row, cols[USER_HOURS]))
        if hours is not None and hours > 0:
            bucket.hours.append(hours)
        mean = parse_number(table.cell(row, cols[USER_MEAN]))
        if mean is not None:
            bucket.means.append(mean)
        weight = parse_number(table.cell(row, cols[WEIGHTED_SCORE]))
        if weight is not None:
            bucket.weights.append(weight)
    return dict(samples)


def distribution_stats(table: Table) -> dict[str, DistributionStats]:
    """Compute :class:`DistributionStats` for every group in ``LookupAll``."""
    return {group: DistributionStats.from_samples(s) for group, s in collect_samples(table).items()}
