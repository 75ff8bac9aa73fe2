"""
Confidence-weighted scoring.

Turns each lookup row's tag aggregate into five analytic columns:
``User Count``, ``User Hours``, ``User Mean Score``, ``Weighted Score`` and
``Rec Value``.

Manifesto:
    A tag seen in one short series with a 95 mean says little; a tag behind
    200 hours of viewing at a 70 mean says a lot. The weighted score pulls
    every mean toward a neutral anchor of 50 by how little we trust it,
    then pushes the result outward by ``spread`` so trusted tags separate.

    - **Hours dominate:** confidence is 80% duration, 20% occurrence
    - **Stable scale:** medians and quartiles come from the previous run's
      stored values (see :mod:`watchspine.analytics.stats`)
    - **Bounded:** weighted scores stay in [0, 100], rec values in the
      group's configured [min, max]
    - **Config read once:** every tuning slot is read before the row loop

Architecture:
    ::

        count, hours ──► confidence = clamp(0.2·(c/(c+medC))^0.85
                                           + 0.8·(h/(h+medH))^exp, lo, hi)
                              │
        mean ──────────────► base = 50 + (mean − 50)·confidence
                              │
                         stretched = 50 + (base − 50)·spread → clamp [0, 100]
                              │
        p25, p75 ──────────► norm = 2·(w − p25)/(p75 − p25) − 1 → clamp [−1, 1]
                              │
        [min, max] ────────► rec = min + (norm + 1)·(max − min)/2

Config slots:
    ``Weighted Spread`` (1.55), ``Hours Exponent`` (0.55),
    ``Min Confidence`` (0.20), ``Max Confidence`` (0.98),
    ``<Group> Rec Min`` / ``<Group> Rec Max`` (−1 / 1).

Tags:
    analytics, scoring, confidence, normalization, recommendation, watch-spine
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from dataclasses import dataclass, field
from typing import Any

from watchspine.analytics.aggregation import TagAggregate, TagKey
from watchspine.analytics.stats import DistributionStats, distribution_stats
from watchspine.core.errors import ConfigSlotError, PartialRunError
from watchspine.core.logging import get_logger, log_step
from watchspine.schema import (
    ANALYTIC_COLUMNS,
    GROUP,
    LOOKUP_ID,
    REC_VALUE,
    SOURCE_COLUMN,
    USER_COUNT,
    USER_HOURS,
    USER_MEAN,
    WEIGHTED_SCORE,
    ColumnMap,
    normalize_key,
    parse_number,
)
from watchspine.store.protocol import FIRST_DATA_ROW, TabularStore

log = get_logger(__name__)

ANCHOR = 50.0
COUNT_EXPONENT = 0.85
COUNT_WEIGHT = 0.20
HOURS_WEIGHT = 0.80

DEFAULT_SPREAD = 1.55
DEFAULT_HOURS_EXPONENT = 0.55
DEFAULT_MIN_CONFIDENCE = 0.20
DEFAULT_MAX_CONFIDENCE = 0.98
DEFAULT_BOUNDS = (-1.0, 1.0)

SPREAD_SLOT = "Weighted Spread"
HOURS_EXPONENT_SLOT = "Hours Exponent"
MIN_CONFIDENCE_SLOT = "Min Confidence"
MAX_CONFIDENCE_SLOT = "Max Confidence"


def bound_slots(group: str) -> tuple[str, str]:
    """Config slots holding a group's rec-value bounds."""
    return f"{group} Rec Min", f"{group} Rec Max"


def clamp(x: float, lo: float, hi: float) -> float:
    return max(lo, min(x, hi))


# =============================================================================
# Configuration
# =============================================================================


@dataclass(frozen=True)
class ScoringConfig:
    """Tuning values for one scoring pass.

    Build it once per run with :meth:`from_store`; the row loop never reads
    the store's config slots itself.
    """

    spread: float = DEFAULT_SPREAD
    hours_exponent: float = DEFAULT_HOURS_EXPONENT
    min_confidence: float = DEFAULT_MIN_CONFIDENCE
    max_confidence: float = DEFAULT_MAX_CONFIDENCE
    bounds: Mapping[str, tuple[float, float]] = field(default_factory=dict)

    def bounds_for(self, group: str) -> tuple[float, float]:
        return self.bounds.get(group, DEFAULT_BOUNDS)

    @classmethod
    def from_store(cls, store: TabularStore, groups: Iterable[str] = ()) -> ScoringConfig:
        """Read every tuning slot once, substituting defaults for missing ones."""

        def read(name: str, default: float) -> float:
            try:
                raw = store.read_config(name)
            except ConfigSlotError:
                return default
            value = parse_number(raw)
            if value is None:
                if raw not in (None, ""):
                    log.warning("scoring.config_invalid", slot=name, raw=str(raw), default=default)
                return default
            return value

        lo_conf = read(MIN_CONFIDENCE_SLOT, DEFAULT_MIN_CONFIDENCE)
        hi_conf = read(MAX_CONFIDENCE_SLOT, DEFAULT_MAX_CONFIDENCE)
        if lo_conf > hi_conf:
            log.warning("scoring.confidence_bounds_swapped", min=lo_conf, max=hi_conf)
            lo_conf, hi_conf = hi_conf, lo_conf

        bounds: dict[str, tuple[float, float]] = {}
        for group in sorted(set(groups)):
            min_slot, max_slot = bound_slots(group)
            lo = read(min_slot, DEFAULT_BOUNDS[0])
            hi = read(max_slot, DEFAULT_BOUNDS[1])
            if lo > hi:
                log.warning("scoring.rec_bounds_swapped", group=group, min=lo, max=hi)
                lo, hi = hi, lo
            bounds[group] = (lo, hi)

        # zero-hour tags are valid input; 0.0 ** -x has no value
        hours_exponent = read(HOURS_EXPONENT_SLOT, DEFAULT_HOURS_EXPONENT)
        if hours_exponent <= 0:
            log.warning(
                "scoring.config_invalid",
                slot=HOURS_EXPONENT_SLOT,
                raw=str(hours_exponent),
                default=DEFAULT_HOURS_EXPONENT,
            )
            hours_exponent = DEFAULT_HOURS_EXPONENT

        return cls(
            spread=read(SPREAD_SLOT, DEFAULT_SPREAD),
            hours_exponent=hours_exponent,
            min_confidence=lo_conf,
            max_confidence=hi_conf,
            bounds=bounds,
        )


# =============================================================================
# Formulas
# =============================================================================


def confidence(
    count: float,
    hours: float,
    stats: DistributionStats,
    config: ScoringConfig,
) -> float:
    """Trust in a tag's mean, bounded to [min_confidence, max_confidence]."""
    count_effect = 0.0
    if stats.median_count > 0:
        count_effect = (count / (count + stats.median_count)) ** COUNT_EXPONENT
    hours_effect = 0.0
    if stats.median_hours > 0:
        hours_effect = (hours / (hours + stats.median_hours)) ** config.hours_exponent
    raw = COUNT_WEIGHT * count_effect + HOURS_WEIGHT * hours_effect
    return clamp(raw, config.min_confidence, config.max_confidence)


def weighted_score(mean: float, conf: float, spread: float) -> float:
    """Anchor-centred, spread-stretched score in [0, 100], 4 decimals."""
    base = ANCHOR + (mean - ANCHOR) * conf
    stretched = ANCHOR + (base - ANCHOR) * spread
    return round(clamp(stretched, 0.0, 100.0), 4)


def rec_value(weight: float, stats: DistributionStats, bounds: tuple[float, float]) -> float:
    """Normalise *weight* by the group's IQR and map it into *bounds*, 3 decimals."""
    p25, p75 = stats.p25_weight, stats.p75_weight
    norm = ((weight - p25) / (p75 - p25)) * 2 - 1 if p75 != p25 else 0.0
    norm = clamp(norm, -1.0, 1.0)
    lo, hi = bounds
    return round(clamp(lo + (norm + 1) * (hi - lo) / 2, lo, hi), 3)


def score_aggregate(
    agg: TagAggregate | None,
    stats: DistributionStats,
    config: ScoringConfig,
    bounds: tuple[float, float],
) -> dict[str, Any]:
    """Analytic cell values for one lookup row ("" where blank)."""
    values: dict[str, Any] = {column: "" for column in ANALYTIC_COLUMNS}
    if agg is None:
        return values

    hours = agg.hours
    values[USER_COUNT] = agg.count
    values[USER_HOURS] = hours

    mean = agg.mean_score
    if mean is None:
        return values
    values[USER_MEAN] = round(mean, 2)

    conf = confidence(agg.count, hours, stats, config)
    weight = weighted_score(mean, conf, config.spread)
    values[WEIGHTED_SCORE] = weight
    values[REC_VALUE] = rec_value(weight, stats, bounds)
    return values


# =============================================================================
# Pass
# =============================================================================


@dataclass
class ScoringReport:
    """Outcome of one scoring pass."""

    table: str
    rows: int = 0
    matched: int = 0
    scored: int = 0
    stats: dict[str, DistributionStats] = field(default_factory=dict)
    elapsed_seconds: float = 0.0

    def to_dict(self) -> dict[str, Any]:
        return {
            "table": self.table,
            "rows": self.rows,
            "matched": self.matched,
            "scored": self.scored,
            "groups": sorted(self.stats),
            "elapsed_seconds": round(self.elapsed_seconds, 3),
        }


def score_lookup(
    store: TabularStore,
    aggregates: Mapping[TagKey, TagAggregate],
    table_name: str,
    config: ScoringConfig | None = None,
) -> ScoringReport:
    """Recompute the analytic columns of every row in *table_name*.

    Distribution stats are taken from the table's current (previous-run)
    values first; then all rows are rewritten in a single ``write_rows``
    call that changes only the five analytic columns.

    Raises:
        MissingTableError, MissingColumnError: before any write.
        PartialRunError: if the table rewrite fails.
    """
    report = ScoringReport(table=table_name)

    with log_step("analytics.score", table=table_name) as timer:
        table = store.read_table(table_name)
        cols = ColumnMap.resolve(
            table, required=[GROUP, SOURCE_COLUMN, LOOKUP_ID, *ANALYTIC_COLUMNS]
        )
        report.stats = distribution_stats(table)
        if config is None:
            config = ScoringConfig.from_store(store, report.stats)

        width = len(table.header)
        rewritten: list[list[Any]] = []
        for row in table.rows:
            group = normalize_key(table.cell(row, cols[GROUP]))
            key = (
                normalize_key(table.cell(row, cols[SOURCE_COLUMN])),
                normalize_key(table.cell(row, cols[LOOKUP_ID])),
            )
            agg = aggregates.get(key)
            stats = report.stats.get(group, DistributionStats())
            values = score_aggregate(agg, stats, config, config.bounds_for(group))

            cells = list(row) + [""] * max(0, width - len(row))
            for column, value in values.items():
                cells[cols[column]] = value
            rewritten.append(cells)

            if agg is not None:
                report.matched += 1
            if values[WEIGHTED_SCORE] != "":
                report.scored += 1

        report.rows = len(rewritten)
        if rewritten:
            try:
                store.write_rows(table_name, FIRST_DATA_ROW, rewritten)
            except Exception as e:
                raise PartialRunError("scoring", [], cause=e) from e

        timer.add_metric("rows", report.rows)
        timer.add_metric("scored", report.scored)

    report.elapsed_seconds = timer.duration_seconds
    return report
