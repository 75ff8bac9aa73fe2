"""
Tag analytics.

- aggregation:  per-(dimension, tag) statistics from the merged store
- stats:        median / percentile and per-group distribution stats
- scoring:      confidence-weighted score and rec value per lookup row
"""

from watchspine.analytics.aggregation import TagAggregate, aggregate_tags
from watchspine.analytics.scoring import (
    ScoringConfig,
    ScoringReport,
    confidence,
    rec_value,
    score_lookup,
    weighted_score,
)
from watchspine.analytics.stats import DistributionStats, distribution_stats, median, percentile

__all__ = [
    "TagAggregate",
    "aggregate_tags",
    "ScoringConfig",
    "ScoringReport",
    "confidence",
    "rec_value",
    "score_lookup",
    "weighted_score",
    "DistributionStats",
    "distribution_stats",
    "median",
    "percentile",
]
