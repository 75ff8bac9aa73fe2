"""Run orchestration.

Wires the engines together in the order the data flows:

    meta sync ─┐
    user sync ─┼─► tag aggregation ─► distribution stats ─► scoring
    lookup sync┘

Each sync channel can also be run on its own (manually or on a schedule);
``run_all`` is the convenience path that runs everything in sequence and
stops at the first failure so later steps never read a half-synced store.
"""

from __future__ import annotations

import uuid
from dataclasses import dataclass, field
from typing import Any

from watchspine.analytics.aggregation import aggregate_tags
from watchspine.analytics.scoring import ScoringReport, score_lookup
from watchspine.core.cursors import SyncCursorStore
from watchspine.core.logging import LogContext, get_logger, log_step
from watchspine.core.settings import WatchSpineSettings
from watchspine.store.protocol import TabularStore
from watchspine.sync.columns import ColumnOwnershipSync, meta_channel, user_channel
from watchspine.sync.lookup import GroupedLookupSync, lookup_channel
from watchspine.sync.reporting import RunReporter, SyncReport

log = get_logger(__name__)

CHANNELS = ("meta", "user", "lookup")


def run_channel(store: TabularStore, settings: WatchSpineSettings, name: str) -> SyncReport:
    """Run one sync channel by name and report it."""
    cursors = SyncCursorStore(store)
    if name == "meta":
        report = ColumnOwnershipSync(store, cursors).run(meta_channel(settings))
    elif name == "user":
        report = ColumnOwnershipSync(store, cursors).run(user_channel(settings))
    elif name == "lookup":
        report = GroupedLookupSync(store, cursors).run(lookup_channel(settings))
    else:
        raise ValueError(f"Unknown channel {name!r}; expected one of {', '.join(CHANNELS)}")
    RunReporter(store).report(report)
    return report


def run_analytics(store: TabularStore, settings: WatchSpineSettings) -> ScoringReport:
    """Aggregate the merged store and rescore the lookup table."""
    with log_step("analytics.aggregate", table=settings.merged_table) as timer:
        aggregates = aggregate_tags(store.read_table(settings.merged_table))
        timer.add_metric("tags", len(aggregates))
    return score_lookup(store, aggregates, settings.lookup_all_table)


@dataclass
class PipelineResult:
    run_id: str
    syncs: list[SyncReport] = field(default_factory=list)
    scoring: ScoringReport | None = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "run_id": self.run_id,
            "syncs": [s.to_dict() for s in self.syncs],
            "scoring": self.scoring.to_dict() if self.scoring else None,
        }


def run_all(store: TabularStore, settings: WatchSpineSettings) -> PipelineResult:
    """Run every channel, then analytics, in dependency order."""
    result = PipelineResult(run_id=uuid.uuid4().hex[:12])
    with LogContext(run_id=result.run_id):
        for name in CHANNELS:
            result.syncs.append(run_channel(store, settings, name))
        result.scoring = run_analytics(store, settings)
    log.info("pipeline.completed", run_id=result.run_id, scored=result.scoring.scored)
    return result
