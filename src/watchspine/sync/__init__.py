"""
Sync channels.

- columns:    column-ownership sync (meta and user channels)
- lookup:     grouped lookup sync (lookup channel)
- reporting:  run reports and report slots
"""

from watchspine.sync.columns import ColumnOwnershipSync, SyncChannel, meta_channel, user_channel
from watchspine.sync.lookup import (
    GroupedLookupSync,
    LookupChannel,
    LookupGroup,
    composite_key,
    lookup_channel,
    resolve_groups,
)
from watchspine.sync.reporting import RunReporter, SyncReport

__all__ = [
    "ColumnOwnershipSync",
    "SyncChannel",
    "meta_channel",
    "user_channel",
    "GroupedLookupSync",
    "LookupChannel",
    "LookupGroup",
    "composite_key",
    "lookup_channel",
    "resolve_groups",
    "RunReporter",
    "SyncReport",
]
