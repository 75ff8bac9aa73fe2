"""
Tabular store adapters.

The engines depend only on :class:`TabularStore`; pick an implementation
at the edge (tests use :class:`MemoryTabularStore`, the CLI uses
:class:`SqliteTabularStore`).
"""

from watchspine.store.memory import MemoryTabularStore
from watchspine.store.protocol import Table, TabularStore, is_blank
from watchspine.store.sqlite import SqliteTabularStore

__all__ = [
    "MemoryTabularStore",
    "SqliteTabularStore",
    "Table",
    "TabularStore",
    "is_blank",
]
