"""
Shared pytest fixtures for watch-spine tests.

This module provides:
- Settings with explicit table names and owned-column lists
- Sample Meta / User / Merged tables
- Sample Lookup / Lookup Index / LookupAll tables
- A memory store factory and a store that fails on demand

Usage:
    Fixtures are auto-discovered by pytest:

    def test_something(store, settings):
        ...
"""

import sys
from datetime import UTC, datetime
from pathlib import Path

import pytest

# Ensure watchspine package is importable without installation
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from watchspine.core.errors import StorageError
from watchspine.core.settings import WatchSpineSettings
from watchspine.store.memory import MemoryTabularStore


# =============================================================================
# Test Markers Configuration
# =============================================================================


def pytest_collection_modifyitems(config: pytest.Config, items: list[pytest.Item]) -> None:
    """Auto-mark CLI tests as integration, everything else as unit."""
    for item in items:
        test_path = Path(item.fspath).relative_to(Path(__file__).parent)
        if test_path.parts[0] == "cli" or "sqlite" in test_path.name:
            item.add_marker(pytest.mark.integration)
        else:
            item.add_marker(pytest.mark.unit)


# =============================================================================
# Timestamps
# =============================================================================

OLD = datetime(2024, 1, 1, tzinfo=UTC)
CURSOR = datetime(2025, 1, 1, tzinfo=UTC)
NEW = datetime(2025, 6, 1, tzinfo=UTC)


# =============================================================================
# Sample tables
# =============================================================================

MERGED_HEADER = [
    "Anime ID", "Title", "Type", "Genre ID", "Studio ID",
    "Episodes Watched", "User Score", "User Watchtime",
    "Meta Last Modified", "User Last Modified", "Notes", "Rank Formula",
]

META_HEADER = ["Anime ID", "Title", "Type", "Genre ID", "Studio ID", "Last Modified", "Synopsis"]

USER_HEADER = ["Anime ID", "Episodes Watched", "User Score", "User Watchtime", "Watch Status", "Last Modified"]

LOOKUP_ALL_HEADER = [
    "Group", "Source Column", "ID", "Name",
    "User Count", "User Hours", "User Mean Score", "Weighted Score", "Rec Value",
    "My Notes",
]


@pytest.fixture
def settings(tmp_path: Path) -> WatchSpineSettings:
    """Settings with owned columns matching the sample tables."""
    return WatchSpineSettings(
        database=tmp_path / "watchspine.db",
        meta_columns=["Title", "Type", "Genre ID", "Studio ID", "Meta Last Modified"],
        user_columns=["Episodes Watched", "User Score", "User Watchtime", "Watch Status", "User Last Modified"],
        meta_timestamp_column="Last Modified",
        user_timestamp_column="Last Modified",
        meta_dest_timestamp_column="Meta Last Modified",
        user_dest_timestamp_column="User Last Modified",
    )


@pytest.fixture
def merged_rows() -> list[list]:
    return [
        ["1", "Old Title", "TV", "G1", "S1", 12, 80, 1440, "", "", "rewatch soon", "=RANK()"],
        ["2", "Second", "Movie", "G2", "S2", "", "", "", "", "", "", "=RANK()"],
    ]


@pytest.fixture
def meta_rows() -> list[list]:
    return [
        ["1", "New Title", "TV", "G1,G2", "S1", NEW.isoformat(), "long synopsis"],
        ["3", "Third", "OVA", "G3", "S1", NEW.isoformat(), ""],
        ["2", "Second", "Movie", "G2", "S2", OLD.isoformat(), ""],
    ]


@pytest.fixture
def user_rows() -> list[list]:
    return [
        ["1", 12, 80, 1440, "Completed", NEW.isoformat()],
        ["2", 1, 65, 110, "Watching", NEW.isoformat()],
    ]


@pytest.fixture
def lookup_source_rows() -> list[list]:
    # store rows 2..9
    return [
        ["G1", "Action"],        # 2  Genres
        ["", "Orphan"],          # 3  blank id, skipped
        ["G2", "Drama"],         # 4
        ["", ""],                # 5  fully blank, ends Genres
        ["G9", "Hidden"],        # 6  unreachable
        ["S1", "Madhouse"],      # 7  Studios
        ["S2", "Bones"],         # 8
        ["S3", "Trigger"],       # 9
    ]


@pytest.fixture
def lookup_index_rows() -> list[list]:
    return [
        ["Genres", "Genre ID", 2, 6, datetime(2025, 6, 1, tzinfo=UTC).isoformat()],
        ["Studios", "Studio ID", 7, 9, datetime(2024, 6, 1, tzinfo=UTC).isoformat()],
    ]


@pytest.fixture
def lookup_all_rows() -> list[list]:
    return [
        ["Genres", "Genre ID", "G1", "Action (old)", "", "", "", "", "", "favourite"],
    ]


@pytest.fixture
def store(
    merged_rows, meta_rows, user_rows, lookup_source_rows, lookup_index_rows, lookup_all_rows
) -> MemoryTabularStore:
    """Memory store holding every sample table and no cursors."""
    return MemoryTabularStore(
        {
            "Merged": [MERGED_HEADER, *merged_rows],
            "Meta": [META_HEADER, *meta_rows],
            "User": [USER_HEADER, *user_rows],
            "Lookup": [["ID", "Name"], *lookup_source_rows],
            "Lookup Index": [
                ["Group", "Source Column", "Start Row", "End Row", "Last Updated"],
                *lookup_index_rows,
            ],
            "LookupAll": [LOOKUP_ALL_HEADER, *lookup_all_rows],
        }
    )


# =============================================================================
# Failure injection
# =============================================================================


class FailingStore(MemoryTabularStore):
    """Memory store whose N-th row write or append raises ``StorageError``."""

    def __init__(self, *args, fail_on: int = 2, **kwargs):
        super().__init__(*args, **kwargs)
        self.fail_on = fail_on
        self._attempts = 0

    def _attempt(self) -> None:
        self._attempts += 1
        if self._attempts == self.fail_on:
            raise StorageError("simulated write failure")

    def write_row(self, name, row_index, cells):
        self._attempt()
        super().write_row(name, row_index, cells)

    def append_rows(self, name, rows):
        self._attempt()
        super().append_rows(name, rows)


class CountingStore(MemoryTabularStore):
    """Memory store that counts protocol calls by method name."""

    def __init__(self, *args, **kwargs):
        super().__init__(*args, **kwargs)
        self.calls: dict[str, int] = {}

    def _count(self, method: str) -> None:
        self.calls[method] = self.calls.get(method, 0) + 1

    def write_row(self, name, row_index, cells):
        self._count("write_row")
        super().write_row(name, row_index, cells)

    def write_rows(self, name, start_row, rows):
        self._count("write_rows")
        for offset, cells in enumerate(rows):
            super().write_row(name, start_row + offset, cells)

    def append_rows(self, name, rows):
        self._count("append_rows")
        super().append_rows(name, rows)

    def read_row(self, name, row_index):
        self._count("read_row")
        return super().read_row(name, row_index)
