"""
Process settings for watch-spine.

``WatchSpineSettings`` holds everything that describes *where* data lives
and *which* columns each channel owns. It is read from ``WATCHSPINE_*``
environment variables and an optional ``.env`` file.

Tuning values that the scoring engine consumes (spread, confidence
bounds, per-group rec bounds) are not here: they live in the store's
config slots next to the data, see :mod:`watchspine.analytics.scoring`.

Examples:
    >>> settings = WatchSpineSettings(merged_table="Anime")
    >>> settings.merged_table
    'Anime'

Tags:
    settings, configuration, pydantic, environment, watch-spine
"""

from __future__ import annotations

from functools import lru_cache
from pathlib import Path

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

DEFAULT_META_COLUMNS = [
    "Title",
    "English Title",
    "Type",
    "Episodes",
    "Episode Duration",
    "Status",
    "Season",
    "Aired",
    "Source",
    "Studios",
    "Studio ID",
    "Genres",
    "Genre ID",
    "Themes",
    "Theme ID",
    "Franchise",
    "Franchise ID",
    "Meta Last Modified",
]

DEFAULT_USER_COLUMNS = [
    "Watch Status",
    "Episodes Watched",
    "User Score",
    "User Watchtime",
    "Start Date",
    "Finish Date",
    "Rewatches",
    "User Last Modified",
]


class WatchSpineSettings(BaseSettings):
    """watch-spine configuration.

    All fields can be set via ``WATCHSPINE_*`` environment variables (e.g.
    ``WATCHSPINE_DATABASE=~/anime.db``). List fields accept JSON arrays.
    """

    model_config = SettingsConfigDict(
        env_prefix="WATCHSPINE_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # ── Store ────────────────────────────────────────────────────
    database: Path = Field(
        default_factory=lambda: Path.home() / ".watchspine" / "watchspine.db",
        description="SQLite file backing the tabular store",
    )

    # ── Observability ────────────────────────────────────────────
    log_level: str = Field(default="INFO")
    log_format: str = Field(default="auto", description="json, console or auto")

    # ── Tables ───────────────────────────────────────────────────
    meta_table: str = Field(default="Meta")
    user_table: str = Field(default="User")
    merged_table: str = Field(default="Merged")
    lookup_table: str = Field(default="Lookup")
    lookup_index_table: str = Field(default="Lookup Index")
    lookup_all_table: str = Field(default="LookupAll")

    # ── Channel ownership ────────────────────────────────────────
    meta_columns: list[str] = Field(default_factory=lambda: list(DEFAULT_META_COLUMNS))
    user_columns: list[str] = Field(default_factory=lambda: list(DEFAULT_USER_COLUMNS))
    meta_timestamp_column: str | None = Field(default="Last Modified")
    user_timestamp_column: str | None = Field(default="Last Modified")
    meta_dest_timestamp_column: str | None = Field(default="Meta Last Modified")
    user_dest_timestamp_column: str | None = Field(default="User Last Modified")

    @field_validator("log_level")
    @classmethod
    def _upper_level(cls, v: str) -> str:
        return v.upper()

    @field_validator(
        "meta_timestamp_column",
        "user_timestamp_column",
        "meta_dest_timestamp_column",
        "user_dest_timestamp_column",
    )
    @classmethod
    def _blank_is_none(cls, v: str | None) -> str | None:
        if v is not None and not v.strip():
            return None
        return v

    @property
    def json_logs(self) -> bool | None:
        """Map ``log_format`` onto :func:`configure_logging`'s tri-state flag."""
        fmt = self.log_format.lower()
        if fmt == "json":
            return True
        if fmt == "console":
            return False
        return None


@lru_cache(maxsize=1)
def get_settings() -> WatchSpineSettings:
    """Return the cached process settings."""
    return WatchSpineSettings()
