"""
Structured error types for watch-spine.

Every failure the sync and analytics engines can raise is a subclass of
:class:`WatchSpineError`, carrying a category, a retry flag, structured
context and an optional chained cause.

Manifesto:
    A sync run either aborts before touching the store (precondition
    failures) or dies part-way through its write loop (partial runs).
    Callers need to tell the two apart without parsing messages:

    - **Precondition errors** name the missing table or column and are
      raised before any write.
    - **Partial-run errors** carry the identifiers already written so an
      operator knows what landed before the failure.
    - **Config slot errors** are the only non-fatal kind; reporters
      catch them and move on.

Architecture:
    ::

        WatchSpineError (category, retryable, context, cause)
        ├── PreconditionError          VALIDATION
        │   ├── MissingTableError
        │   └── MissingColumnError
        ├── SchemaError                VALIDATION
        ├── ConfigError                CONFIG
        │   └── ConfigSlotError
        ├── StorageError               STORAGE
        └── PartialRunError            SYNC

Examples:
    >>> err = MissingColumnError("Merged", "Anime ID")
    >>> err.column
    'Anime ID'
    >>> err.to_dict()["category"]
    'VALIDATION'

Tags:
    error-handling, exception-hierarchy, sync, preconditions, watch-spine
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any


class ErrorCategory(str, Enum):
    """Error categories for classification and log routing."""

    STORAGE = "STORAGE"           # Store adapter failures
    VALIDATION = "VALIDATION"     # Missing tables/columns, bad layout
    CONFIG = "CONFIG"             # Missing or invalid config slots
    SYNC = "SYNC"                 # Failures inside a sync/scoring write loop
    INTERNAL = "INTERNAL"         # Bugs, unexpected state


@dataclass
class ErrorContext:
    """Structured metadata attached to an error for logging.

    Attributes:
        channel: Sync channel or analytics step that failed.
        table: Table being read or written.
        column: Column involved, if any.
        row_index: 1-based store row, if any.
        metadata: Free-form extras.
    """

    channel: str | None = None
    table: str | None = None
    column: str | None = None
    row_index: int | None = None
    metadata: dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for logging."""
        result = {}
        for key in ["channel", "table", "column", "row_index"]:
            value = getattr(self, key)
            if value is not None:
                result[key] = value
        if self.metadata:
            result.update(self.metadata)
        return result


class WatchSpineError(Exception):
    """
    Base exception for all watch-spine errors.

    Subclasses set ``default_category`` and ``default_retryable``; callers
    may override either per instance.

    Examples:
        >>> error = WatchSpineError("Something went wrong")
        >>> error.category
        <ErrorCategory.INTERNAL: 'INTERNAL'>
        >>> error.with_context(table="Merged").context.table
        'Merged'
    """

    default_category: ErrorCategory = ErrorCategory.INTERNAL
    default_retryable: bool = False

    def __init__(
        self,
        message: str,
        *,
        category: ErrorCategory | None = None,
        retryable: bool | None = None,
        context: ErrorContext | None = None,
        cause: Exception | None = None,
    ):
        super().__init__(message)
        self.message = message
        self.category = category or self.default_category
        self.retryable = retryable if retryable is not None else self.default_retryable
        self.context = context or ErrorContext()
        self.cause = cause

        if cause is not None:
            self.__cause__ = cause

    def with_context(self, **kwargs: Any) -> WatchSpineError:
        """
        Add context to this error (fluent API).

        Usage:
            raise StorageError("write failed").with_context(table="Merged", row_index=7)
        """
        for key, value in kwargs.items():
            if key != "metadata" and hasattr(self.context, key):
                setattr(self.context, key, value)
            else:
                self.context.metadata[key] = value
        return self

    def to_dict(self) -> dict[str, Any]:
        """Serialize for structured logging."""
        result = {
            "error_type": type(self).__name__,
            "message": self.message,
            "category": self.category.value,
            "retryable": self.retryable,
        }
        if ctx := self.context.to_dict():
            result["context"] = ctx
        if self.cause is not None:
            result["cause"] = f"{type(self.cause).__name__}: {self.cause}"
        return result

    def __repr__(self) -> str:
        return f"{type(self).__name__}({self.message!r}, category={self.category.value})"


# =============================================================================
# Precondition / validation errors
# =============================================================================


class PreconditionError(WatchSpineError):
    """Raised before any write when a run's required inputs are missing."""

    default_category = ErrorCategory.VALIDATION
    default_retryable = False


class MissingTableError(PreconditionError):
    """A required table does not exist in the store."""

    def __init__(self, table: str, message: str | None = None):
        self.table = table
        super().__init__(
            message or f"Required table not found: {table}",
            context=ErrorContext(table=table),
        )


class MissingColumnError(PreconditionError):
    """A required column is absent from a table header."""

    def __init__(self, table: str, column: str, message: str | None = None):
        self.table = table
        self.column = column
        super().__init__(
            message or f"Required column {column!r} not found in table {table!r}",
            context=ErrorContext(table=table, column=column),
        )


class SchemaError(WatchSpineError):
    """Structural problem in a table layout (e.g. an inverted group range)."""

    default_category = ErrorCategory.VALIDATION


# =============================================================================
# Configuration errors
# =============================================================================


class ConfigError(WatchSpineError):
    """Configuration errors are never retryable."""

    default_category = ErrorCategory.CONFIG
    default_retryable = False


class ConfigSlotError(ConfigError):
    """A named scalar config slot does not exist in the store."""

    def __init__(self, name: str, message: str | None = None):
        self.name = name
        super().__init__(message or f"Config slot not found: {name}")
        self.context.metadata["slot"] = name


# =============================================================================
# Storage / run errors
# =============================================================================


class StorageError(WatchSpineError):
    """Store adapter failure (bad row index, I/O error)."""

    default_category = ErrorCategory.STORAGE


class PartialRunError(WatchSpineError):
    """A run failed inside its write loop after some writes were committed.

    The cursor is not advanced; rerunning reprocesses from the last good
    state and re-derives the same values for the rows listed in ``written``.
    """

    default_category = ErrorCategory.SYNC
    default_retryable = True

    def __init__(
        self,
        channel: str,
        written: list[str],
        *,
        cause: Exception | None = None,
    ):
        self.channel = channel
        self.written = list(written)
        super().__init__(
            f"{channel} run failed after {len(self.written)} write(s)",
            context=ErrorContext(channel=channel, metadata={"written": self.written}),
            cause=cause,
        )


__all__ = [
    "ErrorCategory",
    "ErrorContext",
    "WatchSpineError",
    "PreconditionError",
    "MissingTableError",
    "MissingColumnError",
    "SchemaError",
    "ConfigError",
    "ConfigSlotError",
    "StorageError",
    "PartialRunError",
]
