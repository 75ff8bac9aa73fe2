"""
Tests for watchspine.core.errors.
"""

from watchspine.core.errors import (
    ConfigError,
    ConfigSlotError,
    ErrorCategory,
    ErrorContext,
    MissingColumnError,
    MissingTableError,
    PartialRunError,
    PreconditionError,
    SchemaError,
    StorageError,
    WatchSpineError,
)


class TestErrorContext:
    def test_empty(self):
        assert ErrorContext().to_dict() == {}

    def test_fields_and_metadata(self):
        ctx = ErrorContext(channel="meta", row_index=7, metadata={"slot": "x"})

        assert ctx.to_dict() == {"channel": "meta", "row_index": 7, "slot": "x"}


class TestWatchSpineError:
    def test_defaults(self):
        err = WatchSpineError("boom")

        assert err.message == "boom"
        assert err.category == ErrorCategory.INTERNAL
        assert err.retryable is False
        assert err.cause is None

    def test_with_context(self):
        err = WatchSpineError("boom").with_context(table="Merged", row_index=3, attempt=2)

        assert err.context.table == "Merged"
        assert err.context.row_index == 3
        assert err.context.metadata == {"attempt": 2}

    def test_cause_chained(self):
        cause = ValueError("bad")
        err = WatchSpineError("boom", cause=cause)

        assert err.__cause__ is cause
        assert err.to_dict()["cause"] == "ValueError: bad"

    def test_to_dict(self):
        err = StorageError("disk").with_context(table="T")

        assert err.to_dict() == {
            "error_type": "StorageError",
            "message": "disk",
            "category": "STORAGE",
            "retryable": False,
            "context": {"table": "T"},
        }

    def test_overrides(self):
        err = StorageError("flaky", retryable=True, category=ErrorCategory.SYNC)

        assert err.retryable is True
        assert err.category == ErrorCategory.SYNC

    def test_repr(self):
        assert repr(SchemaError("x")) == "SchemaError('x', category=VALIDATION)"


class TestPreconditions:
    def test_missing_table(self):
        err = MissingTableError("Meta")

        assert isinstance(err, PreconditionError)
        assert err.table == "Meta"
        assert err.category == ErrorCategory.VALIDATION
        assert "Meta" in str(err)

    def test_missing_column(self):
        err = MissingColumnError("Merged", "Anime ID")

        assert err.column == "Anime ID"
        assert err.context.to_dict() == {"table": "Merged", "column": "Anime ID"}

    def test_not_retryable(self):
        assert MissingColumnError("T", "C").retryable is False


class TestConfigErrors:
    def test_slot_error(self):
        err = ConfigSlotError("Weighted Spread")

        assert isinstance(err, ConfigError)
        assert err.name == "Weighted Spread"
        assert err.context.metadata["slot"] == "Weighted Spread"
        assert err.category == ErrorCategory.CONFIG


class TestPartialRunError:
    def test_carries_written_ids(self):
        err = PartialRunError("user", ["1", "2"], cause=StorageError("x"))

        assert err.written == ["1", "2"]
        assert err.channel == "user"
        assert err.category == ErrorCategory.SYNC
        assert err.retryable is True
        assert "2 write(s)" in err.message
        assert err.to_dict()["context"]["written"] == ["1", "2"]

    def test_written_is_copied(self):
        written = ["1"]
        err = PartialRunError("meta", written)
        written.append("2")

        assert err.written == ["1"]
