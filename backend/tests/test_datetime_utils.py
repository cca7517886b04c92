"""
Tests for datetime utilities module.
"""
import pytest
from datetime import datetime, timezone, timedelta

from app.core.datetime_utils import (
    MillisTimestamp,
    NativeTimestamp,
    SecondsNanosTimestamp,
    ensure_timezone_aware,
    to_epoch_millis,
    to_instant,
    utc_now,
)

INSTANT = datetime(2024, 1, 15, 12, 30, 45, 123000, tzinfo=timezone.utc)
INSTANT_MILLIS = 1705321845123


class TestUtcNow:
    """Tests for utc_now function."""

    def test_is_timezone_aware_utc(self):
        assert utc_now().tzinfo == timezone.utc


class TestEnsureTimezoneAware:
    """Tests for ensure_timezone_aware function."""

    def test_naive_datetime_becomes_utc(self):
        """Test that a naive datetime is tagged as UTC without shifting."""
        naive_dt = datetime(2024, 1, 15, 12, 30, 45)

        result = ensure_timezone_aware(naive_dt)

        assert result.tzinfo == timezone.utc
        assert result.replace(tzinfo=None) == naive_dt

    def test_aware_datetime_unchanged(self):
        """Test that an aware datetime is returned as the same object."""
        tz_plus_5 = timezone(timedelta(hours=5, minutes=30))
        aware_dt = datetime(2024, 1, 15, 12, 30, 45, tzinfo=tz_plus_5)

        result = ensure_timezone_aware(aware_dt)

        assert result is aware_dt
        assert result.tzinfo == tz_plus_5

    def test_none_raises_value_error(self):
        """Test that None input raises ValueError."""
        with pytest.raises(ValueError, match="datetime cannot be None"):
            ensure_timezone_aware(None)

    def test_epoch_datetime(self):
        """Test with Unix epoch datetime."""
        result = ensure_timezone_aware(datetime(1970, 1, 1, 0, 0, 0))

        assert result.timestamp() == 0


class TestToInstant:
    """Tests for to_instant normalization of every timestamp shape."""

    def test_millis(self):
        assert to_instant(MillisTimestamp(INSTANT_MILLIS)) == INSTANT

    def test_seconds_nanos(self):
        ts = SecondsNanosTimestamp(seconds=1705321845, nanoseconds=123_000_999)

        # Sub-microsecond digits are truncated
        assert to_instant(ts) == INSTANT

    def test_native_aware(self):
        assert to_instant(NativeTimestamp(INSTANT)) == INSTANT

    def test_native_naive_treated_as_utc(self):
        naive = INSTANT.replace(tzinfo=None)

        result = to_instant(NativeTimestamp(naive))

        assert result == INSTANT
        assert result.tzinfo == timezone.utc

    def test_native_other_offset_converted_to_utc(self):
        ist = timezone(timedelta(hours=5, minutes=30))
        local = INSTANT.astimezone(ist)

        result = to_instant(NativeTimestamp(local))

        assert result == INSTANT
        assert result.utcoffset() == timedelta(0)

    def test_all_shapes_agree(self):
        shapes = [
            MillisTimestamp(INSTANT_MILLIS),
            SecondsNanosTimestamp(seconds=1705321845, nanoseconds=123_000_000),
            NativeTimestamp(INSTANT),
        ]

        assert len({to_instant(ts) for ts in shapes}) == 1

    def test_unsupported_type(self):
        with pytest.raises(TypeError, match="Unsupported timestamp type"):
            to_instant(INSTANT)

    def test_pre_epoch_millis(self):
        assert to_instant(MillisTimestamp(-1000)) == datetime(
            1969, 12, 31, 23, 59, 59, tzinfo=timezone.utc
        )


class TestSecondsNanosValidation:
    """Tests for SecondsNanosTimestamp bounds."""

    @pytest.mark.parametrize("nanos", [-1, 1_000_000_000])
    def test_out_of_range_nanoseconds(self, nanos):
        with pytest.raises(ValueError):
            SecondsNanosTimestamp(seconds=0, nanoseconds=nanos)


class TestToEpochMillis:
    """Tests for to_epoch_millis."""

    def test_millis_passthrough(self):
        assert to_epoch_millis(MillisTimestamp(42)) == 42

    def test_native(self):
        assert to_epoch_millis(NativeTimestamp(INSTANT)) == INSTANT_MILLIS

    def test_seconds_nanos(self):
        ts = SecondsNanosTimestamp(seconds=1705321845, nanoseconds=123_456_789)

        assert to_epoch_millis(ts) == INSTANT_MILLIS
