"""
Datetime utility functions for handling timezone-aware datetimes.

Result stores hand back submission times in several shapes (epoch
milliseconds, a seconds + nanoseconds pair, or a native datetime). They are
modelled as one tagged union, ``Timestamp``, and ``to_instant`` is the only
place that turns any of them into a UTC-aware ``datetime``.
"""
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Optional, Union

_EPOCH = datetime(1970, 1, 1, tzinfo=timezone.utc)
_NANOS_PER_SECOND = 1_000_000_000


def utc_now() -> datetime:
    """
    Return the current datetime in UTC timezone.

    This utility provides a consistent, mockable way to get the current UTC time
    throughout the codebase. Using this function instead of datetime.now(timezone.utc)
    directly enables easier testing through mocking.

    Returns:
        A timezone-aware datetime object representing the current time in UTC.

    Example:
        >>> from app.core.datetime_utils import utc_now
        >>> current_time = utc_now()
        >>> current_time.tzinfo == timezone.utc
        True
    """
    return datetime.now(timezone.utc)


def ensure_timezone_aware(dt: Optional[datetime]) -> datetime:
    """
    Ensure a datetime object is timezone-aware (UTC).

    Naive datetimes are assumed to already be in UTC.

    Args:
        dt: The datetime to ensure is timezone-aware

    Returns:
        A timezone-aware datetime object in UTC

    Raises:
        ValueError: If dt is None
    """
    if dt is None:
        raise ValueError("datetime cannot be None")
    if dt.tzinfo is None:
        return dt.replace(tzinfo=timezone.utc)
    return dt


@dataclass(frozen=True)
class MillisTimestamp:
    """Milliseconds since the Unix epoch."""

    millis: int


@dataclass(frozen=True)
class SecondsNanosTimestamp:
    """Seconds since the Unix epoch plus a nanosecond remainder."""

    seconds: int
    nanoseconds: int = 0

    def __post_init__(self) -> None:
        if not 0 <= self.nanoseconds < _NANOS_PER_SECOND:
            raise ValueError(
                f"nanoseconds must be in [0, {_NANOS_PER_SECOND}), "
                f"got {self.nanoseconds}"
            )


@dataclass(frozen=True)
class NativeTimestamp:
    """A native ``datetime`` (naive values are treated as UTC)."""

    value: datetime


Timestamp = Union[MillisTimestamp, SecondsNanosTimestamp, NativeTimestamp]


def to_instant(ts: Timestamp) -> datetime:
    """
    Normalize any Timestamp variant to a UTC-aware datetime.

    Sub-microsecond precision in SecondsNanosTimestamp is truncated, since
    ``datetime`` only resolves microseconds.

    Args:
        ts: Timestamp in any supported representation

    Returns:
        Timezone-aware datetime in UTC

    Raises:
        TypeError: If ts is not one of the Timestamp variants
    """
    if isinstance(ts, NativeTimestamp):
        return ensure_timezone_aware(ts.value).astimezone(timezone.utc)
    if isinstance(ts, MillisTimestamp):
        return _EPOCH + timedelta(milliseconds=ts.millis)
    if isinstance(ts, SecondsNanosTimestamp):
        return _EPOCH + timedelta(
            seconds=ts.seconds, microseconds=ts.nanoseconds // 1000
        )
    raise TypeError(f"Unsupported timestamp type: {type(ts).__name__}")


def to_epoch_millis(ts: Timestamp) -> int:
    """Convert any Timestamp variant to integer epoch milliseconds."""
    if isinstance(ts, MillisTimestamp):
        return ts.millis
    delta = to_instant(ts) - _EPOCH
    return (delta.days * 86_400 + delta.seconds) * 1000 + delta.microseconds // 1000
