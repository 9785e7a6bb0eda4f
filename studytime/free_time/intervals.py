"""
Interval Utilities - primitive operations on closed-open time intervals.

An Interval is [start, end): it contains start and excludes end.
All operations return new values; intervals are immutable.
"""

from collections.abc import Iterable, Sequence
from dataclasses import dataclass
from datetime import datetime, timedelta

from .errors import InvalidIntervalError


def ensure_instant(value, name: str = "instant") -> datetime:
    """Return value if it is a datetime, else raise InvalidIntervalError."""
    if not isinstance(value, datetime):
        raise InvalidIntervalError(f"{name} must be a datetime, got {type(value).__name__}")
    return value


def same_timeline(*instants: datetime) -> None:
    """
    Raise InvalidIntervalError if naive and aware datetimes are mixed.

    Python refuses to order a naive datetime against an aware one, so a
    mixed set of instants cannot be placed on one timeline.
    """
    aware = {dt.tzinfo is not None and dt.utcoffset() is not None for dt in instants}
    if len(aware) > 1:
        raise InvalidIntervalError("Cannot mix naive and timezone-aware datetimes")


def parse_instant(value) -> datetime:
    """Parse an ISO-8601 string (trailing Z allowed) or pass a datetime through."""
    if isinstance(value, datetime):
        return value
    if not isinstance(value, str):
        raise InvalidIntervalError(f"Expected ISO-8601 string, got {type(value).__name__}")
    try:
        return datetime.fromisoformat(value.replace("Z", "+00:00"))
    except ValueError as e:
        raise InvalidIntervalError(f"Invalid ISO-8601 timestamp: {value!r}") from e


@dataclass(frozen=True)
class Interval:
    start: datetime
    end: datetime

    def __post_init__(self):
        ensure_instant(self.start, "start")
        ensure_instant(self.end, "end")
        same_timeline(self.start, self.end)
        if self.end < self.start:
            raise InvalidIntervalError(
                f"Interval end {self.end.isoformat()} precedes start {self.start.isoformat()}"
            )

    @property
    def duration(self) -> timedelta:
        return self.end - self.start

    @property
    def is_empty(self) -> bool:
        return self.end == self.start

    def contains(self, instant: datetime) -> bool:
        """True if instant lies in [start, end)."""
        return self.start <= instant < self.end

    def to_pair(self) -> list[str]:
        """Serialize as [start, end] ISO-8601 strings."""
        return [self.start.isoformat(), self.end.isoformat()]

    @classmethod
    def from_pair(cls, pair: Sequence) -> "Interval":
        """Build from a 2-element [start, end] of ISO strings or datetimes."""
        if not isinstance(pair, (list, tuple)) or len(pair) != 2:
            raise InvalidIntervalError(f"Expected [start, end] pair, got {pair!r}")
        return cls(parse_instant(pair[0]), parse_instant(pair[1]))


def overlaps(a: Interval, b: Interval) -> bool:
    """True if the two closed-open intervals share at least one instant."""
    return a.start < b.end and b.start < a.end


def subtract_one(interval: Interval, block: Interval) -> tuple[Interval, ...]:
    """
    Remove block from interval.

    Returns 0 to 2 pieces. Zero-length pieces are kept; callers drop them.

    Cases for interval [s, e) and block [a, b):
    - no overlap (b <= s or a >= e): [s, e)
    - full cover (a <= s and b >= e): nothing
    - start overlap (a <= s and b < e): [b, e)
    - end overlap (a > s and b >= e): [s, a)
    - strictly inside: [s, a) and [b, e)
    """
    s, e = interval.start, interval.end
    a, b = block.start, block.end

    if b <= s or a >= e:
        return (interval,)

    if a <= s and b >= e:
        return ()

    if a <= s:
        return (Interval(b, e),)

    if b >= e:
        return (Interval(s, a),)

    return (Interval(s, a), Interval(b, e))


def merge_intervals(intervals: Iterable[Interval]) -> tuple[Interval, ...]:
    """
    Merge overlapping or touching intervals.

    Sorted by start (stable); the next interval is folded into the running
    one when next.start <= running.end.
    """
    try:
        ordered = sorted(intervals, key=lambda iv: iv.start)
    except TypeError as e:
        raise InvalidIntervalError(f"Intervals are not on one timeline: {e}") from e
    if not ordered:
        return ()

    merged = [ordered[0]]
    for nxt in ordered[1:]:
        running = merged[-1]
        if nxt.start <= running.end:
            if nxt.end > running.end:
                merged[-1] = Interval(running.start, nxt.end)
        else:
            merged.append(nxt)

    return tuple(merged)


def total_duration(intervals: Iterable[Interval]) -> timedelta:
    """Sum of interval durations."""
    return sum((iv.duration for iv in intervals), timedelta(0))


def drop_short(intervals: Iterable[Interval], min_keep: timedelta) -> tuple[Interval, ...]:
    """Keep only intervals at least min_keep long (and never zero-length)."""
    return tuple(iv for iv in intervals if iv.duration >= min_keep and not iv.is_empty)
