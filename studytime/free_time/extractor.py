"""
Free-Time Extractor - the complement of calendar busy time within a window.

Busy intervals may arrive unsorted and overlapping. The walk keeps a running
busy_end (max end seen so far), so nested and overlapping meetings never
produce spurious gaps. Gaps shorter than the minimum keep-duration are
dropped here and only here.
"""

import logging
from collections.abc import Iterable
from datetime import datetime, timedelta

from studytime import config

from .errors import InvalidIntervalError
from .intervals import Interval, drop_short, ensure_instant, same_timeline

logger = logging.getLogger(__name__)


def get_free_time_frames(
    window_start: datetime,
    busy_intervals: Iterable[Interval],
    window_end: datetime,
    min_keep: timedelta | None = None,
) -> tuple[Interval, ...]:
    """
    Compute free intervals in [window_start, window_end).

    Args:
        window_start: Start of the scheduling horizon
        busy_intervals: Calendar busy time, any order, may overlap or
            extend past the window
        window_end: End of the scheduling horizon (exclusive)
        min_keep: Shortest gap kept (defaults to config.DEFAULT_MIN_KEEP)

    Returns:
        Sorted, disjoint free intervals, each at least min_keep long.
        An empty or inverted window yields ().
    """
    ensure_instant(window_start, "window_start")
    ensure_instant(window_end, "window_end")
    same_timeline(window_start, window_end)
    min_keep = config.DEFAULT_MIN_KEEP if min_keep is None else min_keep

    if window_start >= window_end:
        return ()

    busy = list(busy_intervals)
    for b in busy:
        if not isinstance(b, Interval):
            raise InvalidIntervalError(f"busy_intervals must contain Interval, got {type(b).__name__}")
        same_timeline(window_start, b.start)

    if not busy:
        return drop_short([Interval(window_start, window_end)], min_keep)

    # stable: equal starts keep caller order
    busy.sort(key=lambda b: b.start)

    gaps: list[Interval] = []

    def emit(gap_start: datetime, gap_end: datetime) -> None:
        gap_start = max(gap_start, window_start)
        gap_end = min(gap_end, window_end)
        if gap_start < gap_end:
            gaps.append(Interval(gap_start, gap_end))

    first = busy[0]
    emit(window_start, first.start)

    busy_end = first.end
    for b in busy[1:]:
        if b.start > busy_end:
            emit(busy_end, b.start)
        if b.end > busy_end:
            busy_end = b.end

    emit(busy_end, window_end)

    free = drop_short(gaps, min_keep)
    logger.debug(
        f"Extracted {len(free)} free intervals from {len(busy)} busy "
        f"({len(gaps) - len(free)} gaps under {min_keep} dropped)"
    )
    return free
