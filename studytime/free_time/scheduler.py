"""
Even Scheduler - spread N instants across free time by cumulative free duration.

Spacing is measured in free time only: busy gaps between intervals are
skipped, so each instant sits a fixed amount of *available* time after the
previous one.
"""

import logging
from collections.abc import Sequence
from datetime import datetime, timedelta

from .intervals import Interval, total_duration

logger = logging.getLogger(__name__)


def schedule_events_evenly(free_time: Sequence[Interval], num_events: int) -> tuple[datetime, ...]:
    """
    Place num_events instants evenly across free_time.

    Instant i sits at cumulative free offset i * (total / num_events). The
    first instant is always the start of the first interval.

    If rounding pushes a target past the last interval, placement stops and
    the instants placed so far are returned (truncation, logged at WARNING).

    Returns:
        Non-decreasing instants, each inside [start, end) of some interval.
        Empty when num_events <= 0 or free_time is empty.
    """
    free_time = tuple(free_time)
    if num_events <= 0 or not free_time:
        return ()

    total = total_duration(free_time)
    step = total / num_events

    scheduled: list[datetime] = []
    consumed = timedelta(0)
    idx = 0

    for i in range(num_events):
        target = step * i

        while idx < len(free_time) and consumed + free_time[idx].duration <= target:
            consumed += free_time[idx].duration
            idx += 1

        if idx >= len(free_time):
            logger.warning(
                f"Free time exhausted after {len(scheduled)} of {num_events} instants "
                f"(total free {total})"
            )
            break

        scheduled.append(free_time[idx].start + (target - consumed))

    return tuple(scheduled)
