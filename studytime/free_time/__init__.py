"""
Free Time Module

The scheduling core: pure functions over immutable intervals.

Objects:
- Interval (closed-open [start, end) over datetimes)
- Free-Time Set (tuple of sorted, disjoint Intervals, each >= min keep-duration)
- Reservation (scheduled instants + updated free-time set)

Invariants:
- Free-time sets are pairwise disjoint and strictly increasing
- No free interval is shorter than the minimum keep-duration
- Free time only shrinks between calendar syncs
"""

from .errors import FreeTimeError, InvalidIntervalError, NoFreeTimeError
from .extractor import get_free_time_frames
from .intervals import Interval, merge_intervals, overlaps, subtract_one, total_duration
from .reservation import Reservation, remove_scheduled_blocks, schedule_and_reserve
from .scheduler import schedule_events_evenly

__all__ = [
    "FreeTimeError",
    "InvalidIntervalError",
    "NoFreeTimeError",
    "Interval",
    "Reservation",
    "get_free_time_frames",
    "merge_intervals",
    "overlaps",
    "remove_scheduled_blocks",
    "schedule_and_reserve",
    "schedule_events_evenly",
    "subtract_one",
    "total_duration",
]
