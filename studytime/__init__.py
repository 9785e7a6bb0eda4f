# studytime - Study reminder scheduling core
"""
Exports for the API, CLI and other consumers.
"""

from .free_time import (
    Interval,
    Reservation,
    get_free_time_frames,
    merge_intervals,
    remove_scheduled_blocks,
    schedule_and_reserve,
    schedule_events_evenly,
    subtract_one,
)

__all__ = [
    "Interval",
    "Reservation",
    "get_free_time_frames",
    "merge_intervals",
    "remove_scheduled_blocks",
    "schedule_and_reserve",
    "schedule_events_evenly",
    "subtract_one",
]
