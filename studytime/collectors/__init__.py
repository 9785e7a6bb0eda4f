"""
Collectors - busy-time acquisition.
Every source hands the scheduler plain busy Intervals.
"""

from .calendar import (
    BusySource,
    GoogleCalendarBusySource,
    StaticBusySource,
    events_to_busy_intervals,
)

__all__ = [
    "BusySource",
    "GoogleCalendarBusySource",
    "StaticBusySource",
    "events_to_busy_intervals",
]
