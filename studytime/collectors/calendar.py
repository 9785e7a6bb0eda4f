"""
Calendar Collector - busy intervals from Google Calendar.

Reads every calendar the user can see for the sync window and turns timed
events into busy Intervals in UTC. Recurring events arrive expanded
(singleEvents=True); all-day events (date, no dateTime) are not busy time.
"""

import logging
from abc import ABC, abstractmethod
from collections.abc import Iterable
from datetime import UTC, datetime
from pathlib import Path
from typing import Any

from googleapiclient.errors import HttpError

from studytime.free_time.intervals import Interval, parse_instant
from studytime.observability import calendar_fetch_duration, timed

logger = logging.getLogger(__name__)

SCOPES = ["https://www.googleapis.com/auth/calendar.readonly"]
MAX_RESULTS_PER_PAGE = 2500


def _to_utc(dt: datetime) -> datetime:
    if dt.tzinfo is None:
        return dt.replace(tzinfo=UTC)
    return dt.astimezone(UTC)


def events_to_busy_intervals(events: Iterable[dict[str, Any]]) -> list[Interval]:
    """
    Convert Google Calendar event resources into busy intervals.

    Skips cancelled events and events without start.dateTime/end.dateTime.
    Naive timestamps are taken as UTC.

    Raises:
        InvalidIntervalError: Unparseable timestamp or end before start
    """
    busy = []
    skipped = 0
    for event in events:
        if event.get("status") == "cancelled":
            skipped += 1
            continue
        start = (event.get("start") or {}).get("dateTime")
        end = (event.get("end") or {}).get("dateTime")
        if not start or not end:
            skipped += 1
            continue
        busy.append(Interval(_to_utc(parse_instant(start)), _to_utc(parse_instant(end))))

    if skipped:
        logger.debug(f"Skipped {skipped} cancelled or all-day events")
    return busy


class BusySource(ABC):
    """Supplies busy intervals for a window."""

    @abstractmethod
    def fetch_busy(self, window_start: datetime, window_end: datetime) -> list[Interval]:
        raise NotImplementedError


class StaticBusySource(BusySource):
    """Busy intervals already in hand (tests, CLI files, pre-fetched data)."""

    def __init__(self, busy: Iterable[Interval]):
        self.busy = list(busy)

    def fetch_busy(self, window_start: datetime, window_end: datetime) -> list[Interval]:
        return [b for b in self.busy if b.start < window_end and b.end > window_start]


class GoogleCalendarBusySource(BusySource):
    """Collects busy time from all of a user's Google Calendars."""

    def __init__(self, service=None, credentials=None):
        self._service = service
        self._credentials = credentials

    @classmethod
    def from_token_file(cls, token_file: str | Path) -> "GoogleCalendarBusySource":
        """Build from an authorized-user token JSON (as written by the OAuth flow)."""
        from google.oauth2.credentials import Credentials

        creds = Credentials.from_authorized_user_file(str(token_file), SCOPES)
        return cls(credentials=creds)

    def _get_service(self):
        if self._service:
            return self._service

        from googleapiclient.discovery import build

        if self._credentials is None:
            raise ValueError("GoogleCalendarBusySource needs a service or credentials")
        self._service = build("calendar", "v3", credentials=self._credentials, cache_discovery=False)
        return self._service

    def _list_calendar_ids(self, service) -> list[str]:
        calendar_ids = []
        page_token = None
        while True:
            result = service.calendarList().list(pageToken=page_token).execute()
            calendar_ids.extend(c.get("id", "primary") for c in result.get("items", []))
            page_token = result.get("nextPageToken")
            if not page_token:
                return calendar_ids

    def _list_events(self, service, calendar_id: str, time_min: str, time_max: str) -> list[dict]:
        events = []
        page_token = None
        while True:
            result = (
                service.events()
                .list(
                    calendarId=calendar_id,
                    timeMin=time_min,
                    timeMax=time_max,
                    singleEvents=True,
                    orderBy="startTime",
                    maxResults=MAX_RESULTS_PER_PAGE,
                    pageToken=page_token,
                )
                .execute()
            )
            events.extend(result.get("items", []))
            page_token = result.get("nextPageToken")
            if not page_token:
                return events

    @timed(calendar_fetch_duration)
    def fetch_busy(self, window_start: datetime, window_end: datetime) -> list[Interval]:
        """
        Fetch busy intervals overlapping [window_start, window_end).

        A calendar that fails with HttpError is logged and skipped; failing
        to list calendars at all propagates.
        """
        service = self._get_service()
        time_min = _to_utc(window_start).isoformat()
        time_max = _to_utc(window_end).isoformat()

        calendar_ids = self._list_calendar_ids(service)
        busy: list[Interval] = []
        for calendar_id in calendar_ids:
            try:
                events = self._list_events(service, calendar_id, time_min, time_max)
            except HttpError as e:
                logger.warning(f"Failed to fetch events from calendar {calendar_id}: {e}")
                continue
            busy.extend(events_to_busy_intervals(events))

        logger.info(f"Fetched {len(busy)} busy intervals from {len(calendar_ids)} calendars")
        return busy
