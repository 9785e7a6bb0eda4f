"""
Free Time Sync - keep each user's free-time ledger in step with their calendar.

Two entry points:
- sync_user: regenerate the ledger from the calendar (overwrites it)
- reserve: commit N reminder slots against the stored ledger, under the
  user's lock, and persist what is left
"""

import logging
import time
from dataclasses import dataclass
from datetime import UTC, datetime, timedelta
from typing import Optional

from studytime.collectors.calendar import BusySource
from studytime.config import SchedulingConfig, load_scheduling_config
from studytime.free_time import (
    Interval,
    NoFreeTimeError,
    Reservation,
    get_free_time_frames,
    schedule_and_reserve,
    total_duration,
)
from studytime.free_time_store import FreeTimeStore
from studytime.observability import (
    RequestContext,
    calendar_syncs,
    reminders_scheduled,
    reservations,
    scheduling_shortfalls,
    sync_duration,
    sync_errors,
)

logger = logging.getLogger(__name__)


@dataclass
class SyncResult:
    user_id: str
    window_start: datetime
    window_end: datetime
    busy_count: int
    free_time: tuple[Interval, ...]

    @property
    def free_minutes(self) -> int:
        return int(total_duration(self.free_time).total_seconds() // 60)

    def to_dict(self) -> dict:
        return {
            "user_id": self.user_id,
            "window_start": self.window_start.isoformat(),
            "window_end": self.window_end.isoformat(),
            "busy_count": self.busy_count,
            "free_intervals": len(self.free_time),
            "free_minutes": self.free_minutes,
        }


class FreeTimeSync:
    """
    Bridges the calendar collaborator, the scheduling core and the ledger.

    Responsibilities:
    - Pull busy intervals for the sync window
    - Regenerate and persist the free-time set
    - Serialize schedule-and-reserve per user
    """

    def __init__(
        self,
        store: FreeTimeStore | None = None,
        busy_source: BusySource | None = None,
        settings: SchedulingConfig | None = None,
    ):
        self.settings = settings or load_scheduling_config()
        self.store = store or FreeTimeStore(min_keep=self.settings.min_keep)
        self.busy_source = busy_source

    def sync_user(self, user_id: str, now: Optional[datetime] = None) -> SyncResult:
        """
        Regenerate a user's free time for [now, now + window_days).

        Args:
            user_id: Ledger key
            now: Window start (defaults to the current UTC time)

        Returns:
            SyncResult describing the persisted ledger
        """
        if self.busy_source is None:
            raise ValueError("FreeTimeSync.sync_user needs a busy_source")

        window_start = now or datetime.now(UTC)
        window_end = window_start + self.settings.window

        with RequestContext(user_id=user_id):
            started = time.perf_counter()
            try:
                busy = self.busy_source.fetch_busy(window_start, window_end)
            except Exception:
                sync_errors.inc()
                logger.exception("Calendar fetch failed; ledger left unchanged")
                raise
            result = self.sync_from_busy(user_id, window_start, window_end, busy)
            sync_duration.observe(time.perf_counter() - started)
            return result

    def sync_from_busy(
        self,
        user_id: str,
        window_start: datetime,
        window_end: datetime,
        busy: list[Interval],
    ) -> SyncResult:
        """Compute free time from busy intervals already in hand and overwrite the ledger."""
        free_time = get_free_time_frames(window_start, busy, window_end, self.settings.min_keep)

        with self.store.user_lock(user_id):
            self.store.save(user_id, free_time)

        calendar_syncs.inc()
        result = SyncResult(
            user_id=user_id,
            window_start=window_start,
            window_end=window_end,
            busy_count=len(busy),
            free_time=free_time,
        )
        logger.info(
            f"Synced free time for {user_id}: {len(busy)} busy -> "
            f"{len(free_time)} free intervals ({result.free_minutes} min)"
        )
        return result

    def reserve(
        self,
        user_id: str,
        num_events: Optional[int] = None,
        block_duration: Optional[timedelta] = None,
    ) -> Reservation:
        """
        Schedule num_events reminders and consume their blocks from the ledger.

        The ledger is updated before any reminder is delivered; a failed
        delivery does not give the slot back.

        Raises:
            NoFreeTimeError: The user has never been synced
        """
        num_events = self.settings.reminders_per_batch if num_events is None else num_events
        block_duration = self.settings.block if block_duration is None else block_duration

        with RequestContext(user_id=user_id), self.store.user_lock(user_id):
            free_time = self.store.load(user_id)
            if free_time is None:
                raise NoFreeTimeError(user_id)

            reservation = schedule_and_reserve(
                free_time, num_events, block_duration, self.settings.min_keep
            )
            self.store.save(user_id, reservation.free_time)

            reservations.inc()
            reminders_scheduled.inc(len(reservation.scheduled))
            if len(reservation.scheduled) < max(num_events, 0):
                scheduling_shortfalls.inc()
                logger.warning(
                    f"Placed {len(reservation.scheduled)} of {num_events} reminders; "
                    f"{len(free_time)} free intervals available"
                )
            else:
                logger.info(f"Reserved {len(reservation.scheduled)} reminder slots")

        return reservation
