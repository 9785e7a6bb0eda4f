"""
Reservation Updater - consume scheduled reminder blocks from the free-time ledger.

Each scheduled instant t occupies [t, t + block_duration). The block is
subtracted from every free interval, the remainder is merged, and slivers
shorter than the minimum keep-duration are dropped at the end.
"""

import logging
from collections.abc import Iterable, Sequence
from datetime import datetime, timedelta
from typing import NamedTuple

from studytime import config

from .errors import InvalidIntervalError
from .intervals import Interval, drop_short, ensure_instant, merge_intervals, subtract_one
from .scheduler import schedule_events_evenly

logger = logging.getLogger(__name__)


class Reservation(NamedTuple):
    scheduled: tuple[datetime, ...]
    free_time: tuple[Interval, ...]


def remove_scheduled_blocks(
    free_time: Iterable[Interval],
    scheduled: Iterable[datetime],
    block_duration: timedelta | None = None,
    min_keep: timedelta | None = None,
) -> tuple[Interval, ...]:
    """
    Subtract one block per scheduled instant from free_time.

    Args:
        free_time: Current free-time set (not modified)
        scheduled: Instants to reserve, applied in input order
        block_duration: Length of each reserved block (defaults to config.DEFAULT_BLOCK)
        min_keep: Shortest interval kept (defaults to config.DEFAULT_MIN_KEEP)

    Returns:
        Pruned, merged, sorted free-time set.
    """
    block_duration = config.DEFAULT_BLOCK if block_duration is None else block_duration
    min_keep = config.DEFAULT_MIN_KEEP if min_keep is None else min_keep
    if block_duration < timedelta(0):
        raise InvalidIntervalError(f"block_duration must not be negative, got {block_duration}")

    working = tuple(free_time)
    for t in scheduled:
        ensure_instant(t, "scheduled instant")
        block = Interval(t, t + block_duration)

        pieces: list[Interval] = []
        try:
            for iv in working:
                pieces.extend(p for p in subtract_one(iv, block) if not p.is_empty)
        except TypeError as e:
            raise InvalidIntervalError(f"Scheduled instant {t!r} is not on the free-time timeline") from e
        working = merge_intervals(pieces)

    return drop_short(working, min_keep)


def schedule_and_reserve(
    free_time: Sequence[Interval],
    num_events: int,
    block_duration: timedelta | None = None,
    min_keep: timedelta | None = None,
) -> Reservation:
    """
    Choose num_events instants and consume their blocks from free_time.

    Not transactional: the returned free_time already excludes the blocks,
    whether or not the paired reminders are later delivered.

    Returns:
        Reservation(scheduled, free_time); unpacks as (scheduled, updated).
    """
    free_time = tuple(free_time)
    scheduled = schedule_events_evenly(free_time, num_events)
    updated = remove_scheduled_blocks(free_time, scheduled, block_duration, min_keep)
    logger.debug(
        f"Reserved {len(scheduled)}/{num_events} instants; "
        f"{len(free_time)} -> {len(updated)} free intervals"
    )
    return Reservation(scheduled=scheduled, free_time=updated)
