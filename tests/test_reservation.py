"""
Tests for reserving reminder blocks out of free time.
"""

from datetime import timedelta

import pytest

from studytime.free_time import (
    InvalidIntervalError,
    Reservation,
    remove_scheduled_blocks,
    schedule_and_reserve,
    total_duration,
)
from tests.fixtures import D0, at, hours, span

FIVE_MIN = timedelta(minutes=5)


class TestRemoveScheduledBlocks:
    def test_block_at_interval_start(self):
        updated = remove_scheduled_blocks([span(0, 60)], [D0], FIVE_MIN, FIVE_MIN)
        assert updated == (span(5, 60),)

    def test_block_inside_splits_interval(self):
        updated = remove_scheduled_blocks([span(0, 60)], [at(minutes=30)], FIVE_MIN, FIVE_MIN)
        assert updated == (span(0, 30), span(35, 60))

    def test_sliver_dropped_after_subtraction(self):
        updated = remove_scheduled_blocks([span(0, 60)], [at(minutes=2)], FIVE_MIN, FIVE_MIN)
        assert updated == (span(7, 60),)

    def test_block_crossing_interval_end(self):
        updated = remove_scheduled_blocks(
            [span(0, 30), span(32, 60)], [at(minutes=28)], FIVE_MIN, FIVE_MIN
        )
        assert updated == (span(0, 28), span(33, 60))

    def test_block_outside_free_time_is_noop(self):
        free = (span(0, 30),)
        assert remove_scheduled_blocks(free, [at(hours=5)], FIVE_MIN, FIVE_MIN) == free

    def test_overlapping_blocks(self):
        updated = remove_scheduled_blocks(
            [span(0, 60)], [at(minutes=10), at(minutes=12)], FIVE_MIN, FIVE_MIN
        )
        assert updated == (span(0, 10), span(17, 60))

    def test_no_instants_returns_input(self):
        free = (span(0, 30), span(40, 50))
        assert remove_scheduled_blocks(free, [], FIVE_MIN, FIVE_MIN) == free

    def test_input_not_mutated(self):
        free = [span(0, 60)]
        remove_scheduled_blocks(free, [D0], FIVE_MIN, FIVE_MIN)
        assert free == [span(0, 60)]

    def test_zero_length_block(self):
        updated = remove_scheduled_blocks([span(0, 60)], [at(minutes=30)], timedelta(0), FIVE_MIN)
        assert updated == (span(0, 60),)

    def test_negative_block_rejected(self):
        with pytest.raises(InvalidIntervalError):
            remove_scheduled_blocks([span(0, 60)], [D0], timedelta(minutes=-1))

    def test_instant_must_be_datetime(self):
        with pytest.raises(InvalidIntervalError):
            remove_scheduled_blocks([span(0, 60)], ["2025-01-06T00:00:00Z"])


class TestScheduleAndReserve:
    def test_two_blocks_consume_ten_minutes(self):
        scheduled, updated = schedule_and_reserve([span(0, 10)], 2, FIVE_MIN)
        assert scheduled == (D0, at(minutes=5))
        assert updated == ()

    def test_returns_reservation(self):
        result = schedule_and_reserve([hours(0, 1)], 2, FIVE_MIN)
        assert isinstance(result, Reservation)
        assert result.scheduled == (D0, at(minutes=30))
        assert result.free_time == (span(5, 30), span(35, 60))

    def test_ledger_shrinks_by_block_per_event(self):
        free = (hours(0, 2), hours(4, 6))
        scheduled, updated = schedule_and_reserve(free, 8, FIVE_MIN)
        assert len(scheduled) == 8
        assert total_duration(updated) == total_duration(free) - 8 * FIVE_MIN

    def test_scheduled_instants_no_longer_free(self):
        scheduled, updated = schedule_and_reserve([hours(0, 3)], 6, FIVE_MIN)
        assert not any(iv.contains(t) for t in scheduled for iv in updated)

    def test_default_batch_against_sync_window(self):
        scheduled, updated = schedule_and_reserve([hours(9, 17)], 10, timedelta(minutes=2))
        assert len(scheduled) == 10
        assert scheduled[1] - scheduled[0] == timedelta(minutes=48)
        assert len(updated) == 10

    def test_empty_free_time(self):
        assert schedule_and_reserve([], 10) == Reservation((), ())

    def test_zero_events_leaves_ledger(self):
        free = (hours(0, 1),)
        assert schedule_and_reserve(free, 0) == Reservation((), free)

    def test_repeated_reservations_never_reuse_a_slot(self):
        free = (hours(0, 1),)
        first, free = schedule_and_reserve(free, 2, FIVE_MIN)
        second, free = schedule_and_reserve(free, 2, FIVE_MIN)
        assert set(first).isdisjoint(second)
        assert second == (at(minutes=5), at(minutes=35))
        assert total_duration(free) == timedelta(minutes=40)
