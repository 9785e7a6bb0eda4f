"""
Tests for FreeTimeSync: calendar sync and reservations against the ledger.
"""

import logging
from datetime import timedelta
from unittest.mock import MagicMock

import pytest

from studytime.collectors.calendar import BusySource, StaticBusySource
from studytime.config import SchedulingConfig
from studytime.free_time import Interval, NoFreeTimeError, Reservation
from studytime.observability import (
    calendar_syncs,
    reminders_scheduled,
    reservations,
    scheduling_shortfalls,
    sync_errors,
)
from studytime.sync import FreeTimeSync
from tests.fixtures import D0, at, hours, span


class TestSyncUser:
    def test_regenerates_ledger_for_window(self, store, settings):
        source = StaticBusySource([hours(2, 3), hours(30, 31)])
        sync = FreeTimeSync(store=store, busy_source=source, settings=settings)

        result = sync.sync_user("u1", now=D0)

        expected = (hours(0, 2), hours(3, 30), Interval(at(hours=31), at(days=7)))
        assert result.free_time == expected
        assert store.load("u1") == expected
        assert result.window_end == at(days=7)
        assert result.busy_count == 2

    def test_overwrites_previous_ledger(self, store, settings):
        store.save("u1", [hours(100, 101)])
        sync = FreeTimeSync(store=store, busy_source=StaticBusySource([]), settings=settings)
        sync.sync_user("u1", now=D0)
        assert store.load("u1") == (Interval(D0, at(days=7)),)

    def test_requires_busy_source(self, sync):
        with pytest.raises(ValueError):
            sync.sync_user("u1", now=D0)

    def test_fetch_failure_leaves_ledger_and_counts_error(self, store, settings):
        store.save("u1", [hours(1, 2)])
        source = MagicMock(spec=BusySource)
        source.fetch_busy.side_effect = RuntimeError("calendar down")
        sync = FreeTimeSync(store=store, busy_source=source, settings=settings)
        before = sync_errors.value

        with pytest.raises(RuntimeError):
            sync.sync_user("u1", now=D0)

        assert store.load("u1") == (hours(1, 2),)
        assert sync_errors.value == before + 1

    def test_result_summary(self, sync):
        result = sync.sync_from_busy("u1", D0, at(hours=4), [hours(1, 3)])
        assert result.to_dict() == {
            "user_id": "u1",
            "window_start": "2025-01-06T00:00:00+00:00",
            "window_end": "2025-01-06T04:00:00+00:00",
            "busy_count": 1,
            "free_intervals": 2,
            "free_minutes": 120,
        }

    def test_counts_syncs(self, sync):
        before = calendar_syncs.value
        sync.sync_from_busy("u1", D0, at(hours=1), [])
        assert calendar_syncs.value == before + 1

    def test_window_uses_configured_days(self, store):
        sync = FreeTimeSync(
            store=store, busy_source=StaticBusySource([]), settings=SchedulingConfig(window_days=2)
        )
        result = sync.sync_user("u1", now=D0)
        assert result.free_time == (Interval(D0, at(days=2)),)


class TestReserve:
    def test_reserve_consumes_ledger(self, sync, store):
        store.save("u1", [span(0, 10)])
        reservation = sync.reserve("u1", 2, timedelta(minutes=5))
        assert reservation == Reservation((D0, at(minutes=5)), ())
        assert store.load("u1") == ()

    def test_defaults_from_settings(self, sync, store):
        store.save("u1", [hours(0, 10)])
        reservation = sync.reserve("u1")
        assert len(reservation.scheduled) == 10
        assert reservation.scheduled[1] - reservation.scheduled[0] == timedelta(hours=1)
        assert store.load("u1")[0] == span(5, 60)

    def test_unknown_user(self, sync):
        with pytest.raises(NoFreeTimeError) as exc:
            sync.reserve("ghost", 2)
        assert exc.value.user_id == "ghost"

    def test_empty_ledger_gives_empty_schedule(self, sync, store, caplog):
        store.save("u1", [])
        before = scheduling_shortfalls.value
        with caplog.at_level(logging.WARNING, logger="studytime.sync"):
            reservation = sync.reserve("u1", 3)
        assert reservation == Reservation((), ())
        assert scheduling_shortfalls.value == before + 1
        assert "Placed 0 of 3" in caplog.text

    def test_counts_reservations_and_reminders(self, sync, store):
        store.save("u1", [hours(0, 1)])
        before = (reservations.value, reminders_scheduled.value)
        sync.reserve("u1", 4)
        assert reservations.value == before[0] + 1
        assert reminders_scheduled.value == before[1] + 4

    def test_successive_reservations_shrink_ledger(self, sync, store):
        store.save("u1", [hours(0, 1)])
        first = sync.reserve("u1", 2)
        second = sync.reserve("u1", 2)
        assert set(first.scheduled).isdisjoint(second.scheduled)
        assert store.load("u1") == (span(10, 30), span(40, 60))

