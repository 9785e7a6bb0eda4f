"""
Property-based tests for free-time invariants using Hypothesis.

These tests stress the extractor, scheduler and reservation updater with
random calendars to find edge cases.
"""

from datetime import timedelta

from hypothesis import assume, given, settings
from hypothesis import strategies as st

from studytime.contracts import enforce_invariants
from studytime.free_time import (
    Interval,
    get_free_time_frames,
    merge_intervals,
    remove_scheduled_blocks,
    schedule_and_reserve,
    schedule_events_evenly,
    subtract_one,
    total_duration,
)
from tests.fixtures import at

MIN_KEEP = timedelta(minutes=5)
BLOCK = timedelta(minutes=5)
WINDOW_MINUTES = 7 * 24 * 60

# ============================================================================
# Strategies
# ============================================================================


@st.composite
def intervals(draw, lo=-120, hi=WINDOW_MINUTES + 120, max_len=600):
    """An interval on a minute grid around the week-long window."""
    start = draw(st.integers(min_value=lo, max_value=hi))
    length = draw(st.integers(min_value=0, max_value=max_len))
    return Interval(at(minutes=start), at(minutes=start + length))


busy_lists = st.lists(intervals(), max_size=40)


@st.composite
def free_time_sets(draw):
    """A valid Free-Time Set, as the extractor would produce it."""
    busy = draw(busy_lists)
    return get_free_time_frames(at(), busy, at(minutes=WINDOW_MINUTES), MIN_KEEP)


# ============================================================================
# Extractor Properties
# ============================================================================


@given(busy_lists)
def test_extracted_free_time_is_sorted_and_disjoint(busy):
    free = get_free_time_frames(at(), busy, at(minutes=WINDOW_MINUTES), MIN_KEEP)
    for prev, cur in zip(free, free[1:]):
        assert prev.end <= cur.start


@given(busy_lists)
def test_extracted_free_time_respects_minimum(busy):
    free = get_free_time_frames(at(), busy, at(minutes=WINDOW_MINUTES), MIN_KEEP)
    assert all(iv.duration >= MIN_KEEP for iv in free)
    assert enforce_invariants(free, MIN_KEEP) == []


@given(busy_lists)
def test_extracted_free_time_never_overlaps_busy(busy):
    free = get_free_time_frames(at(), busy, at(minutes=WINDOW_MINUTES), MIN_KEEP)
    for iv in free:
        assert at() <= iv.start and iv.end <= at(minutes=WINDOW_MINUTES)
        for b in busy:
            assert not (iv.start < b.end and b.start < iv.end)


def _gap_around(instant, busy, window_start, window_end):
    """Length of the busy-free stretch containing instant, clipped to the window."""
    gap_start = max([b.end for b in busy if b.end <= instant] + [window_start])
    gap_end = min([b.start for b in busy if b.start > instant] + [window_end])
    return gap_end - gap_start


window_seconds = st.integers(min_value=0, max_value=WINDOW_MINUTES * 60 - 1)


@given(busy_lists, st.lists(window_seconds, max_size=50))
def test_every_window_instant_is_accounted_for(busy, offsets):
    """Each instant is free, busy, or inside a gap shorter than the minimum."""
    window_start, window_end = at(), at(minutes=WINDOW_MINUTES)
    free = get_free_time_frames(window_start, busy, window_end, MIN_KEEP)
    for seconds in offsets:
        t = window_start + timedelta(seconds=seconds)
        if any(iv.contains(t) for iv in free) or any(b.contains(t) for b in busy):
            continue
        assert _gap_around(t, busy, window_start, window_end) < MIN_KEEP


@given(busy_lists)
def test_extraction_ignores_busy_order(busy):
    window = (at(), at(minutes=WINDOW_MINUTES))
    forward = get_free_time_frames(window[0], busy, window[1], MIN_KEEP)
    backward = get_free_time_frames(window[0], list(reversed(busy)), window[1], MIN_KEEP)
    assert forward == backward


# ============================================================================
# Merge and Subtraction Properties
# ============================================================================


@given(st.lists(intervals(), max_size=30))
def test_merge_idempotent(ivs):
    """Merging twice gives same result as once."""
    once = merge_intervals(ivs)
    assert merge_intervals(once) == once


@given(st.lists(intervals(), max_size=30))
def test_merge_output_strictly_separated(ivs):
    merged = merge_intervals(ivs)
    for prev, cur in zip(merged, merged[1:]):
        assert prev.end < cur.start


@given(intervals(), intervals())
def test_subtraction_conserves_duration(interval, block):
    pieces = subtract_one(interval, block)
    overlap_start = max(interval.start, block.start)
    overlap_end = min(interval.end, block.end)
    overlap = max(overlap_end - overlap_start, timedelta(0))
    if not (block.end <= interval.start or block.start >= interval.end):
        assert total_duration(pieces) == interval.duration - overlap
    else:
        assert pieces == (interval,)


# ============================================================================
# Scheduler and Reservation Properties
# ============================================================================


@given(free_time_sets(), st.integers(min_value=1, max_value=50))
@settings(max_examples=75)
def test_scheduler_places_every_requested_instant(free, n):
    assume(free)
    scheduled = schedule_events_evenly(free, n)
    assert len(scheduled) == n
    assert list(scheduled) == sorted(scheduled)
    for t in scheduled:
        assert any(iv.contains(t) for iv in free)


@given(free_time_sets(), st.integers(min_value=0, max_value=30))
@settings(max_examples=75)
def test_reservation_keeps_invariants(free, n):
    scheduled, updated = schedule_and_reserve(free, n, BLOCK, MIN_KEEP)
    assert enforce_invariants(updated, MIN_KEEP) == []
    assert total_duration(updated) <= total_duration(free)
    for t in scheduled:
        block = Interval(t, t + BLOCK)
        for iv in updated:
            assert not (iv.start < block.end and block.start < iv.end)


@given(free_time_sets(), st.lists(intervals(max_len=30), max_size=10))
def test_updated_free_time_is_subset_of_original(free, blocks):
    updated = remove_scheduled_blocks(free, [b.start for b in blocks], BLOCK, MIN_KEEP)
    for iv in updated:
        assert any(orig.start <= iv.start and iv.end <= orig.end for orig in free)
