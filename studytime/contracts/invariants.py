"""
Invariants Module - Free-Time Set correctness checks.

Invariants verify the ledger MEANS what callers rely on: disjoint, ordered,
no sub-minimum slivers. They run when a ledger is loaded from storage,
not just in tests.
"""

from collections.abc import Sequence
from datetime import timedelta

from studytime import config
from studytime.free_time.intervals import Interval


class InvariantViolation(Exception):
    """Raised when a free-time invariant is violated."""

    pass


# =============================================================================
# INVARIANT FUNCTIONS
# =============================================================================


def check_sorted_and_disjoint(free_time: Sequence[Interval], min_keep: timedelta) -> None:
    """
    INVARIANT: each interval starts at or after the previous interval's end.

    Raises:
        InvariantViolation: On the first overlapping or out-of-order pair
    """
    for prev, cur in zip(free_time, free_time[1:]):
        if cur.start < prev.end:
            raise InvariantViolation(
                f"Free intervals overlap or are unordered: "
                f"[{prev.start.isoformat()}, {prev.end.isoformat()}) then "
                f"[{cur.start.isoformat()}, {cur.end.isoformat()})"
            )


def check_minimum_duration(free_time: Sequence[Interval], min_keep: timedelta) -> None:
    """
    INVARIANT: no interval is shorter than the minimum keep-duration.

    Raises:
        InvariantViolation: On the first interval under min_keep
    """
    for iv in free_time:
        if iv.duration < min_keep or iv.is_empty:
            raise InvariantViolation(
                f"Free interval [{iv.start.isoformat()}, {iv.end.isoformat()}) "
                f"is {iv.duration}, under minimum {min_keep}"
            )


ALL_INVARIANTS = [
    check_sorted_and_disjoint,
    check_minimum_duration,
]


# =============================================================================
# ENFORCEMENT
# =============================================================================


def enforce_invariants(free_time: Sequence[Interval], min_keep: timedelta | None = None) -> list[str]:
    """
    Run all invariants. Returns list of violations (empty when valid).

    Reporting helper for tests and diagnostics; storage and the API use the
    strict check_free_time_set.
    """
    min_keep = config.DEFAULT_MIN_KEEP if min_keep is None else min_keep
    free_time = tuple(free_time)
    violations = []
    for invariant in ALL_INVARIANTS:
        try:
            invariant(free_time, min_keep)
        except InvariantViolation as e:
            violations.append(f"{invariant.__name__}: {e}")
    return violations


def check_free_time_set(free_time: Sequence[Interval], min_keep: timedelta | None = None) -> None:
    """
    Strict enforcement - raises on first violation.

    Raises:
        InvariantViolation: If any invariant fails
    """
    min_keep = config.DEFAULT_MIN_KEEP if min_keep is None else min_keep
    free_time = tuple(free_time)
    for invariant in ALL_INVARIANTS:
        invariant(free_time, min_keep)
