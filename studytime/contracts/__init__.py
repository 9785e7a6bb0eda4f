"""
Contracts Module - validation of persisted free-time ledgers.

- invariants.py: Free-Time Set semantic checks

Enforced both in tests and when a ledger is read back from storage.
"""

from .invariants import (
    ALL_INVARIANTS,
    InvariantViolation,
    check_free_time_set,
    enforce_invariants,
)

__all__ = [
    "ALL_INVARIANTS",
    "InvariantViolation",
    "check_free_time_set",
    "enforce_invariants",
]
