"""
Test fixtures for deterministic testing.

This module provides:
- timeline: pinned D0 anchor, interval builders, Google event resources
"""

from .timeline import D0, at, google_event, hours, span

__all__ = ["D0", "at", "google_event", "hours", "span"]
