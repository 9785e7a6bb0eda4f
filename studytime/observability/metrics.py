"""
In-process metrics for syncs and reservations.

Counters and histograms are thread-safe and exported in Prometheus text
format via /api/metrics.
"""

import threading
import time
from collections.abc import Callable
from dataclasses import dataclass, field
from functools import wraps


@dataclass
class Counter:
    """Thread-safe counter metric."""

    name: str
    description: str
    _value: int = 0
    _lock: threading.Lock = field(default_factory=threading.Lock, repr=False)

    def inc(self, amount: int = 1) -> None:
        with self._lock:
            self._value += amount

    @property
    def value(self) -> int:
        with self._lock:
            return self._value


@dataclass
class Histogram:
    """Keeps the last 1000 observations."""

    name: str
    description: str
    _values: list[float] = field(default_factory=list)
    _lock: threading.Lock = field(default_factory=threading.Lock, repr=False)

    def observe(self, value: float) -> None:
        with self._lock:
            self._values.append(value)
            if len(self._values) > 1000:
                self._values = self._values[-1000:]

    @property
    def count(self) -> int:
        with self._lock:
            return len(self._values)

    @property
    def sum(self) -> float:
        with self._lock:
            return sum(self._values)


class MetricsRegistry:
    """Central registry for all metrics."""

    def __init__(self) -> None:
        self._counters: dict[str, Counter] = {}
        self._histograms: dict[str, Histogram] = {}
        self._lock = threading.Lock()

    def counter(self, name: str, description: str = "") -> Counter:
        """Get or create a counter."""
        with self._lock:
            if name not in self._counters:
                self._counters[name] = Counter(name, description)
            return self._counters[name]

    def histogram(self, name: str, description: str = "") -> Histogram:
        """Get or create a histogram."""
        with self._lock:
            if name not in self._histograms:
                self._histograms[name] = Histogram(name, description)
            return self._histograms[name]

    def to_prometheus(self) -> str:
        lines: list[str] = []
        with self._lock:
            counters = [self._counters[n] for n in sorted(self._counters)]
            histograms = [self._histograms[n] for n in sorted(self._histograms)]

        for c in counters:
            if c.description:
                lines.append(f"# HELP {c.name} {c.description}")
            lines.append(f"# TYPE {c.name} counter")
            lines.append(f"{c.name} {c.value}")

        for h in histograms:
            if h.description:
                lines.append(f"# HELP {h.name} {h.description}")
            lines.append(f"# TYPE {h.name} summary")
            lines.append(f"{h.name}_count {h.count}")
            lines.append(f"{h.name}_sum {h.sum}")

        return "\n".join(lines) + "\n"


REGISTRY = MetricsRegistry()

calendar_syncs = REGISTRY.counter("calendar_syncs_total", "Free-time ledgers regenerated")
sync_errors = REGISTRY.counter("calendar_sync_errors_total", "Calendar fetches that failed")
sync_duration = REGISTRY.histogram("calendar_sync_duration_seconds", "Calendar sync duration")
calendar_fetch_duration = REGISTRY.histogram(
    "calendar_fetch_duration_seconds", "Google Calendar busy-time fetch duration"
)
reservations = REGISTRY.counter("reservations_total", "schedule-and-reserve calls committed")
reminders_scheduled = REGISTRY.counter("reminders_scheduled_total", "Reminder instants placed")
scheduling_shortfalls = REGISTRY.counter(
    "scheduling_shortfalls_total", "Batches that placed fewer instants than requested"
)


def timed(histogram: Histogram) -> Callable:
    """Decorator to time function execution."""

    def decorator(func: Callable) -> Callable:
        @wraps(func)
        def wrapper(*args, **kwargs):
            start = time.perf_counter()
            try:
                return func(*args, **kwargs)
            finally:
                histogram.observe(time.perf_counter() - start)

        return wrapper

    return decorator
