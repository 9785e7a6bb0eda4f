"""
Centralized configuration for studytime.

Scheduling defaults come from environment variables and may be overlaid by
config/scheduling.yaml. The core treats them as constants, not hidden state.
"""

import logging
import os
from dataclasses import dataclass, replace
from datetime import timedelta
from pathlib import Path
from typing import Optional

import yaml

logger = logging.getLogger(__name__)

# ============================================================
# Scheduling
# ============================================================

MIN_KEEP_MINUTES: int = int(os.environ.get("STUDYTIME_MIN_KEEP_MINUTES", "5"))
"""Shortest gap kept as usable free time."""

BLOCK_MINUTES: int = int(os.environ.get("STUDYTIME_BLOCK_MINUTES", "5"))
"""Time a scheduled reminder occupies in the free-time ledger."""

WINDOW_DAYS: int = int(os.environ.get("STUDYTIME_WINDOW_DAYS", "7"))
"""Length of the scheduling horizon synced from the calendar."""

REMINDERS_PER_BATCH: int = int(os.environ.get("STUDYTIME_REMINDERS_PER_BATCH", "10"))
"""Reminders placed per reservation when the caller gives no count."""

DEFAULT_MIN_KEEP = timedelta(minutes=MIN_KEEP_MINUTES)
DEFAULT_BLOCK = timedelta(minutes=BLOCK_MINUTES)

# ============================================================
# Logging
# ============================================================

LOG_LEVEL: str = os.environ.get("STUDYTIME_LOG_LEVEL", "INFO")

SCHEDULING_CONFIG_PATH = Path(__file__).parent.parent / "config" / "scheduling.yaml"


@dataclass(frozen=True)
class SchedulingConfig:
    min_keep_minutes: int = MIN_KEEP_MINUTES
    block_minutes: int = BLOCK_MINUTES
    window_days: int = WINDOW_DAYS
    reminders_per_batch: int = REMINDERS_PER_BATCH

    @property
    def min_keep(self) -> timedelta:
        return timedelta(minutes=self.min_keep_minutes)

    @property
    def block(self) -> timedelta:
        return timedelta(minutes=self.block_minutes)

    @property
    def window(self) -> timedelta:
        return timedelta(days=self.window_days)


_FIELDS = ("min_keep_minutes", "block_minutes", "window_days", "reminders_per_batch")


def load_scheduling_config(path: Optional[str] = None) -> SchedulingConfig:
    """
    Load scheduling settings, overlaying YAML on the environment defaults.

    Expected shape:
        scheduling:
          min_keep_minutes: 5
          block_minutes: 5
          window_days: 7
          reminders_per_batch: 10

    A missing file yields the defaults. Non-positive or non-integer values
    are logged and ignored.

    Raises:
        yaml.YAMLError if the file is not valid YAML.
        ValueError if the top level is not a mapping.
    """
    config_path = Path(path) if path else SCHEDULING_CONFIG_PATH
    defaults = SchedulingConfig()
    if not config_path.exists():
        logger.debug(f"No scheduling config at {config_path}, using defaults")
        return defaults

    with open(config_path) as f:
        data = yaml.safe_load(f)

    if data is None:
        return defaults
    if not isinstance(data, dict):
        raise ValueError(f"{config_path.name} must contain a mapping")

    section = data.get("scheduling") or {}
    if not isinstance(section, dict):
        raise ValueError(f"{config_path.name}: 'scheduling' must be a mapping")

    overrides = {}
    for key, value in section.items():
        if key not in _FIELDS:
            logger.warning(f"Unknown scheduling setting ignored: {key}")
            continue
        if isinstance(value, bool) or not isinstance(value, int) or value <= 0:
            logger.warning(f"Invalid value for {key}: {value!r}")
            continue
        overrides[key] = value

    return replace(defaults, **overrides)
