"""
Test configuration - ensures repo root is in sys.path + isolation guards.

This allows tests to import from top-level packages (studytime, api, cli).
Every test runs with STUDYTIME_HOME pointed at a temp directory, so nothing
reads or writes the real free-time ledger under ~/.studytime.
"""

import sys
from pathlib import Path

import pytest

REPO_ROOT = Path(__file__).parent.parent
if str(REPO_ROOT) not in sys.path:
    sys.path.insert(0, str(REPO_ROOT))

from studytime.config import SchedulingConfig  # noqa: E402
from studytime.free_time_store import FreeTimeStore  # noqa: E402
from studytime.sync import FreeTimeSync  # noqa: E402

LIVE_HOME = Path.home() / ".studytime"


# =============================================================================
# ISOLATION GUARD: never touch the live ledger
# =============================================================================


@pytest.fixture(autouse=True)
def isolated_app_home(tmp_path, monkeypatch):
    """Point STUDYTIME_HOME at a temp dir for every test."""
    home = tmp_path / "studytime_home"
    monkeypatch.setenv("STUDYTIME_HOME", str(home))
    monkeypatch.delenv("STUDYTIME_FREE_TIME_FILE", raising=False)
    monkeypatch.delenv("STUDYTIME_QUESTIONS_FILE", raising=False)
    yield home
    assert not str(home).startswith(str(LIVE_HOME)), "Test wrote under the live app home"


# =============================================================================
# FIXTURES
# =============================================================================


@pytest.fixture
def settings():
    """Scheduling settings pinned to the documented defaults."""
    return SchedulingConfig(min_keep_minutes=5, block_minutes=5, window_days=7, reminders_per_batch=10)


@pytest.fixture
def ledger_path(tmp_path):
    return tmp_path / "available_times.json"


@pytest.fixture
def store(ledger_path, settings):
    return FreeTimeStore(ledger_path, min_keep=settings.min_keep)


@pytest.fixture
def sync(store, settings):
    return FreeTimeSync(store=store, settings=settings)
