from __future__ import annotations

import os
from pathlib import Path

APP_ENV_HOME = "STUDYTIME_HOME"
APP_ENV_FREE_TIME_FILE = "STUDYTIME_FREE_TIME_FILE"
APP_ENV_QUESTIONS_FILE = "STUDYTIME_QUESTIONS_FILE"


def app_home() -> Path:
    """
    User-writable home for studytime.
    Override with STUDYTIME_HOME.
    """
    if os.environ.get(APP_ENV_HOME):
        return Path(os.environ[APP_ENV_HOME]).expanduser().resolve()
    return (Path.home() / ".studytime").resolve()


def data_dir() -> Path:
    d = app_home() / "data"
    d.mkdir(parents=True, exist_ok=True)
    return d


def free_time_file() -> Path:
    """
    Free-time ledger path.

    Resolution order:
    1. STUDYTIME_FREE_TIME_FILE env var (explicit override)
    2. ~/.studytime/data/available_times.json (default)

    Lock files live in a locks/ directory beside whichever file is used.
    """
    if os.environ.get(APP_ENV_FREE_TIME_FILE):
        return Path(os.environ[APP_ENV_FREE_TIME_FILE]).expanduser().resolve()
    return data_dir() / "available_times.json"


def questions_file() -> Path:
    """
    Course question progress path.

    Resolution order:
    1. STUDYTIME_QUESTIONS_FILE env var (explicit override)
    2. ~/.studytime/data/questions.json (default)
    """
    if os.environ.get(APP_ENV_QUESTIONS_FILE):
        return Path(os.environ[APP_ENV_QUESTIONS_FILE]).expanduser().resolve()
    return data_dir() / "questions.json"
