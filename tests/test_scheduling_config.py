"""
Tests for scheduling settings loaded from config/scheduling.yaml.
"""

import logging
from datetime import timedelta

import pytest
import yaml

from studytime import config
from studytime.config import SchedulingConfig, load_scheduling_config


def _write(tmp_path, text):
    path = tmp_path / "scheduling.yaml"
    path.write_text(text)
    return str(path)


class TestLoadSchedulingConfig:
    def test_shipped_config_matches_defaults(self):
        settings = load_scheduling_config()
        assert settings.min_keep == timedelta(minutes=5)
        assert settings.block == timedelta(minutes=5)
        assert settings.window == timedelta(days=7)
        assert settings.reminders_per_batch == 10

    def test_missing_file_gives_defaults(self, tmp_path):
        assert load_scheduling_config(str(tmp_path / "absent.yaml")) == SchedulingConfig()

    def test_empty_file_gives_defaults(self, tmp_path):
        assert load_scheduling_config(_write(tmp_path, "")) == SchedulingConfig()

    def test_overrides(self, tmp_path):
        path = _write(tmp_path, "scheduling:\n  block_minutes: 2\n  window_days: 14\n")
        settings = load_scheduling_config(path)
        assert settings.block == timedelta(minutes=2)
        assert settings.window_days == 14
        assert settings.min_keep_minutes == config.MIN_KEEP_MINUTES

    def test_invalid_values_ignored(self, tmp_path, caplog):
        path = _write(
            tmp_path,
            "scheduling:\n  block_minutes: 0\n  window_days: seven\n  min_keep_minutes: true\n",
        )
        with caplog.at_level(logging.WARNING, logger="studytime.config"):
            settings = load_scheduling_config(path)
        assert settings == SchedulingConfig()
        assert "block_minutes" in caplog.text
        assert "window_days" in caplog.text

    def test_unknown_keys_ignored(self, tmp_path, caplog):
        path = _write(tmp_path, "scheduling:\n  lunch_minutes: 60\n")
        with caplog.at_level(logging.WARNING, logger="studytime.config"):
            assert load_scheduling_config(path) == SchedulingConfig()
        assert "lunch_minutes" in caplog.text

    def test_top_level_must_be_mapping(self, tmp_path):
        with pytest.raises(ValueError):
            load_scheduling_config(_write(tmp_path, "- 1\n- 2\n"))

    def test_section_must_be_mapping(self, tmp_path):
        with pytest.raises(ValueError):
            load_scheduling_config(_write(tmp_path, "scheduling: 5\n"))

    def test_invalid_yaml_raises(self, tmp_path):
        with pytest.raises(yaml.YAMLError):
            load_scheduling_config(_write(tmp_path, "scheduling: [unclosed\n"))
