"""
Tests for engine configuration loading.

Covers:
- Defaults
- Environment overrides
- Validation (ConfigurationError)
- Process-wide instance override
"""

from __future__ import annotations

import pytest

from src.config.engine import (
    DEFAULT_BALANCE_WINDOW_DAYS,
    DEFAULT_TIMEZONE,
    EngineConfig,
    get_engine_config,
    load_engine_config,
    set_engine_config,
)
from src.lib.exceptions import ConfigurationError


class TestDefaults:
    def test_defaults(self) -> None:
        config = load_engine_config({})
        assert config.timezone == DEFAULT_TIMEZONE
        assert config.balance_window_days == DEFAULT_BALANCE_WINDOW_DAYS == 90
        assert config.trend_margin == 0.05
        assert config.easy_threshold == 80
        assert config.hard_threshold == 30
        assert config.occurrence_horizon_days == 365


class TestEnvironment:
    def test_overrides(self) -> None:
        config = load_engine_config(
            {
                "PLANNER_TIMEZONE": "UTC",
                "PLANNER_BALANCE_WINDOW_DAYS": "30",
                "PLANNER_TREND_MARGIN": "0.1",
                "PLANNER_EASY_THRESHOLD": "75",
                "PLANNER_HARD_THRESHOLD": "25.5",
                "PLANNER_OCCURRENCE_HORIZON_DAYS": "730",
            }
        )
        assert config == EngineConfig(
            timezone="UTC",
            balance_window_days=30,
            trend_margin=0.1,
            easy_threshold=75,
            hard_threshold=25.5,
            occurrence_horizon_days=730,
        )

    def test_blank_values_use_defaults(self) -> None:
        assert load_engine_config({"PLANNER_BALANCE_WINDOW_DAYS": "  "}).balance_window_days == 90

    def test_reads_os_environ(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("PLANNER_BALANCE_WINDOW_DAYS", "14")
        assert load_engine_config().balance_window_days == 14

    @pytest.mark.parametrize(
        "env",
        [
            {"PLANNER_BALANCE_WINDOW_DAYS": "ninety"},
            {"PLANNER_BALANCE_WINDOW_DAYS": "0"},
            {"PLANNER_TREND_MARGIN": "-0.1"},
            {"PLANNER_EASY_THRESHOLD": "20"},
            {"PLANNER_HARD_THRESHOLD": "-1"},
            {"PLANNER_EASY_THRESHOLD": "101"},
            {"PLANNER_OCCURRENCE_HORIZON_DAYS": "0"},
            {"PLANNER_TIMEZONE": "Mars/Olympus"},
        ],
    )
    def test_invalid(self, env: dict[str, str]) -> None:
        with pytest.raises(ConfigurationError):
            load_engine_config(env)


class TestProcessWideConfig:
    def test_set_and_reset(self, monkeypatch: pytest.MonkeyPatch) -> None:
        custom = EngineConfig(balance_window_days=7)
        set_engine_config(custom)
        assert get_engine_config() is custom

        monkeypatch.setenv("PLANNER_BALANCE_WINDOW_DAYS", "21")
        set_engine_config(None)
        assert get_engine_config().balance_window_days == 21
        assert get_engine_config() is get_engine_config()
