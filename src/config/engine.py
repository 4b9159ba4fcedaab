"""
Engine Configuration for the planning engine.

Tunable thresholds used by the progress aggregator and the recurrence
evaluator. Every threshold is exposed here instead of living as a magic
constant inside the computation.

Environment variables:
- PLANNER_TIMEZONE: IANA timezone used to derive local calendar dates
- PLANNER_BALANCE_WINDOW_DAYS: Recent window for aspiration balances
- PLANNER_TREND_MARGIN: Relative margin between recent and historical XP rate
- PLANNER_EASY_THRESHOLD: Recent completion rate at or above which an aspiration is "easy"
- PLANNER_HARD_THRESHOLD: Recent completion rate below which an aspiration is "hard"
- PLANNER_OCCURRENCE_HORIZON_DAYS: Search horizon for next/upcoming occurrences
"""

from __future__ import annotations

import os
from collections.abc import Mapping
from dataclasses import dataclass
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from src.lib.exceptions import ConfigurationError

DEFAULT_TIMEZONE = "Europe/Prague"
DEFAULT_BALANCE_WINDOW_DAYS = 90
DEFAULT_TREND_MARGIN = 0.05
DEFAULT_EASY_THRESHOLD = 80.0
DEFAULT_HARD_THRESHOLD = 30.0
DEFAULT_OCCURRENCE_HORIZON_DAYS = 365


@dataclass(frozen=True)
class EngineConfig:
    """Thresholds and defaults for the planning engine."""

    timezone: str = DEFAULT_TIMEZONE
    balance_window_days: int = DEFAULT_BALANCE_WINDOW_DAYS
    trend_margin: float = DEFAULT_TREND_MARGIN
    easy_threshold: float = DEFAULT_EASY_THRESHOLD
    hard_threshold: float = DEFAULT_HARD_THRESHOLD
    occurrence_horizon_days: int = DEFAULT_OCCURRENCE_HORIZON_DAYS

    def __post_init__(self) -> None:
        try:
            ZoneInfo(self.timezone)
        except (ZoneInfoNotFoundError, ValueError) as e:
            raise ConfigurationError(f"Unknown timezone: {self.timezone!r}") from e
        if self.balance_window_days < 1:
            raise ConfigurationError("balance_window_days must be at least 1")
        if self.trend_margin < 0:
            raise ConfigurationError("trend_margin must not be negative")
        if not 0 <= self.hard_threshold <= self.easy_threshold <= 100:
            raise ConfigurationError(
                "thresholds must satisfy 0 <= hard_threshold <= easy_threshold <= 100"
            )
        if self.occurrence_horizon_days < 1:
            raise ConfigurationError("occurrence_horizon_days must be at least 1")


def _env_number(env: Mapping[str, str], key: str, default: float, cast: type) -> float:
    raw = env.get(key)
    if raw is None or raw.strip() == "":
        return default
    try:
        return cast(raw.strip())
    except ValueError as e:
        raise ConfigurationError(f"{key} must be a number, got {raw!r}") from e


def load_engine_config(env: Mapping[str, str] | None = None) -> EngineConfig:
    """
    Build an EngineConfig from environment variables.

    Args:
        env: Mapping to read from (defaults to os.environ)

    Returns:
        Validated EngineConfig

    Raises:
        ConfigurationError: If a variable is malformed or out of range
    """
    env = os.environ if env is None else env
    return EngineConfig(
        timezone=env.get("PLANNER_TIMEZONE", DEFAULT_TIMEZONE),
        balance_window_days=int(
            _env_number(env, "PLANNER_BALANCE_WINDOW_DAYS", DEFAULT_BALANCE_WINDOW_DAYS, int)
        ),
        trend_margin=_env_number(env, "PLANNER_TREND_MARGIN", DEFAULT_TREND_MARGIN, float),
        easy_threshold=_env_number(env, "PLANNER_EASY_THRESHOLD", DEFAULT_EASY_THRESHOLD, float),
        hard_threshold=_env_number(env, "PLANNER_HARD_THRESHOLD", DEFAULT_HARD_THRESHOLD, float),
        occurrence_horizon_days=int(
            _env_number(
                env,
                "PLANNER_OCCURRENCE_HORIZON_DAYS",
                DEFAULT_OCCURRENCE_HORIZON_DAYS,
                int,
            )
        ),
    )


# =============================================================================
# Module-level instance
# =============================================================================

_config: EngineConfig | None = None


def get_engine_config() -> EngineConfig:
    """Get the process-wide EngineConfig, loading it from the environment once."""
    global _config
    if _config is None:
        _config = load_engine_config()
    return _config


def set_engine_config(config: EngineConfig | None) -> None:
    """Override the process-wide EngineConfig (None resets to lazy loading)."""
    global _config
    _config = config


__all__ = [
    "DEFAULT_TIMEZONE",
    "DEFAULT_BALANCE_WINDOW_DAYS",
    "DEFAULT_TREND_MARGIN",
    "DEFAULT_EASY_THRESHOLD",
    "DEFAULT_HARD_THRESHOLD",
    "DEFAULT_OCCURRENCE_HORIZON_DAYS",
    "EngineConfig",
    "load_engine_config",
    "get_engine_config",
    "set_engine_config",
]
