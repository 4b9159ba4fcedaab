"""
Structured logging configuration for the planning engine.

Configures structlog to work alongside stdlib logging so that both
`logging.getLogger()` and `structlog.get_logger()` produce consistent,
structured JSON output in production and human-readable output in dev.

The engine itself never configures logging; the embedding application
calls setup_logging() once. Engine modules only emit events such as
`recurrence_unknown_kind` (data-quality signal) with key/value context.

Engine events carrying a `signal` key (recurrence_unknown_kind,
progress_degenerate_ratio, automation_degenerate_target) are tagged with
`category="data_quality"` so they can be routed separately from
operational events (engine_item_skipped, snapshot_record_rejected,
automation_accrual_applied). Every event also records the engine timezone
that "today" was resolved in.

Environment:
    LOG_LEVEL: Root log level (default INFO)
    PLANNER_ENGINE_LOG_LEVEL: Level for the engine's own loggers; set to
        DEBUG to see degenerate-ratio signals without debug noise elsewhere
    PLANNER_DEV_MODE: "1" for console output instead of JSON

Usage:
    from src.lib.logging import setup_logging

    setup_logging()  # Call once at application startup
"""

import logging
import os
import sys
from typing import Any

import structlog

from src.config.engine import get_engine_config

ENGINE_LOGGER_NAME = "src"
DATA_QUALITY_CATEGORY = "data_quality"


def tag_data_quality(
    logger: Any, method_name: str, event_dict: dict[str, Any]
) -> dict[str, Any]:
    """Mark events that carry a data-quality signal."""
    if "signal" in event_dict:
        event_dict.setdefault("category", DATA_QUALITY_CATEGORY)
    return event_dict


def add_engine_timezone(
    logger: Any, method_name: str, event_dict: dict[str, Any]
) -> dict[str, Any]:
    event_dict.setdefault("engine_tz", get_engine_config().timezone)
    return event_dict


def setup_logging(level: str | None = None) -> None:
    """
    Configure structlog and stdlib logging for the application.

    In development (PLANNER_DEV_MODE=1): human-readable colored console output.
    In production: JSON-formatted structured logs.

    Args:
        level: Optional log level override (defaults to LOG_LEVEL or INFO)
    """
    dev_mode = os.environ.get("PLANNER_DEV_MODE") == "1"
    log_level = (level or os.environ.get("LOG_LEVEL", "INFO")).upper()
    engine_level = os.environ.get("PLANNER_ENGINE_LOG_LEVEL", "").upper()

    shared_processors: list[structlog.types.Processor] = [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.add_log_level,
        tag_data_quality,
        add_engine_timezone,
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.UnicodeDecoder(),
    ]

    if dev_mode:
        renderer = structlog.dev.ConsoleRenderer()
    else:
        renderer = structlog.processors.JSONRenderer()

    structlog.configure(
        processors=[
            *shared_processors,
            structlog.stdlib.ProcessorFormatter.wrap_for_formatter,
        ],
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )

    formatter = structlog.stdlib.ProcessorFormatter(
        processors=[
            structlog.stdlib.ProcessorFormatter.remove_processors_meta,
            renderer,
        ],
    )

    handler = logging.StreamHandler(sys.stderr)
    handler.setFormatter(formatter)

    root_logger = logging.getLogger()
    root_logger.handlers.clear()
    root_logger.addHandler(handler)
    root_logger.setLevel(getattr(logging, log_level, logging.INFO))

    engine_logger = logging.getLogger(ENGINE_LOGGER_NAME)
    engine_logger.setLevel(getattr(logging, engine_level, logging.NOTSET))
