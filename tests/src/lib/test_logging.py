"""
Tests for structured logging configuration.
"""

from __future__ import annotations

import json
import logging

import pytest
import structlog

from src.lib.logging import (
    DATA_QUALITY_CATEGORY,
    ENGINE_LOGGER_NAME,
    add_engine_timezone,
    setup_logging,
    tag_data_quality,
)


@pytest.fixture(autouse=True)
def _restore_logging():
    root = logging.getLogger()
    engine = logging.getLogger(ENGINE_LOGGER_NAME)
    handlers, level, engine_level = list(root.handlers), root.level, engine.level
    yield
    structlog.reset_defaults()
    root.handlers[:] = handlers
    root.setLevel(level)
    engine.setLevel(engine_level)


class TestSetupLogging:
    def test_level_override(self) -> None:
        setup_logging("warning")
        assert logging.getLogger().level == logging.WARNING

    def test_level_from_env(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("LOG_LEVEL", "ERROR")
        setup_logging()
        assert logging.getLogger().level == logging.ERROR

    def test_single_handler(self) -> None:
        setup_logging()
        setup_logging()
        assert len(logging.getLogger().handlers) == 1

    @pytest.mark.parametrize("dev_mode", ["0", "1"])
    def test_renderer_selection(self, monkeypatch: pytest.MonkeyPatch, dev_mode: str) -> None:
        monkeypatch.setenv("PLANNER_DEV_MODE", dev_mode)
        setup_logging()
        formatter = logging.getLogger().handlers[0].formatter
        assert isinstance(formatter, structlog.stdlib.ProcessorFormatter)

    def test_engine_level(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("PLANNER_ENGINE_LOG_LEVEL", "debug")
        setup_logging("warning")
        assert logging.getLogger(ENGINE_LOGGER_NAME).level == logging.DEBUG
        assert logging.getLogger().level == logging.WARNING

    def test_engine_level_unset_inherits_root(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.delenv("PLANNER_ENGINE_LOG_LEVEL", raising=False)
        setup_logging()
        assert logging.getLogger(ENGINE_LOGGER_NAME).level == logging.NOTSET

    def test_json_output_carries_engine_context(
        self,
        monkeypatch: pytest.MonkeyPatch,
        capsys: pytest.CaptureFixture[str],
    ) -> None:
        monkeypatch.setenv("PLANNER_DEV_MODE", "0")
        setup_logging()
        structlog.get_logger("src.services.recurrence").warning(
            "recurrence_unknown_kind",
            signal="unknown_recurrence_kind",
            item_id="h1",
        )
        line = capsys.readouterr().err.strip().splitlines()[-1]
        record = json.loads(line)
        assert record["event"] == "recurrence_unknown_kind"
        assert record["category"] == DATA_QUALITY_CATEGORY
        assert record["engine_tz"] == "Europe/Prague"
        assert record["logger"] == "src.services.recurrence"


class TestProcessors:
    def test_signal_events_tagged(self) -> None:
        event = tag_data_quality(None, "debug", {"event": "x", "signal": "degenerate_ratio"})
        assert event["category"] == DATA_QUALITY_CATEGORY

    def test_operational_events_untagged(self) -> None:
        event = tag_data_quality(None, "warning", {"event": "engine_item_skipped"})
        assert "category" not in event

    def test_engine_timezone_from_config(self) -> None:
        assert add_engine_timezone(None, "info", {"event": "x"})["engine_tz"] == "Europe/Prague"
