"""Unit tests for sitebook.logging."""

from __future__ import annotations

import json
import logging
import logging.handlers
from io import StringIO
from pathlib import Path
from typing import Any

import pytest
import structlog

from sitebook.config import LoggingConfig
from sitebook.logging import (
    add_correlation_id,
    bind_project_context,
    get_correlation_id,
    get_logger,
    render_enum_values,
    set_correlation_id,
    setup_logging,
)
from sitebook.orchestrator.phase_registry import ProjectPhase

JSON_INFO = LoggingConfig(level="INFO", format="json")


@pytest.fixture(autouse=True)
def clean_logging() -> None:
    logging.getLogger().handlers.clear()
    structlog.reset_defaults()
    structlog.contextvars.clear_contextvars()
    set_correlation_id(None)


@pytest.fixture
def stream() -> StringIO:
    return StringIO()


def _configure(config: LoggingConfig, stream: StringIO) -> None:
    setup_logging(config)
    logging.getLogger().handlers[0].stream = stream


def _events(stream: StringIO) -> list[dict[str, Any]]:
    return [json.loads(line) for line in stream.getvalue().splitlines() if line.strip()]


class TestRendering:
    def test_json_event_fields(self, stream: StringIO) -> None:
        _configure(JSON_INFO, stream)

        get_logger("sitebook.orchestrator.transition").info(
            "phase_transition_confirmed", to_phase="contracted", warnings=1
        )

        [event] = _events(stream)
        assert event["event"] == "phase_transition_confirmed"
        assert event["to_phase"] == "contracted"
        assert event["warnings"] == 1
        assert event["level"] == "info"
        assert event["logger"] == "sitebook.orchestrator.transition"
        assert "timestamp" in event

    def test_console_is_not_json(self, stream: StringIO) -> None:
        _configure(LoggingConfig(level="DEBUG", format="console"), stream)

        get_logger("sitebook.cli.framing").debug("framing_calculated", opening="W1")

        output = stream.getvalue()
        assert "framing_calculated" in output
        assert "W1" in output
        with pytest.raises(json.JSONDecodeError):
            json.loads(output.strip())

    def test_phases_logged_by_value(self, stream: StringIO) -> None:
        _configure(JSON_INFO, stream)

        get_logger("sitebook.database.gateway").info("phase_seen", to_phase=ProjectPhase.punch_list)

        assert _events(stream)[0]["to_phase"] == "punch_list"

    def test_enum_processor_leaves_plain_values(self) -> None:
        assert render_enum_values(None, "info", {"opening": "W1", "count": 2}) == {
            "opening": "W1",
            "count": 2,
        }

    def test_exception_traceback_included(self, stream: StringIO) -> None:
        _configure(JSON_INFO, stream)

        try:
            raise RuntimeError("store unreadable")
        except RuntimeError:
            get_logger("sitebook.calculators.saved_openings").exception("store_read_failed")

        [event] = _events(stream)
        assert event["level"] == "error"
        assert "RuntimeError: store unreadable" in event["exception"]


class TestLevels:
    def test_below_threshold_dropped(self, stream: StringIO) -> None:
        _configure(JSON_INFO, stream)
        logger = get_logger("sitebook.web.middleware")

        logger.debug("request_completed", path="/health/")
        assert stream.getvalue() == ""

        logger.warning("request_completed", path="/projects/")
        assert [e["path"] for e in _events(stream)] == ["/projects/"]

    def test_driver_loggers_held_at_warning(self) -> None:
        setup_logging(LoggingConfig(level="DEBUG", format="console"))

        assert logging.getLogger("aiosqlite").level == logging.WARNING
        assert logging.getLogger().level == logging.DEBUG


class TestContext:
    def test_correlation_id_attached_while_set(self, stream: StringIO) -> None:
        _configure(JSON_INFO, stream)
        logger = get_logger("sitebook.web.middleware")

        set_correlation_id("req-7f3a")
        assert get_correlation_id() == "req-7f3a"
        logger.info("inside_request")
        set_correlation_id(None)
        logger.info("outside_request")

        inside, outside = _events(stream)
        assert inside["correlation_id"] == "req-7f3a"
        assert "correlation_id" not in outside

    def test_correlation_processor(self) -> None:
        assert add_correlation_id(None, "info", {"event": "x"}) == {"event": "x"}

        set_correlation_id("req-1")
        assert add_correlation_id(None, "info", {"event": "x"})["correlation_id"] == "req-1"

    def test_project_context_spans_loggers(self, stream: StringIO) -> None:
        _configure(JSON_INFO, stream)

        bind_project_context(project_id="p-42", phase="quoted")
        get_logger("sitebook.orchestrator.transition").info("phase_transition_initiated")
        get_logger("sitebook.database.gateway").info("project_phase_updated")

        for event in _events(stream):
            assert (event["project_id"], event["phase"]) == ("p-42", "quoted")

    def test_phase_omitted_when_unknown(self, stream: StringIO) -> None:
        _configure(JSON_INFO, stream)

        bind_project_context(project_id="p-7")
        get_logger("sitebook.web.routes.projects").info("project_fetched")

        [event] = _events(stream)
        assert event["project_id"] == "p-7"
        assert "phase" not in event


class TestFileOutput:
    def test_rotating_file(self, tmp_path: Path) -> None:
        log_file = tmp_path / "logs" / "sitebook.log"

        setup_logging(
            LoggingConfig(format="json", file=log_file, rotation_size_mb=10, retention_count=3)
        )

        handler = logging.getLogger().handlers[0]
        assert isinstance(handler, logging.handlers.RotatingFileHandler)
        assert (handler.maxBytes, handler.backupCount) == (10 * 1024 * 1024, 3)
        assert log_file.exists()

        get_logger("sitebook.main").info("schema_created", tables=["projects"])
        handler.flush()

        assert json.loads(log_file.read_text().strip())["event"] == "schema_created"
