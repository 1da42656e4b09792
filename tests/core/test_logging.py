from __future__ import annotations

import json
import logging
import sys

from tracker.core.logging import (
    RequestIdFilter,
    _ContainerFormatter,
    _JsonFormatter,
    request_id_var,
    setup_logging,
)


def _record(
    level: int = logging.INFO,
    msg: str = "hello",
    args: tuple = (),
    *,
    name: str = "test",
    pathname: str = "test.py",
    lineno: int = 1,
    exc_info=None,
) -> logging.LogRecord:
    return logging.LogRecord(
        name=name,
        level=level,
        pathname=pathname,
        lineno=lineno,
        msg=msg,
        args=args,
        exc_info=exc_info,
    )


# ---- setup_logging ----


def test_setup_logging_sets_root_level() -> None:
    setup_logging("debug")
    assert logging.getLogger().level == logging.DEBUG

    setup_logging("warning")
    assert logging.getLogger().level == logging.WARNING


def test_setup_logging_defaults_to_info_for_unknown_level() -> None:
    setup_logging("nonexistent")
    assert logging.getLogger().level == logging.INFO


def test_setup_logging_quiets_sqlalchemy_at_debug() -> None:
    setup_logging("debug")
    assert logging.getLogger("sqlalchemy.engine").level == logging.WARNING
    assert logging.getLogger("uvicorn").level == logging.WARNING


def test_setup_logging_installs_request_id_filter() -> None:
    setup_logging("info")
    assert any(
        isinstance(f, RequestIdFilter)
        for h in logging.getLogger().handlers
        for f in h.filters
    )


# ---- request id ----


def test_filter_stamps_current_request_id() -> None:
    token = request_id_var.set("req-42")
    try:
        record = _record()
        RequestIdFilter().filter(record)
    finally:
        request_id_var.reset(token)
    assert record.request_id == "req-42"  # type: ignore[attr-defined]


def test_filter_defaults_outside_a_request() -> None:
    record = _record()
    RequestIdFilter().filter(record)
    assert record.request_id == "-"  # type: ignore[attr-defined]


def test_container_formatter_shows_request_id() -> None:
    record = _record(msg="created")
    record.request_id = "abc-123"  # type: ignore[attr-defined]
    assert "[abc-123]" in _ContainerFormatter().format(record)


def test_container_formatter_tolerates_missing_request_id() -> None:
    output = _ContainerFormatter().format(_record(msg="boot"))
    assert "[-]" in output
    assert "boot" in output


# ---- container format ----


def test_formatter_excludes_location_for_info() -> None:
    output = _ContainerFormatter().format(_record())
    assert "hello" in output
    assert "[test.py:" not in output


def test_formatter_includes_location_for_warning() -> None:
    output = _ContainerFormatter().format(
        _record(logging.WARNING, "bad thing", lineno=42)
    )
    assert "bad thing" in output
    assert "[test.py:42]" in output


def test_container_formatter_is_not_json() -> None:
    output = _ContainerFormatter().format(
        _record(name="tracker.main", msg="server started")
    )
    assert "INFO" in output
    assert "tracker.main" in output
    try:
        json.loads(output)
        raise AssertionError("Container format should not be valid JSON")
    except json.JSONDecodeError:
        pass


# ---- JSON format ----


def test_json_formatter_produces_valid_json() -> None:
    output = _JsonFormatter().format(
        _record(msg="Hello %s", args=("world",), name="test.logger")
    )
    parsed = json.loads(output)
    assert parsed["level"] == "INFO"
    assert parsed["logger"] == "test.logger"
    assert parsed["message"] == "Hello world"
    assert "timestamp" in parsed


def test_json_formatter_includes_context_fields() -> None:
    record = _record(msg="Updated progress")
    record.request_id = "abc-123"  # type: ignore[attr-defined]
    record.learner_id = "4d0f"  # type: ignore[attr-defined]
    record.project_id = "9e1a"  # type: ignore[attr-defined]
    record.duration_ms = 12.5  # type: ignore[attr-defined]

    parsed = json.loads(_JsonFormatter().format(record))
    assert parsed["request_id"] == "abc-123"
    assert parsed["learner_id"] == "4d0f"
    assert parsed["project_id"] == "9e1a"
    assert parsed["duration_ms"] == 12.5
    assert "curriculum_id" not in parsed


def test_json_formatter_includes_exception_info() -> None:
    try:
        raise ValueError("test error")
    except ValueError:
        record = _record(logging.ERROR, "Something failed", exc_info=sys.exc_info())
        output = _JsonFormatter().format(record)

    parsed = json.loads(output)
    assert "ValueError: test error" in parsed["exception"]
