"""Tests for JSON log formatting and correlation IDs."""

import json
import logging
import sys

import pytest

from app.core.logging import (
    CorrelationIdFilter,
    StructuredFormatter,
    clear_correlation_id,
    correlation_id_var,
    log_context,
    set_correlation_id,
)
from app.core.middleware import resolve_correlation_id


@pytest.fixture(autouse=True)
def reset_correlation_id():
    clear_correlation_id()
    yield
    clear_correlation_id()


def make_record(msg: str = "Published object", exc_info=None, **extra) -> logging.LogRecord:
    record = logging.LogRecord(
        name="app.core.storage",
        level=logging.INFO,
        pathname=__file__,
        lineno=10,
        msg=msg,
        args=(),
        exc_info=exc_info,
    )
    for key, value in extra.items():
        setattr(record, key, value)
    return record


class TestStructuredFormatter:
    """Records become one JSON object per line."""

    def test_includes_correlation_id_and_extra(self) -> None:
        set_correlation_id("req-123")
        record = make_record(key="landscape/abc.mp4", size=42)
        CorrelationIdFilter().filter(record)

        data = json.loads(StructuredFormatter().format(record))

        assert data["message"] == "Published object"
        assert data["level"] == "INFO"
        assert data["logger"] == "app.core.storage"
        assert data["correlation_id"] == "req-123"
        assert data["extra"] == {"key": "landscape/abc.mp4", "size": 42}

    def test_unserializable_extra_is_stringified(self) -> None:
        record = make_record(path=object())
        data = json.loads(StructuredFormatter().format(record))
        assert isinstance(data["extra"]["path"], str)

    def test_exception_details(self) -> None:
        try:
            raise RuntimeError("ffprobe exited with status 1")
        except RuntimeError:
            record = make_record("Video upload failed", exc_info=sys.exc_info())

        data = json.loads(StructuredFormatter().format(record))

        assert data["exception"]["type"] == "RuntimeError"
        assert data["exception"]["message"] == "ffprobe exited with status 1"
        assert any("RuntimeError" in line for line in data["exception"]["stack_trace"])

    def test_stack_trace_can_be_omitted(self) -> None:
        try:
            raise ValueError("bad")
        except ValueError:
            record = make_record(exc_info=sys.exc_info())

        data = json.loads(StructuredFormatter(include_stack_trace=False).format(record))
        assert "exception" not in data


class TestCorrelationIdFilter:
    """Outside a request nothing invents or stores a correlation ID."""

    def test_filter_outside_request_leaves_id_unset(self) -> None:
        record = make_record()
        CorrelationIdFilter().filter(record)

        assert record.correlation_id is None
        assert correlation_id_var.get() is None

    def test_formatter_does_not_mint_id(self) -> None:
        first = make_record()
        second = make_record()
        CorrelationIdFilter().filter(first)

        assert json.loads(StructuredFormatter().format(first))["correlation_id"] is None
        assert json.loads(StructuredFormatter().format(second))["correlation_id"] is None
        assert correlation_id_var.get() is None


class TestLogContext:
    """Fields bound with log_context reach every record in the block."""

    def test_bound_fields_are_formatted(self) -> None:
        with log_context(video_id="v1"):
            with log_context(user_id="u1"):
                record = make_record()
                CorrelationIdFilter().filter(record)

        data = json.loads(StructuredFormatter().format(record))
        assert data["context"] == {"video_id": "v1", "user_id": "u1"}
        assert "extra" not in data

    def test_fields_unbound_after_block(self) -> None:
        with log_context(video_id="v1"):
            pass
        record = make_record()
        CorrelationIdFilter().filter(record)
        assert record.context == {}


class TestResolveCorrelationId:
    def test_keeps_well_formed_header(self) -> None:
        assert resolve_correlation_id("req-123.abc") == "req-123.abc"

    @pytest.mark.parametrize("value", [None, "", "has spaces", "x" * 200, "line\nbreak", "trailing\n"])
    def test_replaces_bad_header(self, value) -> None:
        generated = resolve_correlation_id(value)
        assert generated != value
        assert len(generated) == 32
