"""Tests for the structured logging system (freight_kernel/logging_config.py)."""

import json
import logging
from datetime import date
from decimal import Decimal
from io import StringIO
from uuid import uuid4

import pytest

from freight_kernel.domain.enums import DocumentKind
from freight_kernel.logging_config import (
    LogContext,
    StructuredFormatter,
    configure_logging,
    get_logger,
)


def _make_handler() -> tuple[logging.Handler, StringIO]:
    stream = StringIO()
    handler = logging.StreamHandler(stream)
    handler.setFormatter(StructuredFormatter())
    return handler, stream


def _parse_log(stream: StringIO) -> dict:
    """Parse the first JSON log line from a stream."""
    line = stream.getvalue().strip().split("\n")[0]
    return json.loads(line)


def _parse_all_logs(stream: StringIO) -> list[dict]:
    lines = stream.getvalue().strip().split("\n")
    return [json.loads(line) for line in lines if line]


# ---------------------------------------------------------------------------
# StructuredFormatter tests
# ---------------------------------------------------------------------------


class TestStructuredFormatter:
    """Tests for JSON log output format."""

    def test_basic_json_output(self):
        handler, stream = _make_handler()
        configure_logging(handler=handler)
        get_logger("test").info("hello")

        record = _parse_log(stream)
        assert record["level"] == "INFO"
        assert record["message"] == "hello"
        assert record["logger"] == "freight_ledger.test"
        assert "ts" in record

    def test_extra_fields_included(self):
        handler, stream = _make_handler()
        configure_logging(handler=handler)
        get_logger("test").info("rebuilt", extra={"entry_count": 7, "state": "ok"})

        record = _parse_log(stream)
        assert record["entry_count"] == 7
        assert record["state"] == "ok"

    def test_context_fields_included(self):
        handler, stream = _make_handler()
        configure_logging(handler=handler)
        LogContext.set(correlation_id="abc-123", document_id="m-1")
        get_logger("test").info("test_msg")

        record = _parse_log(stream)
        assert record["correlation_id"] == "abc-123"
        assert record["document_id"] == "m-1"

    def test_exception_fields(self):
        handler, stream = _make_handler()
        configure_logging(handler=handler)
        logger = get_logger("test")
        try:
            raise ValueError("boom")
        except ValueError:
            logger.error("failed", exc_info=True)

        record = _parse_log(stream)
        assert record["exc_type"] == "ValueError"
        assert record["exc_message"] == "boom"
        assert "traceback" in record

    def test_freight_exception_code_extracted(self):
        """Freight kernel exceptions carry a .code attribute and their context."""
        handler, stream = _make_handler()
        configure_logging(handler=handler)
        logger = get_logger("test")
        from freight_kernel.exceptions import MissingFieldError

        try:
            raise MissingFieldError("BankTransaction", "related_id")
        except MissingFieldError:
            logger.error("shape_error", exc_info=True)

        record = _parse_log(stream)
        assert record["exc_code"] == "MISSING_FIELD"
        assert record["exc_type"] == "MissingFieldError"
        assert record["exc_entity"] == "BankTransaction"
        assert record["exc_field"] == "related_id"

    def test_no_context_fields_when_empty(self):
        handler, stream = _make_handler()
        configure_logging(handler=handler)
        get_logger("test").info("bare_message")

        record = _parse_log(stream)
        assert "correlation_id" not in record
        assert "document_id" not in record

    def test_domain_values_serialized(self):
        handler, stream = _make_handler()
        configure_logging(handler=handler)
        uid = uuid4()
        get_logger("test").info(
            "with_values",
            extra={
                "run_id": uid,
                "amount": Decimal("5400.00"),
                "on": date(2024, 1, 20),
                "kind": DocumentKind.MEMO,
            },
        )

        record = _parse_log(stream)
        assert record["run_id"] == str(uid)
        assert record["amount"] == "5400.00"
        assert record["on"] == "2024-01-20"
        assert record["kind"] == "memo"

    def test_valid_json_every_line(self):
        handler, stream = _make_handler()
        configure_logging(handler=handler)
        logger = get_logger("test")
        logger.info("first")
        logger.warning("second", extra={"k": "v"})
        logger.debug("third")

        logs = _parse_all_logs(stream)
        # INFO is the default level, so the debug line is dropped
        assert len(logs) == 2
        for record in logs:
            assert {"ts", "level", "logger", "message"} <= record.keys()


# ---------------------------------------------------------------------------
# LogContext tests
# ---------------------------------------------------------------------------


class TestLogContext:
    """Tests for context propagation."""

    def test_set_and_get(self):
        LogContext.set(correlation_id="x", account_id="sup-1")
        assert LogContext.get_all() == {"correlation_id": "x", "account_id": "sup-1"}

    def test_clear(self):
        LogContext.set(correlation_id="x")
        LogContext.clear()
        assert LogContext.get_all() == {}

    def test_bind_context_manager(self):
        LogContext.set(transaction_id="outer")
        with LogContext.bind(transaction_id="inner"):
            assert LogContext.get_all()["transaction_id"] == "inner"
        assert LogContext.get_all()["transaction_id"] == "outer"

    def test_bind_restores_none(self):
        assert "document_id" not in LogContext.get_all()
        with LogContext.bind(document_id="temp"):
            assert LogContext.get_all()["document_id"] == "temp"
        assert "document_id" not in LogContext.get_all()

    def test_unknown_field_rejected(self):
        with pytest.raises(TypeError, match="vehicle_id"):
            LogContext.set(vehicle_id="TN01")

    def test_all_fields(self):
        LogContext.set(
            correlation_id="c",
            actor_id="a",
            account_id="acc",
            document_id="d",
            transaction_id="t",
        )
        ctx = LogContext.get_all()
        assert len(ctx) == 5
        assert ctx["transaction_id"] == "t"


# ---------------------------------------------------------------------------
# configure_logging tests
# ---------------------------------------------------------------------------


class TestConfigureLogging:
    """Tests for initialization."""

    def test_idempotent(self):
        h1, _ = _make_handler()
        configure_logging(handler=h1)
        h2, _ = _make_handler()
        configure_logging(handler=h2)  # second call is no-op
        assert len(logging.getLogger("freight_ledger").handlers) == 1

    def test_get_logger_returns_child(self):
        assert get_logger("engines.rollback").name == "freight_ledger.engines.rollback"

    def test_logger_hierarchy(self):
        """Child loggers inherit the freight_ledger root config."""
        handler, stream = _make_handler()
        configure_logging(handler=handler, level=logging.DEBUG)
        get_logger("deep.nested.module").debug("hierarchy_test")

        record = _parse_log(stream)
        assert record["message"] == "hierarchy_test"
        assert record["logger"] == "freight_ledger.deep.nested.module"
