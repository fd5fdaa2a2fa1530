"""Tests for the engine tracer (freight_engines.tracer)."""

import logging
from datetime import date
from decimal import Decimal

import pytest

from freight_engines.tracer import (
    TRACE_TYPE,
    _canonicalize,
    compute_input_fingerprint,
    traced_engine,
)
from freight_kernel.domain.enums import DocumentStatus


@traced_engine("sample", "2.1", fingerprint_fields=("amount", "on"))
def _sample(amount, on, note=""):
    return amount * 2


@traced_engine("exploding", "1.0")
def _exploding():
    raise ValueError("boom")


def _traces(caplog):
    return [r for r in caplog.records if r.getMessage() == TRACE_TYPE]


class TestCanonicalize:
    def test_scalars(self):
        assert _canonicalize(None) == "null"
        assert _canonicalize(Decimal("1.50")) == "1.50"
        assert _canonicalize(date(2024, 1, 15)) == "2024-01-15"
        assert _canonicalize(DocumentStatus.PAID) == "paid"

    def test_dict_keys_sorted(self):
        assert _canonicalize({"b": 1, "a": 2}) == "{a:2,b:1}"

    def test_dataclass(self, make_advance):
        text = _canonicalize(make_advance("10"))
        assert text.startswith("Advance(advance_id:adv-1,advance_date:2024-01-15,amount:10")


class TestFingerprint:
    def test_deterministic_and_short(self):
        fp = compute_input_fingerprint(("a",), {"a": Decimal("1")})
        assert fp == compute_input_fingerprint(("a",), {"a": Decimal("1")})
        assert len(fp) == 16

    def test_sensitive_to_selected_fields_only(self):
        base = compute_input_fingerprint(("a",), {"a": 1, "b": 1})
        assert base == compute_input_fingerprint(("a",), {"a": 1, "b": 2})
        assert base != compute_input_fingerprint(("a",), {"a": 2, "b": 1})


class TestTracedEngine:
    def test_emits_trace_record(self, caplog):
        with caplog.at_level(logging.INFO, logger="freight_ledger.engines.tracer"):
            assert _sample(Decimal("2"), date(2024, 1, 1)) == Decimal("4")
        (record,) = _traces(caplog)
        assert record.trace_type == TRACE_TYPE
        assert record.engine_name == "sample"
        assert record.engine_version == "2.1"
        assert len(record.input_fingerprint) == 16
        assert record.duration_ms >= 0

    def test_keyword_and_positional_calls_fingerprint_alike(self, caplog):
        with caplog.at_level(logging.INFO, logger="freight_ledger.engines.tracer"):
            _sample(Decimal("2"), date(2024, 1, 1))
            _sample(on=date(2024, 1, 1), amount=Decimal("2"), note="ignored")
        first, second = _traces(caplog)
        assert first.input_fingerprint == second.input_fingerprint

    def test_failure_propagates_without_trace(self, caplog):
        with caplog.at_level(logging.INFO, logger="freight_ledger.engines.tracer"):
            with pytest.raises(ValueError, match="boom"):
                _exploding()
        assert _traces(caplog) == []

    def test_wraps_metadata(self):
        assert _sample.__name__ == "_sample"
