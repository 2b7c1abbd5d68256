"""
Unit tests for the result envelope.

Tests response parsing, error validation and page arithmetic.
"""

import json

import pytest
from pydantic import ValidationError

from helpers import make_page

from lookback_client import (
    LookbackResult,
    ServiceReportedError,
    TransportFailureError,
    ErrorCode,
)


def _records(count):
    return [{"ObjectID": i} for i in range(count)]


class TestParsing:
    """Tests for building results from response bodies."""

    def test_parse_full_page(self):
        body = json.dumps(make_page(_records(3), start=0, pagesize=3, total=10))
        result = LookbackResult.from_json(body)

        assert result.api_major == "2"
        assert result.api_minor == "0"
        assert result.total_result_count == 10
        assert result.start_index == 0
        assert result.page_size == 3
        assert result.etl_date == "2012-06-20T21:46:32.166Z"
        assert len(result.records) == 3

    def test_missing_fields_take_zero_values(self):
        result = LookbackResult.from_json(b"{}")

        assert result.errors == []
        assert result.warnings == []
        assert result.records == []
        assert result.thread_stats == {}
        assert result.total_result_count == 0
        assert result.etl_date is None
        assert result.source_query is None

    def test_null_fields_take_zero_values(self):
        body = json.dumps({"Errors": None, "Results": None, "TotalResultCount": None, "Timings": None})
        result = LookbackResult.from_json(body)

        assert result.errors == []
        assert result.records == []
        assert result.total_result_count == 0
        assert result.timings == {}

    def test_unknown_fields_ignored(self):
        result = LookbackResult.from_json(json.dumps({"Results": [], "SomethingNew": 1}))
        assert result.records == []

    def test_numeric_versions_coerced(self):
        result = LookbackResult.from_json(json.dumps({"_rallyAPIMajor": 2, "_rallyAPIMinor": 0}))
        assert result.api_major == "2"
        assert result.api_minor == "0"

    @pytest.mark.parametrize("body", [b"not json", b"[1, 2]", b'{"Results": 5}'])
    def test_malformed_body(self, body):
        """Test unreadable bodies become transport failures."""
        with pytest.raises(TransportFailureError) as exc_info:
            LookbackResult.from_json(body)

        assert exc_info.value.code == ErrorCode.TRANSPORT_FAILURE
        assert exc_info.value.cause is not None

    def test_result_is_immutable(self):
        result = LookbackResult.from_json(b"{}")
        with pytest.raises(ValidationError):
            result.total_result_count = 5


class TestValidate:
    """Tests for service error validation."""

    def test_single_error(self):
        result = LookbackResult.from_json(json.dumps(make_page([], errors=["bad field"])))

        with pytest.raises(ServiceReportedError) as exc_info:
            result.validate(object())

        assert exc_info.value.errors == ["bad field"]
        assert exc_info.value.message == "bad field"
        assert result.source_query is None

    def test_all_errors_preserved_in_order(self):
        errors = ["first problem", "second problem", "third problem"]
        result = LookbackResult.from_json(json.dumps(make_page([], errors=errors)))

        with pytest.raises(ServiceReportedError) as exc_info:
            result.validate(object())

        assert exc_info.value.errors == errors
        assert "first problem, second problem, third problem" in str(exc_info.value)

    def test_validate_attaches_source_query(self):
        marker = object()
        result = LookbackResult.from_json(json.dumps(make_page(_records(1))))

        assert result.validate(marker) is result
        assert result.source_query is marker

    def test_model_validate_still_builds_envelopes(self):
        """Test the instance validate leaves pydantic's model_validate usable."""
        result = LookbackResult.model_validate(make_page(_records(2), total=5))
        marker = object()

        assert result.total_result_count == 5
        assert result.validate(marker).source_query is marker

    def test_warnings_do_not_fail(self):
        result = LookbackResult.from_json(json.dumps(make_page([], warnings=["slow query"])))

        assert result.validate(object()) is result
        assert result.has_warnings()

    def test_no_warnings(self):
        result = LookbackResult.from_json(json.dumps(make_page([])))
        assert not result.has_warnings()


class TestPaging:
    """Tests for has_more_pages and record iteration."""

    def test_more_pages_after_full_first_page(self):
        result = LookbackResult(start_index=0, page_size=200, total_result_count=450, records=_records(200))
        assert result.has_more_pages()

    def test_no_more_pages_after_short_last_page(self):
        result = LookbackResult(start_index=400, page_size=200, total_result_count=450, records=_records(50))
        assert not result.has_more_pages()

    def test_uses_returned_count_not_page_size(self):
        """Test a page shorter than requested is judged by what came back."""
        result = LookbackResult(start_index=0, page_size=200, total_result_count=450, records=_records(100))
        assert result.has_more_pages()

        result = LookbackResult(start_index=0, page_size=100, total_result_count=450, records=_records(450))
        assert not result.has_more_pages()

    def test_empty_result(self):
        assert not LookbackResult().has_more_pages()

    def test_iterate_records_is_restartable(self):
        records = _records(3)
        result = LookbackResult(records=records)

        assert list(result.iterate_records()) == records
        assert list(result.iterate_records()) == records
        assert result.records == records
