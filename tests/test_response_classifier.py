# ============================================================================
# RESPONSE CLASSIFIER TESTS
# ============================================================================
# STATUS: Tests - Response body classification and header extraction
# PURPOSE: Verify json / xml / string detection and HeaderMap behaviour
# CREATED: 17 OCT 2026
# ============================================================================
"""
Response Classifier Tests

Run with:
    pytest tests/test_response_classifier.py -v
"""

import httpx
import pytest

from core.contracts import ResponseKind
from handlers.helpers.response_classifier import (
    HeaderMap,
    classify,
    extract_headers,
    interpret,
    try_parse_json,
)


class TestClassify:
    """Tests for classify()."""

    @pytest.mark.parametrize(
        "content_type,body,expected",
        [
            ("application/json", "anything", ResponseKind.JSON),
            ("application/problem+JSON; charset=utf-8", "", ResponseKind.JSON),
            (None, '  {"a": 1}', ResponseKind.JSON),
            ("text/plain", "[1, 2]", ResponseKind.JSON),
            ("application/xml", "data", ResponseKind.XML),
            ("text/plain", "  <root/>", ResponseKind.XML),
            ("text/plain", "hello", ResponseKind.TEXT),
            (None, "", ResponseKind.TEXT),
        ],
    )
    def test_classification(self, content_type, body, expected):
        assert classify(content_type, body) == expected

    def test_text_kind_writes_string(self):
        assert ResponseKind.TEXT.value == "string"


class TestInterpret:
    """Tests for interpret()."""

    def test_json_body(self):
        assert interpret("application/json", '{"ok": true}') == (ResponseKind.JSON, {"ok": True})

    def test_json_by_prefix(self):
        assert interpret(None, "[1,2]") == (ResponseKind.JSON, [1, 2])

    def test_unparseable_json_degrades_to_text(self):
        assert interpret("application/json", "{broken") == (ResponseKind.TEXT, "{broken")

    def test_xml_keeps_raw_body(self):
        assert interpret("application/xml", "<a>1</a>") == (ResponseKind.XML, "<a>1</a>")

    def test_empty_body_is_text(self):
        assert interpret("application/json", "") == (ResponseKind.TEXT, "")


class TestTryParseJson:
    """Tests for try_parse_json()."""

    def test_valid(self):
        assert try_parse_json('{"a": [1]}') == (True, {"a": [1]})

    def test_invalid(self):
        assert try_parse_json("nope") == (False, None)

    def test_blank(self):
        assert try_parse_json("  ") == (False, None)
        assert try_parse_json(None) == (False, None)


class TestHeaders:
    """Tests for HeaderMap / extract_headers()."""

    def test_case_insensitive_multi_value(self):
        headers = HeaderMap()
        headers.add("X-Trace", "1")
        headers.add("x-trace", "2")

        assert headers.get_all("X-TRACE") == ["1", "2"]
        assert headers.get("x-trace") == "1"
        assert "X-Trace" in headers
        assert len(headers) == 1
        assert headers.to_dict() == {"X-Trace": ["1", "2"]}

    def test_merges_sources_keeping_first_casing(self):
        response_headers = httpx.Headers([("Content-Type", "application/json"), ("Set-Cookie", "a=1")])
        content_headers = [("content-type", "charset=utf-8"), ("set-cookie", "b=2")]

        merged = extract_headers(response_headers, content_headers)

        assert merged.to_dict() == {
            "Content-Type": ["application/json", "charset=utf-8"],
            "Set-Cookie": ["a=1", "b=2"],
        }

    def test_from_response(self):
        response = httpx.Response(200, headers=[("X-Request-Id", "r1"), ("X-Request-Id", "r2")])
        assert extract_headers(response).get_all("x-request-id") == ["r1", "r2"]

    def test_from_mapping(self):
        assert extract_headers({"A": "1"}).to_dict() == {"A": ["1"]}

    def test_missing_header(self):
        assert extract_headers().get("nope", "default") == "default"
