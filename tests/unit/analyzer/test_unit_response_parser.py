# tests/unit/analyzer/test_unit_response_parser.py — v1
"""Tests for analyzer/response_parser.py — JSON extraction from model text."""

from __future__ import annotations

import pytest

from receipt_renamer.analyzer.base_analyzer import AnalyzerError
from receipt_renamer.analyzer.media import detect_media_type
from receipt_renamer.analyzer.response_parser import parse_receipt_response


class TestParseReceiptResponse:
    def test_plain_json(self):
        info = parse_receipt_response('{"date": "20250115", "service": "Cursor"}')
        assert info.date == "20250115"
        assert info.service == "Cursor"

    def test_json_inside_prose_and_fences(self):
        text = 'Here you go:\n```json\n{"date": "20250115", "service": "GitHub Copilot"}\n```\nDone.'
        assert parse_receipt_response(text).service == "GitHub Copilot"

    @pytest.mark.parametrize("raw_date", ["2025-01-15", "2025/01/15", " 20250115 "])
    def test_date_separators_stripped(self, raw_date):
        info = parse_receipt_response(f'{{"date": "{raw_date}", "service": "X"}}')
        assert info.date == "20250115"

    def test_service_trimmed(self):
        assert parse_receipt_response('{"date": "20250115", "service": "  AWS  "}').service == "AWS"

    def test_no_json(self):
        with pytest.raises(AnalyzerError, match="No JSON found"):
            parse_receipt_response("I could not read this receipt.")

    def test_malformed_json(self):
        with pytest.raises(AnalyzerError, match="Failed to parse JSON"):
            parse_receipt_response('{"date": 20250115, "service": }')

    @pytest.mark.parametrize(
        "payload",
        [
            '{"date": "Jan 15", "service": "Cursor"}',
            '{"date": "2025011", "service": "Cursor"}',
            '{"date": "20250115", "service": ""}',
            '{"date": "20250115"}',
        ],
    )
    def test_invalid_fields(self, payload):
        with pytest.raises(AnalyzerError, match="Invalid"):
            parse_receipt_response(payload)


class TestDetectMediaType:
    @pytest.mark.parametrize("name,expected", [
        ("a.pdf", "application/pdf"),
        ("a.PDF", "application/pdf"),
        ("a.png", "image/png"),
        ("a.JPG", "image/jpeg"),
        ("a.txt", None),
    ])
    def test_detect(self, name, expected):
        assert detect_media_type(name) == expected
