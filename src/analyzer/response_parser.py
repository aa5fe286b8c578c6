# src/analyzer/response_parser.py — v1
"""Parse the JSON object out of a free-text model response."""

from __future__ import annotations

import json

from pydantic import ValidationError

from receipt_renamer.analyzer.base_analyzer import AnalyzerError
from receipt_renamer.core.models import ReceiptInfo


def parse_receipt_response(text: str) -> ReceiptInfo:
    """Extract ReceiptInfo from the first '{' to the last '}' of text.

    Raises:
        AnalyzerError: If no JSON object is present or it does not hold a
            valid 8-digit date and a non-empty service.
    """
    start = text.find("{")
    end = text.rfind("}")
    if start == -1 or end < start:
        raise AnalyzerError(f"No JSON found in response: {text}")

    try:
        data = json.loads(text[start : end + 1])
    except json.JSONDecodeError as e:
        raise AnalyzerError(f"Failed to parse JSON response: {e}, response: {text}") from e
    if not isinstance(data, dict):
        raise AnalyzerError(f"Expected a JSON object, response: {text}")

    date = str(data.get("date", "")).strip().replace("-", "").replace("/", "")
    service = str(data.get("service", "")).strip()
    try:
        return ReceiptInfo(date=date, service=service)
    except ValidationError as e:
        fields = ", ".join(str(err["loc"][0]) for err in e.errors())
        raise AnalyzerError(f"Invalid {fields} in response: {text}") from e
