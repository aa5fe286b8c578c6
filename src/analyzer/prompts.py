# src/analyzer/prompts.py — v1
"""Prompt sent to every analyzer backend."""

from __future__ import annotations

RECEIPT_PROMPT = """Extract the following from this receipt or invoice:
1. The payment date (paid date, invoice date or date) in YYYYMMDD format
2. The name of the service or company that issued it

Respond with this JSON object only, without any explanation:
{"date": "YYYYMMDD", "service": "service name"}"""
