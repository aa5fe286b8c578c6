# src/analyzer/adapters/anthropic_adapter.py — v2
"""Anthropic Claude analyzer.

Uses the official anthropic SDK. PDFs are sent as base64 document blocks,
images as base64 image blocks.
"""

from __future__ import annotations

import asyncio
import base64
import logging
import time
from pathlib import Path
from typing import Any

from receipt_renamer.analyzer.base_analyzer import (
    AnalysisCancelledError,
    AnalyzerError,
    BaseAnalyzer,
    run_cancellable,
)
from receipt_renamer.analyzer.media import PDF_MEDIA_TYPE, detect_media_type
from receipt_renamer.analyzer.prompts import RECEIPT_PROMPT
from receipt_renamer.analyzer.response_parser import parse_receipt_response
from receipt_renamer.core.models import ReceiptInfo

logger = logging.getLogger(__name__)


class AnthropicAnalyzer(BaseAnalyzer):
    """Analyzer for Anthropic Claude models."""

    def __init__(
        self,
        model: str = "claude-sonnet-4-20250514",
        api_key: str | None = None,
        max_tokens: int = 1024,
        **kwargs: Any,
    ) -> None:
        self._api_key = api_key
        self._model = model
        self._max_tokens = max_tokens
        self.__client = None  # Lazy initialization

    @property
    def _client(self):
        """Lazy-init Anthropic client (only on first API call)."""
        if self.__client is None:
            try:
                import anthropic
            except ImportError as e:
                raise ImportError(
                    "anthropic package required: pip install anthropic"
                ) from e
            self.__client = anthropic.AsyncAnthropic(api_key=self._api_key or "")
        return self.__client

    @property
    def name(self) -> str:
        return "Anthropic Claude"

    async def analyze(
        self, file_path: Path, cancel: asyncio.Event | None = None
    ) -> ReceiptInfo:
        block = await asyncio.to_thread(self._file_block, Path(file_path))
        content = [block, {"type": "text", "text": RECEIPT_PROMPT}]

        client = self._client
        start = time.monotonic()
        try:
            message = await run_cancellable(
                client.messages.create(
                    model=self._model,
                    max_tokens=self._max_tokens,
                    messages=[{"role": "user", "content": content}],
                ),
                cancel,
            )
        except AnalysisCancelledError:
            raise
        except Exception as e:
            raise AnalyzerError(f"Failed to call Anthropic API: {e}") from e

        logger.debug(
            "Anthropic analysis of %s took %dms",
            Path(file_path).name, int((time.monotonic() - start) * 1000),
        )
        return parse_receipt_response(self._extract_text(message))

    @staticmethod
    def _file_block(path: Path) -> dict[str, Any]:
        media_type = detect_media_type(path)
        if media_type is None:
            raise AnalyzerError(f"Unsupported file type: {path.suffix}")
        try:
            data = base64.b64encode(path.read_bytes()).decode("ascii")
        except OSError as e:
            raise AnalyzerError(f"Failed to read file: {e}") from e

        block_type = "document" if media_type == PDF_MEDIA_TYPE else "image"
        return {
            "type": block_type,
            "source": {"type": "base64", "media_type": media_type, "data": data},
        }

    @staticmethod
    def _extract_text(message: Any) -> str:
        """Return the first text block of an Anthropic response."""
        blocks = getattr(message, "content", None) or []
        if not blocks:
            raise AnalyzerError("Empty response from API")
        for block in blocks:
            if getattr(block, "type", None) == "text" and block.text:
                return block.text
        raise AnalyzerError("No text response from API")
