# src/analyzer/adapters/openai_adapter.py — v2
"""OpenAI GPT analyzer, also used for OpenAI-compatible endpoints.

Chat completions accept images only, so PDFs are rendered to PNG first.
"""

from __future__ import annotations

import asyncio
import base64
import logging
from pathlib import Path
from typing import Any, Callable

from receipt_renamer.analyzer.base_analyzer import (
    AnalysisCancelledError,
    AnalyzerError,
    BaseAnalyzer,
    run_cancellable,
)
from receipt_renamer.analyzer.media import PDF_MEDIA_TYPE, detect_media_type
from receipt_renamer.analyzer.pdf_renderer import render_first_page
from receipt_renamer.analyzer.prompts import RECEIPT_PROMPT
from receipt_renamer.analyzer.response_parser import parse_receipt_response
from receipt_renamer.core.models import ReceiptInfo

logger = logging.getLogger(__name__)


class OpenAIAnalyzer(BaseAnalyzer):
    """OpenAI GPT analyzer."""

    def __init__(
        self,
        model: str = "gpt-4o",
        api_key: str = "",
        base_url: str = "",
        max_tokens: int = 1024,
        page_renderer: Callable[[Path], bytes] = render_first_page,
        **kwargs: Any,
    ) -> None:
        self._model = model
        self._api_key = api_key
        self._base_url = base_url
        self._max_tokens = max_tokens
        self._page_renderer = page_renderer
        self.__client = None

    @property
    def _client(self):
        if self.__client is None:
            import openai

            kwargs: dict[str, Any] = {"api_key": self._api_key or "not-needed"}
            if self._base_url:
                kwargs["base_url"] = self._base_url
            self.__client = openai.AsyncOpenAI(**kwargs)
        return self.__client

    @property
    def name(self) -> str:
        if self._base_url:
            return f"OpenAI-compatible ({self._base_url})"
        return "OpenAI"

    async def analyze(
        self, file_path: Path, cancel: asyncio.Event | None = None
    ) -> ReceiptInfo:
        data_url = await run_cancellable(
            asyncio.to_thread(self._image_data_url, Path(file_path)), cancel
        )
        client = self._client

        try:
            resp = await run_cancellable(
                client.chat.completions.create(
                    model=self._model,
                    max_tokens=self._max_tokens,
                    messages=[
                        {
                            "role": "user",
                            "content": [
                                {
                                    "type": "image_url",
                                    "image_url": {"url": data_url, "detail": "auto"},
                                },
                                {"type": "text", "text": RECEIPT_PROMPT},
                            ],
                        }
                    ],
                ),
                cancel,
            )
        except AnalysisCancelledError:
            raise
        except Exception as e:
            raise AnalyzerError(f"Failed to call OpenAI API: {e}") from e

        if not resp.choices:
            raise AnalyzerError("Empty response from API")
        return parse_receipt_response(resp.choices[0].message.content or "")

    def _image_data_url(self, path: Path) -> str:
        media_type = detect_media_type(path)
        if media_type is None:
            raise AnalyzerError(f"Unsupported file type: {path.suffix}")

        if media_type == PDF_MEDIA_TYPE:
            image = self._page_renderer(path)
            media_type = "image/png"
        else:
            try:
                image = path.read_bytes()
            except OSError as e:
                raise AnalyzerError(f"Failed to read file: {e}") from e

        b64 = base64.b64encode(image).decode()
        return f"data:{media_type};base64,{b64}"
