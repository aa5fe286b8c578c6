# src/analyzer/pdf_renderer.py — v1
"""Render a PDF page to PNG for image-only providers.

Requires the 'pymupdf' package.
"""

from __future__ import annotations

from pathlib import Path

from receipt_renamer.analyzer.base_analyzer import AnalyzerError

DEFAULT_DPI = 150


def render_first_page(pdf_path: Path, dpi: int = DEFAULT_DPI) -> bytes:
    """Return the first page of a PDF as PNG bytes.

    Raises:
        AnalyzerError: If the file cannot be opened or has no pages.
    """
    try:
        import fitz  # PyMuPDF
    except ImportError as e:
        raise ImportError(
            "pymupdf package required for PDF rendering: pip install pymupdf"
        ) from e

    try:
        with fitz.open(str(pdf_path)) as doc:
            if doc.page_count == 0:
                raise AnalyzerError(f"PDF has no pages: {pdf_path}")
            pixmap = doc[0].get_pixmap(dpi=dpi)
            return pixmap.tobytes("png")
    except AnalyzerError:
        raise
    except Exception as e:
        raise AnalyzerError(f"Failed to convert PDF to image: {e}") from e
