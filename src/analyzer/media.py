# src/analyzer/media.py — v1
"""Media type detection for analyzer payloads."""

from __future__ import annotations

from pathlib import Path

PDF_MEDIA_TYPE = "application/pdf"

IMAGE_MEDIA_TYPES: dict[str, str] = {
    ".png": "image/png",
    ".jpg": "image/jpeg",
    ".jpeg": "image/jpeg",
    ".webp": "image/webp",
    ".gif": "image/gif",
}


def detect_media_type(path: Path) -> str | None:
    """Return the media type for a supported file, or None."""
    ext = Path(path).suffix.lower()
    if ext == ".pdf":
        return PDF_MEDIA_TYPE
    return IMAGE_MEDIA_TYPES.get(ext)
