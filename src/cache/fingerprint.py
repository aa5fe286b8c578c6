# src/cache/fingerprint.py — v3
"""Content fingerprinting for cache keys.

Only the exact byte-level hash is used: identical bytes under any name or
location share one key, and any edit to the bytes yields a new key.
"""

from __future__ import annotations

import hashlib
from pathlib import Path

_CHUNK_SIZE = 1024 * 1024


def hash_bytes(raw_bytes: bytes) -> str:
    """SHA-256 of raw bytes as lowercase hex."""
    return hashlib.sha256(raw_bytes).hexdigest()


def hash_file(path: Path | str) -> str:
    """SHA-256 of a file's bytes as lowercase hex, read in chunks.

    Raises:
        OSError: If the file cannot be read.
    """
    digest = hashlib.sha256()
    with open(path, "rb") as fh:
        for chunk in iter(lambda: fh.read(_CHUNK_SIZE), b""):
            digest.update(chunk)
    return digest.hexdigest()
