# src/naming/sanitize.py — v1
"""Make analyzer-provided text safe for use inside a filename."""

from __future__ import annotations

import re

_TO_HYPHEN = re.compile(r"[/\\:]")
_REMOVE = re.compile(r"[\"*?<>|]")
_WHITESPACE = re.compile(r"\s+")
_HYPHEN_RUNS = re.compile(r"-{2,}")


def sanitize_component(value: str) -> str:
    """Sanitize a filename component.

    Path separators and colons become hyphens, quote, wildcard,
    angle-bracket and pipe characters are dropped, whitespace runs become
    one hyphen, repeated hyphens collapse, and edge hyphens are trimmed.

    >>> sanitize_component("GitHub Copilot")
    'GitHub-Copilot'
    >>> sanitize_component("AWS/EC2")
    'AWS-EC2'
    """
    result = _TO_HYPHEN.sub("-", value)
    result = _REMOVE.sub("", result)
    result = _WHITESPACE.sub("-", result)
    result = _HYPHEN_RUNS.sub("-", result)
    return result.strip("-")
