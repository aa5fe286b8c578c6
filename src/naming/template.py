# src/naming/template.py — v1
"""Filename template parsing and execution.

A template is literal text mixed with placeholders written as
``{{Date}}``, ``{{Service}}`` or ``{{OriginalName}}``. Whitespace inside
the braces and a leading dot (``{{ .Service }}``) are accepted.

User-editable fragments are wrapped as ``{{Date}}-<fragment>-{{OriginalName}}``.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Mapping, Union

FIELD_DATE = "Date"
FIELD_SERVICE = "Service"
FIELD_ORIGINAL_NAME = "OriginalName"
FIELDS = frozenset({FIELD_DATE, FIELD_SERVICE, FIELD_ORIGINAL_NAME})

TEMPLATE_PREFIX = "{{Date}}-"
TEMPLATE_SUFFIX = "-{{OriginalName}}"
DEFAULT_FRAGMENT = "{{Service}}"

_OPEN = "{{"
_CLOSE = "}}"
_FORBIDDEN_LITERAL_CHARS = ("/", "\\", "\x00")


class TemplateSyntaxError(ValueError):
    """Raised when a template string cannot be parsed."""


class TemplateExecutionError(RuntimeError):
    """Raised when a parsed template cannot be rendered with the given fields."""


@dataclass(frozen=True)
class Literal:
    text: str


@dataclass(frozen=True)
class Placeholder:
    field: str


Segment = Union[Literal, Placeholder]


@dataclass(frozen=True)
class Template:
    """Parsed, immutable filename template."""

    source: str
    segments: tuple[Segment, ...]

    @property
    def fields(self) -> frozenset[str]:
        return frozenset(s.field for s in self.segments if isinstance(s, Placeholder))

    def render(self, values: Mapping[str, str]) -> str:
        parts: list[str] = []
        for segment in self.segments:
            if isinstance(segment, Literal):
                parts.append(segment.text)
                continue
            try:
                parts.append(values[segment.field])
            except KeyError:
                raise TemplateExecutionError(
                    f"No value for placeholder {{{{{segment.field}}}}}"
                ) from None
        return "".join(parts)


def build_full_template(fragment: str) -> str:
    """Wrap a user fragment with the fixed date prefix and original-name suffix."""
    return f"{TEMPLATE_PREFIX}{fragment}{TEMPLATE_SUFFIX}"


def parse_template(source: str) -> Template:
    """Parse a template string.

    Raises:
        TemplateSyntaxError: On unclosed or empty placeholders, unknown
            placeholder names, or path separators in literal text.
    """
    segments: list[Segment] = []
    pos = 0
    while pos < len(source):
        start = source.find(_OPEN, pos)
        if start == -1:
            _append_literal(segments, source[pos:])
            break
        _append_literal(segments, source[pos:start])

        end = source.find(_CLOSE, start + len(_OPEN))
        if end == -1:
            raise TemplateSyntaxError(f"Unclosed placeholder at position {start}")
        inner = source[start + len(_OPEN):end]
        if _OPEN in inner:
            raise TemplateSyntaxError(f"Nested placeholder at position {start}")

        name = inner.strip().lstrip(".")
        if not name:
            raise TemplateSyntaxError(f"Empty placeholder at position {start}")
        if name not in FIELDS:
            raise TemplateSyntaxError(
                f"Unknown placeholder {{{{{name}}}}}; "
                f"available: {', '.join(sorted(FIELDS))}"
            )
        segments.append(Placeholder(name))
        pos = end + len(_CLOSE)

    if not segments:
        raise TemplateSyntaxError("Template is empty")
    return Template(source=source, segments=tuple(segments))


def _append_literal(segments: list[Segment], text: str) -> None:
    if not text:
        return
    for ch in _FORBIDDEN_LITERAL_CHARS:
        if ch in text:
            raise TemplateSyntaxError(
                f"Literal text must not contain {ch!r}: {text!r}"
            )
    segments.append(Literal(text))
