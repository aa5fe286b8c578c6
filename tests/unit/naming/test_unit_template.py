# tests/unit/naming/test_unit_template.py — v1
"""Tests for naming.template — parsing, validation and rendering."""

from __future__ import annotations

import pytest

from receipt_renamer.naming.template import (
    Literal,
    Placeholder,
    TemplateExecutionError,
    TemplateSyntaxError,
    build_full_template,
    parse_template,
)


class TestParseTemplate:
    def test_default_full_template(self):
        t = parse_template(build_full_template("{{Service}}"))
        assert t.segments == (
            Placeholder("Date"),
            Literal("-"),
            Placeholder("Service"),
            Literal("-"),
            Placeholder("OriginalName"),
        )
        assert t.fields == {"Date", "Service", "OriginalName"}

    def test_leading_dot_and_whitespace_accepted(self):
        t = parse_template("{{ .Date }}_{{.Service}}")
        assert t.segments == (Placeholder("Date"), Literal("_"), Placeholder("Service"))

    def test_literal_only(self):
        t = parse_template("receipt")
        assert t.segments == (Literal("receipt"),)

    @pytest.mark.parametrize(
        "source",
        [
            "{{Date",
            "{{}}",
            "{{ . }}",
            "{{Amount}}",
            "{{Da{{te}}}}",
            "",
        ],
    )
    def test_invalid_templates(self, source):
        with pytest.raises(TemplateSyntaxError):
            parse_template(source)

    @pytest.mark.parametrize("fragment", ["{{Service}}/x", "a\\b", "a\x00b"])
    def test_path_separators_in_literal_rejected(self, fragment):
        with pytest.raises(TemplateSyntaxError):
            parse_template(build_full_template(fragment))

    def test_unknown_placeholder_message_lists_fields(self):
        with pytest.raises(TemplateSyntaxError, match="OriginalName"):
            parse_template("{{Vendor}}")


class TestRender:
    def test_render(self):
        t = parse_template(build_full_template("{{Service}}-paid"))
        out = t.render({"Date": "20250115", "Service": "Cursor", "OriginalName": "r1"})
        assert out == "20250115-Cursor-paid-r1"

    def test_missing_value(self):
        t = parse_template("{{Date}}")
        with pytest.raises(TemplateExecutionError):
            t.render({})

    def test_build_full_template(self):
        assert build_full_template("x") == "{{Date}}-x-{{OriginalName}}"
