# src/naming/namer.py — v1
"""Deterministic, template-driven filename generation."""

from __future__ import annotations

import logging
import os
import threading

from receipt_renamer.core.models import ReceiptInfo
from receipt_renamer.naming.sanitize import sanitize_component
from receipt_renamer.naming.template import (
    DEFAULT_FRAGMENT,
    FIELD_DATE,
    FIELD_ORIGINAL_NAME,
    FIELD_SERVICE,
    Template,
    build_full_template,
    parse_template,
)

logger = logging.getLogger(__name__)


class Namer:
    """Generate target filenames from the active template.

    The active template is replaced only by a successful parse; a rejected
    update leaves the previous template in force.

    Args:
        fragment: Initial template fragment (wrapped with the date prefix
            and original-name suffix).

    Raises:
        TemplateSyntaxError: If the initial fragment is invalid.
    """

    def __init__(self, fragment: str = DEFAULT_FRAGMENT) -> None:
        self._lock = threading.Lock()
        self._template = parse_template(build_full_template(fragment))
        self._fragment = fragment

    @property
    def template(self) -> Template:
        with self._lock:
            return self._template

    @property
    def fragment(self) -> str:
        with self._lock:
            return self._fragment

    def generate(self, original_name: str, extracted: ReceiptInfo) -> str:
        """Render the target filename for one file.

        The extension of original_name is re-appended unchanged.

        Raises:
            TemplateExecutionError: If the template cannot be rendered.
        """
        stem, ext = os.path.splitext(original_name)
        values = {
            FIELD_DATE: extracted.date,
            FIELD_SERVICE: sanitize_component(extracted.service),
            FIELD_ORIGINAL_NAME: stem,
        }
        return self.template.render(values) + ext

    def update_template(self, fragment: str) -> Template:
        """Parse and activate a new fragment.

        Raises:
            TemplateSyntaxError: If the fragment does not parse; the
                active template is left unchanged.
        """
        template = parse_template(build_full_template(fragment))
        with self._lock:
            self._template = template
            self._fragment = fragment
        logger.info("Naming template updated: %s", template.source)
        return template
