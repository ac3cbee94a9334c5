# care_core/common/sanitize.py
"""
Text cleaning applied to user-authored free text before it is written into
generated content (task titles, binder entries, handoff summaries).

Both cleaners are total: ``None`` or empty input returns ``""``.
"""
from __future__ import annotations

import re
import unicodedata
from typing import Optional

from django.core.exceptions import ValidationError

MARKUP_MAX_LENGTH = 1000
TITLE_MAX_LENGTH = 200

# Ampersand first, otherwise the entities produced below get escaped again.
_MARKUP_ESCAPES = (
    ("&", "&amp;"),
    ("<", "&lt;"),
    (">", "&gt;"),
    ('"', "&quot;"),
    ("'", "&#x27;"),
    ("/", "&#x2F;"),
)

_LINE_BREAKS_RE = re.compile(r"[\n\r\t]")
_WHITESPACE_RE = re.compile(r"\s+")


def escape_for_embedded_markup(text: Optional[str]) -> str:
    if not text:
        return ""

    value = unicodedata.normalize("NFC", str(text))
    for raw, entity in _MARKUP_ESCAPES:
        value = value.replace(raw, entity)
    value = value.replace("\x00", "")
    return value[:MARKUP_MAX_LENGTH]


def sanitize_title(text: Optional[str]) -> str:
    if not text:
        return ""

    value = _LINE_BREAKS_RE.sub(" ", str(text))
    value = _WHITESPACE_RE.sub(" ", value)
    value = value.replace("<", "").replace(">", "")
    return value[:TITLE_MAX_LENGTH].strip()


def _has_control_chars(value: str) -> bool:
    for ch in value:
        if ch in "\n\r\t ":
            continue
        if unicodedata.category(ch) == "Cc":
            return True
    return False


def validate_text_input(value: Optional[str], *, max_length: int, field_name: str) -> str:
    """
    Wizard input check for short free-text fields.
    Returns the trimmed value or raises ValidationError.
    """
    trimmed = (value or "").strip()

    if not trimmed:
        raise ValidationError(f"{field_name} cannot be empty.")
    if len(trimmed) > max_length:
        raise ValidationError(f"{field_name} exceeds maximum length of {max_length}.")
    if _has_control_chars(trimmed):
        raise ValidationError(f"{field_name} contains invalid characters.")

    return trimmed
