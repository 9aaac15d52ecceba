"""
Input sanitization helpers against stored XSS and script URLs.

Used by the user schemas: names lose their markup, emails are trimmed and
lowercased, avatar URLs with an executable scheme are refused.
"""

import re
from typing import Any, Dict, Optional

_HTML_ESCAPES = {
    "&": "&amp;",
    "<": "&lt;",
    ">": "&gt;",
    '"': "&quot;",
    "'": "&#x27;",
    "/": "&#x2F;",
}
_HTML_SPECIALS = re.compile(r"[&<>\"'/]")
_HTML_TAG = re.compile(r"<[^>]*>")
_EMAIL = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$")
_BLOCKED_SCHEMES = ("javascript:", "data:", "vbscript:")


def escape_html(value: str) -> str:
    return _HTML_SPECIALS.sub(lambda match: _HTML_ESCAPES[match.group(0)], value)


def strip_html(value: str) -> str:
    return _HTML_TAG.sub("", value)


def sanitize_object(obj: Dict[str, Any]) -> Dict[str, Any]:
    """Copy of `obj` with every string (nested dicts and lists too) HTML-escaped."""
    return {key: _sanitize_value(value) for key, value in obj.items()}


def _sanitize_value(value: Any) -> Any:
    if isinstance(value, str):
        return escape_html(value)
    if isinstance(value, dict):
        return sanitize_object(value)
    if isinstance(value, list):
        return [_sanitize_value(item) for item in value]
    return value


def sanitize_email(email: str) -> Optional[str]:
    """Trimmed, lowercased email, or None if it does not look like one."""
    trimmed = email.strip().lower()
    if not _EMAIL.match(trimmed):
        return None
    return trimmed


def sanitize_url(url: str) -> Optional[str]:
    """The trimmed URL, or None for javascript:, data: and vbscript: URLs."""
    trimmed = url.strip()
    if trimmed.lower().startswith(_BLOCKED_SCHEMES):
        return None
    return trimmed
