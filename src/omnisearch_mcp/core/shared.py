"""Shared parsing and redaction helpers for HTTP-backed providers.

Utilities are organized by cohesion:
    Secret redaction:
        - redact_secrets(text) -> str
        - redact_headers(headers) -> dict
    Pure parsing helpers:
        - parse_reset_time(value, now=None) -> Optional[datetime]
        - extract_error_message(body, fallback) -> str
        - parse_iso_date(date_str) -> Optional[datetime]
        - extract_domain(url) -> Optional[str]
    Text utilities:
        - count_words(text) -> int

SECURITY: error messages built from upstream bodies go through
``redact_secrets`` so API keys echoed back by an upstream never reach logs
or tool responses.
"""

import re
from datetime import datetime, timedelta, timezone
from email.utils import parsedate_to_datetime
from typing import Any, Mapping, Optional
from urllib.parse import urlparse

# ---------------------------------------------------------------------------
# Constants
# ---------------------------------------------------------------------------

_SECRET_PATTERN = re.compile(
    r"(?i)"
    r"(?:"
    r"(?:api[_-]?key|token|bearer|authorization|secret|password|credential)"
    r"[\s:=]+"
    r")"
    r"['\"]?([^\s'\"]{8,})['\"]?",
)

_SENSITIVE_HEADERS = frozenset(
    {
        "authorization",
        "x-api-key",
        "api-key",
        "x-subscription-token",
        "cookie",
        "proxy-authorization",
    }
)

# Numeric reset values at or above this are Unix epoch seconds (2001-09-09),
# anything smaller is a delay in seconds.
EPOCH_SECONDS_THRESHOLD = 1_000_000_000

# Body fields tried, in order, for an upstream error message
ERROR_MESSAGE_FIELDS = ("message", "error", "detail")

MAX_ERROR_TEXT_LENGTH = 500


# ---------------------------------------------------------------------------
# Secret redaction
# ---------------------------------------------------------------------------


def redact_secrets(text: str) -> str:
    """Replace the secret part of ``api_key=...``-style fragments with ``****``."""
    if not text:
        return text

    def _replace(match: re.Match[str]) -> str:
        return match.group(0).replace(match.group(1), "****")

    return _SECRET_PATTERN.sub(_replace, text)


def redact_headers(headers: Mapping[str, str]) -> dict[str, str]:
    """Return a copy of ``headers`` safe to log."""
    return {
        key: "****" if key.lower() in _SENSITIVE_HEADERS else value
        for key, value in headers.items()
    }


# ---------------------------------------------------------------------------
# Pure parsing helpers
# ---------------------------------------------------------------------------


def parse_reset_time(
    value: Optional[str], now: Optional[datetime] = None
) -> Optional[datetime]:
    """Parse a rate-limit reset header into an aware UTC datetime.

    Rule, applied in order:
        1. All-digit values >= ``EPOCH_SECONDS_THRESHOLD`` are epoch seconds.
        2. Other all-digit values are seconds from ``now``.
        3. Anything else is tried as ISO-8601, then as an HTTP-date.

    Returns ``None`` when the value is missing or unparseable.
    """
    if not value:
        return None
    text = value.strip()

    if text.isdigit():
        seconds = int(text)
        if seconds >= EPOCH_SECONDS_THRESHOLD:
            return datetime.fromtimestamp(seconds, tz=timezone.utc)
        return (now or datetime.now(timezone.utc)) + timedelta(seconds=seconds)

    parsed = parse_iso_date(text)
    if parsed is None:
        try:
            parsed = parsedate_to_datetime(text)
        except (TypeError, ValueError, IndexError):
            return None
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed.astimezone(timezone.utc)


def extract_error_message(body: Any, fallback: str) -> str:
    """Pull a human-readable message out of a parsed error body.

    Tries ``message``, ``error`` and ``detail`` in order (a nested
    ``{"error": {"message": ...}}`` is unwrapped). A non-empty text body is
    used verbatim, otherwise ``fallback`` (usually the HTTP status text).
    """
    if isinstance(body, Mapping):
        for key in ERROR_MESSAGE_FIELDS:
            value = body.get(key)
            if isinstance(value, Mapping):
                value = value.get("message") or str(dict(value))
            if value:
                return redact_secrets(str(value))
    elif isinstance(body, str) and body.strip():
        return redact_secrets(body.strip()[:MAX_ERROR_TEXT_LENGTH])
    return fallback


def parse_iso_date(date_str: Optional[str]) -> Optional[datetime]:
    if not date_str:
        return None
    try:
        return datetime.fromisoformat(date_str.replace("Z", "+00:00"))
    except ValueError:
        return None


def extract_domain(url: str) -> Optional[str]:
    """Return the host of ``url`` without a leading ``www.``."""
    if not url:
        return None
    try:
        host = urlparse(url).hostname
    except ValueError:
        return None
    if not host:
        return None
    return host[4:] if host.startswith("www.") else host


# ---------------------------------------------------------------------------
# Text utilities
# ---------------------------------------------------------------------------


def count_words(text: str) -> int:
    """Whitespace-split token count."""
    return len(text.split())


__all__ = [
    "count_words",
    "extract_domain",
    "extract_error_message",
    "parse_iso_date",
    "parse_reset_time",
    "redact_headers",
    "redact_secrets",
]
