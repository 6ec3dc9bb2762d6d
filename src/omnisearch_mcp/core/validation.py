"""Input validation and normalization.

Stateless validators that either return a normalized value or raise
``InvalidInputError`` attributed to the calling provider. URL validation is
the exception: it returns a ``UrlValidationResult`` so batch validation can
collect per-item errors before deciding to raise.

Example usage:
    from omnisearch_mcp.core.validation import validate_limit, validate_urls

    limit = validate_limit(params.get("limit"), provider="brave")
    result = validate_urls(["https://a.test", "ftp://b.test"])
    if not result.valid:
        print(result.errors)  # ["URL 2: Protocol ftp: is not allowed. ..."]
"""

import re
from dataclasses import dataclass, field
from typing import Any, Iterable, List, Optional, Pattern, Sequence, Union
from urllib.parse import urlparse

from omnisearch_mcp.core.errors import InvalidInputError

# Attribution used when a validator is called outside any provider
DEFAULT_PROVIDER = "validation"

DEFAULT_ALLOWED_PROTOCOLS = ("http", "https")
LOCAL_HOSTS = frozenset(["localhost", "127.0.0.1"])
LOCAL_HOST_SUFFIX = ".local"

DEFAULT_MIN_LIMIT = 1
DEFAULT_MAX_LIMIT = 50

_QUOTE_CHARS = ("'", '"', "`")
_NEWLINES = re.compile(r"[\n\r]+")


# ---------------------------------------------------------------------------
# URL validation
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class UrlValidationOptions:
    """Policy applied by ``validate_url``.

    Attributes:
        allowed_protocols: URL schemes accepted, without the trailing colon
        require_https: Reject anything other than https
        allow_localhost: Accept localhost, 127.0.0.1 and ``*.local`` hosts
        max_length: Maximum URL length in characters (None for unbounded)
    """

    allowed_protocols: Sequence[str] = DEFAULT_ALLOWED_PROTOCOLS
    require_https: bool = False
    allow_localhost: bool = False
    max_length: Optional[int] = None


@dataclass(frozen=True)
class UrlValidationResult:
    """Outcome of URL validation; ``errors`` is empty when ``valid``."""

    valid: bool
    errors: List[str] = field(default_factory=list)


def _is_local_host(hostname: str) -> bool:
    return hostname in LOCAL_HOSTS or hostname.endswith(LOCAL_HOST_SUFFIX)


def validate_url(
    url: Any, options: Optional[UrlValidationOptions] = None
) -> UrlValidationResult:
    """Validate a single URL without raising."""
    opts = options or UrlValidationOptions()
    errors: List[str] = []

    if not isinstance(url, str) or not url:
        return UrlValidationResult(valid=False, errors=["URL must be a non-empty string"])

    if opts.max_length and len(url) > opts.max_length:
        errors.append(f"URL exceeds maximum length of {opts.max_length} characters")

    try:
        parsed = urlparse(url.strip())
        hostname = (parsed.hostname or "").lower()
    except ValueError as exc:
        errors.append(f"Invalid URL format: {exc}")
        return UrlValidationResult(valid=False, errors=errors)

    scheme = parsed.scheme.lower()
    if not scheme:
        errors.append("Invalid URL format: missing protocol")
        return UrlValidationResult(valid=False, errors=errors)

    allowed = [p.rstrip(":").lower() for p in opts.allowed_protocols]
    if scheme not in allowed:
        errors.append(
            f"Protocol {scheme}: is not allowed. "
            f"Allowed protocols: {', '.join(p + ':' for p in allowed)}"
        )

    if opts.require_https and scheme != "https":
        errors.append("HTTPS is required")

    if not hostname:
        errors.append("Invalid URL format: missing host")
    elif not opts.allow_localhost and _is_local_host(hostname):
        errors.append("Localhost and local domains are not allowed")

    return UrlValidationResult(valid=not errors, errors=errors)


def validate_urls(
    urls: Union[str, Sequence[str]], options: Optional[UrlValidationOptions] = None
) -> UrlValidationResult:
    """Validate one URL or a list, prefixing errors with ``URL i: `` for lists."""
    url_list = [urls] if isinstance(urls, str) else list(urls)
    all_errors: List[str] = []

    for index, url in enumerate(url_list, start=1):
        result = validate_url(url, options)
        if result.valid:
            continue
        prefix = f"URL {index}: " if len(url_list) > 1 else ""
        all_errors.extend(f"{prefix}{error}" for error in result.errors)

    return UrlValidationResult(valid=not all_errors, errors=all_errors)


def validate_url_input(
    urls: Union[str, Sequence[str]],
    provider: str = DEFAULT_PROVIDER,
    options: Optional[UrlValidationOptions] = None,
) -> List[str]:
    """Validate URLs and raise ``InvalidInputError`` joining all errors."""
    result = validate_urls(urls, options)
    if not result.valid:
        raise InvalidInputError("; ".join(result.errors), provider)
    return [urls] if isinstance(urls, str) else list(urls)


# ---------------------------------------------------------------------------
# Scalar validators
# ---------------------------------------------------------------------------


def validate_api_key(
    key: Any,
    provider: str = DEFAULT_PROVIDER,
    *,
    min_length: Optional[int] = None,
    max_length: Optional[int] = None,
    pattern: Optional[Pattern[str]] = None,
) -> str:
    """Return the trimmed key with one layer of wrapping quotes removed."""
    if key is None:
        raise InvalidInputError(f"API key not found for {provider}", provider)
    if not isinstance(key, str):
        raise InvalidInputError(f"API key must be a string for {provider}", provider)

    cleaned = key.strip()
    if len(cleaned) >= 2 and cleaned[0] == cleaned[-1] and cleaned[0] in _QUOTE_CHARS:
        cleaned = cleaned[1:-1].strip()

    if not cleaned:
        raise InvalidInputError(f"API key cannot be empty for {provider}", provider)
    if min_length and len(cleaned) < min_length:
        raise InvalidInputError(
            f"API key for {provider} must be at least {min_length} characters long",
            provider,
        )
    if max_length and len(cleaned) > max_length:
        raise InvalidInputError(
            f"API key for {provider} cannot exceed {max_length} characters", provider
        )
    if pattern is not None and not pattern.fullmatch(cleaned):
        raise InvalidInputError(f"API key format is invalid for {provider}", provider)

    return cleaned


def validate_limit(
    limit: Any,
    provider: str = DEFAULT_PROVIDER,
    *,
    min_limit: int = DEFAULT_MIN_LIMIT,
    max_limit: int = DEFAULT_MAX_LIMIT,
) -> Optional[int]:
    """Return ``limit`` unchanged if it is None or an int within bounds."""
    if limit is None:
        return None
    if isinstance(limit, bool) or not isinstance(limit, int) or not min_limit <= limit <= max_limit:
        raise InvalidInputError(
            f"Limit must be an integer between {min_limit} and {max_limit}", provider
        )
    return limit


def validate_string_array(
    value: Any,
    field_name: str,
    provider: str = DEFAULT_PROVIDER,
    *,
    min_items: Optional[int] = None,
    max_items: Optional[int] = None,
    max_item_length: Optional[int] = None,
    allow_empty: bool = False,
) -> Optional[List[str]]:
    """Validate an optional list of strings.

    An empty list normalizes to ``None`` unless ``allow_empty`` is set, so
    "empty" and "absent" are treated the same by callers.
    """
    if value is None:
        return None
    if isinstance(value, str) or not isinstance(value, Iterable):
        raise InvalidInputError(f"{field_name} must be an array of strings", provider)

    items = list(value)
    if not items and not allow_empty:
        return None
    if min_items is not None and len(items) < min_items:
        raise InvalidInputError(
            f"{field_name} must contain at least {min_items} item(s)", provider
        )
    if max_items is not None and len(items) > max_items:
        raise InvalidInputError(
            f"{field_name} cannot contain more than {max_items} item(s)", provider
        )

    for index, item in enumerate(items):
        if not isinstance(item, str):
            raise InvalidInputError(
                f"{field_name} item at index {index} must be a string", provider
            )
        if max_item_length is not None and len(item) > max_item_length:
            raise InvalidInputError(
                f"{field_name} item at index {index} exceeds maximum length "
                f"of {max_item_length} characters",
                provider,
            )

    return items


def validate_enum(
    value: Any,
    allowed_values: Iterable[str],
    field_name: str,
    provider: str = DEFAULT_PROVIDER,
    *,
    required: bool = False,
) -> Optional[str]:
    allowed = list(allowed_values)
    if value is None:
        if required:
            raise InvalidInputError(f"{field_name} is required", provider)
        return None
    if value not in allowed:
        raise InvalidInputError(
            f"{field_name} must be one of: {', '.join(allowed)}", provider
        )
    return value


# ---------------------------------------------------------------------------
# Query helpers
# ---------------------------------------------------------------------------


def sanitize_query(query: str) -> str:
    """Trim and collapse each run of newlines into one space.

    Idempotent: ``sanitize_query(sanitize_query(s)) == sanitize_query(s)``.
    """
    return _NEWLINES.sub(" ", query.strip())


def validate_query(
    query: Any,
    provider: str = DEFAULT_PROVIDER,
    *,
    min_length: Optional[int] = None,
    max_length: Optional[int] = None,
    allow_empty: bool = False,
) -> str:
    """Sanitize a query and enforce emptiness and length bounds."""
    if not isinstance(query, str):
        raise InvalidInputError("Query must be a non-empty string", provider)

    sanitized = sanitize_query(query)
    if not sanitized and not allow_empty:
        raise InvalidInputError("Query cannot be empty", provider)
    if min_length and len(sanitized) < min_length:
        raise InvalidInputError(
            f"Query must be at least {min_length} characters long", provider
        )
    if max_length and len(sanitized) > max_length:
        raise InvalidInputError(f"Query cannot exceed {max_length} characters", provider)
    return sanitized


__all__ = [
    "UrlValidationOptions",
    "UrlValidationResult",
    "sanitize_query",
    "validate_api_key",
    "validate_enum",
    "validate_limit",
    "validate_query",
    "validate_string_array",
    "validate_url",
    "validate_url_input",
    "validate_urls",
]
