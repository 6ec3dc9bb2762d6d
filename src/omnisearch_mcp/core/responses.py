"""Response envelope for MCP tool operations.

Every tool returns ``asdict(ToolResponse)``:

    {"success": bool, "data": {...}, "error": str | None,
     "meta": {"version": "response-v2", ...}}

``provider_error_response`` maps the provider error taxonomy onto the
envelope's ``error_code`` / ``error_type`` fields.
"""

import logging
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any, Dict, Mapping, Optional, Sequence, Union

from omnisearch_mcp.core.errors import ErrorKind, ProviderError, RateLimitError
from omnisearch_mcp.core.shared import redact_secrets

logger = logging.getLogger(__name__)

RESPONSE_VERSION = "response-v2"


class ErrorCode(str, Enum):
    """Machine-readable error codes for tool responses."""

    VALIDATION_ERROR = "VALIDATION_ERROR"
    UNAUTHORIZED = "UNAUTHORIZED"
    RATE_LIMITED = "RATE_LIMITED"
    UNAVAILABLE = "UNAVAILABLE"
    INTERNAL_ERROR = "INTERNAL_ERROR"


class ErrorType(str, Enum):
    """Error categories for client-side routing."""

    VALIDATION = "validation"  # No retry, fix input
    AUTHENTICATION = "authentication"  # No retry, fix credentials or request
    RATE_LIMIT = "rate_limit"  # Retry after reset
    UNAVAILABLE = "unavailable"  # Upstream failure, retry later
    INTERNAL = "internal"  # Unexpected server error


_KIND_MAPPING: Dict[ErrorKind, tuple[ErrorCode, ErrorType]] = {
    ErrorKind.INVALID_INPUT: (ErrorCode.VALIDATION_ERROR, ErrorType.VALIDATION),
    ErrorKind.API_ERROR: (ErrorCode.UNAUTHORIZED, ErrorType.AUTHENTICATION),
    ErrorKind.RATE_LIMIT: (ErrorCode.RATE_LIMITED, ErrorType.RATE_LIMIT),
    ErrorKind.PROVIDER_ERROR: (ErrorCode.UNAVAILABLE, ErrorType.UNAVAILABLE),
}


@dataclass
class ToolResponse:
    """
    Standard response structure for MCP tool operations.

    Attributes:
        success: Whether the operation completed successfully
        data: The primary payload (operation-specific structured data)
        error: Error message if success is False, None otherwise
        meta: Response metadata including version identifier
    """

    success: bool
    data: Dict[str, Any] = field(default_factory=dict)
    error: Optional[str] = None
    meta: Dict[str, Any] = field(default_factory=lambda: {"version": RESPONSE_VERSION})


def _build_meta(
    *,
    warnings: Optional[Sequence[str]] = None,
    rate_limit: Optional[Mapping[str, Any]] = None,
    telemetry: Optional[Mapping[str, Any]] = None,
    extra: Optional[Mapping[str, Any]] = None,
) -> Dict[str, Any]:
    meta: Dict[str, Any] = {"version": RESPONSE_VERSION}
    if warnings:
        meta["warnings"] = list(warnings)
    if rate_limit:
        meta["rate_limit"] = dict(rate_limit)
    if telemetry:
        meta["telemetry"] = dict(telemetry)
    if extra:
        meta.update(dict(extra))
    return meta


def success_response(
    data: Optional[Mapping[str, Any]] = None,
    *,
    warnings: Optional[Sequence[str]] = None,
    telemetry: Optional[Mapping[str, Any]] = None,
    meta: Optional[Mapping[str, Any]] = None,
    **fields: Any,
) -> ToolResponse:
    """Create a standardized success response.

    Args:
        data: Optional mapping used as the base payload.
        warnings: Non-fatal issues to surface in ``meta.warnings``.
        telemetry: Timing/performance metadata.
        meta: Arbitrary extra metadata to merge into ``meta``.
        **fields: Additional payload fields (shorthand for ``data.update``).
    """
    payload: Dict[str, Any] = {}
    if data:
        payload.update(dict(data))
    if fields:
        payload.update(fields)

    return ToolResponse(
        success=True,
        data=payload,
        error=None,
        meta=_build_meta(warnings=warnings, telemetry=telemetry, extra=meta),
    )


def error_response(
    message: str,
    *,
    data: Optional[Mapping[str, Any]] = None,
    error_code: Optional[Union[ErrorCode, str]] = None,
    error_type: Optional[Union[ErrorType, str]] = None,
    remediation: Optional[str] = None,
    details: Optional[Mapping[str, Any]] = None,
    rate_limit: Optional[Mapping[str, Any]] = None,
    meta: Optional[Mapping[str, Any]] = None,
) -> ToolResponse:
    """Create a standardized error response.

    Example:
        >>> error_response(
        ...     "tavily error: Query cannot be empty",
        ...     error_code=ErrorCode.VALIDATION_ERROR,
        ...     error_type=ErrorType.VALIDATION,
        ...     remediation="Provide a non-empty query",
        ... )
    """
    payload: Dict[str, Any] = {}
    if data:
        payload.update(dict(data))

    code = error_code if error_code is not None else ErrorCode.INTERNAL_ERROR
    kind = error_type if error_type is not None else ErrorType.INTERNAL
    payload.setdefault("error_code", code.value if isinstance(code, Enum) else code)
    payload.setdefault("error_type", kind.value if isinstance(kind, Enum) else kind)
    if remediation is not None:
        payload.setdefault("remediation", remediation)
    if details:
        payload.setdefault("details", dict(details))

    return ToolResponse(
        success=False,
        data=payload,
        error=message,
        meta=_build_meta(rate_limit=rate_limit, extra=meta),
    )


def _json_safe(value: Any) -> Any:
    if isinstance(value, datetime):
        return value.isoformat()
    if isinstance(value, Mapping):
        return {str(k): _json_safe(v) for k, v in value.items()}
    if isinstance(value, (list, tuple)):
        return [_json_safe(v) for v in value]
    return value


def provider_error_response(error: ProviderError) -> ToolResponse:
    """Serialize a ``ProviderError`` as ``"{provider} error: {message}"``."""
    code, kind = _KIND_MAPPING[error.kind]
    rate_limit = None
    if isinstance(error, RateLimitError) and error.reset_time is not None:
        rate_limit = {"reset_at": error.reset_time.isoformat()}

    return error_response(
        f"{error.provider} error: {error.message}",
        data={"provider": error.provider, "kind": error.kind.value},
        error_code=code,
        error_type=kind,
        details=_json_safe(error.details) if error.details else None,
        rate_limit=rate_limit,
    )


def internal_error_response(exc: BaseException, **context: Any) -> ToolResponse:
    """Envelope for exceptions that escaped the taxonomy."""
    message = redact_secrets(str(exc)) or type(exc).__name__
    return error_response(
        f"Internal error: {message}",
        error_code=ErrorCode.INTERNAL_ERROR,
        error_type=ErrorType.INTERNAL,
        details={**context, "error_type": type(exc).__name__},
    )


__all__ = [
    "ErrorCode",
    "ErrorType",
    "RESPONSE_VERSION",
    "ToolResponse",
    "error_response",
    "internal_error_response",
    "provider_error_response",
    "success_response",
]
