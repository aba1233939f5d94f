"""Error normalization for StudyHub API responses.

Turns transport failures, unparseable bodies and the backend's assorted
error payloads into a single ``ApiError`` value.
"""

import logging
import re
from dataclasses import dataclass
from enum import Enum
from typing import Any, Optional

import httpx

from .models import DEFAULT_ERROR_MESSAGE, ApiError, ErrorKind

logger = logging.getLogger(__name__)

_DNS_ERROR_PATTERNS = [
    r"name.*resolution.*failed",
    r"name.*or.*service.*not.*known",
    r"nodename.*nor.*servname.*provided",
    r"temporary.*failure.*in.*name.*resolution",
]
_CONNECTION_ERROR_PATTERNS = [
    r"connection.*refused",
    r"connection.*reset",
    r"network.*is.*unreachable",
    r"no.*route.*to.*host",
]
_SSL_ERROR_PATTERNS = [
    r"ssl.*certificate.*verification.*failed",
    r"certificate.*verify.*failed",
    r"ssl.*handshake.*failed",
    r"bad.*certificate",
]


class ErrorBodyShape(Enum):
    """Shapes an error body is recognized as, in matching order."""

    NESTED = "nested"
    FLAT = "flat"
    ABSENT = "absent"


@dataclass(frozen=True)
class ParsedErrorBody:
    shape: ErrorBodyShape
    message: Optional[str] = None
    code: Optional[str] = None


def _string_or_none(value: Any) -> Optional[str]:
    if isinstance(value, str) and value.strip():
        return value
    return None


def _code_or_none(value: Any) -> Optional[str]:
    if isinstance(value, int) and not isinstance(value, bool):
        return str(value)
    return _string_or_none(value)


def parse_error_body(body: Any) -> ParsedErrorBody:
    """Classify a decoded error body.

    ``{"error": {"code": ..., "message": ...}}`` is NESTED; a top-level
    ``message`` or ``error`` string is FLAT; anything else is ABSENT.
    """
    if not isinstance(body, dict):
        return ParsedErrorBody(ErrorBodyShape.ABSENT)

    nested = body.get("error")
    if isinstance(nested, dict):
        code = _code_or_none(nested.get("code"))
        message = _string_or_none(nested.get("message"))
        if code or message:
            return ParsedErrorBody(
                ErrorBodyShape.NESTED,
                message=message or _string_or_none(body.get("message")),
                code=code,
            )

    message = _string_or_none(body.get("message")) or _string_or_none(
        body.get("error")
    )
    if message:
        return ParsedErrorBody(
            ErrorBodyShape.FLAT, message=message, code=_code_or_none(body.get("code"))
        )

    return ParsedErrorBody(ErrorBodyShape.ABSENT)


def normalize_error(body: Any, status: int) -> ApiError:
    """Build the ApiError for a non-2xx response with a decoded body."""
    parsed = parse_error_body(body)
    kind = ErrorKind.UNAUTHORIZED if status == 401 else ErrorKind.SERVER
    return ApiError(
        kind=kind,
        message=parsed.message or DEFAULT_ERROR_MESSAGE,
        status=status,
        code=parsed.code,
    )


def parse_failure(text: str, status: int) -> ApiError:
    """ApiError for a body that could not be decoded as JSON."""
    message = text or f"Server returned {status}"
    return ApiError(kind=ErrorKind.PARSE, message=message, status=status)


def timeout_failure(timeout: float) -> ApiError:
    return ApiError(
        kind=ErrorKind.TIMEOUT,
        message=f"Request timed out after {timeout:g} seconds",
        status=0,
    )


def network_failure(error: Exception) -> ApiError:
    """Classify an httpx transport exception into a NETWORK ApiError."""
    error_message = str(error).lower()

    if isinstance(error, httpx.ConnectError):
        if any(re.search(p, error_message) for p in _DNS_ERROR_PATTERNS):
            message = "Cannot resolve server address. Check your internet connection and server URL."
        elif any(re.search(p, error_message) for p in _SSL_ERROR_PATTERNS):
            message = "SSL certificate verification failed. Server may be using invalid certificate."
        elif any(re.search(p, error_message) for p in _CONNECTION_ERROR_PATTERNS):
            message = "Cannot connect to server. Check if server is running and accessible."
        else:
            message = f"Connection failed: {error}"
    elif isinstance(error, httpx.NetworkError):
        message = f"Network error: {error}"
    else:
        message = f"Network error occurred: {error}" if str(error) else "Network error occurred"

    logger.debug(f"Transport failure classified as network error: {error!r}")
    return ApiError(kind=ErrorKind.NETWORK, message=message, status=0)
