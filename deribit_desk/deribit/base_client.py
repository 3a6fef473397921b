"""
HTTP transport and error types shared by every Deribit call.

This module provides the foundation for the desk client. It implements:
- A single HTTP POST per JSON-RPC request with httpx
- The error taxonomy (transport, parse, API, client validation, auth)
- Error classification for consistent failure handling

The transport never raises for network trouble: it hands back an empty
body and a diagnostic, and the caller decides what that means.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, Optional

import httpx

from deribit_desk.models import ErrorInfo

logger = logging.getLogger(__name__)

DEFAULT_TIMEOUT_SECONDS = 10.0


class DeribitErrorCode(str, Enum):
    """Classification of Deribit API errors for consistent handling."""
    NETWORK = "network_error"
    TIMEOUT = "timeout_error"
    AUTH = "auth_error"
    RATE_LIMIT = "rate_limit"
    FORBIDDEN = "forbidden"
    NOT_FOUND = "not_found"
    BAD_REQUEST = "bad_request"
    SERVER_ERROR = "server_error"
    UNKNOWN = "unknown"


class ErrorKind(str, Enum):
    """Where a call failed."""
    TRANSPORT = "transport_error"
    PARSE = "parse_error"
    API = "api_error"
    VALIDATION = "validation_error"


def classify_http_status(status_code: int) -> DeribitErrorCode:
    """Classify HTTP status code to error code."""
    if status_code == 401:
        return DeribitErrorCode.AUTH
    elif status_code == 403:
        return DeribitErrorCode.FORBIDDEN
    elif status_code == 404:
        return DeribitErrorCode.NOT_FOUND
    elif status_code == 429:
        return DeribitErrorCode.RATE_LIMIT
    elif status_code == 400:
        return DeribitErrorCode.BAD_REQUEST
    elif 500 <= status_code < 600:
        return DeribitErrorCode.SERVER_ERROR
    else:
        return DeribitErrorCode.UNKNOWN


def classify_error_message(message: str) -> DeribitErrorCode:
    """Classify a JSON-RPC error message."""
    msg_lower = message.lower()
    if "unauthorized" in msg_lower or "invalid" in msg_lower and "token" in msg_lower:
        return DeribitErrorCode.AUTH
    elif "forbidden" in msg_lower or "access denied" in msg_lower:
        return DeribitErrorCode.FORBIDDEN
    elif "rate limit" in msg_lower or "too many" in msg_lower:
        return DeribitErrorCode.RATE_LIMIT
    elif "not found" in msg_lower or "not_open_order" in msg_lower:
        return DeribitErrorCode.NOT_FOUND
    elif "invalid params" in msg_lower:
        return DeribitErrorCode.BAD_REQUEST
    return DeribitErrorCode.UNKNOWN


class DeribitAPIError(Exception):
    """
    Base exception for every failed Deribit call.

    Attributes:
        code: Numeric error code from Deribit (-1 for local errors)
        message: Human-readable error message
        error_code: Classified error type for programmatic handling
        http_status: HTTP status code if applicable
    """
    kind: ErrorKind = ErrorKind.API

    def __init__(
        self,
        code: int,
        message: str,
        error_code: DeribitErrorCode = DeribitErrorCode.UNKNOWN,
        http_status: Optional[int] = None,
    ):
        self.code = code
        self.message = message
        self.error_code = error_code
        self.http_status = http_status
        super().__init__(f"Deribit API Error {code}: {message} [{error_code.value}]")


class TransportError(DeribitAPIError):
    """Empty or failed HTTP exchange."""
    kind = ErrorKind.TRANSPORT


class ParseError(DeribitAPIError):
    """Body was not a JSON-RPC response."""
    kind = ErrorKind.PARSE


class ApiError(DeribitAPIError):
    """Well-formed JSON-RPC error object returned by the exchange."""
    kind = ErrorKind.API

    def __init__(self, info: ErrorInfo, http_status: Optional[int] = None):
        self.info = info
        error_code = classify_error_message(info.message)
        if error_code == DeribitErrorCode.UNKNOWN and http_status is not None:
            error_code = classify_http_status(http_status)
        super().__init__(info.code, info.describe(), error_code=error_code, http_status=http_status)


class ClientValidationError(DeribitAPIError):
    """Pre-flight check failed; nothing was sent."""
    kind = ErrorKind.VALIDATION

    def __init__(self, message: str):
        super().__init__(-1, message, error_code=DeribitErrorCode.BAD_REQUEST)


class AuthenticationError(DeribitAPIError):
    """public/auth did not yield an access token."""

    def __init__(
        self,
        message: str,
        kind: ErrorKind = ErrorKind.API,
        http_status: Optional[int] = None,
    ):
        self.kind = kind
        super().__init__(-1, message, error_code=DeribitErrorCode.AUTH, http_status=http_status)


@dataclass
class TransportResponse:
    """Raw outcome of one POST. ``body`` is empty on transport failure."""
    body: str
    status_code: Optional[int] = None
    error: Optional[str] = None
    error_code: Optional[DeribitErrorCode] = None

    @property
    def is_empty(self) -> bool:
        return not self.body.strip()

    @property
    def is_http_error(self) -> bool:
        return self.status_code is not None and not 200 <= self.status_code < 300


class HttpTransport:
    """
    Issues JSON-RPC POSTs with httpx.

    The status code is reported but never raised on; interpreting the body
    is the caller's job.
    """

    def __init__(
        self,
        timeout: float = DEFAULT_TIMEOUT_SECONDS,
        client: Optional[httpx.Client] = None,
    ):
        self._client = client or httpx.Client(timeout=timeout)

    def send(
        self,
        url: str,
        json_body: Dict[str, Any],
        bearer_token: Optional[str] = None,
    ) -> TransportResponse:
        headers = {"Content-Type": "application/json"}
        if bearer_token:
            headers["Authorization"] = f"Bearer {bearer_token}"

        try:
            response = self._client.post(url, json=json_body, headers=headers)
        except httpx.TimeoutException as e:
            logger.warning("Request to %s timed out: %s", url, e)
            return TransportResponse(
                body="",
                error=f"Request timeout: {e}",
                error_code=DeribitErrorCode.TIMEOUT,
            )
        except httpx.RequestError as e:
            logger.warning("Request to %s failed: %s", url, e)
            return TransportResponse(
                body="",
                error=f"Network error: {e}",
                error_code=DeribitErrorCode.NETWORK,
            )

        return TransportResponse(body=response.text, status_code=response.status_code)

    def close(self) -> None:
        """Close the HTTP client."""
        self._client.close()

    def __enter__(self) -> "HttpTransport":
        return self

    def __exit__(self, *args: Any) -> None:
        self.close()
