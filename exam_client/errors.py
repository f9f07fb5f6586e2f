"""
Error taxonomy for the request pipeline. Every failure reaching a caller is an ApiError
(success=False, message), whatever the transport-level cause.
"""
import logging
from enum import Enum
from typing import Any

import httpx

logger = logging.getLogger(__name__)


class ErrorKind(str, Enum):
    RETRYABLE_AUTH = "retryable_auth"
    TERMINAL_AUTH = "terminal_auth"
    FORBIDDEN = "forbidden"
    NOT_FOUND = "not_found"
    SERVER_FAULT = "server_fault"
    CLIENT_ERROR = "client_error"
    NETWORK = "network"


class ApiError(Exception):
    success = False

    def __init__(
        self,
        message: str,
        *,
        kind: ErrorKind = ErrorKind.CLIENT_ERROR,
        status_code: int | None = None,
        payload: Any = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        self.kind = kind
        self.status_code = status_code
        self.payload = payload

    def to_result(self) -> dict:
        return {"success": False, "message": self.message, "status": self.status_code}


class AuthenticationError(ApiError):
    """Terminal authentication failure; the session cannot be recovered without a new login."""

    def __init__(self, message: str = "Authentication required", **kwargs: Any) -> None:
        kwargs.setdefault("kind", ErrorKind.TERMINAL_AUTH)
        kwargs.setdefault("status_code", 401)
        super().__init__(message, **kwargs)


class RenewalError(AuthenticationError):
    """The renewal exchange itself failed (rejected, unreachable or malformed)."""


class NetworkError(ApiError):
    """No response received: connection failure or timeout. Never treated as an auth condition."""

    def __init__(self, message: str, **kwargs: Any) -> None:
        kwargs.setdefault("kind", ErrorKind.NETWORK)
        super().__init__(message, **kwargs)


def error_message(body: Any, default: str) -> str:
    """Best-effort message from a portal error body ({errorFields, result, message})."""
    if not isinstance(body, dict):
        return default
    fields = body.get("errorFields")
    if isinstance(fields, list) and fields and isinstance(fields[0], dict) and fields[0].get("message"):
        return str(fields[0]["message"])
    result = body.get("result")
    if isinstance(result, dict) and result.get("responseDescription"):
        return str(result["responseDescription"])
    for key in ("message", "error_description", "error"):
        if isinstance(body.get(key), str) and body[key]:
            return body[key]
    detail = body.get("detail")
    if isinstance(detail, dict):
        return error_message(detail, default)
    if isinstance(detail, str) and detail:
        return detail
    return default


def response_body(response: httpx.Response) -> Any:
    """Decoded body: JSON when the server says so, else text; None when empty."""
    if not response.content:
        return None
    if response.headers.get("content-type", "").startswith("application/json"):
        try:
            return response.json()
        except ValueError:
            return response.text
    return response.text


_STATUS_KINDS = {
    401: (ErrorKind.RETRYABLE_AUTH, "Unauthorized"),
    403: (ErrorKind.FORBIDDEN, "Access denied"),
    404: (ErrorKind.NOT_FOUND, "Resource not found"),
}


def classify_response(response: httpx.Response) -> ApiError:
    """Map a non-2xx response onto the taxonomy. 401 here is the raw signal; the pipeline decides terminal vs retryable."""
    status = response.status_code
    body = response_body(response)
    if status in _STATUS_KINDS:
        kind, default = _STATUS_KINDS[status]
    elif status >= 500:
        kind, default = ErrorKind.SERVER_FAULT, "Server error"
    else:
        kind, default = ErrorKind.CLIENT_ERROR, f"Request failed with status {status}"
    message = error_message(body, default)
    if kind is ErrorKind.SERVER_FAULT:
        logger.error("Server error %s on %s %s: %s", status, response.request.method, response.request.url.path, message)
    elif kind is not ErrorKind.RETRYABLE_AUTH:
        logger.warning("API error %s on %s %s: %s", status, response.request.method, response.request.url.path, message)
    return ApiError(message, kind=kind, status_code=status, payload=body)


def classify_transport_error(exc: httpx.HTTPError) -> NetworkError:
    if isinstance(exc, httpx.TimeoutException):
        logger.error("Request timeout: %s", exc)
        return NetworkError("Request timeout")
    logger.error("Network error: %s", exc)
    return NetworkError(f"Network error: {exc}" if str(exc) else "Network error")
