"""Error normalization for OpsGenie integrations."""

from __future__ import annotations

from enum import Enum
from typing import Any

from .models import ApiErrorRecord

# Legacy lookup signal: HTTP 400 with this body code means "no such heartbeat".
LEGACY_NOT_FOUND_CODE = 17


class ConnectorErrorCode(str, Enum):
    AUTHENTICATION_FAILED = "authentication_failed"
    AUTHORIZATION_FAILED = "authorization_failed"
    NOT_FOUND = "not_found"
    RATE_LIMITED = "rate_limited"
    NETWORK_ERROR = "network_error"
    TIMEOUT = "timeout"
    BAD_REQUEST = "bad_request"
    SCHEMA_VALIDATION = "schema_validation"
    REMOTE_ERROR = "remote_error"
    UNKNOWN = "unknown"


class ConnectorError(Exception):
    """Engine-level normalized connector error."""

    def __init__(
        self,
        code: ConnectorErrorCode,
        message: str,
        *,
        cause: Exception | None = None,
        record: ApiErrorRecord | None = None,
    ):
        super().__init__(message)
        self.code = code
        self.cause = cause
        self.record = record


def is_not_found(error: ConnectorError) -> bool:
    """Return True when the remote reported that the heartbeat does not exist."""

    if error.code == ConnectorErrorCode.NOT_FOUND:
        return True
    return (
        error.code == ConnectorErrorCode.BAD_REQUEST
        and error.record is not None
        and error.record.code == LEGACY_NOT_FOUND_CODE
    )


def map_opsgenie_error(error: Exception | Any) -> ConnectorError:
    """Map OpsGenie or transport errors to internal connector errors.

    HTTP status errors carry the decoded remote ``{code, message}`` record and
    their message names both, so the operator sees what the service said.
    """

    if isinstance(error, ConnectorError):
        return error

    status_code = getattr(error, "status_code", None)
    if status_code is not None:
        record = ApiErrorRecord.from_body(getattr(error, "body", b""), status_code=int(status_code))
        message = f"HTTP {status_code}: code={record.code} message={record.message}"
        if record.request_id:
            message = f"{message} request_id={record.request_id}"
        return ConnectorError(_code_for_status(int(status_code)), message, cause=error, record=record)

    message = str(error) or error.__class__.__name__
    if isinstance(error, TimeoutError):
        return ConnectorError(ConnectorErrorCode.TIMEOUT, message, cause=error)
    if isinstance(error, OSError):
        lowered = message.lower()
        if "timed out" in lowered or "timeout" in lowered:
            return ConnectorError(ConnectorErrorCode.TIMEOUT, message, cause=error)
        return ConnectorError(ConnectorErrorCode.NETWORK_ERROR, message, cause=error)
    if isinstance(error, ValueError):
        return ConnectorError(ConnectorErrorCode.SCHEMA_VALIDATION, message, cause=error)

    return ConnectorError(ConnectorErrorCode.UNKNOWN, message, cause=error)


def _code_for_status(status_code: int) -> ConnectorErrorCode:
    if status_code == 400:
        return ConnectorErrorCode.BAD_REQUEST
    if status_code == 401:
        return ConnectorErrorCode.AUTHENTICATION_FAILED
    if status_code == 403:
        return ConnectorErrorCode.AUTHORIZATION_FAILED
    if status_code == 404:
        return ConnectorErrorCode.NOT_FOUND
    if status_code == 429:
        return ConnectorErrorCode.RATE_LIMITED
    if status_code >= 500:
        return ConnectorErrorCode.REMOTE_ERROR
    return ConnectorErrorCode.UNKNOWN
