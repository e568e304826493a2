"""
Error taxonomy shared by every BCP.

A BcpError is raised at the point of failure and travels unchanged up to the
registry, which turns it into the failure envelope returned to the agent.
Anything else is wrapped as API_ERROR on the way.
"""

from enum import Enum
from typing import Optional

import httpx


class ErrorCode(str, Enum):
    CONFIG_ERROR = "CONFIG_ERROR"
    AUTH_ERROR = "AUTH_ERROR"
    PERMISSION_ERROR = "PERMISSION_ERROR"
    VALIDATION_ERROR = "VALIDATION_ERROR"
    NOT_FOUND = "NOT_FOUND"
    RATE_LIMIT = "RATE_LIMIT"
    API_ERROR = "API_ERROR"
    INIT_ERROR = "INIT_ERROR"


# Default HTTP-like status for each kind
DEFAULT_STATUS = {
    ErrorCode.CONFIG_ERROR: 400,
    ErrorCode.AUTH_ERROR: 401,
    ErrorCode.PERMISSION_ERROR: 403,
    ErrorCode.VALIDATION_ERROR: 400,
    ErrorCode.NOT_FOUND: 404,
    ErrorCode.RATE_LIMIT: 429,
    ErrorCode.API_ERROR: 500,
    ErrorCode.INIT_ERROR: 500,
}


class BcpError(Exception):
    """Raised when a tool or service call fails with a known classification."""

    def __init__(
        self,
        message: str,
        code: ErrorCode = ErrorCode.API_ERROR,
        http_status: Optional[int] = None,
    ):
        code = ErrorCode(code)
        self.message = message
        self.code = code
        self.http_status = (
            http_status if http_status is not None else DEFAULT_STATUS[code]
        )
        super().__init__(message)

    def to_dict(self):
        return {
            "error": self.message,
            "code": self.code.value,
            "status": self.http_status,
        }

    def __repr__(self):
        return f"BcpError({self.code.value}, {self.http_status}, {self.message!r})"


def status_of(exc: BaseException) -> Optional[int]:
    """Return the upstream HTTP status carried by an exception, if any"""
    if isinstance(exc, httpx.HTTPStatusError):
        return exc.response.status_code

    for attr in ("status_code", "status"):
        value = getattr(exc, attr, None)
        if isinstance(value, int) and 100 <= value <= 599:
            return value
    return None


def code_for_status(status: int) -> ErrorCode:
    """Classify an upstream HTTP status"""
    if status == 401:
        return ErrorCode.AUTH_ERROR
    if status == 403:
        return ErrorCode.PERMISSION_ERROR
    if status == 404:
        return ErrorCode.NOT_FOUND
    if status == 429:
        return ErrorCode.RATE_LIMIT
    if status in (400, 409, 422):
        return ErrorCode.VALIDATION_ERROR
    return ErrorCode.API_ERROR


def wrap_error(exc: BaseException, context: Optional[str] = None) -> BcpError:
    """
    Normalize any exception into a BcpError.

    An existing BcpError is returned as-is so the innermost classification
    wins. Everything else becomes API_ERROR with the upstream message, keeping
    the upstream status when one is available and defaulting to 500.
    """
    if isinstance(exc, BcpError):
        return exc

    message = str(exc) or exc.__class__.__name__
    if context:
        message = f"{context}: {message}"

    return BcpError(message, ErrorCode.API_ERROR, status_of(exc) or 500)
