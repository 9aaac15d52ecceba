"""
Portcullis Backend - Application Error Taxonomy
===============================================

What:  Defines the typed errors every layer raises for expected failures.
How:   Each error kind is a member of `ErrorKind`, carrying its HTTP status,
       default message and operational flag. `AppError` takes a kind; the
       subclasses below only bind one, so callers can still `except
       NotFoundError`.
Who:   Raised by services, routes, the auth guard and the rate limiter;
       caught by the error-handling middleware.

Error Kinds:
    AppError (base)              → 500 unless a status is given
    ├── BadRequestError          → 400
    ├── ValidationError          → 400
    ├── UnauthorizedError        → 401
    ├── ForbiddenError           → 403
    ├── NotFoundError            → 404
    ├── ConflictError            → 409
    ├── TooManyRequestsError     → 429
    └── OAuthError               → 502 (non-operational)

Operational vs. defect:
    is_operational=True  → expected, caller-facing (bad input, missing row)
    is_operational=False → a defect or broken dependency; logged in full
    Anything that is not an AppError is always treated as a defect.
"""

from enum import Enum
from typing import Dict, Optional


class ErrorKind(Enum):
    """(status_code, default_message, is_operational) for each error kind."""

    APP = (500, "An unexpected error occurred", True)
    BAD_REQUEST = (400, "Bad request", True)
    VALIDATION = (400, "Validation failed", True)
    UNAUTHORIZED = (401, "Unauthorized", True)
    FORBIDDEN = (403, "Forbidden", True)
    NOT_FOUND = (404, "Resource not found", True)
    CONFLICT = (409, "Resource conflict", True)
    TOO_MANY_REQUESTS = (429, "Too many requests", True)
    OAUTH = (502, "Failed to fetch Google user", False)

    def __init__(self, status_code: int, default_message: str, is_operational: bool):
        self.status_code = status_code
        self.default_message = default_message
        self.is_operational = is_operational


class AppError(Exception):
    """
    Base exception for all Portcullis application errors.

    Attributes:
        message:         Client-facing description (safe to return)
        status_code:     HTTP status of the failure envelope
        is_operational:  False marks a defect rather than an expected failure
        headers:         Extra response headers (e.g. rate-limit headers)
    """

    kind: ErrorKind = ErrorKind.APP

    def __init__(
        self,
        message: Optional[str] = None,
        status_code: Optional[int] = None,
        is_operational: Optional[bool] = None,
        headers: Optional[Dict[str, str]] = None,
    ):
        self.message = message or self.kind.default_message
        self.status_code = status_code if status_code is not None else self.kind.status_code
        self.is_operational = (
            is_operational if is_operational is not None else self.kind.is_operational
        )
        self.headers = dict(headers or {})
        super().__init__(self.message)

    @classmethod
    def of(cls, kind: ErrorKind, message: Optional[str] = None, **kwargs) -> "AppError":
        """Build the error class registered for `kind`."""
        return _ERRORS_BY_KIND.get(kind, AppError)(message, **kwargs)

    def __repr__(self) -> str:
        return f"{type(self).__name__}(status_code={self.status_code}, message={self.message!r})"


class BadRequestError(AppError):
    kind = ErrorKind.BAD_REQUEST


class ValidationError(AppError):
    """Business-rule validation that is not expressible in a schema."""

    kind = ErrorKind.VALIDATION


class UnauthorizedError(AppError):
    kind = ErrorKind.UNAUTHORIZED


class ForbiddenError(AppError):
    kind = ErrorKind.FORBIDDEN


class NotFoundError(AppError):
    kind = ErrorKind.NOT_FOUND


class ConflictError(AppError):
    kind = ErrorKind.CONFLICT


class TooManyRequestsError(AppError):
    """Raised by the rate limiter; carries the X-RateLimit-* headers."""

    kind = ErrorKind.TOO_MANY_REQUESTS


class OAuthError(AppError):
    """
    The Google token exchange or userinfo lookup failed.

    Non-operational: the provider, our credentials or the network is broken,
    not the caller's input. The upstream detail goes to the log only.
    """

    kind = ErrorKind.OAUTH


_ERRORS_BY_KIND = {
    cls.kind: cls
    for cls in (
        BadRequestError,
        ValidationError,
        UnauthorizedError,
        ForbiddenError,
        NotFoundError,
        ConflictError,
        TooManyRequestsError,
        OAuthError,
    )
}
