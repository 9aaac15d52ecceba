"""
Portcullis Backend - Error-Handling Middleware
==============================================

What:  The terminal stage of the pipeline. Whatever a downstream stage
       raises becomes a failure envelope here.
How:   `ErrorHandlerMiddleware` wraps everything below it (rate limiter,
       auth guard, routes, services):

           RUNNING ──(downstream raises)──▶ CAUGHT ──▶ RESPONDED

       AppError            → fail(error.message, error.status_code, error)
                             plus any headers the error carries
       anything else       → logged with traceback, then
                             fail("An unexpected error occurred", 500, error)

       It never re-raises. Framework errors that FastAPI resolves itself
       (unknown route, wrong method, request validation) are turned into the
       same envelope by the handlers in `register_error_handlers`.

Logging policy:
    Operational AppErrors are expected traffic and stay at INFO.
    Non-operational AppErrors and unknown exceptions are logged at ERROR
    with the full stack, in every environment.
"""

import logging

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException
from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.responses import Response

from app.constants import UNEXPECTED_ERROR
from app.exceptions import AppError
from app.responses import fail
from app.validation import request_validation_handler

logger = logging.getLogger(__name__)


def error_to_response(request: Request, exc: Exception) -> JSONResponse:
    """Map one raised exception onto its failure envelope."""
    if isinstance(exc, AppError):
        if exc.is_operational:
            logger.info(
                "%s %s failed with %d: %s",
                request.method,
                request.url.path,
                exc.status_code,
                exc.message,
            )
        else:
            logger.error(
                "%s %s failed with %s: %s",
                request.method,
                request.url.path,
                type(exc).__name__,
                exc.message,
                exc_info=exc,
            )
        return fail(exc.message, exc.status_code, exc, headers=exc.headers)

    logger.error(
        "Unexpected error on %s %s: %s",
        request.method,
        request.url.path,
        exc,
        exc_info=exc,
    )
    return fail(UNEXPECTED_ERROR, 500, exc)


class ErrorHandlerMiddleware(BaseHTTPMiddleware):
    """Catches everything raised below it and answers with an envelope."""

    async def dispatch(
        self, request: Request, call_next: RequestResponseEndpoint
    ) -> Response:
        try:
            return await call_next(request)
        except Exception as exc:
            return error_to_response(request, exc)


async def http_exception_handler(
    request: Request, exc: StarletteHTTPException
) -> JSONResponse:
    """Routing-level errors (404 unknown path, 405 wrong method)."""
    return fail(str(exc.detail), exc.status_code, headers=exc.headers)


def register_error_handlers(app: FastAPI) -> None:
    """
    Wire the envelope handlers FastAPI dispatches to on its own.

    AppError is deliberately absent: it propagates out of the router and is
    answered by ErrorHandlerMiddleware, whether it came from a route, a
    dependency or another middleware.
    """
    app.add_exception_handler(StarletteHTTPException, http_exception_handler)  # type: ignore[arg-type]
    app.add_exception_handler(RequestValidationError, request_validation_handler)  # type: ignore[arg-type]
