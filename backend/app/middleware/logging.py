"""
Portcullis Backend - Request Logging Middleware
================================================

What:  One access-log line per request: method, path, status, duration,
       client address.
How:   Measures around call_next and picks the level from the status class
       (5xx ERROR, 4xx WARNING, otherwise INFO). The request ID is added to
       the record by RequestIDFilter.
When:  Runs outside ErrorHandlerMiddleware, so failures are logged with the
       status of the envelope that was actually sent.

Not logged: request bodies, Authorization headers, tokens.
"""

import logging
import time

from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import Response

from app.middleware.rate_limit import client_key

logger = logging.getLogger("portcullis.access")

# Probed every few seconds by orchestrators
QUIET_PATHS = {"/health"}


class RequestLoggingMiddleware(BaseHTTPMiddleware):
    async def dispatch(
        self, request: Request, call_next: RequestResponseEndpoint
    ) -> Response:
        if request.url.path in QUIET_PATHS:
            return await call_next(request)

        start_time = time.perf_counter()
        response = await call_next(request)
        duration_ms = (time.perf_counter() - start_time) * 1000

        status = response.status_code
        if status >= 500:
            log_level = logging.ERROR
        elif status >= 400:
            log_level = logging.WARNING
        else:
            log_level = logging.INFO

        client = client_key(request)
        if client == "unknown" and request.client:
            client = request.client.host

        logger.log(
            log_level,
            "%s %s %d %.1fms from %s",
            request.method,
            request.url.path,
            status,
            duration_ms,
            client,
            extra={
                "method": request.method,
                "path": request.url.path,
                "status": status,
                "duration_ms": round(duration_ms, 2),
                "client_ip": client,
            },
        )
        return response
