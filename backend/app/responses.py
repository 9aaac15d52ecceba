"""
Portcullis Backend - Response Envelope Builder
===============================================

What:  Builds the uniform JSON shape every endpoint returns.
How:   `success_body` / `failure_body` build plain dicts; `ok` / `fail` wrap
       them in a JSONResponse with the status. Nothing here writes to the
       transport; the framework sends whatever the caller returns.

Shapes:
    success: {"success": true,  "message"?: str, "data": T, "meta"?: {...}}
    failure: {"success": false, "message": str, "error"?: str, "stack"?: str}

Security boundary:
    `error` and `stack` are only ever filled outside production. In
    production they are dropped no matter what exception is passed in.
"""

import traceback
from typing import Any, Dict, Mapping, Optional

from fastapi.encoders import jsonable_encoder
from fastapi.responses import JSONResponse

from app.config import settings


def success_body(
    data: Any,
    message: Optional[str] = None,
    meta: Optional[Mapping[str, Any]] = None,
) -> Dict[str, Any]:
    """Success envelope dict. Absent message/meta keys are left out."""
    body: Dict[str, Any] = {"success": True}
    if message is not None:
        body["message"] = message
    body["data"] = data
    if meta is not None:
        body["meta"] = dict(meta)
    return body


def failure_body(
    message: str,
    error: Optional[BaseException] = None,
    production: Optional[bool] = None,
) -> Dict[str, Any]:
    """
    Failure envelope dict.

    Args:
        message:    Client-facing message
        error:      The exception behind the failure, if any
        production: Overrides the configured environment (tests, tooling)
    """
    if production is None:
        production = settings.is_production

    body: Dict[str, Any] = {"success": False, "message": message}
    if error is not None and not production:
        body["error"] = str(error) or type(error).__name__
        body["stack"] = "".join(
            traceback.format_exception(type(error), error, error.__traceback__)
        )
    return body


def ok(
    data: Any,
    message: Optional[str] = None,
    status: int = 200,
    meta: Optional[Mapping[str, Any]] = None,
    headers: Optional[Mapping[str, str]] = None,
) -> JSONResponse:
    """Wrap `data` in a success envelope response."""
    return JSONResponse(
        status_code=status,
        content=jsonable_encoder(success_body(data, message=message, meta=meta)),
        headers=dict(headers) if headers else None,
    )


def fail(
    message: str,
    status: int = 500,
    error: Optional[BaseException] = None,
    headers: Optional[Mapping[str, str]] = None,
) -> JSONResponse:
    """Wrap a failure in the error envelope response."""
    return JSONResponse(
        status_code=status,
        content=failure_body(message, error=error),
        headers=dict(headers) if headers else None,
    )
