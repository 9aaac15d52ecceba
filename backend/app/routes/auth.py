"""
Portcullis Backend - Auth Route Handlers
========================================

What:  Google sign-in (redirect + callback) and email/password login.
Who:   Rate limited by the strict (5 / 15 min) policy.

Both flows answer with the same envelope:
    {"success": true, "message": "Authentication successful",
     "data": {"token": "...", "user": {"id", "email", "name"}}}
"""

import logging
from typing import Optional

from fastapi import APIRouter, Depends, Query
from fastapi.responses import JSONResponse, RedirectResponse
from sqlalchemy.ext.asyncio import AsyncSession

from app.config import settings
from app.constants import AUTH_SUCCESS, MISSING_OAUTH_CODE, OAUTH_NOT_CONFIGURED
from app.database import get_db_session
from app.exceptions import AppError, BadRequestError
from app.responses import ok
from app.schemas.auth import AuthResponse, LoginRequest
from app.schemas.envelope import ERROR_RESPONSES, SuccessEnvelope
from app.services.auth_service import GoogleOAuthService, google_oauth_service

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/auth", tags=["Auth"])


def get_oauth_service() -> GoogleOAuthService:
    return google_oauth_service


def _require_google() -> None:
    if not settings.google_oauth_configured:
        raise AppError(OAUTH_NOT_CONFIGURED, status_code=503)


@router.get(
    "/google",
    status_code=302,
    summary="Start Google sign-in",
    description="Redirects the browser to Google's consent screen.",
    responses={302: {"description": "Redirect to Google"}},
)
async def google_login(
    oauth: GoogleOAuthService = Depends(get_oauth_service),
) -> RedirectResponse:
    _require_google()
    return RedirectResponse(oauth.build_auth_url(), status_code=302)


@router.get(
    "/google/callback",
    response_model=SuccessEnvelope[AuthResponse],
    responses=ERROR_RESPONSES,
    summary="Google sign-in callback",
)
async def google_callback(
    code: Optional[str] = Query(default=None, description="Authorization code from Google"),
    oauth: GoogleOAuthService = Depends(get_oauth_service),
    db: AsyncSession = Depends(get_db_session),
) -> JSONResponse:
    if not code:
        raise BadRequestError(MISSING_OAUTH_CODE)
    _require_google()

    profile = await oauth.get_google_user(code)
    _, result = await oauth.login_or_register(db, profile)
    return ok(result, AUTH_SUCCESS)


@router.post(
    "/login",
    response_model=SuccessEnvelope[AuthResponse],
    responses=ERROR_RESPONSES,
    summary="Email and password login",
)
async def login(
    body: LoginRequest,
    oauth: GoogleOAuthService = Depends(get_oauth_service),
    db: AsyncSession = Depends(get_db_session),
) -> JSONResponse:
    result = await oauth.login_with_password(db, body.email, body.password)
    return ok(result, AUTH_SUCCESS)
