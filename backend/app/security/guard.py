"""
Portcullis Backend - Auth Guard
===============================

What:  FastAPI dependencies that turn a bearer token into an AuthIdentity.
How:   HTTPBearer extracts `Authorization: Bearer <token>`; the token is
       verified (signature + expiry) and the payload is structurally checked
       with `safe_parse` (integer `id`, string `email`).

Two variants:
    authenticate           → 401 on any failure
    optional_authenticate  → None on any failure, never raises

On success the identity is stored on `request.state.user` and also returned,
so handlers receive it as an ordinary parameter:

    @router.get("/me")
    async def me(identity: AuthIdentity = Depends(authenticate)):
        ...
"""

import logging
from typing import Optional

from fastapi import Depends, Request
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from jose import JWTError
from pydantic import BaseModel, StrictInt, StrictStr

from app.constants import INVALID_TOKEN, MISSING_AUTH_HEADER
from app.exceptions import UnauthorizedError
from app.security.tokens import verify_token
from app.validation import safe_parse

logger = logging.getLogger(__name__)

# auto_error=False: a missing header reaches us as None so the failure goes
# through the error envelope instead of FastAPI's default 403
bearer_scheme = HTTPBearer(auto_error=False)


class AuthIdentity(BaseModel):
    id: StrictInt
    email: StrictStr


def resolve_identity(credentials: Optional[HTTPAuthorizationCredentials]) -> AuthIdentity:
    """
    Verify bearer credentials.

    Raises:
        UnauthorizedError: header missing or not "Bearer <token>", token
            invalid or expired, or payload missing `id` / `email`
    """
    # HTTPBearer matches the scheme case-insensitively; only "Bearer" is accepted
    if credentials is None or credentials.scheme != "Bearer" or not credentials.credentials:
        raise UnauthorizedError(MISSING_AUTH_HEADER)

    try:
        payload = verify_token(credentials.credentials)
    except JWTError as e:
        logger.info("Rejected bearer token: %s", e)
        raise UnauthorizedError(INVALID_TOKEN)

    result = safe_parse(AuthIdentity, payload)
    if not result.success:
        logger.info("Rejected bearer token: payload missing id/email")
        raise UnauthorizedError(INVALID_TOKEN)
    return result.data


async def authenticate(
    request: Request,
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(bearer_scheme),
) -> AuthIdentity:
    identity = resolve_identity(credentials)
    request.state.user = identity
    return identity


async def optional_authenticate(
    request: Request,
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(bearer_scheme),
) -> Optional[AuthIdentity]:
    """Like `authenticate`, but an anonymous or badly-authenticated caller gets None."""
    try:
        identity = resolve_identity(credentials)
    except UnauthorizedError:
        return None
    request.state.user = identity
    return identity
