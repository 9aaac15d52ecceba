"""
Portcullis Backend - User Route Handlers
========================================

What:  CRUD over /users plus GET /users/me.
How:   Thin handlers: parse the id, call UserService, wrap the result with
       ok(). Failures are raised as AppErrors and rendered by the error
       middleware.
Who:   Rate limited by the standard (100 / 15 min) policy.

Route order matters: /me is registered before /{user_id}, otherwise "me"
would be captured as an id and rejected as "Invalid ID".
"""

import logging
from typing import List, Optional

from fastapi import APIRouter, Depends, Query
from fastapi.responses import JSONResponse
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from app.constants import (
    CURRENT_USER_RETRIEVED,
    DEFAULT_LIMIT,
    DEFAULT_PAGE,
    EMAIL_ALREADY_EXISTS,
    INVALID_ID,
    MAX_LIMIT,
    USER_CREATED,
    USER_DELETED,
    USER_NOT_FOUND,
    USER_RETRIEVED,
    USER_UPDATED,
    USERS_RETRIEVED,
)
from app.database import get_db_session, is_unique_violation
from app.exceptions import BadRequestError, ConflictError, NotFoundError
from app.models.user import User
from app.responses import ok
from app.schemas.envelope import ERROR_RESPONSES, SuccessEnvelope
from app.schemas.user import CreateUser, UpdateUser, UserResponse
from app.security.guard import AuthIdentity, authenticate, optional_authenticate
from app.services.user_service import user_service

logger = logging.getLogger(__name__)

# Upper bound of the INTEGER primary key
MAX_USER_ID = 2**31 - 1

router = APIRouter(prefix="/users", tags=["Users"])


def parse_user_id(raw: str) -> int:
    """
    Path ids are plain ASCII digit strings; anything else is a 400.

    Ids outside the integer column's range cannot exist, so they are a
    404 rather than a driver overflow.
    """
    if not (raw.isascii() and raw.isdigit()):
        raise BadRequestError(INVALID_ID)
    uid = int(raw)
    if not 1 <= uid <= MAX_USER_ID:
        raise NotFoundError(USER_NOT_FOUND)
    return uid


def to_response(user: User) -> UserResponse:
    return UserResponse.model_validate(user)


@router.get(
    "",
    response_model=SuccessEnvelope[List[UserResponse]],
    responses=ERROR_RESPONSES,
    summary="List users",
)
async def list_users(
    page: int = Query(default=DEFAULT_PAGE, ge=1, description="Page number (1-based)"),
    limit: int = Query(
        default=DEFAULT_LIMIT, ge=1, le=MAX_LIMIT, description="Items per page (max 100)"
    ),
    db: AsyncSession = Depends(get_db_session),
) -> JSONResponse:
    users, meta = await user_service.list_users(db, page=page, limit=limit)
    return ok([to_response(u) for u in users], USERS_RETRIEVED, meta=meta)


@router.get(
    "/me",
    response_model=SuccessEnvelope[UserResponse],
    responses=ERROR_RESPONSES,
    summary="Current user",
    description="Profile of the user the bearer token belongs to.",
)
async def get_current_user(
    identity: AuthIdentity = Depends(authenticate),
    db: AsyncSession = Depends(get_db_session),
) -> JSONResponse:
    user = await user_service.get_by_id(db, identity.id)
    if user is None:
        # Token outlived its account
        raise NotFoundError(USER_NOT_FOUND)
    return ok(to_response(user), CURRENT_USER_RETRIEVED)


@router.get(
    "/{user_id}",
    response_model=SuccessEnvelope[UserResponse],
    responses=ERROR_RESPONSES,
    summary="Get a user",
    description=(
        "Public lookup. A caller sending a bearer token for the same user is "
        "told it is their own record."
    ),
)
async def get_user(
    user_id: str,
    identity: Optional[AuthIdentity] = Depends(optional_authenticate),
    db: AsyncSession = Depends(get_db_session),
) -> JSONResponse:
    uid = parse_user_id(user_id)
    user = await user_service.get_by_id(db, uid)
    if user is None:
        raise NotFoundError(USER_NOT_FOUND)

    message = CURRENT_USER_RETRIEVED if identity and identity.id == user.id else USER_RETRIEVED
    return ok(to_response(user), message)


@router.post(
    "",
    status_code=201,
    response_model=SuccessEnvelope[UserResponse],
    responses=ERROR_RESPONSES,
    summary="Create a user",
)
async def create_user(
    body: CreateUser,
    db: AsyncSession = Depends(get_db_session),
) -> JSONResponse:
    try:
        user = await user_service.create(db, body)
    except IntegrityError as e:
        if is_unique_violation(e):
            raise ConflictError(EMAIL_ALREADY_EXISTS)
        raise
    return ok(to_response(user), USER_CREATED, status=201)


@router.put(
    "/{user_id}",
    response_model=SuccessEnvelope[UserResponse],
    responses=ERROR_RESPONSES,
    summary="Update a user",
)
async def update_user(
    user_id: str,
    body: UpdateUser,
    db: AsyncSession = Depends(get_db_session),
) -> JSONResponse:
    uid = parse_user_id(user_id)
    try:
        user = await user_service.update(db, uid, body)
    except IntegrityError as e:
        if is_unique_violation(e):
            raise ConflictError(EMAIL_ALREADY_EXISTS)
        raise
    if user is None:
        raise NotFoundError(USER_NOT_FOUND)
    return ok(to_response(user), USER_UPDATED)


@router.delete(
    "/{user_id}",
    responses=ERROR_RESPONSES,
    summary="Delete a user",
)
async def delete_user(
    user_id: str,
    db: AsyncSession = Depends(get_db_session),
) -> JSONResponse:
    uid = parse_user_id(user_id)
    user = await user_service.delete(db, uid)
    if user is None:
        raise NotFoundError(USER_NOT_FOUND)
    return ok({"id": uid}, USER_DELETED)
