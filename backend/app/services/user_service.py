"""
Portcullis Backend - User Service
=================================

What:  Business logic for user accounts over the `users` table.
How:   Stateless; every method takes the request's AsyncSession. Writes
       flush (not commit) so the row gets its id and server defaults inside
       the request transaction; get_db_session commits at the end.
Who:   Called by the /users routes and by AuthService.

Error Strategy:
    Missing rows come back as None; the routes decide whether that is a
    404. Database errors propagate untouched: the /users routes reclassify
    unique violations as 409 and everything else reaches the error
    middleware as a 500.
"""

import logging
import math
from typing import Any, Dict, List, Optional, Tuple

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from app.models.user import User
from app.schemas.user import CreateUser, UpdateUser
from app.security.passwords import hash_password, verify_password

logger = logging.getLogger(__name__)

# Columns an update may not null out
_NOT_NULLABLE_UPDATES = ("email", "password")


class UserService:
    """
    CRUD plus credential checks for users.

    Responsibilities:
        - list_users(): one page ordered by id, plus the total row count
        - get_by_id() / get_by_email(): single lookups
        - create() / update() / delete(): writes, hashing passwords on the way in
        - verify_credentials(): email + password login check
    """

    async def list_users(
        self, db: AsyncSession, page: int = 1, limit: int = 10
    ) -> Tuple[List[User], Dict[str, int]]:
        """
        One page of users and its pagination meta.

        Query plan:
            SELECT count(users.id) FROM users
            SELECT * FROM users ORDER BY id LIMIT :limit OFFSET :offset

        Returns:
            (users, {"page", "limit", "total", "totalPages"})
        """
        total = (await db.execute(select(func.count(User.id)))).scalar() or 0

        result = await db.execute(
            select(User).order_by(User.id).limit(limit).offset((page - 1) * limit)
        )
        users = list(result.scalars().all())

        meta = {
            "page": page,
            "limit": limit,
            "total": total,
            "totalPages": math.ceil(total / limit) if limit else 0,
        }
        return users, meta

    async def get_by_id(self, db: AsyncSession, user_id: int) -> Optional[User]:
        result = await db.execute(select(User).where(User.id == user_id))
        return result.scalar_one_or_none()

    async def get_by_email(self, db: AsyncSession, email: str) -> Optional[User]:
        result = await db.execute(select(User).where(User.email == email))
        return result.scalar_one_or_none()

    async def create(
        self, db: AsyncSession, data: CreateUser, google_id: Optional[str] = None
    ) -> User:
        """
        Insert a user. The password, if any, is stored as a bcrypt hash.

        Raises:
            sqlalchemy.exc.IntegrityError: email (or google_id) already taken
        """
        user = User(
            email=data.email,
            name=data.name,
            avatar=data.avatar,
            password=await hash_password(data.password) if data.password else None,
            google_id=google_id,
        )
        db.add(user)
        await db.flush()
        # Load server-side defaults (created_at / updated_at)
        await db.refresh(user)
        logger.info("User created: id=%s", user.id)
        return user

    async def update(self, db: AsyncSession, user_id: int, data: UpdateUser) -> Optional[User]:
        """
        Apply the fields present in `data`. None when the user does not exist.

        Fields the client did not send are left alone; an explicit null is
        honoured for name and avatar and ignored for email and password.
        """
        user = await self.get_by_id(db, user_id)
        if user is None:
            return None

        changes: Dict[str, Any] = data.model_dump(exclude_unset=True)
        for column in _NOT_NULLABLE_UPDATES:
            if column in changes and changes[column] is None:
                del changes[column]
        if changes.get("password"):
            changes["password"] = await hash_password(changes["password"])

        for column, value in changes.items():
            setattr(user, column, value)

        await db.flush()
        await db.refresh(user)
        logger.info("User updated: id=%s fields=%s", user.id, sorted(changes))
        return user

    async def link_google(
        self, db: AsyncSession, user: User, google_id: str, avatar: Optional[str]
    ) -> User:
        """Attach a Google identity (and its picture) to an existing account."""
        user.google_id = google_id
        user.avatar = avatar
        await db.flush()
        await db.refresh(user)
        logger.info("Linked Google account to user id=%s", user.id)
        return user

    async def delete(self, db: AsyncSession, user_id: int) -> Optional[User]:
        """Remove a user; returns the deleted row, or None if it did not exist."""
        user = await self.get_by_id(db, user_id)
        if user is None:
            return None
        await db.delete(user)
        await db.flush()
        logger.info("User deleted: id=%s", user_id)
        return user

    async def verify_credentials(
        self, db: AsyncSession, email: str, password: str
    ) -> Optional[User]:
        """
        The user when `password` matches the stored hash, else None.

        Accounts without a password (Google-only) never match.
        """
        user = await self.get_by_email(db, email)
        if user is None or not user.password:
            return None
        if not await verify_password(password, user.password):
            return None
        return user


user_service = UserService()
