"""
Portcullis Backend - User SQLAlchemy Model
==========================================

What:  ORM model for the `users` table.
Who:   Used by UserService for CRUD, by AuthService for OAuth linking, and by
       Alembic for schema management.

Table Design:
    - id: integer identity, embedded in bearer tokens as the `id` claim
    - email: unique; the login identifier for both password and Google users
    - password: bcrypt hash; NULL for accounts created through Google
    - google_id: unique; set once an account is linked to a Google identity
    - created_at / updated_at: timezone-aware, maintained by the database

    Columns use portable types so the same model runs on PostgreSQL and on
    the SQLite database the test suite uses.
"""

from datetime import datetime
from typing import Optional

from sqlalchemy import DateTime, Integer, String, Text, func
from sqlalchemy.orm import Mapped, mapped_column

from app.database import Base


class User(Base):
    __tablename__ = "users"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)

    email: Mapped[str] = mapped_column(String(255), unique=True, nullable=False)

    name: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)

    # bcrypt hash, never the plaintext; never serialized
    password: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)

    avatar: Mapped[Optional[str]] = mapped_column(Text, nullable=True)

    google_id: Mapped[Optional[str]] = mapped_column(String(255), unique=True, nullable=True)

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        server_default=func.now(),
    )

    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        server_default=func.now(),
        onupdate=func.now(),
    )

    def __repr__(self) -> str:
        return f"<User(id={self.id}, email='{self.email}')>"
