"""Create users table

Revision ID: 001
Revises: None
Create Date: 2026-10-19 00:00:00.000000+00:00

What:  Creates the `users` table behind /users and /auth.
How:   Integer identity key, unique email and google_id, timestamps with
       time zone defaulting to CURRENT_TIMESTAMP.

Rollback: downgrade() drops the table and every account in it.
"""

from typing import Sequence, Union
from alembic import op
import sqlalchemy as sa

# revision identifiers
revision: str = "001"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.create_table(
        "users",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("email", sa.String(255), nullable=False),
        sa.Column("name", sa.String(255), nullable=True),
        sa.Column(
            "password",
            sa.String(255),
            nullable=True,
            comment="bcrypt hash; NULL for accounts created through Google",
        ),
        sa.Column("avatar", sa.Text(), nullable=True),
        sa.Column("google_id", sa.String(255), nullable=True),
        sa.Column(
            "created_at",
            sa.TIMESTAMP(timezone=True),
            server_default=sa.text("CURRENT_TIMESTAMP"),
            nullable=False,
        ),
        sa.Column(
            "updated_at",
            sa.TIMESTAMP(timezone=True),
            server_default=sa.text("CURRENT_TIMESTAMP"),
            nullable=False,
        ),
        sa.PrimaryKeyConstraint("id"),
        # Violations surface as SQLSTATE 23505, mapped to 409 by the routes
        sa.UniqueConstraint("email", name="users_email_unique"),
        sa.UniqueConstraint("google_id", name="users_google_id_unique"),
    )


def downgrade() -> None:
    op.drop_table("users")
