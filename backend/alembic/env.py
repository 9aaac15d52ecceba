"""
Alembic migration environment for Portcullis.

The database URL comes from app.config (DATABASE_URL) unless overridden on
the command line; alembic.ini never holds credentials. Online migrations
run over the async engine through connection.run_sync().

    cd backend && alembic upgrade head
    cd backend && alembic -x dburl=sqlite+aiosqlite:///./local.db upgrade head

SQLite cannot ALTER most constraints in place, so its migrations are
rendered in batch mode (copy-and-move tables).
"""

import asyncio
from logging.config import fileConfig

from alembic import context
from sqlalchemy import pool
from sqlalchemy.engine import Connection
from sqlalchemy.ext.asyncio import async_engine_from_config

from app.config import settings
from app.database import Base

# Registers the users table on Base.metadata for --autogenerate
from app.models.user import User  # noqa: F401

alembic_cfg = context.config

if alembic_cfg.config_file_name is not None:
    fileConfig(alembic_cfg.config_file_name)


def database_url() -> str:
    return context.get_x_argument(as_dictionary=True).get("dburl") or settings.database_url


alembic_cfg.set_main_option("sqlalchemy.url", database_url())


def run_migrations_offline() -> None:
    """Print the DDL instead of executing it (`alembic upgrade head --sql`)."""
    url = alembic_cfg.get_main_option("sqlalchemy.url")
    context.configure(
        url=url,
        target_metadata=Base.metadata,
        literal_binds=True,
        dialect_opts={"paramstyle": "named"},
        render_as_batch=url.startswith("sqlite"),
    )
    with context.begin_transaction():
        context.run_migrations()


def apply_migrations(connection: Connection) -> None:
    context.configure(
        connection=connection,
        target_metadata=Base.metadata,
        compare_type=True,
        render_as_batch=connection.dialect.name == "sqlite",
    )
    with context.begin_transaction():
        context.run_migrations()


async def run_migrations_online() -> None:
    engine = async_engine_from_config(
        alembic_cfg.get_section(alembic_cfg.config_ini_section, {}),
        prefix="sqlalchemy.",
        poolclass=pool.NullPool,
    )
    try:
        async with engine.connect() as connection:
            await connection.run_sync(apply_migrations)
    finally:
        await engine.dispose()


if context.is_offline_mode():
    run_migrations_offline()
else:
    asyncio.run(run_migrations_online())
