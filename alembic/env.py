"""Alembic environment configuration"""

from alembic import context
from sqlalchemy import pool
from sqlalchemy.ext.asyncio import create_async_engine
from sqlmodel import SQLModel
import asyncio

from app.core.config import get_settings
import app.models  # noqa: F401

# this is the Alembic Config object
config = context.config

target_metadata = SQLModel.metadata


def get_url():
    """Get database URL from config, falling back to application settings"""
    url = config.get_main_option("sqlalchemy.url")
    return url or get_settings().DATABASE_URL.replace("postgresql://", "postgresql+asyncpg://")


def run_migrations_offline():
    """Run migrations in 'offline' mode"""
    context.configure(
        url=get_url(),
        target_metadata=target_metadata,
        literal_binds=True,
        dialect_opts={"paramstyle": "named"},
    )

    with context.begin_transaction():
        context.run_migrations()


def do_run_migrations(connection):
    context.configure(connection=connection, target_metadata=target_metadata)

    with context.begin_transaction():
        context.run_migrations()


async def run_migrations_online():
    """Run migrations in 'online' mode over the async engine"""
    connectable = create_async_engine(get_url(), poolclass=pool.NullPool)

    async with connectable.connect() as connection:
        await connection.run_sync(do_run_migrations)

    await connectable.dispose()


if context.is_offline_mode():
    run_migrations_offline()
else:
    asyncio.run(run_migrations_online())
