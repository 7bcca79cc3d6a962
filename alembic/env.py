"""Alembic environment running migrations over the async engine."""

import asyncio
from logging.config import fileConfig

from sqlalchemy import MetaData
from sqlalchemy.engine import Connection

from alembic import context
from app.database import engine
from app.models.admin_sessions import metadata as admin_sessions_metadata
from app.models.appointments import metadata as appointments_metadata

config = context.config

if config.config_file_name is not None:
    fileConfig(config.config_file_name)

# Combine all metadata
target_metadata = MetaData()
for source in (appointments_metadata, admin_sessions_metadata):
    for table in source.tables.values():
        table.to_metadata(target_metadata)


def do_run_migrations(connection: Connection) -> None:
    """Run migrations on a sync connection."""
    context.configure(connection=connection, target_metadata=target_metadata)

    with context.begin_transaction():
        context.run_migrations()


async def run_migrations_online() -> None:
    """Run migrations against the configured database."""
    async with engine.connect() as connection:
        await connection.run_sync(do_run_migrations)

    await engine.dispose()


def run_migrations_offline() -> None:
    """Emit SQL without a database connection."""
    context.configure(
        url=str(engine.url),
        target_metadata=target_metadata,
        literal_binds=True,
        dialect_opts={"paramstyle": "named"},
    )

    with context.begin_transaction():
        context.run_migrations()


if context.is_offline_mode():
    run_migrations_offline()
else:
    asyncio.run(run_migrations_online())
