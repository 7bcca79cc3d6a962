"""Script to initialize the database."""

import asyncio

from app.database import engine
from app.models.admin_sessions import metadata as admin_sessions_metadata
from app.models.appointments import metadata as appointments_metadata


async def init_db() -> None:
    """Initialize the database by creating all tables."""
    async with engine.begin() as conn:
        # Create all tables
        await conn.run_sync(appointments_metadata.create_all)
        await conn.run_sync(admin_sessions_metadata.create_all)

        print("✓ Database initialized successfully!")

    await engine.dispose()


if __name__ == "__main__":
    asyncio.run(init_db())
