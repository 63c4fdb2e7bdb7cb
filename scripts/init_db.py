"""Script to create the schema directly from the table metadata."""

import asyncio
import sys

from sqlalchemy import text

from app.database import engine
from app.models import metadata


async def init_db(drop: bool = False) -> None:
    """Create all tables, optionally dropping existing ones first."""
    async with engine.begin() as conn:
        await conn.execute(text('CREATE EXTENSION IF NOT EXISTS "pgcrypto"'))

        if drop:
            await conn.run_sync(metadata.drop_all)
            print("✓ Existing tables dropped")

        await conn.run_sync(metadata.create_all)

    await engine.dispose()
    print("✓ Database initialized successfully!")


if __name__ == "__main__":
    asyncio.run(init_db(drop="--drop" in sys.argv[1:]))
