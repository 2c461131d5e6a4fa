#!/usr/bin/env python3
"""Initialize database tables."""

import asyncio

from loguru import logger

from chitfund.database import create_engine
from chitfund.logging_setup import setup_logging
from chitfund.models import Base


async def init_database() -> None:
    """Create all database tables."""
    logger.info("Connecting to database...")
    engine = create_engine()

    async with engine.begin() as conn:
        logger.info("Creating tables (checkfirst=True)...")
        await conn.run_sync(Base.metadata.create_all, checkfirst=True)

    await engine.dispose()
    logger.success("Database tables created successfully!")


if __name__ == "__main__":
    setup_logging()
    asyncio.run(init_database())
