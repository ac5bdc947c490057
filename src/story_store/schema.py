"""Bootstrap the database schema. Idempotent; not a migration tool."""

import logging

from sqlalchemy import text
from sqlalchemy.ext.asyncio import AsyncEngine

from story_store.models import Base

logger = logging.getLogger(__name__)


async def ensure_schema(engine: AsyncEngine) -> None:
    async with engine.begin() as conn:
        await conn.execute(text("CREATE EXTENSION IF NOT EXISTS vector"))
        await conn.run_sync(Base.metadata.create_all)
    logger.info("Schema ready: %s", ", ".join(sorted(Base.metadata.tables)))
