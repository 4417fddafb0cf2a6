# daily_coin/repositories/factory.py

import logging

from daily_coin.core.config import Settings
from daily_coin.core.database import create_engine, create_session_factory, create_tables
from daily_coin.repositories.base import FortuneRepository
from daily_coin.repositories.memory import MemoryFortuneRepository
from daily_coin.repositories.sql import SqlFortuneRepository

logger = logging.getLogger(__name__)


async def build_repository(settings: Settings) -> FortuneRepository:
    """Pick the store once per process: database when configured, memory otherwise."""
    if not settings.DATABASE_URL:
        logger.warning(
            "DATABASE_URL not set: using the in-memory store. "
            "Data is lost on restart and not shared between server instances."
        )
        return MemoryFortuneRepository()

    engine = create_engine(settings.DATABASE_URL, echo=settings.DB_ECHO)
    # tables are created if missing, no migrations
    await create_tables(engine)
    logger.info("Database tables checked")
    return SqlFortuneRepository(create_session_factory(engine), engine=engine)
