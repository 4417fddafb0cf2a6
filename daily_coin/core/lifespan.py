# daily_coin/core/lifespan.py

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI

from daily_coin.core.config import settings
from daily_coin.core.scheduler import create_scheduler
from daily_coin.domains.coin.service import CoinService
from daily_coin.domains.hot_questions.service import HotQuestionService
from daily_coin.repositories.factory import build_repository
from daily_coin.repositories.memory import MemoryFortuneRepository
from daily_coin.utils.llm_client import LLMClient

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    # [Startup]
    logger.info("Server starting: storage, generator, scheduler")

    # 1. storage, chosen once for the whole process
    repository = await build_repository(settings)
    app.state.storage = "memory" if isinstance(repository, MemoryFortuneRepository) else "database"

    # 2. services
    generator = LLMClient(settings.GEMINI_API_KEY, settings.GEMINI_MODEL)
    app.state.coin_service = CoinService(
        repository, generator, question_limit=settings.DAILY_QUESTION_LIMIT
    )
    app.state.hot_question_service = HotQuestionService(
        repository,
        top_n=settings.HOT_QUESTION_TOP_N,
        retention_days=settings.HOT_QUESTION_RETENTION_DAYS,
    )

    # 3. nightly ranking
    scheduler = None
    if settings.SCHEDULER_ENABLED:
        scheduler = create_scheduler(settings, app.state.hot_question_service)
        scheduler.start()
        logger.info(
            f"Scheduler started: hot questions daily at "
            f"{settings.HOT_QUESTION_CRON_HOUR:02d}:{settings.HOT_QUESTION_CRON_MINUTE:02d} UTC+8"
        )

    yield

    # [Shutdown]
    logger.info("Server stopping")
    if scheduler is not None:
        scheduler.shutdown()
    await repository.close()
