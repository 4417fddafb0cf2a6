# daily_coin/core/scheduler.py

import logging

from apscheduler.schedulers.asyncio import AsyncIOScheduler

from daily_coin.core.config import Settings
from daily_coin.domains.hot_questions.service import HotQuestionService
from daily_coin.utils.china_time import CHINA_TZ

logger = logging.getLogger(__name__)


# ====================================================
# [Job] 04:00 UTC+8 - rank yesterday's question clicks
# ====================================================
async def calculate_hot_questions_job(service: HotQuestionService):
    logger.info("[Hot Questions Job] start")
    try:
        rows = await service.calculate_hot_questions()
    except Exception:
        # the scheduler keeps running, the next day retries
        logger.exception("[Hot Questions Job] failed")
        return
    logger.info(f"[Hot Questions Job] done, {len(rows)} ranked")


def create_scheduler(settings: Settings, hot_question_service: HotQuestionService) -> AsyncIOScheduler:
    scheduler = AsyncIOScheduler(timezone=CHINA_TZ)
    scheduler.add_job(
        calculate_hot_questions_job,
        "cron",
        hour=settings.HOT_QUESTION_CRON_HOUR,
        minute=settings.HOT_QUESTION_CRON_MINUTE,
        args=[hot_question_service],
        id="calculate_hot_questions",
        replace_existing=True,
    )
    return scheduler
