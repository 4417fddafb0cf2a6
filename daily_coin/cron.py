"""
Run the hot questions batch once and exit.

    python -m daily_coin.cron

Meant for an external scheduler (crontab, platform cron) at 04:00 UTC+8.
Exit status 0 on success, 1 on failure.
"""
import asyncio
import logging
import sys

from daily_coin.core.config import settings
from daily_coin.core.logger import setup_logging
from daily_coin.domains.hot_questions.service import HotQuestionService
from daily_coin.repositories.factory import build_repository
from daily_coin.utils.china_time import china_now

logger = logging.getLogger("daily_coin.cron")


async def run_once() -> int:
    repository = await build_repository(settings)
    service = HotQuestionService(
        repository,
        top_n=settings.HOT_QUESTION_TOP_N,
        retention_days=settings.HOT_QUESTION_RETENTION_DAYS,
    )
    try:
        rows = await service.calculate_hot_questions()
    finally:
        await repository.close()
    return len(rows)


def main() -> int:
    setup_logging(settings.LOG_LEVEL, settings.LOG_DIR)
    logger.info(f"[Cron] Starting hot questions calculation at {china_now().isoformat()}")
    try:
        count = asyncio.run(run_once())
    except Exception:
        logger.exception("[Cron] Hot questions calculation failed")
        return 1
    logger.info(f"[Cron] Hot questions calculation completed ({count} rows)")
    return 0


if __name__ == "__main__":
    sys.exit(main())
