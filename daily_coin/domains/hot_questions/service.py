# daily_coin/domains/hot_questions/service.py

import logging
from datetime import datetime, timedelta
from typing import Callable

from daily_coin.domains.hot_questions.models import HotQuestion
from daily_coin.repositories.base import FortuneRepository
from daily_coin.utils.china_time import china_now, china_today, china_yesterday

logger = logging.getLogger(__name__)


class HotQuestionService:

    def __init__(
        self,
        repository: FortuneRepository,
        top_n: int = 5,
        retention_days: int = 7,
        clock: Callable[[], datetime] = china_now,
    ):
        self.repo = repository
        self.top_n = top_n
        self.retention_days = retention_days
        self.clock = clock

    async def calculate_hot_questions(self) -> list[HotQuestion]:
        """
        Rank yesterday's (UTC+8) question clicks and store the top N.

        - No clicks yesterday: nothing changes, the previous ranking stays.
        - Rankings older than the retention window are removed.
        - Running twice for the same day inserts the ranking twice.
        """
        now = self.clock()
        yesterday = china_yesterday(now)

        ranked = await self.repo.aggregate_tag_clicks(yesterday, self.top_n)
        if not ranked:
            logger.info(f"No question clicks on {yesterday}, hot questions unchanged")
            return []

        cutoff = china_today(now) - timedelta(days=self.retention_days)
        deleted = await self.repo.delete_hot_questions_before(cutoff)
        if deleted > 0:
            logger.info(f"Removed {deleted} hot question rows before {cutoff}")

        rows = await self.repo.add_hot_questions(yesterday, ranked)
        logger.info(f"Calculated {len(rows)} hot questions for {yesterday}")
        return rows

    async def get_today_hot_questions(self) -> list[str]:
        """Latest ranking, which is yesterday's clicks once the nightly batch has run."""
        return await self.repo.latest_hot_questions()
