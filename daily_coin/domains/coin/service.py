# daily_coin/domains/coin/service.py

import json
import logging
import random
from datetime import datetime
from typing import Callable, Optional, Union

from fastapi import HTTPException

from daily_coin.core.exceptions import GenerationError
from daily_coin.domains.coin.models import READING_DAILY_FORTUNE, READING_QUESTION_ANSWER, CoinReading
from daily_coin.domains.coin.prompts import (
    ANALYSIS_SCHEMA,
    QUESTION_FALLBACK,
    AnalysisField,
    build_analysis_messages,
    build_field_messages,
    build_question_messages,
    pick_limit_message,
)
from daily_coin.domains.coin.tossing import toss_coins
from daily_coin.repositories.base import FortuneRepository
from daily_coin.utils.china_time import china_now, china_today, to_china

logger = logging.getLogger(__name__)

NO_READING_MESSAGE = "今天还没有投掷记录，请先获取今日运势。"


class CoinService:
    """
    Daily reading lifecycle:
        absent -> created (empty analysis) -> partially analyzed -> fully analyzed

    No lock spans a cache check and the write after it. Two concurrent
    requests for the same field may both call the generator; the last write
    wins.
    """

    def __init__(
        self,
        repository: FortuneRepository,
        generator,
        question_limit: int = 6,
        clock: Callable[[], datetime] = china_now,
        rng: Optional[random.Random] = None,
    ):
        self.repo = repository
        self.generator = generator
        self.question_limit = question_limit
        self.clock = clock
        self.rng = rng or random.SystemRandom()

    @staticmethod
    def _reading_view(reading: CoinReading, is_cached: bool) -> dict:
        return {
            "id": reading.id,
            "coin_results": list(reading.coin_results),
            "analysis": dict(reading.analysis or {}),
            "is_cached": is_cached,
        }

    async def _require_today_reading(self, fingerprint: str) -> CoinReading:
        """The daily toss has to exist before anything is generated from it."""
        device = await self.repo.get_or_create_device(fingerprint)
        reading = await self.repo.get_reading(device.id, china_today(self.clock()), READING_DAILY_FORTUNE)
        if not reading:
            raise HTTPException(status_code=404, detail=NO_READING_MESSAGE)
        return reading

    async def get_today(self, fingerprint: str) -> dict:
        """One coin set per device per UTC+8 day; repeat calls return the same reading."""
        device = await self.repo.get_or_create_device(fingerprint)
        today = china_today(self.clock())

        # 1. already tossed today -> whatever analysis exists so far
        existing = await self.repo.get_reading(device.id, today, READING_DAILY_FORTUNE)
        if existing:
            return self._reading_view(existing, is_cached=True)

        # 2. new toss, analysis starts empty
        reading, created = await self.repo.create_reading_if_absent(
            device.id, toss_coins(self.rng), today, READING_DAILY_FORTUNE
        )
        if not created:
            # a parallel request tossed first
            return self._reading_view(reading, is_cached=True)

        await self.repo.update_device_last_toss(device.id, reading.id, today)
        logger.info(f"New toss: device={device.id} reading={reading.id} date={today} coins={reading.coin_results}")
        return self._reading_view(reading, is_cached=False)

    async def get_field(self, fingerprint: str, field: Union[AnalysisField, str]) -> dict:
        field = AnalysisField(field)
        reading = await self._require_today_reading(fingerprint)

        cached = (reading.analysis or {}).get(field.value)
        if cached:
            logger.debug(f"Field cache hit: reading={reading.id} field={field.value}")
            return {"field_name": field, "value": cached, "is_cached": True}

        logger.info(f"Field cache miss: reading={reading.id} field={field.value}")
        text = await self.generator.generate(build_field_messages(field, reading.coin_results))
        value = (text or "").strip()
        if not value:
            raise GenerationError(f"Empty reply for field '{field.value}'")

        await self.repo.set_analysis_field(reading.id, field.value, value)
        return {"field_name": field, "value": value, "is_cached": False}

    async def get_analysis(self, fingerprint: str) -> dict:
        """Fill every missing field with one structured call. Fields already stored are kept."""
        reading = await self._require_today_reading(fingerprint)
        analysis = dict(reading.analysis or {})
        missing = [field for field in AnalysisField if not analysis.get(field.value)]
        if not missing:
            return self._reading_view(reading, is_cached=True)

        raw = await self.generator.generate(
            build_analysis_messages(reading.coin_results), response_schema=ANALYSIS_SCHEMA
        )
        try:
            parsed = json.loads(raw)
        except (TypeError, json.JSONDecodeError) as e:
            raise GenerationError("Analysis reply is not valid JSON") from e
        if not isinstance(parsed, dict):
            raise GenerationError("Analysis reply is not a JSON object")

        new_fields = {}
        for field in missing:
            value = parsed.get(field.value)
            if not isinstance(value, str) or not value.strip():
                raise GenerationError(f"Analysis reply lacks '{field.value}'")
            new_fields[field.value] = value.strip()

        merged = await self.repo.merge_analysis(reading.id, new_fields)
        return {
            "id": reading.id,
            "coin_results": list(reading.coin_results),
            "analysis": merged,
            "is_cached": False,
        }

    async def explain_question(
        self, fingerprint: str, question: str, coin_results: Optional[list[int]] = None
    ) -> dict:
        """
        Answer a question from a fresh toss, at most question_limit times per day.
        Going over the limit is a normal reply, not an error, and never reaches the generator.
        """
        device = await self.repo.get_or_create_device(fingerprint)
        now = to_china(self.clock())
        today = now.date()

        used = await self.repo.count_readings(device.id, today, READING_QUESTION_ANSWER)
        if used >= self.question_limit:
            message = pick_limit_message(now.hour, self.rng)
            logger.info(f"Question limit reached: device={device.id} used={used}")
            return {"explanation": message, "limit_exceeded": True, "message": message}

        if coin_results is not None:
            logger.debug("Client coin results ignored, tossing fresh")
        coins = toss_coins(self.rng)

        text = await self.generator.generate(build_question_messages(question, coins))
        explanation = (text or "").strip() or QUESTION_FALLBACK

        # counted only after a successful answer
        await self.repo.create_reading(device.id, coins, today, READING_QUESTION_ANSWER)

        try:
            await self.repo.record_tag_click(question, fingerprint, today)
        except Exception:
            # the answer is already generated and counted
            logger.exception(f"Tag click not recorded: device={device.id}")

        return {"explanation": explanation, "limit_exceeded": False}

    async def history(self, fingerprint: str, limit: int = 10) -> list[CoinReading]:
        device = await self.repo.get_or_create_device(fingerprint)
        return await self.repo.list_readings(device.id, limit)
