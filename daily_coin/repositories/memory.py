# daily_coin/repositories/memory.py

import itertools
from collections import Counter
from datetime import date
from typing import Optional

from daily_coin.domains.coin.models import CoinReading, Device, make_daily_key
from daily_coin.domains.hot_questions.models import HotQuestion, QuestionTagClick
from daily_coin.repositories.base import FortuneRepository


class MemoryFortuneRepository(FortuneRepository):
    """
    Preview mode without a database.
    No await happens between a check and its write, so each operation is
    atomic within the single event loop that owns this instance.
    """

    def __init__(self):
        self.devices: list[Device] = []
        self.readings: list[CoinReading] = []
        self.tag_clicks: list[QuestionTagClick] = []
        self.hot_questions: list[HotQuestion] = []
        self._ids = {
            "devices": itertools.count(1),
            "readings": itertools.count(1),
            "tag_clicks": itertools.count(1),
            "hot_questions": itertools.count(1),
        }

    async def get_or_create_device(self, fingerprint: str) -> Device:
        for device in self.devices:
            if device.device_fingerprint == fingerprint:
                return device
        device = Device(id=next(self._ids["devices"]), device_fingerprint=fingerprint)
        self.devices.append(device)
        return device

    async def update_device_last_toss(self, device_id: int, reading_id: int, toss_date: date) -> None:
        for device in self.devices:
            if device.id == device_id:
                device.last_reading_id = reading_id
                device.last_toss_date = toss_date

    def _find_reading(self, device_id: int, toss_date: date, reading_type: str) -> Optional[CoinReading]:
        for reading in self.readings:
            if (reading.device_id == device_id
                    and reading.toss_date == toss_date
                    and reading.type == reading_type):
                return reading
        return None

    def _reading_by_id(self, reading_id: int) -> Optional[CoinReading]:
        for reading in self.readings:
            if reading.id == reading_id:
                return reading
        return None

    async def get_reading(self, device_id: int, toss_date: date, reading_type: str) -> Optional[CoinReading]:
        return self._find_reading(device_id, toss_date, reading_type)

    async def create_reading(self, device_id, coin_results, toss_date, reading_type) -> CoinReading:
        reading = CoinReading(
            id=next(self._ids["readings"]),
            device_id=device_id,
            coin_results=list(coin_results),
            analysis={},
            toss_date=toss_date,
            type=reading_type,
        )
        self.readings.append(reading)
        return reading

    async def create_reading_if_absent(self, device_id, coin_results, toss_date, reading_type):
        existing = self._find_reading(device_id, toss_date, reading_type)
        if existing is not None:
            return existing, False
        reading = await self.create_reading(device_id, coin_results, toss_date, reading_type)
        reading.daily_key = make_daily_key(device_id, toss_date, reading_type)
        return reading, True

    async def set_analysis_field(self, reading_id: int, field_name: str, value: str) -> dict:
        return await self.merge_analysis(reading_id, {field_name: value})

    async def merge_analysis(self, reading_id: int, fields: dict) -> dict:
        reading = self._reading_by_id(reading_id)
        if reading is None:
            return {}
        reading.analysis = {**(reading.analysis or {}), **fields}
        return dict(reading.analysis)

    async def count_readings(self, device_id: int, toss_date: date, reading_type: str) -> int:
        return sum(
            1 for r in self.readings
            if r.device_id == device_id and r.toss_date == toss_date and r.type == reading_type
        )

    async def list_readings(self, device_id: int, limit: int) -> list[CoinReading]:
        return [r for r in self.readings if r.device_id == device_id][:limit]

    async def record_tag_click(self, question_text: str, fingerprint: str, click_date: date) -> None:
        self.tag_clicks.append(QuestionTagClick(
            id=next(self._ids["tag_clicks"]),
            question_text=question_text,
            device_fingerprint=fingerprint,
            click_date=click_date,
        ))

    async def aggregate_tag_clicks(self, click_date: date, limit: int) -> list[tuple[str, int]]:
        counts = Counter(c.question_text for c in self.tag_clicks if c.click_date == click_date)
        ranked = sorted(counts.items(), key=lambda item: (-item[1], item[0]))
        return ranked[:limit]

    async def delete_hot_questions_before(self, cutoff: date) -> int:
        kept = [h for h in self.hot_questions if h.stats_date >= cutoff]
        deleted = len(self.hot_questions) - len(kept)
        self.hot_questions = kept
        return deleted

    async def add_hot_questions(self, stats_date, ranked) -> list[HotQuestion]:
        rows = [
            HotQuestion(
                id=next(self._ids["hot_questions"]),
                question_text=text,
                click_count=count,
                stats_date=stats_date,
                rank=rank,
            )
            for rank, (text, count) in enumerate(ranked, start=1)
        ]
        self.hot_questions.extend(rows)
        return rows

    async def latest_hot_questions(self) -> list[str]:
        if not self.hot_questions:
            return []
        latest = max(h.stats_date for h in self.hot_questions)
        rows = sorted((h for h in self.hot_questions if h.stats_date == latest), key=lambda h: h.rank)
        return [h.question_text for h in rows]
