# daily_coin/repositories/base.py

from abc import ABC, abstractmethod
from datetime import date
from typing import Optional

from daily_coin.domains.coin.models import CoinReading, Device
from daily_coin.domains.hot_questions.models import HotQuestion


class FortuneRepository(ABC):
    """
    Storage for devices, readings, tag clicks and hot questions.

    Two implementations are picked once at process start and injected into
    the services:
    - SqlFortuneRepository: durable, shared by every server instance
    - MemoryFortuneRepository: per-process lists for local development.
      Lost on restart, and each server instance has its own copy, so it must
      never back more than one process.
    """

    # ---- devices ----

    @abstractmethod
    async def get_or_create_device(self, fingerprint: str) -> Device:
        """Idempotent upsert keyed on the unique fingerprint."""

    @abstractmethod
    async def update_device_last_toss(self, device_id: int, reading_id: int, toss_date: date) -> None:
        ...

    # ---- readings ----

    @abstractmethod
    async def get_reading(self, device_id: int, toss_date: date, reading_type: str) -> Optional[CoinReading]:
        ...

    @abstractmethod
    async def create_reading(
        self, device_id: int, coin_results: list[int], toss_date: date, reading_type: str
    ) -> CoinReading:
        ...

    @abstractmethod
    async def create_reading_if_absent(
        self, device_id: int, coin_results: list[int], toss_date: date, reading_type: str
    ) -> tuple[CoinReading, bool]:
        """
        Insert unless a reading for (device, date, type) exists.
        Returns (reading, created); when not created, the stored reading wins
        and coin_results is discarded.
        """

    @abstractmethod
    async def set_analysis_field(self, reading_id: int, field_name: str, value: str) -> dict:
        """Write one analysis key, keeping the others, including keys written concurrently. Returns the merged map."""

    @abstractmethod
    async def merge_analysis(self, reading_id: int, fields: dict) -> dict:
        """Write several analysis keys, keeping the others. Returns the merged map."""

    @abstractmethod
    async def count_readings(self, device_id: int, toss_date: date, reading_type: str) -> int:
        ...

    @abstractmethod
    async def list_readings(self, device_id: int, limit: int) -> list[CoinReading]:
        """Oldest first."""

    # ---- tag clicks / hot questions ----

    @abstractmethod
    async def record_tag_click(self, question_text: str, fingerprint: str, click_date: date) -> None:
        ...

    @abstractmethod
    async def aggregate_tag_clicks(self, click_date: date, limit: int) -> list[tuple[str, int]]:
        """(question_text, count) by count desc, ties by question_text asc."""

    @abstractmethod
    async def delete_hot_questions_before(self, cutoff: date) -> int:
        ...

    @abstractmethod
    async def add_hot_questions(self, stats_date: date, ranked: list[tuple[str, int]]) -> list[HotQuestion]:
        """Insert ranked (question_text, count) pairs as rank 1..len(ranked)."""

    @abstractmethod
    async def latest_hot_questions(self) -> list[str]:
        """Question texts of the most recent stats_date, by rank. Empty before any batch run."""

    async def close(self) -> None:
        return None
