# daily_coin/repositories/sql.py

import logging
from datetime import date
from typing import Optional

from sqlalchemy import select, update, delete, func
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncEngine, async_sessionmaker

from daily_coin.core.exceptions import ConcurrentUpdateError
from daily_coin.domains.coin.models import CoinReading, Device, make_daily_key
from daily_coin.domains.hot_questions.models import HotQuestion, QuestionTagClick
from daily_coin.repositories.base import FortuneRepository

logger = logging.getLogger(__name__)

# each miss means another writer committed first
MAX_MERGE_ATTEMPTS = 20


class SqlFortuneRepository(FortuneRepository):
    """
    Every method opens its own session. The two per-day invariants are
    enforced by the database: the unique daily_key for one daily toss per
    device, and the analysis_version check for field writes.
    """

    def __init__(self, session_factory: async_sessionmaker, engine: Optional[AsyncEngine] = None):
        self.session_factory = session_factory
        self.engine = engine

    # ---- devices ----

    async def _find_device(self, db, fingerprint: str) -> Optional[Device]:
        result = await db.execute(select(Device).where(Device.device_fingerprint == fingerprint))
        return result.scalar_one_or_none()

    async def get_or_create_device(self, fingerprint: str) -> Device:
        async with self.session_factory() as db:
            device = await self._find_device(db, fingerprint)
            if device:
                return device

            device = Device(device_fingerprint=fingerprint)
            db.add(device)
            try:
                await db.commit()
            except IntegrityError:
                # a concurrent request inserted the same fingerprint first
                await db.rollback()
                return await self._find_device(db, fingerprint)
            await db.refresh(device)
            logger.info(f"New device registered: id={device.id}")
            return device

    async def update_device_last_toss(self, device_id: int, reading_id: int, toss_date: date) -> None:
        async with self.session_factory() as db:
            await db.execute(
                update(Device)
                .where(Device.id == device_id)
                .values(last_reading_id=reading_id, last_toss_date=toss_date)
            )
            await db.commit()

    # ---- readings ----

    def _reading_query(self, device_id: int, toss_date: date, reading_type: str):
        return (
            select(CoinReading)
            .where(
                CoinReading.device_id == device_id,
                CoinReading.toss_date == toss_date,
                CoinReading.type == reading_type,
            )
            .order_by(CoinReading.id.asc())
            .limit(1)
        )

    async def get_reading(self, device_id: int, toss_date: date, reading_type: str) -> Optional[CoinReading]:
        async with self.session_factory() as db:
            result = await db.execute(self._reading_query(device_id, toss_date, reading_type))
            return result.scalar_one_or_none()

    async def create_reading(self, device_id, coin_results, toss_date, reading_type) -> CoinReading:
        async with self.session_factory() as db:
            reading = CoinReading(
                device_id=device_id,
                coin_results=list(coin_results),
                analysis={},
                toss_date=toss_date,
                type=reading_type,
            )
            db.add(reading)
            await db.commit()
            await db.refresh(reading)
            return reading

    async def create_reading_if_absent(self, device_id, coin_results, toss_date, reading_type):
        """
        Insert guarded by the unique daily_key: of concurrent callers exactly
        one insert succeeds, the others get the winner's row back.
        """
        async with self.session_factory() as db:
            reading = CoinReading(
                device_id=device_id,
                coin_results=list(coin_results),
                analysis={},
                toss_date=toss_date,
                type=reading_type,
                daily_key=make_daily_key(device_id, toss_date, reading_type),
            )
            db.add(reading)
            try:
                await db.commit()
            except IntegrityError:
                await db.rollback()
                result = await db.execute(self._reading_query(device_id, toss_date, reading_type))
                existing = result.scalar_one_or_none()
                if existing is None:
                    # the violation came from something other than the daily key
                    raise
                logger.info(f"Daily reading already tossed: device={device_id} date={toss_date}")
                return existing, False
            await db.refresh(reading)
            return reading, True

    async def set_analysis_field(self, reading_id: int, field_name: str, value: str) -> dict:
        return await self.merge_analysis(reading_id, {field_name: value})

    async def merge_analysis(self, reading_id: int, fields: dict) -> dict:
        """
        Optimistic read-merge-write on analysis_version. The UPDATE only
        matches the version that was read, so a concurrent write to another
        field makes it miss and the merge is redone on the fresh map.
        """
        for attempt in range(1, MAX_MERGE_ATTEMPTS + 1):
            async with self.session_factory() as db:
                row = (await db.execute(
                    select(CoinReading.analysis, CoinReading.analysis_version)
                    .where(CoinReading.id == reading_id)
                )).one_or_none()
                if row is None:
                    return {}

                merged = {**(row.analysis or {}), **fields}
                result = await db.execute(
                    update(CoinReading)
                    .where(
                        CoinReading.id == reading_id,
                        CoinReading.analysis_version == row.analysis_version,
                    )
                    .values(analysis=merged, analysis_version=row.analysis_version + 1)
                )
                await db.commit()
                if result.rowcount == 1:
                    return merged

            logger.debug(f"Analysis write conflict: reading={reading_id} attempt={attempt}")

        raise ConcurrentUpdateError(f"Analysis of reading {reading_id} not written after {MAX_MERGE_ATTEMPTS} attempts")

    async def count_readings(self, device_id: int, toss_date: date, reading_type: str) -> int:
        async with self.session_factory() as db:
            result = await db.execute(
                select(func.count())
                .select_from(CoinReading)
                .where(
                    CoinReading.device_id == device_id,
                    CoinReading.toss_date == toss_date,
                    CoinReading.type == reading_type,
                )
            )
            return result.scalar() or 0

    async def list_readings(self, device_id: int, limit: int) -> list[CoinReading]:
        async with self.session_factory() as db:
            result = await db.execute(
                select(CoinReading)
                .where(CoinReading.device_id == device_id)
                .order_by(CoinReading.id.asc())
                .limit(limit)
            )
            return list(result.scalars().all())

    # ---- tag clicks / hot questions ----

    async def record_tag_click(self, question_text: str, fingerprint: str, click_date: date) -> None:
        async with self.session_factory() as db:
            db.add(QuestionTagClick(
                question_text=question_text,
                device_fingerprint=fingerprint,
                click_date=click_date,
            ))
            await db.commit()

    async def aggregate_tag_clicks(self, click_date: date, limit: int) -> list[tuple[str, int]]:
        click_count = func.count(QuestionTagClick.id).label("click_count")
        async with self.session_factory() as db:
            result = await db.execute(
                select(QuestionTagClick.question_text, click_count)
                .where(QuestionTagClick.click_date == click_date)
                .group_by(QuestionTagClick.question_text)
                .order_by(click_count.desc(), QuestionTagClick.question_text.asc())
                .limit(limit)
            )
            return [(row.question_text, int(row.click_count)) for row in result.all()]

    async def delete_hot_questions_before(self, cutoff: date) -> int:
        async with self.session_factory() as db:
            result = await db.execute(delete(HotQuestion).where(HotQuestion.stats_date < cutoff))
            await db.commit()
            return result.rowcount

    async def add_hot_questions(self, stats_date, ranked) -> list[HotQuestion]:
        rows = [
            HotQuestion(question_text=text, click_count=count, stats_date=stats_date, rank=rank)
            for rank, (text, count) in enumerate(ranked, start=1)
        ]
        async with self.session_factory() as db:
            db.add_all(rows)
            await db.commit()
        return rows

    async def latest_hot_questions(self) -> list[str]:
        async with self.session_factory() as db:
            latest = (await db.execute(select(func.max(HotQuestion.stats_date)))).scalar()
            if latest is None:
                return []
            result = await db.execute(
                select(HotQuestion.question_text)
                .where(HotQuestion.stats_date == latest)
                .order_by(HotQuestion.rank.asc())
            )
            return list(result.scalars().all())

    async def close(self) -> None:
        if self.engine is not None:
            await self.engine.dispose()
