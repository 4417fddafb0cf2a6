# daily_coin/domains/coin/models.py

from sqlalchemy import Column, Integer, String, Date, DateTime, JSON, ForeignKey, Index
from sqlalchemy.sql import func
from daily_coin.core.database import Base

READING_DAILY_FORTUNE = "daily_fortune"
READING_QUESTION_ANSWER = "question_answer"


def make_daily_key(device_id: int, toss_date, reading_type: str) -> str:
    return f"{device_id}:{toss_date.isoformat()}:{reading_type}"


class Device(Base):
    __tablename__ = "devices"

    id = Column(Integer, primary_key=True, index=True)

    # opaque client-generated key, never changes once stored
    device_fingerprint = Column(String(255), unique=True, nullable=False)

    # pointer to the latest daily toss
    last_toss_date = Column(Date, nullable=True)
    last_reading_id = Column(Integer, nullable=True)

    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())


class CoinReading(Base):
    """
    One toss of six coin lines.
    - daily_fortune: at most one per device per day, analysis filled field by field
    - question_answer: one per Q&A call, only counted for the daily limit
    """
    __tablename__ = "coin_readings"

    id = Column(Integer, primary_key=True, index=True)
    device_id = Column(Integer, ForeignKey("devices.id"), nullable=False)

    # six ints in 0..3 (tails among three coins), e.g. [2, 1, 3, 0, 2, 1]
    coin_results = Column(JSON, nullable=False)

    # partial map of field name -> generated text
    analysis = Column(JSON, nullable=True)
    # bumped on every analysis write; a write only lands on the version it read
    analysis_version = Column(Integer, nullable=False, default=0, server_default="0")

    toss_date = Column(Date, nullable=False)
    type = Column(String(50), nullable=False, default=READING_DAILY_FORTUNE)

    # "<device>:<date>:<type>" for readings that must be unique per day, NULL otherwise
    daily_key = Column(String(100), unique=True, nullable=True)

    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())

    __table_args__ = (
        Index("ix_coin_readings_device_date_type", "device_id", "toss_date", "type"),
    )
