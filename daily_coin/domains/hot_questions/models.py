# daily_coin/domains/hot_questions/models.py

from sqlalchemy import Column, Integer, String, Date, DateTime
from sqlalchemy.sql import func
from daily_coin.core.database import Base


class QuestionTagClick(Base):
    """Append-only ledger, one row per answered question."""
    __tablename__ = "question_tag_clicks"

    id = Column(Integer, primary_key=True, index=True)
    question_text = Column(String(255), nullable=False)
    device_fingerprint = Column(String(255), nullable=True)
    click_date = Column(Date, nullable=False, index=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())


class HotQuestion(Base):
    """
    Top questions of one day, rebuilt by the daily batch.
    Rows older than the retention window are pruned on each run.
    """
    __tablename__ = "hot_questions"

    id = Column(Integer, primary_key=True, index=True)
    question_text = Column(String(255), nullable=False)
    click_count = Column(Integer, nullable=False)

    # the day the clicks happened
    stats_date = Column(Date, nullable=False, index=True)

    # 1..N
    rank = Column(Integer, nullable=False)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
