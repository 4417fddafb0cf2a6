# daily_coin/domains/hot_questions/schemas.py

from datetime import datetime
from typing import Optional

from pydantic import BaseModel


class HotQuestionsResponse(BaseModel):
    hotQuestions: list[str]


class CronRunResponse(BaseModel):
    success: bool
    timestamp: datetime
    message: Optional[str] = None
    count: Optional[int] = None
    error: Optional[str] = None
