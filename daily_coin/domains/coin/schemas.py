# daily_coin/domains/coin/schemas.py

from datetime import date
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from daily_coin.domains.coin.prompts import AnalysisField


class CamelModel(BaseModel):
    # snake_case in Python, camelCase on the wire
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


#
# =============input================
#
class ExplainQuestionRequest(CamelModel):
    device_fingerprint: str = Field(min_length=1, max_length=255)
    question: str = Field(min_length=1, max_length=255)
    # accepted for older clients, a fresh toss is always used
    coin_results: Optional[list[int]] = None


#
# ============output===============
#
class TodayReadingResponse(CamelModel):
    id: int
    coin_results: list[int]
    analysis: dict[str, str]
    is_cached: bool


class FieldResponse(CamelModel):
    field_name: AnalysisField
    value: str
    is_cached: bool


class AnalysisResponse(CamelModel):
    id: int
    coin_results: list[int]
    analysis: dict[str, str]
    is_cached: bool


class ExplainQuestionResponse(CamelModel):
    explanation: str
    limit_exceeded: bool
    message: Optional[str] = None


class ReadingHistoryItem(CamelModel):
    id: int
    coin_results: list[int]
    analysis: dict[str, str] = {}
    toss_date: date
    type: str
