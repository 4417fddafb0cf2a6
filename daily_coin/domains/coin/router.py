# daily_coin/domains/coin/router.py

from fastapi import APIRouter, Depends, Query

from daily_coin.core.dependencies import get_coin_service
from daily_coin.domains.coin.prompts import AnalysisField
from daily_coin.domains.coin.schemas import (
    AnalysisResponse,
    ExplainQuestionRequest,
    ExplainQuestionResponse,
    FieldResponse,
    ReadingHistoryItem,
    TodayReadingResponse,
)
from daily_coin.domains.coin.service import CoinService

router = APIRouter()


@router.get("/today", response_model=TodayReadingResponse)
async def get_today(
    device_fingerprint: str = Query(..., alias="deviceFingerprint", min_length=1, max_length=255),
    service: CoinService = Depends(get_coin_service),
):
    """
    Today's toss for this device. The first call of the day tosses,
    later calls return the same coins and whatever analysis is ready.
    """
    return await service.get_today(device_fingerprint)


@router.get("/field", response_model=FieldResponse)
async def get_field(
    field_name: AnalysisField = Query(..., alias="fieldName"),
    device_fingerprint: str = Query(..., alias="deviceFingerprint", min_length=1, max_length=255),
    service: CoinService = Depends(get_coin_service),
):
    """One analysis section, generated on first request and cached for the day."""
    return await service.get_field(device_fingerprint, field_name)


@router.get("/analysis", response_model=AnalysisResponse)
async def get_analysis(
    device_fingerprint: str = Query(..., alias="deviceFingerprint", min_length=1, max_length=255),
    service: CoinService = Depends(get_coin_service),
):
    """All seven sections at once (missing ones generated in a single call)."""
    return await service.get_analysis(device_fingerprint)


@router.get("/history", response_model=list[ReadingHistoryItem])
async def get_history(
    device_fingerprint: str = Query(..., alias="deviceFingerprint", min_length=1, max_length=255),
    limit: int = Query(10, ge=1, le=50),
    service: CoinService = Depends(get_coin_service),
):
    readings = await service.history(device_fingerprint, limit)
    return [
        {
            "id": r.id,
            "coin_results": r.coin_results,
            "analysis": r.analysis or {},
            "toss_date": r.toss_date,
            "type": r.type,
        }
        for r in readings
    ]


@router.post("/explain", response_model=ExplainQuestionResponse, response_model_exclude_none=True)
async def explain_question(
    body: ExplainQuestionRequest,
    service: CoinService = Depends(get_coin_service),
):
    """Answer a small question. Over the daily limit the reply carries limitExceeded=true."""
    return await service.explain_question(body.device_fingerprint, body.question, body.coin_results)
