# daily_coin/domains/hot_questions/router.py

import logging

from fastapi import APIRouter, Depends

from daily_coin.core.dependencies import get_hot_question_service
from daily_coin.domains.hot_questions.schemas import HotQuestionsResponse
from daily_coin.domains.hot_questions.service import HotQuestionService

logger = logging.getLogger(__name__)

router = APIRouter()


@router.get("/today", response_model=HotQuestionsResponse)
async def get_today_hot_questions(service: HotQuestionService = Depends(get_hot_question_service)):
    """
    Top questions for the question picker badge.
    Storage trouble only hides the badges, so it degrades to an empty list.
    """
    try:
        hot_questions = await service.get_today_hot_questions()
    except Exception:
        logger.exception("Hot questions lookup failed")
        hot_questions = []
    return {"hotQuestions": hot_questions}
