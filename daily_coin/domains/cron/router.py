# daily_coin/domains/cron/router.py

import logging
from datetime import datetime, timezone
from secrets import compare_digest
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, status
from fastapi.responses import JSONResponse
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from daily_coin.core.config import settings
from daily_coin.core.dependencies import get_hot_question_service
from daily_coin.domains.hot_questions.schemas import CronRunResponse
from daily_coin.domains.hot_questions.service import HotQuestionService

logger = logging.getLogger(__name__)

router = APIRouter()

# auto_error=False: the header is only required when a secret is configured
security = HTTPBearer(auto_error=False)


def verify_cron_secret(credentials: Optional[HTTPAuthorizationCredentials] = Depends(security)):
    """Authorization: Bearer <CRON_SECRET>. Open when no secret is configured."""
    if not settings.CRON_SECRET:
        return
    if credentials is None or not compare_digest(credentials.credentials, settings.CRON_SECRET):
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Unauthorized",
            headers={"WWW-Authenticate": "Bearer"},
        )


@router.api_route("/hot-questions", methods=["GET", "POST"], response_model=CronRunResponse,
                  response_model_exclude_none=True, dependencies=[Depends(verify_cron_secret)])
async def run_hot_questions(service: HotQuestionService = Depends(get_hot_question_service)):
    """Daily trigger (04:00 UTC+8) ranking yesterday's question clicks."""
    logger.info("[Cron] Starting hot questions calculation...")
    try:
        rows = await service.calculate_hot_questions()
    except Exception:
        logger.exception("[Cron] Hot questions calculation failed")
        return JSONResponse(
            status_code=500,
            content={
                "success": False,
                "error": "Hot questions calculation failed",
                "timestamp": datetime.now(timezone.utc).isoformat(),
            },
        )

    logger.info(f"[Cron] Hot questions calculation completed ({len(rows)} rows)")
    return {
        "success": True,
        "message": "Hot questions calculation completed",
        "count": len(rows),
        "timestamp": datetime.now(timezone.utc),
    }
