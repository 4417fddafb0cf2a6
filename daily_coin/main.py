# daily_coin/main.py
import logging

from fastapi import FastAPI, HTTPException, Request
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from daily_coin.core.config import settings
from daily_coin.core.exceptions import GenerationError
from daily_coin.core.lifespan import lifespan
from daily_coin.core.logger import setup_logging
from daily_coin.middleware import APIAccessLoggerMiddleware

# routers
from daily_coin.domains.coin.router import router as coin_router
from daily_coin.domains.hot_questions.router import router as hot_questions_router
from daily_coin.domains.cron.router import router as cron_router

setup_logging(settings.LOG_LEVEL, settings.LOG_DIR)
logger = logging.getLogger("api_monitor")

app = FastAPI(
    title=settings.PROJECT_NAME,
    description="Daily coin toss fortunes, small-question answers and hot question tags",
    version="1.0.0",
    lifespan=lifespan,
)

# CORS: "*" or empty -> any origin (browser clients on preview domains)
origins = settings.cors_origin_list()
if not origins or origins == ["*"]:
    app.add_middleware(
        CORSMiddleware,
        allow_origin_regex=".*",
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )
else:
    app.add_middleware(
        CORSMiddleware,
        allow_origins=origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

app.add_middleware(APIAccessLoggerMiddleware)

# device-fingerprint routes are public, no login
app.include_router(coin_router, prefix="/api/coin", tags=["Coin"])
app.include_router(hot_questions_router, prefix="/api/hot-questions", tags=["Hot Questions"])
app.include_router(cron_router, prefix="/api/cron", tags=["Cron"])


@app.get("/")
def health_check(request: Request):
    return {
        "status": "ok",
        "message": "Daily Coin Server is Running",
        "storage": getattr(request.app.state, "storage", "unknown"),
    }


# ==========================================================
# Global error handlers
# ==========================================================

# 1. failures outside APIAccessLoggerMiddleware, which answers route errors itself
@app.exception_handler(Exception)
async def global_exception_handler(request: Request, exc: Exception):
    logger.error(f"🛑 [System Error] {request.url} : {exc}", exc_info=exc)
    return JSONResponse(
        status_code=500,
        content={
            "status": "error",
            "message": "服务器内部错误，请稍后再试。",
            "path": str(request.url)
        },
    )


# 2. the text generator failed; the client may retry
@app.exception_handler(GenerationError)
async def generation_exception_handler(request: Request, exc: GenerationError):
    logger.error(f"❌ GENERATION_ERROR | {request.url} | {exc}")
    return JSONResponse(
        status_code=502,
        content={
            "status": "error",
            "message": "内容生成失败，请稍后再试。",
            "path": str(request.url)
        },
    )


# 3. errors raised on purpose (no toss yet, bad cron secret, ...)
@app.exception_handler(HTTPException)
async def http_exception_handler(request: Request, exc: HTTPException):
    return JSONResponse(
        status_code=exc.status_code,
        content={
            "status": "fail",
            "message": exc.detail,
            "code": exc.status_code
        },
        headers=exc.headers,
    )


# 4. malformed input (unknown fieldName, empty fingerprint, ...)
@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError):
    error_details = exc.errors()
    logger.error(f"❌ VALIDATION_ERROR | {request.url} | Details: {error_details}")
    return JSONResponse(
        status_code=422,
        content={
            "status": "fail",
            "message": "输入内容不正确。",
            # pydantic may put exception objects under "ctx"
            "details": jsonable_encoder(error_details, custom_encoder={Exception: str})
        },
    )
