# daily_coin/middleware.py
import json
import logging
import time

from fastapi import Request
from fastapi.responses import JSONResponse
from starlette.middleware.base import BaseHTTPMiddleware

logger = logging.getLogger("api_monitor")

# request bodies beyond this are cut in the log
MAX_LOGGED_BODY = 1000


class APIAccessLoggerMiddleware(BaseHTTPMiddleware):
    async def dispatch(self, request: Request, call_next):
        start_time = time.time()
        method = request.method
        # path + query carries the device fingerprint for GET routes
        url = str(request.url)

        # body is only read for the error logs; Starlette caches it for the endpoint
        body_bytes = await request.body()
        body_content = body_bytes.decode("utf-8", errors="replace")[:MAX_LOGGED_BODY] if body_bytes else None

        try:
            response = await call_next(request)
        except Exception as e:
            duration = time.time() - start_time
            critical_log = {
                "event": "SYSTEM_CRITICAL_ERROR",
                "method": method,
                "url": url,
                "input": body_content,
                "error_type": type(e).__name__,
                "error_message": str(e),
                "duration": f"{duration:.4f}s"
            }
            logger.error(json.dumps(critical_log, ensure_ascii=False), exc_info=True)

            # answered here so uvicorn does not log the same failure again
            return JSONResponse(
                status_code=500,
                content={"detail": "Internal Server Error", "support_id": f"{time.time()}"}
            )

        duration = time.time() - start_time
        if response.status_code >= 400:
            error_log = {
                "event": "HTTP_ERROR",
                "status": response.status_code,
                "method": method,
                "url": url,
                "input": body_content,
                "duration": f"{duration:.4f}s"
            }
            logger.warning(json.dumps(error_log, ensure_ascii=False))
        else:
            logger.info(f"SUCCESS | {method} {request.url.path} | {response.status_code} | {duration:.4f}s")
        return response
