import time
import logging
from fastapi import Request
from starlette.middleware.base import BaseHTTPMiddleware

logger = logging.getLogger("access")

class LoggingMiddleware(BaseHTTPMiddleware):
    """Access log line per request plus an X-Process-Time header"""

    async def dispatch(self, request: Request, call_next):
        start_time = time.perf_counter()
        client = request.client.host if request.client else "unknown"

        response = await call_next(request)

        process_time = time.perf_counter() - start_time
        logger.info(
            f"{client} {request.method} {request.url.path} "
            f"{response.status_code} {process_time * 1000:.1f}ms"
        )
        response.headers["X-Process-Time"] = f"{process_time:.4f}"
        return response
