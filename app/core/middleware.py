# backend/app/core/middleware.py

import logging
import time
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.types import ASGIApp
from fastapi import Request

logger = logging.getLogger("chefpantry.requests")

class RequestLogMiddleware(BaseHTTPMiddleware):
    """Logs one line per API request: method, path, status and duration."""

    def __init__(self, app: ASGIApp, path_prefix: str = "/api"):
        super().__init__(app)
        self.path_prefix = path_prefix

    async def dispatch(self, request: Request, call_next):
        start_time = time.time()
        status_code = 500

        try:
            response = await call_next(request)
            status_code = response.status_code
            response.headers["X-Process-Time"] = f"{time.time() - start_time:.4f}"
            return response
        finally:
            if request.url.path.startswith(self.path_prefix):
                duration_ms = (time.time() - start_time) * 1000
                logger.info(f"{request.method} {request.url.path} {status_code} in {duration_ms:.0f}ms")
