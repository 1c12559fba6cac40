# backend/main.py
from contextlib import asynccontextmanager
from typing import Optional
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.exceptions import RequestValidationError
from starlette.exceptions import HTTPException as StarletteHTTPException
import logging

from app.core.config import Settings, settings as default_settings
from app.core.database import Database
from app.core.limiter import InMemoryRateLimiter
from app.core.middleware import RequestLogMiddleware
from app.core.rate_limits import (
    GENERAL_SCOPE,
    RateLimitExceeded,
    RateLimitMiddleware,
    configure_rate_limits,
    rate_limit_exceeded_handler,
)
from app.apis.v1 import api_router
from app.core.exception import (
    global_exception_handler,
    http_exception_handler,
    validation_exception_handler
)

# Setup Logging
logging.basicConfig(
    level=default_settings.LOG_LEVEL,
    format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)

@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Lifespan context manager for FastAPI.
    Starts the rate limiter sweep on startup and tears it down on shutdown.
    """
    # --- Startup ---
    app_settings: Settings = app.state.settings
    logger.info(f"Starting {app_settings.APP_NAME} in {app_settings.ENVIRONMENT} mode...")
    if not app.state.db.is_connected:
        logger.warning("Supabase is not configured; data endpoints will return 503.")

    app.state.rate_limiter.start()

    yield

    # --- Shutdown ---
    logger.info("Shutting down application...")
    app.state.rate_limiter.destroy()

def create_app(
    settings: Optional[Settings] = None,
    rate_limiter: Optional[InMemoryRateLimiter] = None,
    database: Optional[Database] = None,
) -> FastAPI:
    """
    Builds the API. Every stateful collaborator is owned by app.state so
    tests can hand in their own limiter (e.g. with a fake clock).
    """
    settings = settings or default_settings

    app = FastAPI(
        title=settings.APP_NAME,
        version=settings.APP_VERSION,
        lifespan=lifespan,
        docs_url="/docs" if settings.ENVIRONMENT != "production" else None,
        redoc_url=None
    )

    app.state.settings = settings
    app.state.db = database or Database(settings)

    # Policy validation happens here, so bad limits abort startup
    app.state.rate_limiter = rate_limiter or InMemoryRateLimiter(
        sweep_interval_seconds=settings.RATE_LIMIT_SWEEP_INTERVAL_SECONDS
    )
    configure_rate_limits(app.state.rate_limiter, settings)

    # --- Exception Handlers ---
    app.add_exception_handler(Exception, global_exception_handler)
    app.add_exception_handler(RateLimitExceeded, rate_limit_exceeded_handler)
    app.add_exception_handler(StarletteHTTPException, http_exception_handler)
    app.add_exception_handler(RequestValidationError, validation_exception_handler)

    # --- Middleware (last added runs first) ---
    app.add_middleware(RateLimitMiddleware, scope=GENERAL_SCOPE, path_prefix=settings.API_PREFIX)
    app.add_middleware(RequestLogMiddleware, path_prefix=settings.API_PREFIX)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.CORS_ALLOWED_ORIGINS,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
        expose_headers=["X-RateLimit-Limit", "X-RateLimit-Remaining", "X-RateLimit-Reset", "Retry-After"],
    )

    # --- Router Registration ---
    app.include_router(api_router, prefix=settings.API_PREFIX)

    @app.get("/", tags=["System"])
    async def root():
        return {
            "message": "Welcome to the Chef Pantry API",
            "docs": "/docs" if settings.ENVIRONMENT != "production" else "Hidden"
        }

    return app

app = create_app()

if __name__ == "__main__":
    import uvicorn
    uvicorn.run("main:app", host=default_settings.SERVER_HOST, port=default_settings.SERVER_PORT, reload=True)
