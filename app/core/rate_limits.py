# backend/app/core/rate_limits.py

import logging
from typing import Any, Dict, Optional

from fastapi import Depends, HTTPException, Request, Response, status
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.types import ASGIApp

from app.auth.dependency import get_optional_user
from app.core.config import Settings
from app.core.limiter import (
    InMemoryRateLimiter,
    RateLimitDecision,
    RateLimitPolicy,
    RATE_LIMIT_MESSAGE,
    default_key_func,
)

logger = logging.getLogger(__name__)

AUTH_SCOPE = "auth"
PROFILE_SCOPE = "profile"
CONTACT_SCOPE = "contact"
GENERAL_SCOPE = "general"

# ---------------------------------------------------------
# Caller Keys
# ---------------------------------------------------------

def client_address(request: Request) -> str:
    """
    Network origin of the request. X-Forwarded-For is only honoured when the
    deployment opts in, otherwise any client could pick its own bucket.
    """
    app_settings = getattr(request.app.state, "settings", None)
    if app_settings is not None and app_settings.RATE_LIMIT_TRUST_FORWARDED_FOR:
        forwarded = request.headers.get("x-forwarded-for")
        if forwarded:
            first_hop = forwarded.split(",")[0].strip()
            if first_hop:
                return first_hop
    return default_key_func(request)


def user_or_client_address(request: Request) -> str:
    user = getattr(request.state, "user", None)
    if user and user.get("sub"):
        return str(user["sub"])
    return client_address(request)


def configure_rate_limits(limiter: InMemoryRateLimiter, settings: Settings) -> Dict[str, RateLimitPolicy]:
    """Registers the standard policies. Bad values fail here, at startup."""
    return {
        AUTH_SCOPE: limiter.create_rate_limit(
            AUTH_SCOPE,
            settings.RATE_LIMIT_AUTH_WINDOW_MS,
            settings.RATE_LIMIT_AUTH_MAX_REQUESTS,
            user_or_client_address,
        ),
        PROFILE_SCOPE: limiter.create_rate_limit(
            PROFILE_SCOPE,
            settings.RATE_LIMIT_PROFILE_WINDOW_MS,
            settings.RATE_LIMIT_PROFILE_MAX_REQUESTS,
            user_or_client_address,
        ),
        # Contact form is public: no identity exists yet
        CONTACT_SCOPE: limiter.create_rate_limit(
            CONTACT_SCOPE,
            settings.RATE_LIMIT_CONTACT_WINDOW_MS,
            settings.RATE_LIMIT_CONTACT_MAX_REQUESTS,
            client_address,
        ),
        GENERAL_SCOPE: limiter.create_rate_limit(
            GENERAL_SCOPE,
            settings.RATE_LIMIT_GENERAL_WINDOW_MS,
            settings.RATE_LIMIT_GENERAL_MAX_REQUESTS,
            client_address,
        ),
    }


def get_rate_limiter(request: Request) -> InMemoryRateLimiter:
    return request.app.state.rate_limiter


def rate_limiting_enabled(request: Request) -> bool:
    app_settings = getattr(request.app.state, "settings", None)
    return app_settings is None or app_settings.RATE_LIMIT_ENABLED

# ---------------------------------------------------------
# Early Exit
# ---------------------------------------------------------

class RateLimitExceeded(HTTPException):
    """Carries a rejected decision out of a dependency to the 429 handler."""

    def __init__(self, decision: RateLimitDecision):
        super().__init__(
            status_code=status.HTTP_429_TOO_MANY_REQUESTS,
            detail=RATE_LIMIT_MESSAGE,
            headers=decision.headers(),
        )
        self.decision = decision


async def rate_limit_exceeded_handler(request: Request, exc: RateLimitExceeded):
    return exc.decision.to_response()

# ---------------------------------------------------------
# Route Dependency
# ---------------------------------------------------------

class RateLimit:
    """
    Route-level guard for one registered scope.

        @router.post("/contact", dependencies=[Depends(contact_rate_limit)])
    """

    def __init__(self, scope: str):
        self.scope = scope

    def __call__(
        self,
        request: Request,
        response: Response,
        current_user: Optional[Dict[str, Any]] = Depends(get_optional_user),
    ) -> Optional[RateLimitDecision]:
        # get_optional_user populated request.state.user for the key function
        if not rate_limiting_enabled(request):
            return None

        decision = get_rate_limiter(request).check(self.scope, request)
        if not decision.allowed:
            raise RateLimitExceeded(decision)

        response.headers.update(decision.headers())
        return decision


auth_rate_limit = RateLimit(AUTH_SCOPE)
profile_rate_limit = RateLimit(PROFILE_SCOPE)
contact_rate_limit = RateLimit(CONTACT_SCOPE)

# ---------------------------------------------------------
# Catch-all Middleware
# ---------------------------------------------------------

class RateLimitMiddleware(BaseHTTPMiddleware):
    """
    Applies one scope to every request under `path_prefix`, before routing.
    Route-level guards run afterwards and overwrite the quota headers with
    their own, stricter, numbers.
    """

    def __init__(self, app: ASGIApp, scope: str = GENERAL_SCOPE, path_prefix: str = "/api"):
        super().__init__(app)
        self.scope = scope
        self.path_prefix = path_prefix

    async def dispatch(self, request: Request, call_next):
        if not request.url.path.startswith(self.path_prefix) or not rate_limiting_enabled(request):
            return await call_next(request)

        decision = get_rate_limiter(request).check(self.scope, request)
        if not decision.allowed:
            return decision.to_response()

        response = await call_next(request)
        for name, value in decision.headers().items():
            response.headers.setdefault(name, value)
        return response
