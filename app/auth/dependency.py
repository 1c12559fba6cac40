# backend/app/auth/dependency.py
from typing import Any, Dict, Optional

from fastapi import Depends, HTTPException, Request, status
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from app.auth.security import AuthSecurity
from app.core.config import settings as default_settings
import logging

logger = logging.getLogger(__name__)

# auto_error=False so missing headers produce our own 401 body
security = HTTPBearer(auto_error=False)

async def get_current_user(
    request: Request,
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(security),
) -> Dict[str, Any]:
    """
    FastAPI Dependency to authenticate users via Supabase JWT.

    Flow:
    1. Extracts Bearer token from header.
    2. Validates signature locally via AuthSecurity.
    3. Stores the claims on request.state.user for downstream consumers
       (rate limit keys, logging).

    Returns:
        dict: The decoded auth claims.
    """
    if credentials is None or not credentials.credentials:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Authentication required. Missing or invalid authorization header.",
            headers={"WWW-Authenticate": "Bearer"},
        )

    # The app's own settings, so create_app(settings) overrides apply
    app_settings = getattr(request.app.state, "settings", None) or default_settings
    payload = AuthSecurity.verify_token(
        credentials.credentials,
        app_settings.SUPABASE_JWT_SECRET,
        app_settings.JWT_ALGORITHM,
    )
    request.state.user = payload
    return payload

async def get_optional_user(
    request: Request,
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(security),
) -> Optional[Dict[str, Any]]:
    """
    Like get_current_user, but anonymous or invalid sessions resolve to None.
    Routes that require auth still depend on get_current_user for the 401.
    """
    if credentials is None or not credentials.credentials:
        return None

    try:
        return await get_current_user(request, credentials)
    except HTTPException as e:
        logger.debug(f"Ignoring unusable bearer token: {e.detail}")
        return None
