# backend/app/apis/v1/auth.py
from fastapi import APIRouter, Depends
from typing import Dict, Any

from app.auth.dependency import get_current_user
from app.core.rate_limits import auth_rate_limit

router = APIRouter()

@router.get("/me", response_model=Dict[str, Any], dependencies=[Depends(auth_rate_limit)])
async def read_users_me(current_user: Dict[str, Any] = Depends(get_current_user)):
    """
    Validates the Bearer token and returns its claims.

    The frontend calls this after sign-in to confirm the backend recognizes
    the session, so it sits behind the auth rate limit.
    """
    return current_user
