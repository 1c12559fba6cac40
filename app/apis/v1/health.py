# backend/app/apis/v1/health.py
import logging

import httpx
from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse

from app.core.database import Database, get_database
from app.schemas import HealthResponse, SupabaseHealthResponse

router = APIRouter()
logger = logging.getLogger(__name__)

@router.get("/health", response_model=HealthResponse)
async def health_check():
    return {"status": "ok", "message": "Chef Pantry API is working!"}

@router.get("/_supabase-health", response_model=SupabaseHealthResponse)
def supabase_health(db: Database = Depends(get_database)):
    """
    HEAD-probes the Supabase REST, Auth and Storage gateways.
    `ok` is true only when all three answer.
    """
    try:
        return db.check_health()
    except httpx.HTTPError as e:
        logger.error(f"Supabase health error: {e}")
        return JSONResponse(
            status_code=500,
            content={"ok": False, "rest": False, "auth": False, "storage": False, "error": str(e) or "health failed"},
        )
