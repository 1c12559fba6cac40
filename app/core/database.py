# backend/app/core/database.py
import logging
from typing import Any, Dict, Optional

from fastapi import HTTPException, Request, status
from supabase import Client

from app.core.config import Settings
from app.libs.supabase_client import create_service_client, probe_supabase

logger = logging.getLogger(__name__)

class Database:
    """
    Owns the Supabase service-role client for the lifetime of the app.

    All durable state (profiles, contact messages) lives in Supabase; this
    process keeps nothing but the client.
    WARNING: The service role bypasses RLS. Scope writes by user id manually.
    """
    def __init__(self, settings: Settings, client: Optional[Client] = None):
        self.settings = settings
        self.supabase: Optional[Client] = client
        if self.supabase is None:
            self.supabase = create_service_client(
                settings.SUPABASE_URL,
                settings.SUPABASE_SERVICE_ROLE_KEY,
            )

    @property
    def is_connected(self) -> bool:
        return self.supabase is not None

    def check_health(self) -> Dict[str, Any]:
        if not self.settings.SUPABASE_URL or not self.settings.SUPABASE_SERVICE_ROLE_KEY:
            return {"ok": False, "rest": False, "auth": False, "storage": False}

        results = probe_supabase(self.settings.SUPABASE_URL, self.settings.SUPABASE_SERVICE_ROLE_KEY)
        return {"ok": all(results.values()), **results}

def get_database(request: Request) -> Database:
    return request.app.state.db

def get_supabase(request: Request) -> Client:
    """
    FastAPI dependency returning the service client, or 503 when the
    project is not configured.
    """
    db: Database = request.app.state.db
    if db.supabase is None:
        logger.error("Supabase client requested but not configured.")
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Database is not configured.",
        )
    return db.supabase
