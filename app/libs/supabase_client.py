# backend/app/libs/supabase_client.py

from typing import Dict, Optional

import httpx
from loguru import logger
from supabase import create_client, Client

HEALTH_PROBE_PATHS = {
    "rest": "/rest/v1/",
    "auth": "/auth/v1/",
    "storage": "/storage/v1/",
}

def create_service_client(url: Optional[str], service_key: Optional[str]) -> Optional[Client]:
    """
    (Security/Admin Access) Builds a Supabase client using the Service Role Key.

    CRITICAL: This client bypasses ALL RLS. Callers must scope every write to
    the authenticated user themselves.
    """
    if not url or not service_key:
        logger.warning("Supabase URL or SERVICE_ROLE_KEY missing. Client not initialized.")
        return None

    try:
        client = create_client(url, service_key)
        logger.info("Supabase Service Client initialized.")
        return client
    except Exception as e:
        logger.error(f"Error initializing Supabase Service Client: {e}")
        raise RuntimeError("Could not initialize Supabase client.") from e

def probe_supabase(url: str, service_key: str, timeout: float = 5.0) -> Dict[str, bool]:
    """
    HEAD-checks the REST, Auth and Storage gateways of the project.
    Network failures propagate; a non-2xx answer just marks that service down.
    """
    base = url.rstrip("/")
    results: Dict[str, bool] = {}
    with httpx.Client(timeout=timeout, headers={"apikey": service_key}) as client:
        for name, path in HEALTH_PROBE_PATHS.items():
            response = client.head(f"{base}{path}")
            results[name] = response.is_success
            if not response.is_success:
                logger.warning(f"Supabase {name} probe returned {response.status_code}")
    return results
