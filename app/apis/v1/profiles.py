# backend/app/apis/v1/profiles.py

import logging
from typing import Any, Dict, Optional
from datetime import datetime, timezone

from fastapi import APIRouter, Depends, HTTPException, Response, status
from postgrest.exceptions import APIError
from supabase import Client

from app.auth.dependency import get_current_user
from app.core.database import get_supabase
from app.core.rate_limits import profile_rate_limit

from app.schemas import (
    ChefProfileCreate,
    ChefProfileUpdate,
    BusinessProfileCreate,
    BusinessProfileUpdate,
    ChefProfileEnvelope,
    ChefProfileSaved,
    BusinessProfileEnvelope,
    BusinessProfileSaved,
    DisclaimerAccepted,
)

router = APIRouter(dependencies=[Depends(profile_rate_limit)])
logger = logging.getLogger(__name__)

CHEF_TABLE = "chef_profiles"
BUSINESS_TABLE = "business_profiles"

# ---------------------------------------------------------------------
# Services (Local Helpers)
# ---------------------------------------------------------------------

class ProfileStore:
    """
    Thin wrapper over one Supabase profile table.
    Profile ids are the Supabase auth user ids.
    """

    def __init__(self, supabase: Client, table: str):
        self.supabase = supabase
        self.table = table

    def get(self, profile_id: str) -> Optional[Dict[str, Any]]:
        res = self.supabase.table(self.table).select("*").eq("id", profile_id).limit(1).execute()
        return res.data[0] if res.data else None

    def create(self, profile_id: str, data: Dict[str, Any]) -> Dict[str, Any]:
        now = datetime.now(timezone.utc).isoformat()
        row = {**data, "id": profile_id, "created_at": now, "updated_at": now}
        res = self.supabase.table(self.table).insert(row).execute()
        return res.data[0]

    def update(self, profile_id: str, data: Dict[str, Any]) -> Optional[Dict[str, Any]]:
        changes = {**data, "updated_at": datetime.now(timezone.utc).isoformat()}
        res = self.supabase.table(self.table).update(changes).eq("id", profile_id).execute()
        return res.data[0] if res.data else None

def _upsert(store: ProfileStore, user_id: str, data: Dict[str, Any], response: Response, label: str):
    try:
        if store.get(user_id):
            profile = store.update(user_id, data)
            if not profile:
                raise HTTPException(status_code=500, detail=f"Failed to update {label} profile")
            response.status_code = status.HTTP_200_OK
            return {"message": f"{label.capitalize()} profile updated successfully!", "data": profile}

        profile = store.create(user_id, data)
        return {"message": f"{label.capitalize()} profile created successfully!", "data": profile}
    except APIError as e:
        logger.error(f"Error saving {label} profile for {user_id}: {e}")
        raise HTTPException(status_code=500, detail=f"Failed to save {label} profile")

def _fetch(store: ProfileStore, profile_id: str, label: str):
    try:
        profile = store.get(profile_id)
    except APIError as e:
        logger.error(f"Error fetching {label} profile {profile_id}: {e}")
        raise HTTPException(status_code=500, detail=f"Failed to fetch {label} profile")

    if not profile:
        raise HTTPException(status_code=404, detail=f"{label.capitalize()} profile not found")
    return {"data": profile}

def _update(store: ProfileStore, profile_id: str, user_id: str, data: Dict[str, Any], label: str):
    # Service role bypasses RLS, so ownership is enforced here
    if profile_id != user_id:
        raise HTTPException(status_code=403, detail=f"You can only edit your own {label} profile")

    try:
        profile = store.update(profile_id, data)
    except APIError as e:
        logger.error(f"Error updating {label} profile {profile_id}: {e}")
        raise HTTPException(status_code=500, detail=f"Failed to update {label} profile")

    if not profile:
        raise HTTPException(status_code=404, detail=f"{label.capitalize()} profile not found")
    return {"message": f"{label.capitalize()} profile updated successfully!", "data": profile}

def _accept_disclaimer(profile_id: str, label: str):
    logger.info(f"{label.capitalize()} disclaimer accepted for {profile_id}")
    return {
        "message": f"{label.capitalize()} disclaimer accepted successfully",
        "data": {"disclaimerAccepted": True},
    }

# ---------------------------------------------------------------------
# Chef Endpoints
# ---------------------------------------------------------------------

@router.post("/chef", response_model=ChefProfileSaved, status_code=status.HTTP_201_CREATED)
def upsert_chef_profile(
    payload: ChefProfileCreate,
    response: Response,
    current_user: Dict[str, Any] = Depends(get_current_user),
    supabase: Client = Depends(get_supabase),
):
    """Creates the caller's chef profile, or replaces it if one already exists."""
    store = ProfileStore(supabase, CHEF_TABLE)
    return _upsert(store, current_user["sub"], payload.model_dump(), response, "chef")

@router.get("/chef/{profile_id}", response_model=ChefProfileEnvelope)
def get_chef_profile(profile_id: str, supabase: Client = Depends(get_supabase)):
    return _fetch(ProfileStore(supabase, CHEF_TABLE), profile_id, "chef")

@router.put("/chef/{profile_id}", response_model=ChefProfileSaved)
def update_chef_profile(
    profile_id: str,
    payload: ChefProfileUpdate,
    current_user: Dict[str, Any] = Depends(get_current_user),
    supabase: Client = Depends(get_supabase),
):
    store = ProfileStore(supabase, CHEF_TABLE)
    return _update(store, profile_id, current_user["sub"], payload.model_dump(exclude_unset=True), "chef")

@router.post("/chef/{profile_id}/accept-disclaimer", response_model=DisclaimerAccepted)
def accept_chef_disclaimer(profile_id: str):
    """
    Acknowledges the chef terms shown before profile creation. Nothing is
    stored: creating the profile afterwards is the record of acceptance.
    """
    return _accept_disclaimer(profile_id, "chef")

# ---------------------------------------------------------------------
# Business Endpoints
# ---------------------------------------------------------------------

@router.post("/business", response_model=BusinessProfileSaved, status_code=status.HTTP_201_CREATED)
def upsert_business_profile(
    payload: BusinessProfileCreate,
    response: Response,
    current_user: Dict[str, Any] = Depends(get_current_user),
    supabase: Client = Depends(get_supabase),
):
    store = ProfileStore(supabase, BUSINESS_TABLE)
    return _upsert(store, current_user["sub"], payload.model_dump(), response, "business")

@router.get("/business/{profile_id}", response_model=BusinessProfileEnvelope)
def get_business_profile(profile_id: str, supabase: Client = Depends(get_supabase)):
    return _fetch(ProfileStore(supabase, BUSINESS_TABLE), profile_id, "business")

@router.put("/business/{profile_id}", response_model=BusinessProfileSaved)
def update_business_profile(
    profile_id: str,
    payload: BusinessProfileUpdate,
    current_user: Dict[str, Any] = Depends(get_current_user),
    supabase: Client = Depends(get_supabase),
):
    store = ProfileStore(supabase, BUSINESS_TABLE)
    return _update(store, profile_id, current_user["sub"], payload.model_dump(exclude_unset=True), "business")

@router.post("/business/{profile_id}/accept-disclaimer", response_model=DisclaimerAccepted)
def accept_business_disclaimer(profile_id: str):
    return _accept_disclaimer(profile_id, "business")
