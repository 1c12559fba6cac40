# backend/app/apis/v1/contact.py
import logging

from fastapi import APIRouter, Depends, HTTPException, status
from postgrest.exceptions import APIError
from supabase import Client

from app.core.database import get_supabase
from app.core.rate_limits import contact_rate_limit
from app.schemas import ContactMessageCreate, ContactMessageSaved

router = APIRouter()
logger = logging.getLogger(__name__)

@router.post(
    "/contact",
    response_model=ContactMessageSaved,
    status_code=status.HTTP_201_CREATED,
    dependencies=[Depends(contact_rate_limit)],
)
def submit_contact_message(
    payload: ContactMessageCreate,
    supabase: Client = Depends(get_supabase),
):
    """Public contact form. Throttled per network address (no session exists yet)."""
    try:
        res = supabase.table("contact_messages").insert(payload.model_dump()).execute()
    except APIError as e:
        logger.error(f"Error saving contact message: {e}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to save contact message",
        )

    if not res.data:
        logger.error("Contact message insert returned no row")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to save contact message",
        )

    return {"message": "Contact message received successfully", "data": res.data[0]}
