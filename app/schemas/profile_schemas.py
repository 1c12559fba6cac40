from typing import List, Optional
from datetime import datetime
from pydantic import BaseModel, Field

# ---------------------------------------------------------
# Chef Profiles
# ---------------------------------------------------------

class ChefProfileBase(BaseModel):
    full_name: str = Field(..., min_length=1, max_length=120)
    bio: str
    skills: List[str] = []
    experience_years: int = Field(..., ge=0, le=80)
    location: str
    travel_radius_km: Optional[int] = Field(None, ge=0)
    profile_image_url: Optional[str] = None
    dish_photos_urls: List[str] = []
    intro_video_url: Optional[str] = None
    instagram_url: Optional[str] = None
    linkedin_url: Optional[str] = None
    portfolio_url: Optional[str] = None
    languages: List[str] = []
    certifications: List[str] = []
    is_available: bool = True

class ChefProfileCreate(ChefProfileBase):
    pass

class ChefProfileUpdate(BaseModel):
    full_name: Optional[str] = Field(None, min_length=1, max_length=120)
    bio: Optional[str] = None
    skills: Optional[List[str]] = None
    experience_years: Optional[int] = Field(None, ge=0, le=80)
    location: Optional[str] = None
    travel_radius_km: Optional[int] = Field(None, ge=0)
    profile_image_url: Optional[str] = None
    dish_photos_urls: Optional[List[str]] = None
    intro_video_url: Optional[str] = None
    instagram_url: Optional[str] = None
    linkedin_url: Optional[str] = None
    portfolio_url: Optional[str] = None
    languages: Optional[List[str]] = None
    certifications: Optional[List[str]] = None
    is_available: Optional[bool] = None

class ChefProfileResponse(ChefProfileBase):
    id: str
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

# ---------------------------------------------------------
# Business Profiles
# ---------------------------------------------------------

class BusinessProfileBase(BaseModel):
    business_name: str = Field(..., min_length=1, max_length=160)
    description: str
    location: str
    profile_image_url: Optional[str] = None
    gallery_image_urls: List[str] = []
    website_url: Optional[str] = None
    instagram_url: Optional[str] = None
    linkedin_url: Optional[str] = None
    venue_type: Optional[str] = Field(None, description="Restaurant, Hotel, Catering, etc.")
    cuisine_specialties: List[str] = []
    business_size: Optional[str] = None
    is_hiring: bool = False
    availability_notes: Optional[str] = None

class BusinessProfileCreate(BusinessProfileBase):
    pass

class BusinessProfileUpdate(BaseModel):
    business_name: Optional[str] = Field(None, min_length=1, max_length=160)
    description: Optional[str] = None
    location: Optional[str] = None
    profile_image_url: Optional[str] = None
    gallery_image_urls: Optional[List[str]] = None
    website_url: Optional[str] = None
    instagram_url: Optional[str] = None
    linkedin_url: Optional[str] = None
    venue_type: Optional[str] = None
    cuisine_specialties: Optional[List[str]] = None
    business_size: Optional[str] = None
    is_hiring: Optional[bool] = None
    availability_notes: Optional[str] = None

class BusinessProfileResponse(BusinessProfileBase):
    id: str
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

# ---------------------------------------------------------
# Envelopes
# ---------------------------------------------------------

class ChefProfileEnvelope(BaseModel):
    data: ChefProfileResponse

class ChefProfileSaved(BaseModel):
    message: str
    data: ChefProfileResponse

class BusinessProfileEnvelope(BaseModel):
    data: BusinessProfileResponse

class BusinessProfileSaved(BaseModel):
    message: str
    data: BusinessProfileResponse

class DisclaimerStatus(BaseModel):
    disclaimerAccepted: bool

class DisclaimerAccepted(BaseModel):
    message: str
    data: DisclaimerStatus
