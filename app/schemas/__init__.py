# Re-export from common
from .common_schemas import (
    HealthResponse,
    SupabaseHealthResponse
)

# Re-export from contact_schemas
from .contact_schemas import (
    ContactMessageCreate,
    ContactMessageResponse,
    ContactMessageSaved
)

# Re-export from profile_schemas
from .profile_schemas import (
    ChefProfileCreate,
    ChefProfileUpdate,
    ChefProfileResponse,
    ChefProfileEnvelope,
    ChefProfileSaved,
    BusinessProfileCreate,
    BusinessProfileUpdate,
    BusinessProfileResponse,
    BusinessProfileEnvelope,
    BusinessProfileSaved,
    DisclaimerAccepted
)
