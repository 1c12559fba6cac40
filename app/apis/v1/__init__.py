# backend/app/apis/v1/__init__.py
from fastapi import APIRouter
from app.apis.v1 import health
from app.apis.v1 import auth
from app.apis.v1 import contact
from app.apis.v1 import profiles
api_router = APIRouter()

# 1. System Router
api_router.include_router(health.router, tags=["System"])

# 2. Authentication Router
api_router.include_router(auth.router, prefix="/auth", tags=["Auth"])

# 3. Contact Form Router
api_router.include_router(contact.router, tags=["Contact"])

# 4. Profiles Router
api_router.include_router(profiles.router, prefix="/profiles", tags=["Profiles"])
