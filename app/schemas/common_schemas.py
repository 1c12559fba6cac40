from typing import Optional
from pydantic import BaseModel

class HealthResponse(BaseModel):
    status: str
    message: str

class SupabaseHealthResponse(BaseModel):
    ok: bool
    rest: bool
    auth: bool
    storage: bool
    error: Optional[str] = None
