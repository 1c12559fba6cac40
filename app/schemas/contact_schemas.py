from datetime import datetime
from pydantic import BaseModel, Field

class ContactMessageCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=200)
    email: str = Field(..., max_length=320, pattern=r"^[^@\s]+@[^@\s]+\.[^@\s]+$")
    subject: str = Field(..., min_length=1, max_length=200)
    message: str = Field(..., min_length=1, max_length=5000)

class ContactMessageResponse(ContactMessageCreate):
    id: int
    created_at: datetime

class ContactMessageSaved(BaseModel):
    message: str
    data: ContactMessageResponse
