from datetime import datetime

from pydantic import BaseModel, Field

from app.models.contact import ContactRequestStatus


class ContactRequestCreate(BaseModel):
    # Username (case-insensitive, optional leading @) or email
    username: str = Field(..., min_length=1, max_length=255)


class ContactRequestResponse(BaseModel):
    id: int
    requester_id: int
    requester_username: str
    requester_email: str
    recipient_id: int
    status: ContactRequestStatus
    created_at: datetime

    class Config:
        from_attributes = True


class ContactResponse(BaseModel):
    id: int
    user_id: int
    contact_user_id: int
    contact_username: str
    contact_email: str
    created_at: datetime

    class Config:
        from_attributes = True
