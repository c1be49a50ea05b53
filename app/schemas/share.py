from datetime import datetime
from typing import Optional

from pydantic import BaseModel, model_validator

from app.models.share import SharePermission, ShareType


class ShareCreate(BaseModel):
    """Share an item with a user, or create a public link for a note.

    ``recipient`` is a username or an email address.
    """
    share_type: ShareType = ShareType.NOTE
    item_id: int
    recipient: Optional[str] = None
    permission: SharePermission = SharePermission.READ
    public: bool = False

    @model_validator(mode="after")
    def check_target(self):
        if self.public:
            if self.share_type != ShareType.NOTE:
                raise ValueError("Public links exist only for notes")
        elif not (self.recipient or "").strip():
            raise ValueError("A recipient is required")
        return self


class ShareResponse(BaseModel):
    id: int
    item_type: ShareType
    item_id: int
    owner_id: int
    recipient_id: int
    permission: SharePermission
    created_at: datetime

    class Config:
        from_attributes = True


class PublicShareResponse(BaseModel):
    note_id: int
    share_token: str
    url: str
    created_at: datetime
    expires_at: Optional[datetime] = None


class OwnedShareDetail(BaseModel):
    share_id: int
    note_id: int
    note_title: str
    shared_with_username: Optional[str] = None
    shared_with_email: Optional[str] = None
    permission: SharePermission
