from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, Field, field_validator

from app.models.note import NoteCategory


class NoteBase(BaseModel):
    title: str
    text: str
    category: NoteCategory = NoteCategory.OTHER


class NoteCreate(NoteBase):
    title: str = Field(..., min_length=1, max_length=200)

    @field_validator("title", "text")
    @classmethod
    def not_blank(cls, v: str) -> str:
        if not v.strip():
            raise ValueError("must not be empty")
        return v


class NoteUpdate(BaseModel):
    title: Optional[str] = Field(None, min_length=1, max_length=200)
    text: Optional[str] = None
    category: Optional[NoteCategory] = None

    @field_validator("title", "text")
    @classmethod
    def not_blank(cls, v: Optional[str]) -> Optional[str]:
        if v is not None and not v.strip():
            raise ValueError("must not be empty")
        return v


class NoteResponse(NoteBase):
    id: int
    user_id: int
    is_owner: bool = True
    created_at: datetime
    updated_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class NoteCreatedResponse(BaseModel):
    note: NoteResponse
    # None when the plan is unlimited
    remaining_today: Optional[int] = None


class NoteListResponse(BaseModel):
    notes: List[NoteResponse]


class PublicNoteResponse(BaseModel):
    title: str
    text: str
    category: NoteCategory
    created_at: datetime

    class Config:
        from_attributes = True
