from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel


class ReminderCreate(BaseModel):
    note_id: int
    reminder_date: datetime


class ReminderResponse(BaseModel):
    id: int
    note_id: int
    user_id: int
    note_title: str
    note_text: str
    reminder_date: datetime
    sent: bool
    created_at: datetime

    class Config:
        from_attributes = True


class ReminderListResponse(BaseModel):
    reminders: List[ReminderResponse]
    # None when the plan is unlimited
    remaining_this_month: Optional[int] = None
