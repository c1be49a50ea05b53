from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel


class PlanLimits(BaseModel):
    max_notes_per_day: int
    max_reminders_per_month: int
    price: int
    features: List[str]


class SubscriptionResponse(BaseModel):
    plan: str
    status: str
    limits: PlanLimits
    end_date: Optional[datetime] = None
    notes_today: int
    # None when unlimited
    remaining_notes_today: Optional[int] = None
    remaining_reminders_this_month: Optional[int] = None


class CheckoutResponse(BaseModel):
    session_id: str
    url: Optional[str] = None
