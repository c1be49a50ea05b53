from datetime import date, datetime
from typing import List, Optional

from pydantic import BaseModel, Field

from app.models.habit import HabitStatus


class HabitRecordResponse(BaseModel):
    date: str
    status: HabitStatus
    completed_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class HabitCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=100)
    description: Optional[str] = None
    color: Optional[str] = Field(None, max_length=20)


class HabitUpdate(BaseModel):
    name: Optional[str] = Field(None, min_length=1, max_length=100)
    description: Optional[str] = None
    color: Optional[str] = Field(None, max_length=20)


class HabitRecordUpdate(BaseModel):
    # Defaults to today in the application timezone
    day: Optional[date] = None
    status: HabitStatus


class HabitResponse(BaseModel):
    id: int
    user_id: int
    name: str
    description: Optional[str] = None
    color: str
    daily_records: List[HabitRecordResponse] = []
    created_at: datetime
    updated_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class HabitStat(BaseModel):
    habit_id: int
    habit_name: str
    success_rate: int


class HabitWeeklyStats(BaseModel):
    total_habits: int
    average_success_rate: int
    habits_stats: List[HabitStat]
