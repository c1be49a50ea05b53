from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, Field

from app.models.task import TaskStatus


class SubTaskResponse(BaseModel):
    id: int
    text: str
    completed: bool
    created_at: datetime

    class Config:
        from_attributes = True


class TaskCreate(BaseModel):
    title: str = Field(..., min_length=1, max_length=200)
    description: Optional[str] = None
    subtasks: List[str] = []


class TaskUpdate(BaseModel):
    title: Optional[str] = Field(None, min_length=1, max_length=200)
    description: Optional[str] = None


class TaskStatusUpdate(BaseModel):
    status: TaskStatus


class SubTaskCreate(BaseModel):
    text: str = Field(..., min_length=1, max_length=500)


class TaskResponse(BaseModel):
    id: int
    user_id: int
    title: str
    description: Optional[str] = None
    status: TaskStatus
    subtasks: List[SubTaskResponse] = []
    completion_rate: int = 0
    created_at: datetime
    updated_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class TaskStats(BaseModel):
    total_tasks: int
    completed_tasks: int
    completion_rate: int
