from typing import List

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.database import get_db
from app.core.security import get_current_user
from app.models.user import User
from app.schemas.habit import (
    HabitCreate,
    HabitRecordUpdate,
    HabitResponse,
    HabitUpdate,
    HabitWeeklyStats,
)
from app.services import habits as habits_service

router = APIRouter()


def habit_not_found():
    return HTTPException(
        status_code=status.HTTP_404_NOT_FOUND,
        detail="Habit not found"
    )


@router.get("/", response_model=List[HabitResponse])
async def get_habits(
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    """List habits; today's pending record is created on first read of the day"""
    return await habits_service.get_user_habits(db, current_user.id)


@router.post("/", response_model=HabitResponse, status_code=status.HTTP_201_CREATED)
async def create_habit(
    habit: HabitCreate,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    if not habit.name.strip():
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Name is required"
        )
    return await habits_service.create_habit(
        db, current_user.id, habit.name, habit.description, habit.color
    )


@router.get("/stats", response_model=HabitWeeklyStats)
async def get_habit_stats(
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    """Success rates for the current Sunday-to-Saturday week"""
    habits = await habits_service.get_user_habits(db, current_user.id)
    return habits_service.get_weekly_stats(habits)


@router.get("/{habit_id}", response_model=HabitResponse)
async def get_habit(
    habit_id: int,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    habit = await habits_service.get_habit(db, habit_id, current_user.id)
    if not habit:
        raise habit_not_found()
    return habit


@router.put("/{habit_id}", response_model=HabitResponse)
async def update_habit(
    habit_id: int,
    habit_update: HabitUpdate,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    habit = await habits_service.update_habit(
        db, habit_id, current_user.id,
        name=habit_update.name,
        description=habit_update.description,
        color=habit_update.color,
    )
    if not habit:
        raise habit_not_found()
    return habit


@router.put("/{habit_id}/records", response_model=HabitResponse)
async def update_habit_record(
    habit_id: int,
    record: HabitRecordUpdate,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    """Set the status of one day (today by default)"""
    day = (
        record.day.strftime(habits_service.DATE_FORMAT)
        if record.day else habits_service.today_date_string()
    )
    habit = await habits_service.update_habit_status(
        db, habit_id, current_user.id, day, record.status.value
    )
    if not habit:
        raise habit_not_found()
    return habit


@router.delete("/{habit_id}")
async def delete_habit(
    habit_id: int,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    if not await habits_service.delete_habit(db, habit_id, current_user.id):
        raise habit_not_found()
    return {"message": "Habit deleted successfully", "id": habit_id}
