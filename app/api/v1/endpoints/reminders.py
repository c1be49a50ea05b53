from fastapi import APIRouter, Depends, HTTPException, status
from fastapi.responses import JSONResponse
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.database import get_db
from app.core.security import get_current_user
from app.models.user import User
from app.schemas.reminder import ReminderCreate, ReminderListResponse, ReminderResponse
from app.services import reminders as reminders_service
from app.services.notes import get_note_for_user
from app.services.subscription import can_create_reminder, get_remaining_reminders_this_month

router = APIRouter()


@router.get("/", response_model=ReminderListResponse)
async def get_reminders(
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    """Upcoming reminders; the ones already due are marked as sent first"""
    reminders = await reminders_service.get_user_reminders(db, current_user.id)
    remaining = await get_remaining_reminders_this_month(db, current_user.id)
    return ReminderListResponse(
        reminders=[ReminderResponse.model_validate(reminder) for reminder in reminders],
        remaining_this_month=remaining,
    )


@router.post("/", response_model=ReminderResponse, status_code=status.HTTP_201_CREATED)
async def create_reminder(
    reminder: ReminderCreate,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    """Attach a reminder to a note, within the monthly quota"""
    note = await get_note_for_user(db, reminder.note_id, current_user.id)
    if not note:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Note not found"
        )

    check = await can_create_reminder(db, current_user.id)
    if not check.allowed:
        return JSONResponse(
            status_code=status.HTTP_403_FORBIDDEN,
            content={
                "detail": check.reason,
                "remaining_this_month": 0,
                "limit_reached": True,
            },
        )

    return await reminders_service.create_reminder(db, current_user, note, reminder.reminder_date)


@router.delete("/{reminder_id}")
async def delete_reminder(
    reminder_id: int,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    if not await reminders_service.delete_reminder(db, reminder_id, current_user.id):
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Reminder not found"
        )
    return {"message": "Reminder deleted successfully", "id": reminder_id}
