import logging

from fastapi import APIRouter, Depends, HTTPException, status
from fastapi.responses import JSONResponse
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.database import get_db
from app.core.security import get_current_user
from app.models.note import Note
from app.models.user import User
from app.schemas.note import (
    NoteCreate,
    NoteCreatedResponse,
    NoteListResponse,
    NoteResponse,
    NoteUpdate,
)
from app.services import notes as notes_service
from app.services.calendar import sync_note_to_calendar
from app.services.subscription import can_create_note

logger = logging.getLogger(__name__)

router = APIRouter()


def to_note_response(note: Note, user_id: int) -> NoteResponse:
    response = NoteResponse.model_validate(note)
    response.is_owner = note.user_id == user_id
    return response


@router.get("/", response_model=NoteListResponse)
async def get_notes(
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    """Get the user's notes and the notes shared with the user, newest first"""
    notes = await notes_service.get_visible_notes(db, current_user.id)
    return NoteListResponse(notes=[to_note_response(note, current_user.id) for note in notes])


@router.post("/", response_model=NoteCreatedResponse, status_code=status.HTTP_201_CREATED)
async def create_note(
    note: NoteCreate,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    """Create a note within the daily quota of the user's plan"""
    check = await can_create_note(db, current_user.id)
    if not check.allowed:
        return JSONResponse(
            status_code=status.HTTP_403_FORBIDDEN,
            content={
                "detail": check.reason,
                "remaining_today": 0,
                "limit_reached": True,
            },
        )

    db_note = await notes_service.create_note(
        db, current_user.id, note.title, note.text, note.category.value
    )

    # Calendar sync is best effort and never fails the request
    await sync_note_to_calendar(current_user, db_note)

    remaining = check.remaining - 1 if check.remaining is not None else None
    return NoteCreatedResponse(
        note=to_note_response(db_note, current_user.id),
        remaining_today=remaining,
    )


@router.get("/shared", response_model=NoteListResponse)
async def get_shared_notes(
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    """Get notes other users shared with the current user"""
    notes = await notes_service.get_shared_notes(db, current_user.id)
    return NoteListResponse(notes=[to_note_response(note, current_user.id) for note in notes])


@router.get("/{note_id}", response_model=NoteResponse)
async def get_note(
    note_id: int,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    """Get a note the user owns or that was shared with them"""
    note = await notes_service.get_note_for_user(db, note_id, current_user.id)
    if not note:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Note not found"
        )
    return to_note_response(note, current_user.id)


@router.put("/{note_id}", response_model=NoteResponse)
async def update_note(
    note_id: int,
    note_update: NoteUpdate,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    """Update a note as its owner or with write permission"""
    note = await notes_service.update_note(
        db,
        note_id,
        current_user.id,
        title=note_update.title,
        text=note_update.text,
        category=note_update.category.value if note_update.category else None,
    )
    if not note:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Note not found or no write permission"
        )
    return to_note_response(note, current_user.id)


@router.delete("/{note_id}")
async def delete_note(
    note_id: int,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    """Delete a note (only the owner can delete)"""
    deleted = await notes_service.delete_note(db, note_id, current_user.id)
    if not deleted:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Note not found"
        )
    return {"message": "Note deleted successfully", "id": note_id}
