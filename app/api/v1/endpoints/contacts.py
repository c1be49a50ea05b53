from typing import List

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.database import get_db
from app.core.exceptions import AppError, http_error
from app.core.security import get_current_user
from app.models.user import User
from app.schemas.contact import ContactRequestCreate, ContactRequestResponse, ContactResponse
from app.services import contacts as contacts_service

router = APIRouter()


@router.get("/", response_model=List[ContactResponse])
async def get_contacts(
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    return await contacts_service.get_user_contacts(db, current_user.id)


@router.get("/requests", response_model=List[ContactRequestResponse])
async def get_contact_requests(
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    """Pending requests addressed to the current user"""
    return await contacts_service.get_pending_contact_requests(db, current_user.id)


@router.post("/requests", response_model=ContactRequestResponse, status_code=status.HTTP_201_CREATED)
async def create_contact_request(
    body: ContactRequestCreate,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    """Ask another user, by username or email, to become a contact"""
    recipient = await contacts_service.find_user_by_identifier(db, body.username)
    if not recipient:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="User not found"
        )

    try:
        return await contacts_service.create_contact_request(db, current_user.id, recipient.id)
    except AppError as e:
        raise http_error(e)


@router.post("/requests/{request_id}/accept", response_model=ContactResponse)
async def accept_contact_request(
    request_id: int,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    try:
        return await contacts_service.accept_contact_request(db, request_id, current_user.id)
    except AppError as e:
        raise http_error(e)


@router.post("/requests/{request_id}/reject")
async def reject_contact_request(
    request_id: int,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    try:
        await contacts_service.reject_contact_request(db, request_id, current_user.id)
    except AppError as e:
        raise http_error(e)
    return {"success": True}


@router.delete("/{contact_id}")
async def remove_contact(
    contact_id: int,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    """Remove a contact in both directions"""
    if not await contacts_service.remove_contact(db, current_user.id, contact_id):
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Contact not found"
        )
    return {"success": True}
