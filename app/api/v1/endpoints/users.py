from typing import List

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.database import get_db
from app.core.security import get_current_user
from app.models.user import User
from app.schemas.user import UserResponse, UserSummary
from app.services.contacts import search_users_by_username

router = APIRouter()


@router.get("/me", response_model=UserResponse)
async def read_current_user(current_user: User = Depends(get_current_user)):
    """Get current user information"""
    return current_user


@router.get("/search", response_model=List[UserSummary])
async def search_users(
    q: str = Query(..., min_length=1, max_length=20, description="Part of a username"),
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    """Find other users whose username contains ``q``"""
    return await search_users_by_username(db, q, current_user.id)
