from typing import List, Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy import or_, select
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.database import get_db
from app.core.security import get_current_admin_user
from app.models.user import User
from app.schemas.user import UserResponse

router = APIRouter()


@router.get("/users", response_model=List[UserResponse])
async def list_users(
    search: Optional[str] = Query(None, description="Part of a username or email"),
    skip: int = Query(0, ge=0),
    limit: int = Query(100, ge=1, le=500),
    current_user: User = Depends(get_current_admin_user),
    db: AsyncSession = Depends(get_db)
):
    """List users (administrators only)"""
    query = select(User)
    if search:
        query = query.where(
            or_(
                User.username.contains(search, autoescape=True),
                User.email.contains(search.lower(), autoescape=True),
            )
        )
    result = await db.execute(query.order_by(User.created_at.asc(), User.id.asc()).offset(skip).limit(limit))
    return result.scalars().all()
