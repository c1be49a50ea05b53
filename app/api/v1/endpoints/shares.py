import logging
from typing import List, Optional, Union

from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.config import settings
from app.core.database import get_db
from app.core.exceptions import AppError, http_error
from app.core.security import get_current_user
from app.models.share import PublicShare, ShareType
from app.models.user import User
from app.schemas.share import (
    OwnedShareDetail,
    PublicShareResponse,
    ShareCreate,
    ShareResponse,
)
from app.services import shares as shares_service
from app.services.contacts import find_user_by_identifier

logger = logging.getLogger(__name__)

router = APIRouter()


def public_share_response(public_share: PublicShare) -> PublicShareResponse:
    return PublicShareResponse(
        note_id=public_share.note_id,
        share_token=public_share.share_token,
        url=f"{settings.BASE_URL.rstrip('/')}/shared/{public_share.share_token}",
        created_at=public_share.created_at,
        expires_at=public_share.expires_at,
    )


@router.get("/", response_model=List[ShareResponse])
async def get_shares(
    scope: str = Query("received", pattern="^(owned|received)$"),
    share_type: Optional[ShareType] = Query(None),
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    """Shares granted by the user (``owned``) or granted to the user (``received``)"""
    if scope == "owned":
        return await shares_service.get_shares_by_owner(db, current_user.id, share_type)
    return await shares_service.get_shares_for_user(db, current_user.id, share_type)


@router.post("/", response_model=Union[ShareResponse, PublicShareResponse])
async def create_share(
    share: ShareCreate,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    """Share an owned item with another user, or create a public note link"""
    item = await shares_service.get_owned_item(db, share.share_type, share.item_id, current_user.id)
    if not item:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="You do not own this item"
        )

    if share.public:
        public_share = await shares_service.create_public_share(
            db, share.item_id, current_user.id, expires_in_days=settings.PUBLIC_SHARE_EXPIRE_DAYS
        )
        return public_share_response(public_share)

    recipient = await find_user_by_identifier(db, share.recipient)
    if not recipient:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="User not found"
        )
    if recipient.id == current_user.id:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="You cannot share with yourself"
        )

    db_share = await shares_service.create_share_generic(
        db, share.item_id, current_user.id, recipient.id, share.share_type, share.permission
    )
    return ShareResponse.model_validate(db_share)


@router.get("/owned-details", response_model=List[OwnedShareDetail])
async def get_owned_share_details(
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    """Note shares granted by the user with note titles and recipients"""
    return await shares_service.get_owned_share_details(db, current_user.id)


@router.delete("/public")
async def delete_public_shares(
    note_id: int = Query(...),
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    """Revoke the public links of an owned note"""
    note = await shares_service.get_owned_item(db, ShareType.NOTE, note_id, current_user.id)
    if not note:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="You do not own this note"
        )

    deleted = await shares_service.delete_public_shares_for_note(db, note_id, current_user.id)
    logger.info("public_shares_deleted note_id=%s count=%s", note_id, deleted)
    return {"success": True, "deleted": deleted}


@router.delete("/{share_id}")
async def delete_share(
    share_id: int,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    """Delete a share as its owner or its recipient"""
    try:
        await shares_service.delete_share(db, share_id, current_user.id)
    except AppError as e:
        raise http_error(e)
    return {"success": True, "message": "Share deleted successfully"}
