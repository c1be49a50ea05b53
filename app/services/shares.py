"""Per-item access grants between users and public note links.

A share is a tagged row: ``item_type`` says which table ``item_id`` points
into. There is at most one share per (item_type, item_id, recipient).
"""
import logging
import secrets
import time
from datetime import datetime, timedelta
from typing import Dict, List, Optional, Tuple, Type

from sqlalchemy import and_, delete, select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from app.core.exceptions import NotFoundError, PermissionDeniedError
from app.core.utils import as_utc, utcnow
from app.models.habit import Habit
from app.models.note import Note
from app.models.reminder import Reminder
from app.models.share import PublicShare, Share, SharePermission, ShareType
from app.models.task import Task

logger = logging.getLogger(__name__)

ITEM_MODELS: Dict[ShareType, Type] = {
    ShareType.NOTE: Note,
    ShareType.TASK: Task,
    ShareType.HABIT: Habit,
    ShareType.REMINDER: Reminder,
}


async def get_owned_item(db: AsyncSession, share_type: ShareType, item_id: int, owner_id: int):
    """Return the item of ``share_type`` if ``owner_id`` owns it, else None"""
    model = ITEM_MODELS[ShareType(share_type)]
    result = await db.execute(
        select(model).where(and_(model.id == item_id, model.user_id == owner_id))
    )
    return result.scalar_one_or_none()


async def create_share_generic(
    db: AsyncSession,
    item_id: int,
    owner_id: int,
    recipient_id: int,
    share_type: ShareType,
    permission: SharePermission = SharePermission.READ,
) -> Share:
    """Share an item, or change the permission of the existing share.

    Ownership and self-sharing are checked by the caller.
    """
    share_type = ShareType(share_type)
    permission = SharePermission(permission)

    result = await db.execute(
        select(Share).where(
            and_(
                Share.item_type == share_type,
                Share.item_id == item_id,
                Share.recipient_id == recipient_id,
            )
        )
    )
    share = result.scalar_one_or_none()
    created = share is None

    if share:
        share.permission = permission
    else:
        share = Share(
            item_type=share_type,
            item_id=item_id,
            owner_id=owner_id,
            recipient_id=recipient_id,
            permission=permission,
        )
        db.add(share)

    await db.commit()
    await db.refresh(share)
    logger.info(
        "share_saved share_id=%s type=%s item_id=%s recipient_id=%s permission=%s created=%s",
        share.id, share_type.value, item_id, recipient_id, permission.value, created,
    )
    return share


async def create_share(
    db: AsyncSession,
    note_id: int,
    owner_id: int,
    recipient_id: int,
    permission: SharePermission = SharePermission.READ,
) -> Share:
    return await create_share_generic(db, note_id, owner_id, recipient_id, ShareType.NOTE, permission)


async def delete_share(db: AsyncSession, share_id: int, user_id: int) -> None:
    """Delete a share as its owner or its recipient"""
    share = await db.get(Share, share_id)
    if not share:
        raise NotFoundError("Share not found")

    if user_id not in (share.owner_id, share.recipient_id):
        logger.warning("share_delete_denied share_id=%s user_id=%s", share_id, user_id)
        raise PermissionDeniedError("You are not allowed to delete this share")

    await db.delete(share)
    await db.commit()
    logger.info("share_deleted share_id=%s user_id=%s", share_id, user_id)


async def delete_shares_for_item(db: AsyncSession, share_type: ShareType, item_id: int) -> None:
    """Remove every grant on an item; the caller commits"""
    await db.execute(
        delete(Share).where(
            and_(Share.item_type == ShareType(share_type), Share.item_id == item_id)
        )
    )


async def get_shares_for_user(
    db: AsyncSession, user_id: int, share_type: Optional[ShareType] = None
) -> List[Share]:
    """Shares received by a user, newest first"""
    query = select(Share).where(Share.recipient_id == user_id)
    if share_type:
        query = query.where(Share.item_type == ShareType(share_type))
    result = await db.execute(query.order_by(Share.created_at.desc(), Share.id.desc()))
    return list(result.scalars().all())


async def get_shares_by_owner(
    db: AsyncSession, owner_id: int, share_type: Optional[ShareType] = None
) -> List[Share]:
    """Shares granted by a user, newest first"""
    query = select(Share).where(Share.owner_id == owner_id)
    if share_type:
        query = query.where(Share.item_type == ShareType(share_type))
    result = await db.execute(query.order_by(Share.created_at.desc(), Share.id.desc()))
    return list(result.scalars().all())


async def get_shares_by_item(db: AsyncSession, share_type: ShareType, item_id: int) -> List[Share]:
    result = await db.execute(
        select(Share)
        .where(and_(Share.item_type == ShareType(share_type), Share.item_id == item_id))
        .order_by(Share.created_at.desc(), Share.id.desc())
    )
    return list(result.scalars().all())


async def get_owned_share_details(db: AsyncSession, owner_id: int) -> List[dict]:
    """Note shares granted by a user, with note title and recipient identity"""
    result = await db.execute(
        select(Share, Note.title)
        .options(selectinload(Share.recipient))
        .join(Note, Note.id == Share.item_id)
        .where(and_(Share.owner_id == owner_id, Share.item_type == ShareType.NOTE))
        .order_by(Share.created_at.desc(), Share.id.desc())
    )

    details = []
    for share, note_title in result.all():
        recipient = share.recipient
        details.append({
            "share_id": share.id,
            "note_id": share.item_id,
            "note_title": note_title,
            "shared_with_username": recipient.username if recipient else None,
            "shared_with_email": recipient.email if recipient else None,
            "permission": share.permission.value,
        })
    return details


async def can_user_access_note(
    db: AsyncSession, user_id: int, note_id: int
) -> Tuple[bool, Optional[SharePermission]]:
    """Whether a note is shared with the user, and with which permission"""
    result = await db.execute(
        select(Share).where(
            and_(
                Share.item_type == ShareType.NOTE,
                Share.item_id == note_id,
                Share.recipient_id == user_id,
            )
        )
    )
    share = result.scalar_one_or_none()
    if share:
        return True, share.permission
    return False, None


# Public links

def generate_share_token() -> str:
    """Unguessable token salted with the creation time in milliseconds"""
    return f"{int(time.time() * 1000)}-{secrets.token_urlsafe(16)}"


async def create_public_share(
    db: AsyncSession,
    note_id: int,
    owner_id: int,
    expires_in_days: Optional[int] = None,
    now: Optional[datetime] = None,
) -> PublicShare:
    """Create the public link of a note, or return the existing one unchanged"""
    result = await db.execute(
        select(PublicShare).where(
            and_(PublicShare.note_id == note_id, PublicShare.owner_id == owner_id)
        )
    )
    existing = result.scalar_one_or_none()
    if existing:
        return existing

    created_at = now or utcnow()
    public_share = PublicShare(
        note_id=note_id,
        owner_id=owner_id,
        share_token=generate_share_token(),
        created_at=created_at,
        expires_at=created_at + timedelta(days=expires_in_days) if expires_in_days else None,
    )
    db.add(public_share)
    await db.commit()
    await db.refresh(public_share)
    logger.info("public_share_created note_id=%s owner_id=%s", note_id, owner_id)
    return public_share


async def get_public_share_by_token(
    db: AsyncSession, token: str, now: Optional[datetime] = None
) -> Optional[PublicShare]:
    """Resolve a token; expired links behave as if they did not exist"""
    result = await db.execute(select(PublicShare).where(PublicShare.share_token == token))
    public_share = result.scalar_one_or_none()
    if not public_share:
        return None

    if public_share.expires_at and as_utc(public_share.expires_at) < (now or utcnow()):
        return None

    return public_share


async def delete_public_shares_for_note(
    db: AsyncSession, note_id: int, owner_id: Optional[int] = None
) -> int:
    query = delete(PublicShare).where(PublicShare.note_id == note_id)
    if owner_id is not None:
        query = query.where(PublicShare.owner_id == owner_id)
    result = await db.execute(query)
    await db.commit()
    return result.rowcount
