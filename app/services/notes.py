import logging
from typing import List, Optional

from sqlalchemy import and_, delete, select
from sqlalchemy.ext.asyncio import AsyncSession

from app.models.note import Note
from app.models.reminder import Reminder
from app.models.share import PublicShare, Share, SharePermission, ShareType
from app.services.shares import can_user_access_note, delete_shares_for_item

logger = logging.getLogger(__name__)


async def get_user_notes(db: AsyncSession, user_id: int) -> List[Note]:
    result = await db.execute(
        select(Note)
        .where(Note.user_id == user_id)
        .order_by(Note.created_at.desc(), Note.id.desc())
    )
    return list(result.scalars().all())


async def get_shared_notes(db: AsyncSession, user_id: int) -> List[Note]:
    """Notes other users shared with ``user_id``, newest first"""
    result = await db.execute(
        select(Note)
        .join(
            Share,
            and_(Share.item_type == ShareType.NOTE, Share.item_id == Note.id),
        )
        .where(Share.recipient_id == user_id)
        .order_by(Note.created_at.desc(), Note.id.desc())
    )
    return list(result.scalars().unique().all())


async def get_visible_notes(db: AsyncSession, user_id: int) -> List[Note]:
    """Own notes merged with shared ones, newest first"""
    notes = {note.id: note for note in await get_user_notes(db, user_id)}
    for note in await get_shared_notes(db, user_id):
        notes.setdefault(note.id, note)
    return sorted(notes.values(), key=lambda note: (note.created_at, note.id), reverse=True)


async def get_note_by_id(db: AsyncSession, note_id: int) -> Optional[Note]:
    return await db.get(Note, note_id)


async def get_note_for_user(db: AsyncSession, note_id: int, user_id: int) -> Optional[Note]:
    """A note the user owns or received a share for; None otherwise"""
    note = await db.get(Note, note_id)
    if not note:
        return None
    if note.user_id == user_id:
        return note
    can_access, _ = await can_user_access_note(db, user_id, note_id)
    return note if can_access else None


async def create_note(
    db: AsyncSession, user_id: int, title: str, text: str, category: str
) -> Note:
    note = Note(user_id=user_id, title=title.strip(), text=text.strip(), category=category)
    db.add(note)
    await db.commit()
    await db.refresh(note)
    logger.info("note_created note_id=%s user_id=%s", note.id, user_id)
    return note


async def update_note(
    db: AsyncSession,
    note_id: int,
    user_id: int,
    title: Optional[str] = None,
    text: Optional[str] = None,
    category: Optional[str] = None,
) -> Optional[Note]:
    """Update a note as its owner or as a recipient with write permission"""
    note = await db.get(Note, note_id)
    if not note:
        return None

    if note.user_id != user_id:
        can_access, permission = await can_user_access_note(db, user_id, note_id)
        if not can_access or permission != SharePermission.WRITE:
            return None

    if title is not None:
        note.title = title.strip()
    if text is not None:
        note.text = text.strip()
    if category is not None:
        note.category = category

    await db.commit()
    await db.refresh(note)
    logger.info("note_updated note_id=%s user_id=%s", note_id, user_id)
    return note


async def delete_note(db: AsyncSession, note_id: int, user_id: int) -> bool:
    """Delete an owned note along with its shares, public links and reminders"""
    result = await db.execute(
        select(Note).where(and_(Note.id == note_id, Note.user_id == user_id))
    )
    note = result.scalar_one_or_none()
    if not note:
        return False

    reminder_ids = (
        await db.execute(select(Reminder.id).where(Reminder.note_id == note_id))
    ).scalars().all()
    for reminder_id in reminder_ids:
        await delete_shares_for_item(db, ShareType.REMINDER, reminder_id)
    await db.execute(delete(Reminder).where(Reminder.note_id == note_id))

    await delete_shares_for_item(db, ShareType.NOTE, note_id)
    await db.execute(delete(PublicShare).where(PublicShare.note_id == note_id))
    await db.delete(note)
    await db.commit()
    logger.info(
        "note_deleted note_id=%s user_id=%s reminders=%s", note_id, user_id, len(reminder_ids)
    )
    return True
