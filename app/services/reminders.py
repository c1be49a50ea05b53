"""Reminders attached to notes.

There is no scheduler: reminders whose date has passed are marked as sent
the next time the owner lists them. Sent reminders are kept, since the
monthly quota counts them.
"""
import logging
from datetime import datetime
from typing import List, Optional

from sqlalchemy import and_, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.utils import as_utc, utcnow
from app.models.note import Note
from app.models.reminder import Reminder
from app.models.share import ShareType
from app.models.user import User
from app.services.shares import delete_shares_for_item

logger = logging.getLogger(__name__)


async def create_reminder(
    db: AsyncSession, user: User, note: Note, reminder_date: datetime
) -> Reminder:
    reminder = Reminder(
        user_id=user.id,
        note_id=note.id,
        user_email=user.email,
        note_title=note.title,
        note_text=note.text,
        reminder_date=as_utc(reminder_date),
        sent=False,
    )
    db.add(reminder)
    await db.commit()
    await db.refresh(reminder)
    logger.info(
        "reminder_created reminder_id=%s user_id=%s note_id=%s", reminder.id, user.id, note.id
    )
    return reminder


async def sweep_due_reminders(
    db: AsyncSession, user_id: Optional[int] = None, now: Optional[datetime] = None
) -> int:
    """Mark every unsent reminder whose date has passed as sent"""
    query = update(Reminder).where(
        and_(Reminder.sent.is_(False), Reminder.reminder_date <= (now or utcnow()))
    )
    if user_id is not None:
        query = query.where(Reminder.user_id == user_id)
    result = await db.execute(
        query.values(sent=True).execution_options(synchronize_session=False)
    )
    await db.commit()
    if result.rowcount:
        logger.info("reminders_swept user_id=%s count=%s", user_id, result.rowcount)
    return result.rowcount


async def get_pending_reminders(db: AsyncSession, now: Optional[datetime] = None) -> List[Reminder]:
    result = await db.execute(
        select(Reminder)
        .where(and_(Reminder.sent.is_(False), Reminder.reminder_date <= (now or utcnow())))
        .order_by(Reminder.reminder_date.asc())
    )
    return list(result.scalars().all())


async def get_user_reminders(
    db: AsyncSession, user_id: int, now: Optional[datetime] = None
) -> List[Reminder]:
    """Unsent reminders of a user, soonest first"""
    await sweep_due_reminders(db, user_id, now)
    result = await db.execute(
        select(Reminder)
        .where(and_(Reminder.user_id == user_id, Reminder.sent.is_(False)))
        .order_by(Reminder.reminder_date.asc(), Reminder.id.asc())
    )
    return list(result.scalars().all())


async def mark_reminder_as_sent(db: AsyncSession, reminder_id: int) -> None:
    await db.execute(
        update(Reminder)
        .where(Reminder.id == reminder_id)
        .values(sent=True)
        .execution_options(synchronize_session=False)
    )
    await db.commit()


async def delete_reminder(db: AsyncSession, reminder_id: int, user_id: int) -> bool:
    result = await db.execute(
        select(Reminder).where(and_(Reminder.id == reminder_id, Reminder.user_id == user_id))
    )
    reminder = result.scalar_one_or_none()
    if not reminder:
        return False

    await delete_shares_for_item(db, ShareType.REMINDER, reminder_id)
    await db.delete(reminder)
    await db.commit()
    logger.info("reminder_deleted reminder_id=%s user_id=%s", reminder_id, user_id)
    return True
