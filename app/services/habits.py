"""Habits and their one-record-per-day history.

Today's record is created lazily, the first time a habit is read or
created on a given local day.
"""
import logging
from datetime import date, datetime, timedelta
from decimal import ROUND_HALF_UP, Decimal
from typing import Any, Dict, Iterable, List, Optional, Union

from sqlalchemy import and_, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from app.core.utils import local_now, utcnow
from app.models.habit import DailyHabitRecord, Habit, HabitStatus
from app.models.share import ShareType
from app.services.shares import delete_shares_for_item

logger = logging.getLogger(__name__)

DATE_FORMAT = "%Y-%m-%d"


def today_date_string(now: Optional[datetime] = None) -> str:
    return local_now(now).strftime(DATE_FORMAT)


def _has_record_for(habit: Habit, day: str) -> bool:
    return any(record.date == day for record in habit.daily_records)


async def _load_habit(db: AsyncSession, habit_id: int, user_id: int) -> Optional[Habit]:
    result = await db.execute(
        select(Habit)
        .options(selectinload(Habit.daily_records))
        .where(and_(Habit.id == habit_id, Habit.user_id == user_id))
        .execution_options(populate_existing=True)
    )
    return result.scalar_one_or_none()


async def ensure_today_record(db: AsyncSession, habit: Habit, now: Optional[datetime] = None) -> bool:
    """Add a pending record for today if the habit has none; the caller commits"""
    today = today_date_string(now)
    if _has_record_for(habit, today):
        return False
    habit.daily_records.insert(0, DailyHabitRecord(date=today, status=HabitStatus.PENDING.value))
    return True


async def _commit_today_records(db: AsyncSession, user_id: int) -> bool:
    """Commit lazily created records; False when another request created them first"""
    try:
        await db.commit()
    except IntegrityError:
        await db.rollback()
        logger.info("habit_records_already_created user_id=%s", user_id)
        return False
    return True


async def _query_user_habits(db: AsyncSession, user_id: int) -> List[Habit]:
    result = await db.execute(
        select(Habit)
        .options(selectinload(Habit.daily_records))
        .where(Habit.user_id == user_id)
        .order_by(Habit.created_at.desc(), Habit.id.desc())
        .execution_options(populate_existing=True)
    )
    return list(result.scalars().all())


async def get_user_habits(
    db: AsyncSession, user_id: int, now: Optional[datetime] = None
) -> List[Habit]:
    habits = await _query_user_habits(db, user_id)

    created = [habit.id for habit in habits if await ensure_today_record(db, habit, now)]
    if created:
        if not await _commit_today_records(db, user_id):
            return await _query_user_habits(db, user_id)
        logger.info("habit_records_created user_id=%s habits=%s", user_id, len(created))
    return habits


async def get_habit(
    db: AsyncSession, habit_id: int, user_id: int, now: Optional[datetime] = None
) -> Optional[Habit]:
    habit = await _load_habit(db, habit_id, user_id)
    if habit and await ensure_today_record(db, habit, now):
        if not await _commit_today_records(db, user_id):
            return await _load_habit(db, habit_id, user_id)
    return habit


async def create_habit(
    db: AsyncSession,
    user_id: int,
    name: str,
    description: Optional[str] = None,
    color: Optional[str] = None,
    now: Optional[datetime] = None,
) -> Habit:
    habit = Habit(
        user_id=user_id,
        name=name.strip(),
        description=(description or "").strip() or None,
        color=color or "blue",
        daily_records=[
            DailyHabitRecord(date=today_date_string(now), status=HabitStatus.PENDING.value)
        ],
    )
    db.add(habit)
    await db.commit()
    logger.info("habit_created habit_id=%s user_id=%s", habit.id, user_id)
    return await _load_habit(db, habit.id, user_id)


async def update_habit(
    db: AsyncSession,
    habit_id: int,
    user_id: int,
    name: Optional[str] = None,
    description: Optional[str] = None,
    color: Optional[str] = None,
) -> Optional[Habit]:
    habit = await _load_habit(db, habit_id, user_id)
    if not habit:
        return None

    if name is not None:
        habit.name = name.strip()
    if description is not None:
        habit.description = description.strip() or None
    if color is not None:
        habit.color = color

    await db.commit()
    return await _load_habit(db, habit_id, user_id)


async def update_habit_status(
    db: AsyncSession, habit_id: int, user_id: int, day: str, status: str
) -> Optional[Habit]:
    """Set the status of one day, creating its record if needed"""
    habit = await _load_habit(db, habit_id, user_id)
    if not habit:
        return None

    status = HabitStatus(status).value
    completed_at = utcnow() if status == HabitStatus.COMPLETED.value else None

    record = next((r for r in habit.daily_records if r.date == day), None)
    if record:
        record.status = status
        record.completed_at = completed_at
    else:
        habit.daily_records.append(
            DailyHabitRecord(date=day, status=status, completed_at=completed_at)
        )

    await db.commit()
    logger.info("habit_status_updated habit_id=%s date=%s status=%s", habit_id, day, status)
    return await _load_habit(db, habit_id, user_id)


async def delete_habit(db: AsyncSession, habit_id: int, user_id: int) -> bool:
    habit = await _load_habit(db, habit_id, user_id)
    if not habit:
        return False

    await delete_shares_for_item(db, ShareType.HABIT, habit_id)
    await db.delete(habit)
    await db.commit()
    logger.info("habit_deleted habit_id=%s user_id=%s", habit_id, user_id)
    return True


def _week_bounds(reference: date):
    # date.weekday() is 0 on Monday; weeks here start on Sunday
    start = reference - timedelta(days=(reference.weekday() + 1) % 7)
    return start, start + timedelta(days=6)


def calculate_weekly_success_rate(
    records: Iterable[Any], reference_date: Optional[Union[date, datetime]] = None
) -> int:
    """Percent of completed records in the Sunday-to-Saturday week of ``reference_date``.

    Records are anything with ``date`` (YYYY-MM-DD) and ``status`` attributes.
    A week without records scores 0.
    """
    if reference_date is None:
        reference_date = local_now().date()
    elif isinstance(reference_date, datetime):
        reference_date = reference_date.date()

    start, end = _week_bounds(reference_date)
    week_records = [
        record for record in records
        if start <= datetime.strptime(record.date, DATE_FORMAT).date() <= end
    ]
    if not week_records:
        return 0

    completed = sum(1 for record in week_records if record.status == HabitStatus.COMPLETED.value)
    percent = Decimal(completed * 100) / Decimal(len(week_records))
    return int(percent.quantize(Decimal("1"), rounding=ROUND_HALF_UP))


def get_weekly_stats(
    habits: List[Habit], reference_date: Optional[Union[date, datetime]] = None
) -> Dict[str, Any]:
    habit_stats = [
        {
            "habit_id": habit.id,
            "habit_name": habit.name,
            "success_rate": calculate_weekly_success_rate(habit.daily_records, reference_date),
        }
        for habit in habits
    ]
    average = 0
    if habit_stats:
        total = Decimal(sum(stat["success_rate"] for stat in habit_stats))
        average = int((total / len(habit_stats)).quantize(Decimal("1"), rounding=ROUND_HALF_UP))

    return {
        "total_habits": len(habits),
        "average_success_rate": average,
        "habits_stats": habit_stats,
    }
