"""Plan tiers, usage quotas and the local subscription lifecycle.

Quota checks always run against a live count of rows; nothing is cached.
"""
import logging
from dataclasses import dataclass
from datetime import datetime
from typing import Any, Dict, Optional

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.utils import start_of_local_day, start_of_local_month, utcnow
from app.models.note import Note
from app.models.reminder import Reminder
from app.models.subscription import Subscription, SubscriptionPlan, SubscriptionStatus
from app.models.user import User

logger = logging.getLogger(__name__)

UNLIMITED = -1

PLAN_LIMITS: Dict[str, Dict[str, Any]] = {
    SubscriptionPlan.FREE.value: {
        "max_notes_per_day": 2,
        "max_reminders_per_month": 5,
        "price": 0,
        "features": ["notes", "categories", "filters", "reminders"],
    },
    SubscriptionPlan.PRO.value: {
        "max_notes_per_day": 10,
        "max_reminders_per_month": 100,
        "price": 9,
        "features": ["notes", "categories", "filters", "reminders", "export"],
    },
}


@dataclass
class QuotaCheck:
    allowed: bool
    # None means unlimited
    remaining: Optional[int] = None
    reason: Optional[str] = None


def plan_limits(plan: str) -> Dict[str, Any]:
    return PLAN_LIMITS.get(plan, PLAN_LIMITS[SubscriptionPlan.FREE.value])


async def get_user_subscription(db: AsyncSession, user_id: int) -> Optional[Subscription]:
    """Return the user's subscription only while it is active"""
    result = await db.execute(select(Subscription).where(Subscription.user_id == user_id))
    subscription = result.scalar_one_or_none()
    if not subscription or subscription.status != SubscriptionStatus.ACTIVE.value:
        return None
    return subscription


async def get_user_plan(db: AsyncSession, user_id: int) -> str:
    subscription = await get_user_subscription(db, user_id)
    return subscription.plan if subscription else SubscriptionPlan.FREE.value


async def create_or_update_subscription(
    db: AsyncSession,
    user_id: int,
    plan: str,
    stripe_customer_id: Optional[str] = None,
    stripe_subscription_id: Optional[str] = None,
    status: str = SubscriptionStatus.ACTIVE.value,
) -> Subscription:
    """Upsert the single subscription row of a user"""
    result = await db.execute(select(Subscription).where(Subscription.user_id == user_id))
    subscription = result.scalar_one_or_none()
    if not subscription:
        subscription = Subscription(user_id=user_id)
        db.add(subscription)

    subscription.plan = plan
    subscription.status = status
    subscription.start_date = utcnow()
    subscription.end_date = None
    if stripe_customer_id is not None:
        subscription.stripe_customer_id = stripe_customer_id
    if stripe_subscription_id is not None:
        subscription.stripe_subscription_id = stripe_subscription_id

    await db.commit()
    await db.refresh(subscription)
    logger.info("subscription_saved user_id=%s plan=%s status=%s", user_id, plan, status)
    return subscription


async def cancel_subscription(db: AsyncSession, user_id: int) -> bool:
    result = await db.execute(select(Subscription).where(Subscription.user_id == user_id))
    subscription = result.scalar_one_or_none()
    if not subscription:
        return False

    subscription.status = SubscriptionStatus.CANCELED.value
    subscription.end_date = utcnow()
    await db.commit()
    logger.info("subscription_canceled user_id=%s", user_id)
    return True


async def get_notes_created_today(
    db: AsyncSession, user_id: int, now: Optional[datetime] = None
) -> int:
    result = await db.execute(
        select(func.count(Note.id)).where(
            Note.user_id == user_id,
            Note.created_at >= start_of_local_day(now),
        )
    )
    return result.scalar_one()


async def can_create_note(
    db: AsyncSession, user_id: int, now: Optional[datetime] = None
) -> QuotaCheck:
    """Daily note quota; admins are never limited"""
    user = await db.get(User, user_id)
    if user is not None and user.is_admin:
        return QuotaCheck(allowed=True, remaining=None)

    plan = await get_user_plan(db, user_id)
    limit = plan_limits(plan)["max_notes_per_day"]
    if limit == UNLIMITED:
        return QuotaCheck(allowed=True, remaining=None)

    notes_today = await get_notes_created_today(db, user_id, now)
    if notes_today >= limit:
        if plan == SubscriptionPlan.FREE.value:
            hint = "Upgrade to Pro for 10 notes per day."
        else:
            hint = "Your limit resets tomorrow."
        logger.info("note_quota_reached user_id=%s plan=%s limit=%s", user_id, plan, limit)
        return QuotaCheck(
            allowed=False,
            remaining=0,
            reason=f"You have reached your limit of {limit} note(s) per day. {hint}",
        )

    return QuotaCheck(allowed=True, remaining=limit - notes_today)


async def get_remaining_reminders_this_month(
    db: AsyncSession, user_id: int, now: Optional[datetime] = None
) -> Optional[int]:
    """Reminders left this calendar month; None when the plan is unlimited.

    Only reminders already marked as sent count against the quota.
    """
    plan = await get_user_plan(db, user_id)
    limit = plan_limits(plan)["max_reminders_per_month"]
    if limit == UNLIMITED:
        return None

    result = await db.execute(
        select(func.count(Reminder.id)).where(
            Reminder.user_id == user_id,
            Reminder.sent.is_(True),
            Reminder.created_at >= start_of_local_month(now),
        )
    )
    sent_this_month = result.scalar_one()
    return max(0, limit - sent_this_month)


async def can_create_reminder(
    db: AsyncSession, user_id: int, now: Optional[datetime] = None
) -> QuotaCheck:
    remaining = await get_remaining_reminders_this_month(db, user_id, now)
    if remaining is not None and remaining <= 0:
        logger.info("reminder_quota_reached user_id=%s", user_id)
        return QuotaCheck(
            allowed=False,
            remaining=0,
            reason="You have reached this month's reminder limit. Upgrade your plan for more reminders.",
        )
    return QuotaCheck(allowed=True, remaining=remaining)
