import logging

from fastapi import APIRouter, Depends, HTTPException, Request, status
from fastapi.concurrency import run_in_threadpool
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.database import get_db
from app.core.exceptions import AppError, http_error
from app.core.redis_client import forget_event, get_redis, mark_event_processed
from app.core.security import get_current_user
from app.models.subscription import Subscription, SubscriptionPlan, SubscriptionStatus
from app.models.user import User
from app.schemas.subscription import CheckoutResponse, PlanLimits, SubscriptionResponse
from app.services import billing
from app.services.subscription import (
    can_create_note,
    get_notes_created_today,
    get_remaining_reminders_this_month,
    get_user_subscription,
    plan_limits,
)

logger = logging.getLogger(__name__)

router = APIRouter()


@router.get("/", response_model=SubscriptionResponse)
async def get_subscription(
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    """Current plan, its limits and today's usage"""
    subscription = await get_user_subscription(db, current_user.id)
    if subscription:
        plan, sub_status, end_date = subscription.plan, subscription.status, subscription.end_date
    else:
        result = await db.execute(select(Subscription).where(Subscription.user_id == current_user.id))
        inactive = result.scalar_one_or_none()
        plan = SubscriptionPlan.FREE.value
        sub_status = inactive.status if inactive else SubscriptionStatus.ACTIVE.value
        end_date = inactive.end_date if inactive else None

    note_check = await can_create_note(db, current_user.id)
    return SubscriptionResponse(
        plan=plan,
        status=sub_status,
        limits=PlanLimits(**plan_limits(plan)),
        end_date=end_date,
        notes_today=await get_notes_created_today(db, current_user.id),
        remaining_notes_today=note_check.remaining,
        remaining_reminders_this_month=await get_remaining_reminders_this_month(db, current_user.id),
    )


@router.post("/checkout", response_model=CheckoutResponse)
async def create_checkout(
    request: Request,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    """Start a Stripe Checkout session for the Pro plan"""
    subscription = await get_user_subscription(db, current_user.id)
    if subscription and subscription.plan == SubscriptionPlan.PRO.value:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="You already have an active Pro subscription"
        )

    try:
        session = await run_in_threadpool(
            billing.create_checkout_session, current_user, request.headers.get("origin")
        )
    except AppError as e:
        raise http_error(e)
    return CheckoutResponse(**session)


@router.post("/webhook")
async def stripe_webhook(request: Request, db: AsyncSession = Depends(get_db)):
    """Receive a signed Stripe event; redeliveries of a seen event are acknowledged and skipped"""
    payload = await request.body()
    try:
        event = billing.construct_event(payload, request.headers.get("stripe-signature"))
    except AppError as e:
        raise http_error(e)

    redis_client = await get_redis()
    if not await mark_event_processed(redis_client, event.get("id")):
        logger.info("stripe_event_duplicate id=%s", event.get("id"))
        return {"received": True, "duplicate": True}

    try:
        await billing.handle_webhook_event(db, event)
    except Exception:
        logger.exception("stripe_webhook_failed id=%s type=%s", event.get("id"), event.get("type"))
        await forget_event(redis_client, event.get("id"))
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Webhook processing failed"
        )
    return {"received": True}
