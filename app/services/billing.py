"""Stripe Checkout and the webhook events that drive local subscriptions.

The Stripe SDK is synchronous; async callers run these helpers in a
threadpool.
"""
import json
import logging
from typing import Any, Dict, Mapping, Optional

import stripe
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.config import settings
from app.core.exceptions import IntegrationError, InvalidInputError
from app.models.subscription import SubscriptionPlan, SubscriptionStatus
from app.models.user import User
from app.services.subscription import cancel_subscription, create_or_update_subscription

logger = logging.getLogger(__name__)

HANDLED_EVENTS = (
    "checkout.session.completed",
    "customer.subscription.updated",
    "customer.subscription.deleted",
)


def _require_stripe() -> None:
    if not settings.STRIPE_SECRET_KEY:
        raise IntegrationError("Stripe is not configured")
    stripe.api_key = settings.STRIPE_SECRET_KEY


def create_checkout_session(user: User, origin: Optional[str] = None) -> Dict[str, Any]:
    """Start a Pro subscription checkout for ``user``"""
    _require_stripe()
    if not settings.STRIPE_PRICE_ID_PRO:
        raise IntegrationError("STRIPE_PRICE_ID_PRO is not configured")

    origin = (origin or "http://localhost:3000").rstrip("/")
    metadata = {"user_id": str(user.id)}
    try:
        session = stripe.checkout.Session.create(
            mode="subscription",
            customer_email=user.email,
            line_items=[{"price": settings.STRIPE_PRICE_ID_PRO, "quantity": 1}],
            success_url=f"{origin}/subscription/success?session_id={{CHECKOUT_SESSION_ID}}",
            cancel_url=f"{origin}/pricing?canceled=true",
            client_reference_id=str(user.id),
            metadata=metadata,
            subscription_data={"metadata": metadata},
        )
    except stripe.StripeError as e:
        logger.error("stripe_checkout_failed user_id=%s err=%s", user.id, e)
        raise IntegrationError("Could not create the checkout session") from e

    logger.info("stripe_checkout_created user_id=%s session_id=%s", user.id, session.id)
    return {"session_id": session.id, "url": session.url}


def construct_event(payload: bytes, signature: Optional[str]) -> Dict[str, Any]:
    """Verify a webhook payload against its ``Stripe-Signature`` header and decode it"""
    if not settings.STRIPE_WEBHOOK_SECRET:
        raise IntegrationError("Stripe webhook secret is not configured")
    if not signature:
        raise InvalidInputError("Missing Stripe signature")
    try:
        body = payload.decode("utf-8") if isinstance(payload, bytes) else payload
        stripe.WebhookSignature.verify_header(
            body, signature, settings.STRIPE_WEBHOOK_SECRET, stripe.Webhook.DEFAULT_TOLERANCE
        )
        return json.loads(body)
    except (ValueError, stripe.SignatureVerificationError) as e:
        logger.warning("stripe_signature_invalid err=%s", e)
        raise InvalidInputError("Invalid webhook signature") from e


def _user_id_from(obj: Mapping[str, Any]) -> Optional[int]:
    metadata = obj.get("metadata") or {}
    raw = metadata.get("user_id") or obj.get("client_reference_id")
    try:
        return int(raw) if raw else None
    except (TypeError, ValueError):
        return None


async def handle_webhook_event(db: AsyncSession, event: Mapping[str, Any]) -> bool:
    """Apply a verified Stripe event; returns False for event types we ignore"""
    event_type = event.get("type")
    obj = event["data"]["object"]

    if event_type not in HANDLED_EVENTS:
        logger.info("stripe_event_ignored type=%s", event_type)
        return False

    user_id = _user_id_from(obj)
    if user_id is None:
        logger.warning("stripe_event_without_user type=%s id=%s", event_type, event.get("id"))
        return True

    if event_type == "checkout.session.completed":
        if obj.get("mode") == "subscription" and obj.get("subscription"):
            await create_or_update_subscription(
                db,
                user_id,
                SubscriptionPlan.PRO.value,
                stripe_customer_id=obj.get("customer"),
                stripe_subscription_id=obj.get("subscription"),
            )
    elif event_type == "customer.subscription.updated":
        status = obj.get("status")
        if status == SubscriptionStatus.ACTIVE.value:
            await create_or_update_subscription(
                db,
                user_id,
                SubscriptionPlan.PRO.value,
                stripe_customer_id=obj.get("customer"),
                stripe_subscription_id=obj.get("id"),
            )
        elif status in (SubscriptionStatus.CANCELED.value, SubscriptionStatus.PAST_DUE.value):
            await cancel_subscription(db, user_id)
    else:
        await cancel_subscription(db, user_id)

    logger.info("stripe_event_handled type=%s user_id=%s", event_type, user_id)
    return True
