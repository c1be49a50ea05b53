import hashlib
import hmac
import json
import time
from types import SimpleNamespace

import pytest
import stripe

from app.core.config import settings
from app.core.exceptions import InvalidInputError
from app.models.subscription import Subscription
from app.services import billing
from app.services.subscription import create_or_update_subscription, get_user_plan

WEBHOOK_SECRET = "whsec_test_secret"


def checkout_completed(user_id, event_id="evt_checkout_1"):
    return {
        "id": event_id,
        "object": "event",
        "type": "checkout.session.completed",
        "data": {
            "object": {
                "id": "cs_test_1",
                "object": "checkout.session",
                "mode": "subscription",
                "customer": "cus_123",
                "subscription": "sub_123",
                "client_reference_id": str(user_id),
                "metadata": {"user_id": str(user_id)},
            }
        },
    }


def subscription_event(event_type, user_id, status):
    return {
        "id": f"evt_{event_type}_{status}",
        "type": event_type,
        "data": {
            "object": {
                "id": "sub_123",
                "customer": "cus_123",
                "status": status,
                "metadata": {"user_id": str(user_id)},
            }
        },
    }


def sign(payload: bytes, secret: str = WEBHOOK_SECRET) -> str:
    timestamp = int(time.time())
    signed = f"{timestamp}.".encode() + payload
    digest = hmac.new(secret.encode(), signed, hashlib.sha256).hexdigest()
    return f"t={timestamp},v1={digest}"


async def test_checkout_completed_upgrades_to_pro(db, alice):
    assert await billing.handle_webhook_event(db, checkout_completed(alice.id))

    assert await get_user_plan(db, alice.id) == "pro"
    subscription = await db.get(Subscription, 1)
    assert subscription.stripe_customer_id == "cus_123"
    assert subscription.stripe_subscription_id == "sub_123"


async def test_subscription_updates(db, alice):
    await create_or_update_subscription(db, alice.id, "pro", "cus_123", "sub_123")

    await billing.handle_webhook_event(
        db, subscription_event("customer.subscription.updated", alice.id, "past_due")
    )
    assert await get_user_plan(db, alice.id) == "free"

    await billing.handle_webhook_event(
        db, subscription_event("customer.subscription.updated", alice.id, "active")
    )
    assert await get_user_plan(db, alice.id) == "pro"

    await billing.handle_webhook_event(
        db, subscription_event("customer.subscription.deleted", alice.id, "canceled")
    )
    assert await get_user_plan(db, alice.id) == "free"


async def test_unhandled_and_anonymous_events(db, alice):
    event = subscription_event("invoice.paid", alice.id, "active")
    assert not await billing.handle_webhook_event(db, event)

    event = checkout_completed(alice.id)
    event["data"]["object"]["metadata"] = {}
    event["data"]["object"]["client_reference_id"] = None
    assert await billing.handle_webhook_event(db, event)
    assert await get_user_plan(db, alice.id) == "free"


async def test_webhook_is_processed_once(monkeypatch, db, alice, client, fake_redis):
    monkeypatch.setattr(settings, "STRIPE_WEBHOOK_SECRET", WEBHOOK_SECRET)
    payload = json.dumps(checkout_completed(alice.id)).encode()

    response = await client.post(
        "/api/v1/subscription/webhook",
        content=payload,
        headers={"stripe-signature": sign(payload), "content-type": "application/json"},
    )
    assert response.status_code == 200
    assert response.json() == {"received": True}
    assert await get_user_plan(db, alice.id) == "pro"
    assert await fake_redis.exists("stripe_event:evt_checkout_1")

    response = await client.post(
        "/api/v1/subscription/webhook",
        content=payload,
        headers={"stripe-signature": sign(payload), "content-type": "application/json"},
    )
    assert response.json() == {"received": True, "duplicate": True}


async def test_webhook_failure_allows_redelivery(monkeypatch, alice, client, fake_redis):
    monkeypatch.setattr(settings, "STRIPE_WEBHOOK_SECRET", WEBHOOK_SECRET)

    async def broken(db, event):
        raise RuntimeError("database unavailable")

    monkeypatch.setattr(billing, "handle_webhook_event", broken)
    payload = json.dumps(checkout_completed(alice.id, "evt_broken")).encode()

    response = await client.post(
        "/api/v1/subscription/webhook", content=payload, headers={"stripe-signature": sign(payload)}
    )
    assert response.status_code == 500
    assert not await fake_redis.exists("stripe_event:evt_broken")


async def test_webhook_signature_checks(monkeypatch, alice, client):
    payload = json.dumps(checkout_completed(alice.id)).encode()

    response = await client.post(
        "/api/v1/subscription/webhook", content=payload, headers={"stripe-signature": sign(payload)}
    )
    assert response.status_code == 500

    monkeypatch.setattr(settings, "STRIPE_WEBHOOK_SECRET", WEBHOOK_SECRET)
    response = await client.post("/api/v1/subscription/webhook", content=payload)
    assert response.status_code == 400

    response = await client.post(
        "/api/v1/subscription/webhook",
        content=payload,
        headers={"stripe-signature": sign(payload, "whsec_other")},
    )
    assert response.status_code == 400
    assert response.json()["detail"] == "Invalid webhook signature"


async def test_checkout_session(monkeypatch, alice_client):
    response = await alice_client.post("/api/v1/subscription/checkout")
    assert response.status_code == 500
    assert response.json()["detail"] == "Stripe is not configured"

    calls = []

    def fake_create(**kwargs):
        calls.append(kwargs)
        return SimpleNamespace(id="cs_test_42", url="https://checkout.stripe.test/cs_test_42")

    monkeypatch.setattr(settings, "STRIPE_SECRET_KEY", "sk_test_123")
    monkeypatch.setattr(settings, "STRIPE_PRICE_ID_PRO", "price_pro")
    monkeypatch.setattr(stripe.checkout.Session, "create", fake_create)

    response = await alice_client.post(
        "/api/v1/subscription/checkout", headers={"origin": "https://app.example.com"}
    )
    assert response.status_code == 200
    assert response.json() == {
        "session_id": "cs_test_42", "url": "https://checkout.stripe.test/cs_test_42",
    }
    assert calls[0]["mode"] == "subscription"
    assert calls[0]["customer_email"] == "alice@example.com"
    assert calls[0]["line_items"] == [{"price": "price_pro", "quantity": 1}]
    assert calls[0]["success_url"].startswith("https://app.example.com/subscription/success")


async def test_subscription_overview(db, alice, alice_client):
    response = await alice_client.get("/api/v1/subscription/")
    body = response.json()
    assert body["plan"] == "free"
    assert body["limits"]["max_notes_per_day"] == 2
    assert body["notes_today"] == 0
    assert body["remaining_notes_today"] == 2
    assert body["remaining_reminders_this_month"] == 5

    await create_or_update_subscription(db, alice.id, "pro")
    response = await alice_client.get("/api/v1/subscription/")
    assert response.json()["plan"] == "pro"
    assert response.json()["remaining_notes_today"] == 10

    response = await alice_client.post("/api/v1/subscription/checkout")
    assert response.status_code == 400


def test_construct_event_returns_the_verified_event(monkeypatch):
    monkeypatch.setattr(settings, "STRIPE_WEBHOOK_SECRET", WEBHOOK_SECRET)
    payload = json.dumps(checkout_completed(42, "evt_verified")).encode()

    event = billing.construct_event(payload, sign(payload))
    assert event["id"] == "evt_verified"
    assert event["data"]["object"]["subscription"] == "sub_123"

    tampered = payload.replace(b"sub_123", b"sub_999")
    with pytest.raises(InvalidInputError, match="Invalid webhook signature"):
        billing.construct_event(tampered, sign(payload))
