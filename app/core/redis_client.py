import logging
from typing import Optional

import redis.asyncio as redis
from app.core.config import settings

logger = logging.getLogger(__name__)

redis_client: Optional[redis.Redis] = None

# Stripe retries deliveries for up to three days
WEBHOOK_EVENT_TTL_SECONDS = 3 * 24 * 60 * 60


async def get_redis() -> Optional[redis.Redis]:
    """Get Redis client (None when REDIS_URL is not configured)"""
    return redis_client


async def init_redis():
    """Initialize Redis connection"""
    global redis_client
    if not settings.REDIS_URL:
        logger.info("redis_disabled reason=no_url")
        return
    redis_client = redis.from_url(settings.REDIS_URL, decode_responses=True)

    # Test connection
    try:
        await redis_client.ping()
        logger.info("redis_connected")
    except Exception as e:
        logger.error("redis_connection_failed err=%s", e)
        raise


async def close_redis():
    global redis_client
    if redis_client is not None:
        await redis_client.aclose()
        redis_client = None


async def mark_event_processed(client: Optional[redis.Redis], event_id: str) -> bool:
    """Record a webhook event id; False when it was already recorded.

    Without Redis every event is treated as new.
    """
    if client is None or not event_id:
        return True
    created = await client.set(
        f"stripe_event:{event_id}", "1", nx=True, ex=WEBHOOK_EVENT_TTL_SECONDS
    )
    return bool(created)


async def forget_event(client: Optional[redis.Redis], event_id: str) -> None:
    """Drop a recorded event id so a redelivery is processed again"""
    if client is None or not event_id:
        return
    await client.delete(f"stripe_event:{event_id}")
