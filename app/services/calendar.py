"""Best-effort calendar sync for notes that mention an upcoming date."""
import logging
import re
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Any, Dict, List, Optional
from zoneinfo import ZoneInfo

import requests
from fastapi.concurrency import run_in_threadpool

from app.core.config import settings
from app.core.utils import utcnow
from app.models.note import Note
from app.models.user import User

logger = logging.getLogger(__name__)

SYNC_WINDOW = timedelta(days=7)
EVENT_DURATION = timedelta(hours=1)
REQUEST_TIMEOUT_SECONDS = 5.0

_TIME = r"(?:[ T](?P<hour>[01]?\d|2[0-3])[:h](?P<minute>[0-5]\d))?"
DATE_PATTERNS = [
    re.compile(r"\b(?P<year>\d{4})-(?P<month>\d{2})-(?P<day>\d{2})" + _TIME),
    re.compile(r"\b(?P<day>\d{1,2})/(?P<month>\d{1,2})/(?P<year>\d{4})" + _TIME),
]


@dataclass
class DetectedDate:
    date: datetime
    text: str


def detect_dates_in_text(text: str) -> List[DetectedDate]:
    """Find ISO and day-first dates, with an optional time, in order of appearance.

    Dates are read in the application timezone and returned as UTC.
    """
    tz = ZoneInfo(settings.TIMEZONE)
    found = []
    for pattern in DATE_PATTERNS:
        for match in pattern.finditer(text or ""):
            parts = match.groupdict()
            try:
                local = datetime(
                    int(parts["year"]), int(parts["month"]), int(parts["day"]),
                    int(parts["hour"] or 9), int(parts["minute"] or 0),
                    tzinfo=tz,
                )
            except ValueError:
                continue
            found.append((match.start(), DetectedDate(local.astimezone(timezone.utc), match.group(0))))
    return [detected for _, detected in sorted(found, key=lambda item: item[0])]


def _post_event(url: str, payload: Dict[str, Any]) -> None:
    response = requests.post(url, json=payload, timeout=REQUEST_TIMEOUT_SECONDS)
    response.raise_for_status()


async def sync_note_to_calendar(
    user: User, note: Note, now: Optional[datetime] = None
) -> bool:
    """POST a one-hour event for the first date in the note if it is within a week.

    Never raises; returns whether an event was sent.
    """
    if not settings.CALENDAR_WEBHOOK_URL:
        return False

    try:
        dates = detect_dates_in_text(f"{note.title} {note.text}")
        if not dates:
            return False

        start = dates[0].date
        now = now or utcnow()
        if not (now < start <= now + SYNC_WINDOW):
            logger.info("calendar_sync_skipped note_id=%s reason=out_of_window", note.id)
            return False

        payload = {
            "user_id": user.id,
            "user_email": user.email,
            "title": note.title,
            "description": note.text,
            "start": start.isoformat(),
            "end": (start + EVENT_DURATION).isoformat(),
        }
        await run_in_threadpool(_post_event, settings.CALENDAR_WEBHOOK_URL, payload)
    except Exception as e:
        logger.error("calendar_sync_failed note_id=%s err=%s", note.id, e)
        return False

    logger.info("calendar_event_created note_id=%s start=%s", note.id, start.isoformat())
    return True
