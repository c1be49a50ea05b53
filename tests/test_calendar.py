from datetime import datetime, timezone
from types import SimpleNamespace

import requests

from app.core.config import settings
from app.services import calendar as calendar_service
from app.services.calendar import detect_dates_in_text, sync_note_to_calendar

NOW = datetime(2026, 4, 6, 8, 0, tzinfo=timezone.utc)
USER = SimpleNamespace(id=7, email="alice@example.com")


def note(title, text):
    return SimpleNamespace(id=1, title=title, text=text)


class FakeResponse:
    def __init__(self, status_code):
        self.status_code = status_code

    def raise_for_status(self):
        if self.status_code >= 400:
            raise requests.HTTPError(f"{self.status_code} Server Error")


def test_detects_dates_in_order_of_appearance():
    found = detect_dates_in_text("Call on 10/04/2026 14:30 then review 2026-04-08")
    assert [d.text for d in found] == ["10/04/2026 14:30", "2026-04-08"]
    assert found[0].date == datetime(2026, 4, 10, 14, 30, tzinfo=timezone.utc)
    assert found[1].date == datetime(2026, 4, 8, 9, 0, tzinfo=timezone.utc)


def test_detects_hour_notation_and_skips_impossible_dates():
    found = detect_dates_in_text("Dentist 2026-04-09 10h15, not 31/02/2026")
    assert [d.date for d in found] == [datetime(2026, 4, 9, 10, 15, tzinfo=timezone.utc)]
    assert detect_dates_in_text("no dates here") == []


def test_dates_are_read_in_application_timezone(monkeypatch):
    monkeypatch.setattr(settings, "TIMEZONE", "Europe/Rome")
    found = detect_dates_in_text("2026-07-01 10:00")
    assert found[0].date == datetime(2026, 7, 1, 8, 0, tzinfo=timezone.utc)


async def test_sync_posts_event_within_a_week(monkeypatch):
    calls = []

    def fake_post(url, json=None, timeout=None):
        calls.append((url, json, timeout))
        return FakeResponse(201)

    monkeypatch.setattr(settings, "CALENDAR_WEBHOOK_URL", "https://calendar.test/events")
    monkeypatch.setattr(calendar_service.requests, "post", fake_post)

    sent = await sync_note_to_calendar(USER, note("Meeting", "Budget review 2026-04-08 15:00"), now=NOW)
    assert sent is True

    url, payload, timeout = calls[0]
    assert url == "https://calendar.test/events"
    assert timeout == calendar_service.REQUEST_TIMEOUT_SECONDS
    assert payload["user_email"] == "alice@example.com"
    assert payload["start"] == "2026-04-08T15:00:00+00:00"
    assert payload["end"] == "2026-04-08T16:00:00+00:00"


async def test_sync_is_skipped_or_swallowed(monkeypatch):
    assert not await sync_note_to_calendar(USER, note("Trip", "2026-04-08"), now=NOW)

    def failing_post(url, json=None, timeout=None):
        return FakeResponse(503)

    monkeypatch.setattr(settings, "CALENDAR_WEBHOOK_URL", "https://calendar.test/events")
    monkeypatch.setattr(calendar_service.requests, "post", failing_post)

    assert not await sync_note_to_calendar(USER, note("Far", "2026-05-30"), now=NOW)
    assert not await sync_note_to_calendar(USER, note("Past", "2026-04-01"), now=NOW)
    assert not await sync_note_to_calendar(USER, note("Plain", "no date"), now=NOW)
    assert not await sync_note_to_calendar(USER, note("Down", "2026-04-08"), now=NOW)

    def unreachable_post(url, json=None, timeout=None):
        raise requests.ConnectionError("connection refused")

    monkeypatch.setattr(calendar_service.requests, "post", unreachable_post)
    assert not await sync_note_to_calendar(USER, note("Down", "2026-04-08"), now=NOW)
