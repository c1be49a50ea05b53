from datetime import date, datetime, timedelta, timezone
from types import SimpleNamespace

from app.services import habits as habits_service
from app.services.habits import _week_bounds, calculate_weekly_success_rate, get_weekly_stats


def record(day, status):
    return SimpleNamespace(date=day.strftime("%Y-%m-%d"), status=status)


# 2026-03-01 is a Sunday
SUNDAY = date(2026, 3, 1)


def test_week_starts_on_sunday():
    assert _week_bounds(SUNDAY) == (SUNDAY, date(2026, 3, 7))
    assert _week_bounds(date(2026, 3, 4)) == (SUNDAY, date(2026, 3, 7))
    assert _week_bounds(date(2026, 3, 7)) == (SUNDAY, date(2026, 3, 7))
    assert _week_bounds(date(2026, 3, 8)) == (date(2026, 3, 8), date(2026, 3, 14))


def test_weekly_success_rate_three_of_seven():
    statuses = ["completed"] * 3 + ["pending", "skipped", "pending", "pending"]
    records = [record(SUNDAY + timedelta(days=index), status) for index, status in enumerate(statuses)]
    assert calculate_weekly_success_rate(records, date(2026, 3, 5)) == 43


def test_weekly_success_rate_ignores_other_weeks():
    records = [
        record(SUNDAY, "completed"),
        record(SUNDAY - timedelta(days=1), "pending"),
        record(SUNDAY + timedelta(days=7), "pending"),
    ]
    assert calculate_weekly_success_rate(records, SUNDAY) == 100


def test_weekly_success_rate_rounds_half_up():
    records = [record(SUNDAY, "completed")] + [
        record(SUNDAY + timedelta(days=1), "pending") for _ in range(7)
    ]
    assert calculate_weekly_success_rate(records, SUNDAY) == 13


def test_weekly_success_rate_without_records():
    assert calculate_weekly_success_rate([], SUNDAY) == 0
    assert calculate_weekly_success_rate([record(SUNDAY - timedelta(days=1), "completed")], SUNDAY) == 0


def test_weekly_stats_average():
    habits = [
        SimpleNamespace(id=1, name="Run", daily_records=[record(SUNDAY, "completed")]),
        SimpleNamespace(id=2, name="Read", daily_records=[
            record(SUNDAY, "completed"), record(SUNDAY + timedelta(days=1), "pending"),
        ]),
        SimpleNamespace(id=3, name="Sleep", daily_records=[]),
    ]
    stats = get_weekly_stats(habits, SUNDAY)
    assert stats["total_habits"] == 3
    assert [stat["success_rate"] for stat in stats["habits_stats"]] == [100, 50, 0]
    assert stats["average_success_rate"] == 50
    assert get_weekly_stats([], SUNDAY) == {
        "total_habits": 0, "average_success_rate": 0, "habits_stats": [],
    }


async def test_today_record_is_created_lazily(db, alice):
    day_one = datetime(2026, 3, 2, 10, 0, tzinfo=timezone.utc)
    habit = await habits_service.create_habit(db, alice.id, " Stretch ", now=day_one)
    assert habit.name == "Stretch"
    assert habit.color == "blue"
    assert [(r.date, r.status) for r in habit.daily_records] == [("2026-03-02", "pending")]

    habits = await habits_service.get_user_habits(db, alice.id, now=day_one)
    assert len(habits[0].daily_records) == 1

    day_two = day_one + timedelta(days=1)
    habit = await habits_service.get_habit(db, habit.id, alice.id, now=day_two)
    assert [r.date for r in habit.daily_records] == ["2026-03-03", "2026-03-02"]


async def test_update_habit_status_upserts_record(db, alice):
    habit = await habits_service.create_habit(db, alice.id, "Walk")
    today = habits_service.today_date_string()

    habit = await habits_service.update_habit_status(db, habit.id, alice.id, today, "completed")
    today_record = next(r for r in habit.daily_records if r.date == today)
    assert today_record.status == "completed"
    assert today_record.completed_at is not None
    assert len(habit.daily_records) == 1

    habit = await habits_service.update_habit_status(db, habit.id, alice.id, today, "skipped")
    today_record = next(r for r in habit.daily_records if r.date == today)
    assert today_record.status == "skipped"
    assert today_record.completed_at is None

    habit = await habits_service.update_habit_status(db, habit.id, alice.id, "2020-01-01", "completed")
    assert len(habit.daily_records) == 2

    assert await habits_service.update_habit_status(db, habit.id, alice.id + 1, today, "completed") is None


async def test_habit_endpoints(alice_client, bob_client):
    response = await alice_client.post("/api/v1/habits/", json={"name": "Meditate", "color": "green"})
    assert response.status_code == 201
    habit = response.json()
    assert len(habit["daily_records"]) == 1

    response = await alice_client.put(
        f"/api/v1/habits/{habit['id']}/records", json={"status": "completed"}
    )
    assert response.status_code == 200
    assert response.json()["daily_records"][0]["status"] == "completed"

    response = await alice_client.get("/api/v1/habits/stats")
    assert response.json()["total_habits"] == 1
    assert response.json()["average_success_rate"] == 100

    response = await bob_client.get(f"/api/v1/habits/{habit['id']}")
    assert response.status_code == 404

    response = await alice_client.put(f"/api/v1/habits/{habit['id']}", json={"name": "Breathe"})
    assert response.json()["name"] == "Breathe"

    response = await alice_client.delete(f"/api/v1/habits/{habit['id']}")
    assert response.status_code == 200
    response = await alice_client.get("/api/v1/habits/")
    assert response.json() == []


async def test_concurrent_first_read_of_the_day(monkeypatch, db, session_factory, alice):
    day_one = datetime(2026, 3, 2, 10, 0, tzinfo=timezone.utc)
    day_two = day_one + timedelta(days=1)
    habit = await habits_service.create_habit(db, alice.id, "Journal", now=day_one)

    original = habits_service.ensure_today_record
    raced = []

    async def other_request_first(session, loaded_habit, now=None):
        # Another request creates today's record after this one loaded the habit
        if not raced:
            raced.append(loaded_habit.id)
            async with session_factory() as other:
                await habits_service.get_user_habits(other, alice.id, now=now)
        return await original(session, loaded_habit, now)

    monkeypatch.setattr(habits_service, "ensure_today_record", other_request_first)

    habits = await habits_service.get_user_habits(db, alice.id, now=day_two)
    assert raced == [habit.id]
    assert [r.date for r in habits[0].daily_records] == ["2026-03-03", "2026-03-02"]

    raced.clear()
    fetched = await habits_service.get_habit(db, habit.id, alice.id, now=day_two + timedelta(days=1))
    assert [r.date for r in fetched.daily_records] == ["2026-03-04", "2026-03-03", "2026-03-02"]
