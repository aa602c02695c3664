from datetime import datetime, timezone

import pytest
from sqlalchemy.ext.asyncio import AsyncSession

from focus_tracker.config import get_settings
from focus_tracker.main import app
from focus_tracker.models.focus_time import FocusTime


def parse_ts(value: str) -> datetime:
    return datetime.fromisoformat(value.replace("Z", "+00:00"))


async def add_focus_time(db: AsyncSession, user_id: str, time_from: datetime, time_to: datetime | None = None):
    db.add(FocusTime(user_id=user_id, time_from=time_from, time_to=time_to or time_from))
    await db.commit()


@pytest.mark.asyncio
async def test_create_focus_time(client, test_user):
    response = await client.post("/focus-time", json={
        "timeFrom": "2024-01-01T09:00:00Z",
        "timeTo": "2024-01-01T10:00:00Z",
    })
    assert response.status_code == 201
    data = response.json()
    assert data["userId"] == test_user.id
    assert data["id"] is not None
    assert "_id" not in data
    assert parse_ts(data["timeFrom"]) == datetime(2024, 1, 1, 9, 0, tzinfo=timezone.utc)
    assert parse_ts(data["timeTo"]) == datetime(2024, 1, 1, 10, 0, tzinfo=timezone.utc)
    assert "createdAt" in data
    assert "updatedAt" in data


@pytest.mark.asyncio
async def test_create_focus_time_keeps_instant_across_offsets(client):
    response = await client.post("/focus-time", json={
        "timeFrom": "2024-01-01T09:00:00-03:00",
        "timeTo": "2024-01-01T09:30:00.250-03:00",
    })
    assert response.status_code == 201
    data = response.json()
    assert parse_ts(data["timeFrom"]) == datetime(2024, 1, 1, 12, 0, tzinfo=timezone.utc)
    assert parse_ts(data["timeTo"]) == datetime(2024, 1, 1, 12, 30, 0, 250000, tzinfo=timezone.utc)


@pytest.mark.asyncio
async def test_create_focus_time_equal_bounds_accepted(client):
    response = await client.post("/focus-time", json={
        "timeFrom": "2024-01-01T09:00:00Z",
        "timeTo": "2024-01-01T09:00:00Z",
    })
    assert response.status_code == 201


@pytest.mark.asyncio
async def test_create_focus_time_reversed_bounds(client):
    response = await client.post("/focus-time", json={
        "timeFrom": "2024-01-01T10:00:00Z",
        "timeTo": "2024-01-01T09:00:00Z",
    })
    assert response.status_code == 400
    assert response.json() == {"message": "timeFrom always has to be before timeTo"}


@pytest.mark.asyncio
async def test_create_focus_time_validation(client):
    response = await client.post("/focus-time", json={
        "timeFrom": "yesterday-ish",
        "timeTo": "2024-01-01T09:00:00Z",
    })
    assert response.status_code == 422
    issues = response.json()["message"]
    assert [issue["field"] for issue in issues] == ["timeFrom"]

    response = await client.post("/focus-time", json={"timeTo": "2024-01-01T09:00:00Z"})
    assert response.status_code == 422
    assert response.json()["message"][0]["field"] == "timeFrom"


@pytest.mark.asyncio
async def test_create_focus_time_non_object_body(client):
    response = await client.post("/focus-time", json=["2024-01-01T09:00:00Z"])
    assert response.status_code == 422
    assert isinstance(response.json()["message"], list)


@pytest.mark.asyncio
async def test_list_focus_times_for_day(client, db_session, test_user):
    utc = timezone.utc
    await add_focus_time(db_session, test_user.id, datetime(2024, 1, 15, 23, 59, 59, 999000, tzinfo=utc))
    await add_focus_time(db_session, test_user.id, datetime(2024, 1, 15, 12, 0, tzinfo=utc))
    await add_focus_time(db_session, test_user.id, datetime(2024, 1, 15, 0, 0, tzinfo=utc))
    await add_focus_time(db_session, test_user.id, datetime(2024, 1, 14, 23, 59, 59, tzinfo=utc))
    await add_focus_time(db_session, test_user.id, datetime(2024, 1, 16, 0, 0, tzinfo=utc))

    response = await client.get("/focus-time?date=2024-01-15")
    assert response.status_code == 200
    starts = [parse_ts(item["timeFrom"]) for item in response.json()]
    assert starts == [
        datetime(2024, 1, 15, 0, 0, tzinfo=utc),
        datetime(2024, 1, 15, 12, 0, tzinfo=utc),
        datetime(2024, 1, 15, 23, 59, 59, 999000, tzinfo=utc),
    ]


@pytest.mark.asyncio
async def test_list_focus_times_scoped_to_owner(client, db_session, test_user, second_user):
    at = datetime(2024, 1, 15, 8, 0, tzinfo=timezone.utc)
    await add_focus_time(db_session, test_user.id, at)
    await add_focus_time(db_session, second_user.id, at)

    response = await client.get("/focus-time", params={"date": "2024-01-15T18:00:00Z"})
    assert response.status_code == 200
    items = response.json()
    assert len(items) == 1
    assert items[0]["userId"] == test_user.id


@pytest.mark.asyncio
async def test_list_focus_times_empty_day(client):
    response = await client.get("/focus-time?date=2030-06-01")
    assert response.status_code == 200
    assert response.json() == []


@pytest.mark.asyncio
async def test_list_focus_times_bad_date(client):
    response = await client.get("/focus-time?date=not-a-date")
    assert response.status_code == 422
    assert any(issue["field"] == "date" for issue in response.json()["message"])


@pytest.mark.asyncio
async def test_list_focus_times_missing_date(client):
    response = await client.get("/focus-time")
    assert response.status_code == 422
    assert response.json()["message"][0]["field"] == "date"


@pytest.mark.asyncio
async def test_metrics_groups_by_day(client, db_session, test_user, second_user):
    utc = timezone.utc
    await add_focus_time(db_session, test_user.id, datetime(2024, 1, 10, 9, 0, tzinfo=utc))
    await add_focus_time(db_session, test_user.id, datetime(2024, 1, 3, 8, 0, tzinfo=utc))
    await add_focus_time(db_session, test_user.id, datetime(2024, 1, 3, 20, 0, tzinfo=utc))
    # Outside the month or owned by someone else
    await add_focus_time(db_session, test_user.id, datetime(2024, 2, 1, 0, 0, tzinfo=utc))
    await add_focus_time(db_session, test_user.id, datetime(2023, 12, 31, 23, 59, tzinfo=utc))
    await add_focus_time(db_session, second_user.id, datetime(2024, 1, 3, 9, 0, tzinfo=utc))

    response = await client.get("/focus-time/metrics?date=2024-01-20")
    assert response.status_code == 200
    assert response.json() == [
        {"_id": [2024, 1, 3], "count": 2},
        {"_id": [2024, 1, 10], "count": 1},
    ]


@pytest.mark.asyncio
async def test_metrics_includes_month_edges(client, db_session, test_user):
    utc = timezone.utc
    await add_focus_time(db_session, test_user.id, datetime(2024, 2, 1, 0, 0, tzinfo=utc))
    await add_focus_time(db_session, test_user.id, datetime(2024, 2, 29, 23, 59, 59, tzinfo=utc))

    response = await client.get("/focus-time/metrics?date=2024-02-15")
    assert response.status_code == 200
    assert response.json() == [
        {"_id": [2024, 2, 1], "count": 1},
        {"_id": [2024, 2, 29], "count": 1},
    ]


@pytest.mark.asyncio
async def test_metrics_bad_date(client):
    response = await client.get("/focus-time/metrics?date=2024-13-45")
    assert response.status_code == 422
    assert response.json()["message"][0]["field"] == "date"


@pytest.mark.asyncio
async def test_created_record_shows_up_in_day_listing(client):
    await client.post("/focus-time", json={
        "timeFrom": "2024-03-05T14:00:00Z",
        "timeTo": "2024-03-05T15:00:00Z",
    })

    response = await client.get("/focus-time?date=2024-03-05")
    assert response.status_code == 200
    assert len(response.json()) == 1

    response = await client.get("/focus-time/metrics?date=2024-03-05")
    assert response.json() == [{"_id": [2024, 3, 5], "count": 1}]


@pytest.mark.asyncio
async def test_metrics_buckets_by_configured_zone(client, db_session, test_user, test_settings):
    app.dependency_overrides[get_settings] = lambda: test_settings.model_copy(
        update={"TIMEZONE": "America/Sao_Paulo"}
    )
    # 22:00 on January 31st in Sao Paulo
    await add_focus_time(db_session, test_user.id, datetime(2024, 2, 1, 1, 0, tzinfo=timezone.utc))

    response = await client.get("/focus-time/metrics?date=2024-01-15")
    assert response.status_code == 200
    assert response.json() == [{"_id": [2024, 1, 31], "count": 1}]

    # The day listing agrees on which day the record belongs to
    response = await client.get("/focus-time?date=2024-01-31")
    assert len(response.json()) == 1
    response = await client.get("/focus-time?date=2024-02-01")
    assert response.json() == []


@pytest.mark.asyncio
async def test_metrics_buckets_follow_dst_offset(client, db_session, test_user, test_settings):
    app.dependency_overrides[get_settings] = lambda: test_settings.model_copy(
        update={"TIMEZONE": "America/New_York"}
    )
    utc = timezone.utc
    # 23:30 EST on March 4th, then 00:30 EDT on March 31st
    await add_focus_time(db_session, test_user.id, datetime(2024, 3, 5, 4, 30, tzinfo=utc))
    await add_focus_time(db_session, test_user.id, datetime(2024, 3, 31, 4, 30, tzinfo=utc))

    response = await client.get("/focus-time/metrics?date=2024-03-20")
    assert response.status_code == 200
    assert response.json() == [
        {"_id": [2024, 3, 4], "count": 1},
        {"_id": [2024, 3, 31], "count": 1},
    ]
