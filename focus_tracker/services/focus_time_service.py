import logging
from datetime import datetime, tzinfo

from sqlalchemy import case, extract, func, select
from sqlalchemy.ext.asyncio import AsyncSession

from focus_tracker.exceptions import RangeOrderError
from focus_tracker.models.focus_time import FocusTime
from focus_tracker.services.time_windows import TimeWindow, to_utc, utc_offsets

logger = logging.getLogger(__name__)

RANGE_ORDER_MESSAGE = "timeFrom always has to be before timeTo"


async def create_focus_time(
    db: AsyncSession,
    user_id: str,
    time_from: datetime,
    time_to: datetime,
    tz: tzinfo,
) -> FocusTime:
    """Store a focus interval for ``user_id``.

    Equal bounds are accepted; ``time_to`` strictly before ``time_from``
    raises ``RangeOrderError``.
    """
    start = to_utc(time_from, tz)
    end = to_utc(time_to, tz)
    if end < start:
        raise RangeOrderError(RANGE_ORDER_MESSAGE)

    focus_time = FocusTime(user_id=user_id, time_from=start, time_to=end)
    db.add(focus_time)
    await db.flush()
    await db.refresh(focus_time)
    logger.info("Stored focus time %s for user %s", focus_time.id, user_id)
    return focus_time


async def list_in_range(
    db: AsyncSession,
    user_id: str,
    window: TimeWindow,
) -> list[FocusTime]:
    result = await db.execute(
        select(FocusTime)
        .where(
            FocusTime.user_id == user_id,
            FocusTime.time_from >= window.start,
            FocusTime.time_from <= window.end,
        )
        .order_by(FocusTime.time_from.asc())
    )
    return list(result.scalars().all())


def _local_time_from(db: AsyncSession, window: TimeWindow, tz: tzinfo):
    """``time_from`` as wall-clock time in ``tz``, rendered for the bound dialect."""
    if db.get_bind().dialect.name == "postgresql":
        return func.timezone(str(tz), FocusTime.time_from)

    # No zone database on SQLite: shift by the offset in effect at each instant
    shifted = [
        (utc_from, func.datetime(FocusTime.time_from, f"{int(offset.total_seconds()):+d} seconds"))
        for utc_from, offset in utc_offsets(window, tz)
    ]
    if len(shifted) == 1:
        return shifted[0][1]
    return case(
        *[(FocusTime.time_from >= utc_from, expr) for utc_from, expr in reversed(shifted[1:])],
        else_=shifted[0][1],
    )


async def aggregate_by_day(
    db: AsyncSession,
    user_id: str,
    window: TimeWindow,
    tz: tzinfo,
) -> list[dict]:
    """Count records per calendar day of ``time_from`` inside the window.

    Days are taken in ``tz``, the same zone the window was built in, so a
    record lands in the bucket of the day listing that returns it. Days
    without records are left out. Buckets come back ordered by
    ``[year, month, day]``.
    """
    local = (
        select(_local_time_from(db, window, tz).label("local_from"))
        .where(
            FocusTime.user_id == user_id,
            FocusTime.time_from >= window.start,
            FocusTime.time_from <= window.end,
        )
        .subquery()
    )
    year = extract("year", local.c.local_from)
    month = extract("month", local.c.local_from)
    day = extract("day", local.c.local_from)

    result = await db.execute(
        select(
            year.label("year"),
            month.label("month"),
            day.label("day"),
            func.count().label("count"),
        ).group_by(
            year, month, day
        ).order_by(
            year, month, day
        )
    )
    # Postgres returns numerics from extract()
    return [
        {"_id": [int(row.year), int(row.month), int(row.day)], "count": row.count}
        for row in result.all()
    ]
