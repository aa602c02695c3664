"""Calendar day and month windows used to scope record queries.

Inputs without an offset are read as wall-clock time in the configured zone.
Both bounds of a window are inclusive: ``start`` is the first microsecond of
the period and ``end`` the last one.
"""
import calendar
from dataclasses import dataclass
from datetime import date, datetime, timedelta, timezone, tzinfo


@dataclass(frozen=True)
class TimeWindow:
    start: datetime
    end: datetime

    def to_utc(self) -> "TimeWindow":
        return TimeWindow(
            start=self.start.astimezone(timezone.utc),
            end=self.end.astimezone(timezone.utc),
        )

    @property
    def first_day(self) -> date:
        return self.start.date()

    @property
    def last_day(self) -> date:
        return self.end.date()


def localize(value: datetime, tz: tzinfo) -> datetime:
    if value.tzinfo is None:
        return value.replace(tzinfo=tz)
    return value.astimezone(tz)


def to_utc(value: datetime, tz: tzinfo) -> datetime:
    return localize(value, tz).astimezone(timezone.utc)


def compute_day_window(value: datetime, tz: tzinfo) -> TimeWindow:
    local = localize(value, tz)
    return TimeWindow(
        start=local.replace(hour=0, minute=0, second=0, microsecond=0),
        end=local.replace(hour=23, minute=59, second=59, microsecond=999999),
    )


def compute_month_window(value: datetime, tz: tzinfo) -> TimeWindow:
    local = localize(value, tz)
    last_day = calendar.monthrange(local.year, local.month)[1]
    return TimeWindow(
        start=local.replace(day=1, hour=0, minute=0, second=0, microsecond=0),
        end=local.replace(day=last_day, hour=23, minute=59, second=59, microsecond=999999),
    )


def utc_offsets(window: TimeWindow, tz: tzinfo) -> list[tuple[datetime, timedelta]]:
    """UTC offsets of ``tz`` in effect across the window.

    Returns ``(utc_from, offset)`` pairs in order; each offset applies from
    its ``utc_from`` until the next pair. Transitions are located to the second.
    """
    start = int(window.start.timestamp())
    end = int(window.end.timestamp())

    def offset_at(ts: int) -> timedelta:
        return datetime.fromtimestamp(ts, timezone.utc).astimezone(tz).utcoffset()

    segments = [(datetime.fromtimestamp(start, timezone.utc), offset_at(start))]
    cursor = start
    while cursor < end:
        step = min(cursor + 3600, end)
        if offset_at(step) != segments[-1][1]:
            lo, hi = cursor, step
            while hi - lo > 1:
                mid = (lo + hi) // 2
                if offset_at(mid) == segments[-1][1]:
                    lo = mid
                else:
                    hi = mid
            segments.append((datetime.fromtimestamp(hi, timezone.utc), offset_at(hi)))
        cursor = step
    return segments
