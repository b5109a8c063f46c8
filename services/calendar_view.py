from __future__ import annotations

import calendar
from collections import Counter
from datetime import date
from enum import Enum
from typing import Any, Dict, Iterable, List, Optional

from pydantic import BaseModel

from db.gateway import Gateway, Order, eq, gte, lte
from models.appointment import Appointment


class DayTier(str, Enum):
    empty = "empty"
    low = "low"
    medium = "medium"
    high = "high"


class CalendarDay(BaseModel):
    day: int
    date: date
    count: int
    tier: DayTier


class MonthCalendar(BaseModel):
    year: int
    month: int
    first_day: date
    last_day: date
    # None marks the blank cells before day 1 (weeks start on Sunday)
    cells: List[Optional[CalendarDay]]


def day_tier(count: int) -> DayTier:
    if count <= 0:
        return DayTier.empty
    if count <= 5:
        return DayTier.low
    if count <= 10:
        return DayTier.medium
    return DayTier.high


def month_range(year: int, month: int) -> tuple[date, date]:
    days_in_month = calendar.monthrange(year, month)[1]
    return date(year, month, 1), date(year, month, days_in_month)


def leading_blanks(year: int, month: int) -> int:
    # date.weekday() is Monday=0; the grid starts on Sunday
    return (date(year, month, 1).weekday() + 1) % 7


def count_by_day(rows: Iterable[Dict[str, Any]]) -> Counter:
    counts: Counter = Counter()
    for row in rows:
        value = row.get("appointment_date")
        if value is None:
            continue
        day = value if isinstance(value, date) else date.fromisoformat(str(value)[:10])
        counts[day] += 1
    return counts


def build_month_grid(year: int, month: int, counts: Dict[date, int]) -> MonthCalendar:
    first_day, last_day = month_range(year, month)
    cells: List[Optional[CalendarDay]] = [None] * leading_blanks(year, month)
    for day in range(1, last_day.day + 1):
        current = date(year, month, day)
        count = counts.get(current, 0)
        cells.append(CalendarDay(day=day, date=current, count=count, tier=day_tier(count)))
    return MonthCalendar(year=year, month=month, first_day=first_day, last_day=last_day, cells=cells)


async def load_month(gateway: Gateway, year: int, month: int) -> MonthCalendar:
    first_day, last_day = month_range(year, month)
    rows = await gateway.select(
        "appointments",
        [gte("appointment_date", first_day.isoformat()), lte("appointment_date", last_day.isoformat())],
        columns=["appointment_date"],
    )
    return build_month_grid(year, month, count_by_day(rows))


async def load_day(gateway: Gateway, day: date) -> List[Appointment]:
    rows = await gateway.select(
        "appointments",
        [eq("appointment_date", day.isoformat())],
        order=[Order("appointment_time")],
    )
    return [Appointment(**row) for row in rows]
