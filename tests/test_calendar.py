from datetime import date

import pytest

from services.calendar_view import DayTier, build_month_grid, day_tier, leading_blanks, load_day, load_month


@pytest.mark.parametrize(
    "count, tier",
    [(0, DayTier.empty), (1, DayTier.low), (5, DayTier.low), (6, DayTier.medium), (10, DayTier.medium), (11, DayTier.high)],
)
def test_day_tier_thresholds(count, tier):
    assert day_tier(count) == tier


def test_grid_starts_on_sunday():
    # 2026-10-01 is a Thursday
    assert leading_blanks(2026, 10) == 4
    # 2026-02-01 is a Sunday
    assert leading_blanks(2026, 2) == 0

    grid = build_month_grid(2026, 10, {date(2026, 10, 15): 3})
    assert grid.cells[:4] == [None, None, None, None]
    assert len(grid.cells) == 4 + 31
    assert grid.first_day == date(2026, 10, 1)
    assert grid.last_day == date(2026, 10, 31)
    day_15 = grid.cells[4 + 14]
    assert day_15.day == 15
    assert day_15.count == 3
    assert day_15.tier == DayTier.low


def test_february_leap_year_length():
    grid = build_month_grid(2028, 2, {})
    assert grid.last_day == date(2028, 2, 29)
    assert all(cell.tier == DayTier.empty for cell in grid.cells if cell is not None)


def _appointment(day: str, time: str, name: str = "Ana") -> dict:
    return {
        "user_id": "u1",
        "full_name": name,
        "email": "ana@example.com",
        "phone": "63999991234",
        "appointment_date": day,
        "appointment_time": time,
        "status": "pending",
    }


@pytest.mark.asyncio
async def test_load_month_counts_only_days_in_range(gateway):
    for _ in range(6):
        await gateway.insert("appointments", _appointment("2026-10-02", "09:00"))
    await gateway.insert("appointments", _appointment("2026-10-31", "10:00"))
    await gateway.insert("appointments", _appointment("2026-11-01", "10:00"))

    grid = await load_month(gateway, 2026, 10)
    by_day = {cell.day: cell for cell in grid.cells if cell is not None}
    assert by_day[2].count == 6
    assert by_day[2].tier == DayTier.medium
    assert by_day[31].count == 1
    assert sum(cell.count for cell in by_day.values()) == 7


@pytest.mark.asyncio
async def test_load_day_orders_by_time(gateway):
    await gateway.insert("appointments", _appointment("2026-10-02", "15:30", name="Later"))
    await gateway.insert("appointments", _appointment("2026-10-02", "08:00", name="Earlier"))
    await gateway.insert("appointments", _appointment("2026-10-03", "07:00", name="Other day"))

    appointments = await load_day(gateway, date(2026, 10, 2))
    assert [a.full_name for a in appointments] == ["Earlier", "Later"]
