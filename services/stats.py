from __future__ import annotations

import asyncio
from datetime import date
from typing import Any, Dict, Iterable, Optional

from pydantic import BaseModel

from db.gateway import Gateway, eq, in_
from models.appointment import AppointmentStatus


REVENUE_STATUSES = (AppointmentStatus.confirmed.value, AppointmentStatus.completed.value)


class DashboardStats(BaseModel):
    total_appointments: int = 0
    today_appointments: int = 0
    pending_appointments: int = 0
    confirmed_appointments: int = 0
    completed_appointments: int = 0
    total_revenue: float = 0.0


def sum_revenue(rows: Iterable[Dict[str, Any]]) -> float:
    total = 0.0
    for row in rows:
        try:
            total += float(row.get("estimated_price") or 0)
        except (TypeError, ValueError):
            # Non-numeric prices count as zero
            continue
    return total


async def load_dashboard_stats(gateway: Gateway, today: Optional[date] = None) -> DashboardStats:
    """Issue the six dashboard queries concurrently.

    Any failing query fails the whole load; callers report one generic error.
    """
    day = (today or date.today()).isoformat()
    total, pending, confirmed, completed, today_count, revenue_rows = await asyncio.gather(
        gateway.count("appointments"),
        gateway.count("appointments", [eq("status", AppointmentStatus.pending.value)]),
        gateway.count("appointments", [eq("status", AppointmentStatus.confirmed.value)]),
        gateway.count("appointments", [eq("status", AppointmentStatus.completed.value)]),
        gateway.count("appointments", [eq("appointment_date", day)]),
        gateway.select("appointments", [in_("status", REVENUE_STATUSES)], columns=["estimated_price"]),
    )
    return DashboardStats(
        total_appointments=total or 0,
        today_appointments=today_count or 0,
        pending_appointments=pending or 0,
        confirmed_appointments=confirmed or 0,
        completed_appointments=completed or 0,
        total_revenue=sum_revenue(revenue_rows),
    )
