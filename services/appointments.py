from __future__ import annotations

import logging
from collections import Counter
from typing import Dict, Iterable, List, Optional

from db.gateway import Gateway, Order, eq, utcnow
from models.appointment import Appointment, AppointmentStatus
from models.profile import Profile
from schemas.booking import BookingForm, BookingRequest
from services.validation import validate_booking_date
from services.workflow import INITIAL_STATUS, WorkflowAction, apply_action


logger = logging.getLogger(__name__)

STATUS_FILTER_ALL = "all"
NEWEST_FIRST = (Order("appointment_date", descending=True), Order("appointment_time", descending=True))


def matches_search(appointment: Appointment, term: str) -> bool:
    needle = term.lower()
    haystacks = (
        appointment.full_name,
        appointment.email,
        appointment.phone,
        appointment.request_summary,
    )
    return any(needle in (value or "").lower() for value in haystacks)


def filter_appointments(
    appointments: Iterable[Appointment],
    search: Optional[str] = None,
    status: Optional[str] = None,
) -> List[Appointment]:
    """Filter an already-loaded list by status and free-text search (both must hold)."""
    term = (search or "").strip()
    wanted = None if not status or status == STATUS_FILTER_ALL else AppointmentStatus(status)
    result = []
    for appointment in appointments:
        if wanted is not None and appointment.status != wanted:
            continue
        if term and not matches_search(appointment, term):
            continue
        result.append(appointment)
    return result


def status_counts(appointments: Iterable[Appointment]) -> Dict[str, int]:
    counter = Counter(a.status.value for a in appointments)
    counts = {status.value: counter.get(status.value, 0) for status in AppointmentStatus}
    counts[STATUS_FILTER_ALL] = sum(counter.values())
    return counts


def blank_form(profile: Optional[Profile]) -> BookingForm:
    """Empty booking form with the contact fields seeded from the profile."""
    if profile is None:
        return BookingForm()
    return BookingForm(full_name=profile.full_name or "", email=profile.email or "", phone=profile.phone or "")


async def submit_booking(gateway: Gateway, user_id: str, form: BookingRequest) -> Appointment:
    validate_booking_date(form.appointment_date)
    row = form.model_dump(mode="json")
    # Whatever the client sent, new bookings start pending and belong to the caller
    row.update({"user_id": user_id, "status": INITIAL_STATUS.value})
    stored = await gateway.insert("appointments", row)
    logger.info("appointments.create.success", extra={"appointment_id": stored.get("id"), "user_id": user_id})
    return Appointment(**stored)


async def list_appointments(gateway: Gateway, *, user_id: Optional[str] = None) -> List[Appointment]:
    filters = [eq("user_id", user_id)] if user_id else []
    rows = await gateway.select("appointments", filters, order=NEWEST_FIRST)
    return [Appointment(**row) for row in rows]


async def get_appointment(gateway: Gateway, appointment_id: str) -> Optional[Appointment]:
    row = await gateway.select_one("appointments", [eq("id", appointment_id)])
    return Appointment(**row) if row else None


async def transition(
    gateway: Gateway, appointment: Appointment, action: WorkflowAction, *, actor_is_admin: bool
) -> Optional[Appointment]:
    """Apply a workflow action and return the row as the gateway now has it."""
    target = apply_action(appointment.status, action, actor_is_admin)
    await gateway.update(
        "appointments",
        {"status": target.value, "updated_at": utcnow()},
        [eq("id", appointment.id)],
    )
    logger.info(
        "appointments.status.changed",
        extra={"appointment_id": appointment.id, "from": appointment.status.value, "to": target.value},
    )
    return await get_appointment(gateway, appointment.id)
