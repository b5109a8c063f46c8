from datetime import date, timedelta

import pytest

from core.errors import ValidationFailed
from models.appointment import Appointment, AppointmentStatus
from models.profile import Profile
from schemas.booking import BookingRequest
from services.appointments import (
    blank_form,
    filter_appointments,
    list_appointments,
    status_counts,
    submit_booking,
    transition,
)
from services.workflow import ActorNotAuthorized, WorkflowAction


def make_appointment(**overrides) -> Appointment:
    values = {
        "id": "a1",
        "user_id": "u1",
        "full_name": "Maria Silva",
        "email": "maria@example.com",
        "phone": "63999991234",
        "appointment_date": date(2026, 5, 4),
        "appointment_time": "10:00",
        "pet_name": "Thor",
        "pet_type": "Cachorro",
        "service_type": "Banho",
        "status": AppointmentStatus.pending,
    }
    values.update(overrides)
    return Appointment(**values)


def test_search_is_case_insensitive_over_contact_and_summary():
    appointments = [
        make_appointment(id="1"),
        make_appointment(id="2", full_name="João", email="joao@example.com", phone="63111112222", pet_name="Mia", pet_type="Gato"),
    ]
    assert [a.id for a in filter_appointments(appointments, search="MARIA")] == ["1"]
    assert [a.id for a in filter_appointments(appointments, search="1111")] == ["2"]
    assert [a.id for a in filter_appointments(appointments, search="gato")] == ["2"]
    assert len(filter_appointments(appointments, search="   ")) == 2


def test_search_and_status_filters_combine():
    appointments = [
        make_appointment(id="1", status=AppointmentStatus.pending),
        make_appointment(id="2", status=AppointmentStatus.confirmed),
        make_appointment(id="3", status=AppointmentStatus.confirmed, full_name="Carlos", email="c@example.com"),
    ]
    result = filter_appointments(appointments, search="maria", status="confirmed")
    assert [a.id for a in result] == ["2"]
    assert len(filter_appointments(appointments, status="all")) == 3


def test_status_counts_include_every_status_and_total():
    appointments = [
        make_appointment(status=AppointmentStatus.pending),
        make_appointment(status=AppointmentStatus.pending),
        make_appointment(status=AppointmentStatus.completed),
    ]
    assert status_counts(appointments) == {
        "pending": 2,
        "confirmed": 0,
        "completed": 1,
        "cancelled": 0,
        "all": 3,
    }


def test_request_summary_prefers_description():
    assert make_appointment(description="Tosa higiênica").request_summary == "Tosa higiênica"
    assert make_appointment().request_summary == "Banho Thor Cachorro"


def test_blank_form_prefills_contact_from_profile():
    form = blank_form(Profile(id="u1", email="maria@example.com", full_name="Maria", phone="63999991234"))
    assert form.full_name == "Maria"
    assert form.phone == "63999991234"
    assert form.pet_name == ""
    assert blank_form(None).email == ""


def _request(**overrides) -> BookingRequest:
    values = {
        "full_name": "Maria Silva",
        "email": "maria@example.com",
        "phone": "63999991234",
        "pet_name": "Thor",
        "pet_type": "Cachorro",
        "service_type": "Banho",
        "appointment_date": (date.today() + timedelta(days=3)).isoformat(),
        "appointment_time": "14:00",
    }
    values.update(overrides)
    return BookingRequest(**values)


@pytest.mark.asyncio
async def test_submit_booking_forces_pending_and_owner(gateway):
    request = BookingRequest(**{**_request().model_dump(mode="json"), "status": "completed", "user_id": "someone-else"})
    appointment = await submit_booking(gateway, "u1", request)
    assert appointment.status == AppointmentStatus.pending
    assert appointment.user_id == "u1"
    stored = gateway.tables["appointments"][appointment.id]
    assert stored["status"] == "pending"


@pytest.mark.asyncio
async def test_submit_booking_rejects_past_dates(gateway):
    with pytest.raises(ValidationFailed):
        await submit_booking(gateway, "u1", _request(appointment_date="2020-01-01"))
    assert gateway.tables["appointments"] == {}


@pytest.mark.asyncio
async def test_list_appointments_newest_first_and_owner_scoped(gateway):
    later = (date.today() + timedelta(days=10)).isoformat()
    await submit_booking(gateway, "u1", _request())
    await submit_booking(gateway, "u1", _request(appointment_date=later))
    await submit_booking(gateway, "u2", _request())

    mine = await list_appointments(gateway, user_id="u1")
    assert len(mine) == 2
    assert mine[0].appointment_date.isoformat() == later
    assert len(await list_appointments(gateway)) == 3


@pytest.mark.asyncio
async def test_transition_persists_status(gateway):
    appointment = await submit_booking(gateway, "u1", _request())
    confirmed = await transition(gateway, appointment, WorkflowAction.confirm, actor_is_admin=True)
    assert confirmed.status == AppointmentStatus.confirmed
    assert gateway.tables["appointments"][appointment.id]["status"] == "confirmed"


@pytest.mark.asyncio
async def test_transition_by_owner_is_rejected_without_writing(gateway):
    appointment = await submit_booking(gateway, "u1", _request())
    with pytest.raises(ActorNotAuthorized):
        await transition(gateway, appointment, WorkflowAction.cancel, actor_is_admin=False)
    assert gateway.tables["appointments"][appointment.id]["status"] == "pending"
