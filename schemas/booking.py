from __future__ import annotations

from datetime import date
from typing import Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field

from models.appointment import Appointment


class BookingForm(BaseModel):
    """Contact fields come prefilled from the profile; the rest start empty."""

    full_name: str = ""
    email: str = ""
    phone: str = ""
    pet_name: str = ""
    pet_type: str = ""
    service_type: str = ""
    pet_size: str = ""
    appointment_date: str = ""
    appointment_time: str = ""
    notes: str = ""


class BookingRequest(BaseModel):
    # Unknown keys, including any client-supplied "status", are dropped
    model_config = ConfigDict(extra="ignore")

    full_name: str = Field(min_length=1)
    email: str = Field(min_length=3)
    phone: str = Field(min_length=1)
    pet_name: str = Field(min_length=1)
    pet_type: str = Field(min_length=1)
    service_type: str = Field(min_length=1)
    pet_size: Optional[str] = None
    appointment_date: date
    appointment_time: str = Field(pattern=r"^([01]\d|2[0-3]):[0-5]\d(:[0-5]\d)?$")
    notes: Optional[str] = None


class BookingResponse(BaseModel):
    message: str
    appointment: Appointment
    form: BookingForm


class AppointmentListResponse(BaseModel):
    appointments: List[Appointment]
    counts: Dict[str, int]
    total: int
