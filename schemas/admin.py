from __future__ import annotations

from typing import List, Literal, Optional, Union

from pydantic import BaseModel, Field

from models.appointment import Appointment
from services.workflow import WorkflowAction, available_actions


ServiceIcon = Literal["heart", "bath", "scissors", "stethoscope", "sparkles", "dog"]


class ServiceWrite(BaseModel):
    name: str = ""
    description: Optional[str] = None
    price_small: float = Field(default=0, ge=0)
    price_medium: float = Field(default=0, ge=0)
    price_large: float = Field(default=0, ge=0)
    duration_minutes: int = Field(default=60, gt=0)
    icon: ServiceIcon = "heart"


class ServiceUpdate(ServiceWrite):
    is_active: Optional[bool] = None


class ProductWrite(BaseModel):
    title: str = ""
    description: Optional[str] = None
    category_id: Optional[str] = None
    # Kept loose so that bad prices get the localized message, not a 422
    price: Optional[Union[str, float]] = None
    image_url: Optional[str] = None
    is_featured: bool = False


class AppointmentDetailsUpdate(BaseModel):
    """Fields staff maintain after booking; status is never writable here."""

    pet_size: Optional[str] = None
    body_placement: Optional[str] = None
    reference_images: Optional[str] = None
    estimated_price: Optional[float] = Field(default=None, ge=0)
    notes: Optional[str] = None


class UploadResponse(BaseModel):
    path: str
    public_url: str


class MessageResponse(BaseModel):
    message: str


class AdminAppointmentView(BaseModel):
    appointment: Appointment
    available_actions: List[WorkflowAction]
    reference_image_urls: List[str]

    @classmethod
    def of(cls, appointment: Appointment) -> "AdminAppointmentView":
        return cls(
            appointment=appointment,
            available_actions=available_actions(appointment.status),
            reference_image_urls=appointment.reference_image_urls,
        )


class AdminAppointmentList(BaseModel):
    appointments: List[AdminAppointmentView]
    total: int
