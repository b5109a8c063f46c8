from __future__ import annotations

from datetime import date
from enum import Enum
from typing import List, Optional

from .base import GatewayModel


class AppointmentStatus(str, Enum):
    pending = "pending"
    confirmed = "confirmed"
    completed = "completed"
    cancelled = "cancelled"


class Appointment(GatewayModel):
    user_id: str
    # Contact snapshot taken at booking time
    full_name: str
    email: str
    phone: str
    appointment_date: date
    appointment_time: str
    pet_name: Optional[str] = None
    pet_type: Optional[str] = None
    service_type: Optional[str] = None
    pet_size: Optional[str] = None
    body_placement: Optional[str] = None
    description: Optional[str] = None
    notes: Optional[str] = None
    # Comma-separated URLs, maintained by staff
    reference_images: Optional[str] = None
    estimated_price: Optional[float] = None
    status: AppointmentStatus = AppointmentStatus.pending

    @property
    def reference_image_urls(self) -> List[str]:
        if not self.reference_images:
            return []
        return [url.strip() for url in self.reference_images.split(",") if url.strip()]

    @property
    def request_summary(self) -> str:
        """Free-text description of the requested service and pet."""
        if self.description:
            return self.description
        parts = [p for p in (self.service_type, self.pet_name, self.pet_type) if p]
        return " ".join(parts)
