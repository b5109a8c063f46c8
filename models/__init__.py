from .appointment import Appointment, AppointmentStatus
from .auth import AuthSession, AuthUser
from .catalog import Category, Product, Service
from .profile import Profile

__all__ = [
    "Appointment",
    "AppointmentStatus",
    "AuthSession",
    "AuthUser",
    "Category",
    "Product",
    "Service",
    "Profile",
]
