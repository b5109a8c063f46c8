from __future__ import annotations

from typing import Optional

from .base import GatewayModel


class Profile(GatewayModel):
    email: str
    full_name: Optional[str] = None
    phone: Optional[str] = None
    is_admin: bool = False
