from __future__ import annotations

import asyncio
import os
from typing import Optional

from core.errors import DuplicateRegistration
from db.gateway import build_gateway, eq
from models.profile import Profile


async def upsert_admin(*, full_name: str, email: str, phone: str, password: str) -> Optional[Profile]:
    """Create (or reuse) an account and flag its profile as administrator."""
    gateway = build_gateway()
    try:
        try:
            session = await gateway.sign_up(email, password, {"full_name": full_name, "phone": phone})
        except DuplicateRegistration:
            session = await gateway.sign_in(email, password)
        user_id = session.user.id
        await gateway.update("profiles", {"is_admin": True, "full_name": full_name}, [eq("id", user_id)])
        await gateway.sign_out(session.access_token)
        row = await gateway.select_one("profiles", [eq("id", user_id)])
        return Profile(**row) if row else None
    finally:
        await gateway.close()


if __name__ == "__main__":
    # Defaults are safe demo values; override through the environment before running.
    admin_name = os.getenv("ADMIN_NAME", "Administrador")
    admin_email = os.getenv("ADMIN_EMAIL", "admin@example.com")
    admin_phone = os.getenv("ADMIN_PHONE", "63999999999")
    admin_password = os.getenv("ADMIN_PASSWORD", "Admin@123")

    profile = asyncio.run(
        upsert_admin(full_name=admin_name, email=admin_email, phone=admin_phone, password=admin_password)
    )
    if profile is None:
        print("Account created but no profile row exists; enable AUTO_PROVISION_PROFILES and rerun.")
    else:
        print("Seeded admin:", profile.model_dump(include={"id", "email", "full_name", "is_admin"}))
