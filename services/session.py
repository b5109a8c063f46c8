"""Current identity and profile, kept in step with the gateway's auth events.

A :class:`SessionContext` is opened for the lifetime of one caller (one HTTP
request in the API). While open it listens to the gateway's session-change
notifications, so signing in, signing up or signing out through it reloads
or clears the profile automatically.
"""
from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from typing import Awaitable, Callable, Optional

from pydantic import BaseModel

from core.config import settings
from core.errors import GatewayError
from db.gateway import AuthEvent, Gateway, Subscription, eq, utcnow
from models.auth import AuthSession, AuthUser
from models.profile import Profile
from services.retry import retry_until_found


logger = logging.getLogger(__name__)


class SessionState(BaseModel):
    user: Optional[AuthUser] = None
    profile: Optional[Profile] = None
    loading: bool = True

    @property
    def is_admin(self) -> bool:
        return bool(self.profile and self.profile.is_admin)


@dataclass(frozen=True)
class SignUpResult:
    session: AuthSession
    profile: Optional[Profile]
    profile_found: bool
    attempts: int


class SessionContext:
    def __init__(
        self,
        gateway: Gateway,
        *,
        profile_attempts: Optional[int] = None,
        profile_delay_seconds: Optional[float] = None,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ) -> None:
        self.gateway = gateway
        self.state = SessionState()
        self.access_token: Optional[str] = None
        self.profile_attempts = profile_attempts if profile_attempts is not None else settings.profile_poll_attempts
        self.profile_delay_seconds = (
            profile_delay_seconds if profile_delay_seconds is not None else settings.profile_poll_delay_ms / 1000.0
        )
        self._sleep = sleep
        self._subscription: Optional[Subscription] = None
        self._pending_email: Optional[str] = None

    # ---------------- lifecycle ----------------

    def open(self) -> "SessionContext":
        if self._subscription is None:
            self._subscription = self.gateway.on_auth_state_change(self._on_auth_change)
        return self

    def close(self) -> None:
        if self._subscription is not None:
            self._subscription.unsubscribe()
            self._subscription = None

    async def __aenter__(self) -> "SessionContext":
        return self.open()

    async def __aexit__(self, *exc_info) -> None:
        self.close()

    @property
    def is_admin(self) -> bool:
        return self.state.is_admin

    @property
    def user(self) -> Optional[AuthUser]:
        return self.state.user

    @property
    def profile(self) -> Optional[Profile]:
        return self.state.profile

    # ---------------- state ----------------

    async def initialize(self, access_token: Optional[str]) -> SessionState:
        """Initial session check; ``loading`` stays true until it and the profile load finish."""
        self.state.loading = True
        try:
            session = await self.gateway.get_session(access_token) if access_token else None
            self._apply_session(session)
            if session is not None:
                await self.load_profile(session.user.id)
        except GatewayError:
            logger.exception("session.initialize_failed")
        finally:
            self.state.loading = False
        return self.state

    def _apply_session(self, session: Optional[AuthSession]) -> None:
        self.state.user = session.user if session else None
        self.access_token = session.access_token if session else None
        if session is None:
            self.state.profile = None

    async def _fetch_profile(self, user_id: str) -> Optional[Profile]:
        row = await self.gateway.select_one("profiles", [eq("id", user_id)])
        return Profile(**row) if row else None

    async def load_profile(self, user_id: str) -> Optional[Profile]:
        try:
            self.state.profile = await self._fetch_profile(user_id)
        except GatewayError:
            logger.exception("session.profile_load_failed", extra={"user_id": user_id})
        finally:
            self.state.loading = False
        return self.state.profile

    async def _on_auth_change(self, event: AuthEvent, session: Optional[AuthSession]) -> None:
        if session is None:
            return
        if event is AuthEvent.SIGNED_IN:
            if self._pending_email is None or session.user.email != self._pending_email:
                return
            self._apply_session(session)
            await self.load_profile(session.user.id)
        elif event is AuthEvent.SIGNED_OUT:
            if session.access_token != self.access_token:
                return
            self._apply_session(None)
            self.state.loading = False

    # ---------------- operations ----------------

    async def sign_in(self, email: str, password: str) -> AuthSession:
        self._pending_email = (email or "").strip().lower()
        try:
            session = await self.gateway.sign_in(email, password)
        finally:
            self._pending_email = None
        if self.access_token != session.access_token:
            # Not subscribed (context not opened): load directly
            self._apply_session(session)
            await self.load_profile(session.user.id)
        return session

    async def _poll_profile(self, user_id: str) -> Optional[Profile]:
        try:
            return await self._fetch_profile(user_id)
        except GatewayError:
            logger.warning("session.profile_poll_failed", extra={"user_id": user_id})
            return None

    async def sign_up(self, email: str, password: str, full_name: str, phone: str) -> SignUpResult:
        self._pending_email = (email or "").strip().lower()
        try:
            session = await self.gateway.sign_up(email, password, {"full_name": full_name, "phone": phone})
        finally:
            self._pending_email = None
        if self.access_token != session.access_token:
            self._apply_session(session)
        user_id = session.user.id

        # The profile row is provisioned by the platform, possibly after the account exists
        result = await retry_until_found(
            lambda: self._poll_profile(user_id),
            attempts=self.profile_attempts,
            delay_seconds=self.profile_delay_seconds,
            sleep=self._sleep,
        )
        if result.found:
            await self.gateway.update(
                "profiles",
                {"full_name": full_name, "phone": phone, "updated_at": utcnow()},
                [eq("id", user_id)],
            )
            await self.load_profile(user_id)
        else:
            logger.warning("session.profile_missing_after_sign_up", extra={"user_id": user_id, "attempts": result.attempts})
            self.state.profile = None
            self.state.loading = False
        logger.info("session.sign_up", extra={"user_id": user_id, "profile_found": result.found})
        return SignUpResult(
            session=session,
            profile=self.state.profile,
            profile_found=result.found,
            attempts=result.attempts,
        )

    async def sign_out(self) -> None:
        token = self.access_token
        if token:
            await self.gateway.sign_out(token)
        self._apply_session(None)
        self.state.loading = False
