from __future__ import annotations

import os
from datetime import timedelta
from itertools import count
from typing import Any, Dict, List, Optional, Sequence, Tuple
from uuid import uuid4

# Settings are read at import time
os.environ.setdefault("GATEWAY_URL", "mongodb://localhost:27017")
os.environ.setdefault("GATEWAY_API_KEY", "test-anon-key")
os.environ.setdefault("ENVIRONMENT", "test")
os.environ.setdefault("PROFILE_POLL_ATTEMPTS", "3")
os.environ.setdefault("PROFILE_POLL_DELAY_MS", "0")
os.environ.setdefault("JWT_SECRET_KEY", "test-secret")

import pytest
from fastapi.testclient import TestClient

from core.errors import DuplicateRegistration, GatewayError, InvalidCredentials, WeakPassword
from db.gateway import AuthEvent, Filter, Gateway, Order, TABLES, get_gateway, utcnow
from main import app
from models.auth import AuthSession, AuthUser


API_KEY = os.environ["GATEWAY_API_KEY"]
STRONG_PASSWORD = "Secret1!"


def _matches(row: Dict[str, Any], f: Filter) -> bool:
    value = row.get(f.column)
    if f.op == "eq":
        return value == f.value
    if f.op == "in":
        return value in f.value
    if value is None:
        return False
    if f.op == "gte":
        return value >= f.value
    return value <= f.value


class InMemoryGateway(Gateway):
    """Gateway double keeping tables, identities and blobs in dicts.

    ``provision_after`` mimics the platform's profile hook: ``0`` creates the
    profile with the account, ``n`` makes it appear after ``n`` profile reads
    and ``None`` never creates it. Tables listed in ``failing`` raise
    :class:`GatewayError` on any access.
    """

    def __init__(self, *, provision_after: Optional[int] = 0) -> None:
        super().__init__(public_base_url="http://testserver")
        self.tables: Dict[str, Dict[str, Dict[str, Any]]] = {name: {} for name in TABLES}
        self.users: Dict[str, Dict[str, Any]] = {}
        self.sessions: Dict[str, AuthSession] = {}
        self.blobs: Dict[Tuple[str, str], Tuple[bytes, str]] = {}
        self.provision_after = provision_after
        self.failing: set = set()
        self.profile_reads = 0
        self._pending_profiles: Dict[str, List[Any]] = {}
        self._clock = count()

    def _guard(self, table: str) -> None:
        if table not in TABLES:
            raise GatewayError(f"Unknown table: {table}")
        if table in self.failing:
            raise GatewayError(f"{table} is unavailable")

    def _tick_profiles(self) -> None:
        self.profile_reads += 1
        for user_id, pending in list(self._pending_profiles.items()):
            pending[0] -= 1
            if pending[0] <= 0:
                self.tables["profiles"][user_id] = pending[1]
                del self._pending_profiles[user_id]

    # ---------------- Auth ----------------

    async def sign_up(self, email: str, password: str, metadata: Dict[str, Any] | None = None) -> AuthSession:
        email = email.strip().lower()
        if len(password) < 6:
            raise WeakPassword()
        if email in self.users:
            raise DuplicateRegistration()
        metadata = dict(metadata or {})
        user = AuthUser(id=uuid4().hex, email=email, user_metadata=metadata, created_at=utcnow())
        self.users[email] = {"user": user, "password": password}
        profile = {
            "id": user.id,
            "email": email,
            "full_name": metadata.get("full_name"),
            "phone": metadata.get("phone"),
            "is_admin": False,
            "created_at": utcnow(),
        }
        if self.provision_after == 0:
            self.tables["profiles"][user.id] = profile
        elif self.provision_after is not None:
            self._pending_profiles[user.id] = [self.provision_after, profile]
        return await self.sign_in(email, password)

    async def sign_in(self, email: str, password: str) -> AuthSession:
        record = self.users.get(email.strip().lower())
        if record is None or record["password"] != password:
            raise InvalidCredentials()
        session = AuthSession(
            access_token=uuid4().hex,
            expires_at=utcnow() + timedelta(hours=1),
            user=record["user"],
        )
        self.sessions[session.access_token] = session
        await self._emit(AuthEvent.SIGNED_IN, session)
        return session

    async def sign_out(self, access_token: str) -> None:
        session = self.sessions.pop(access_token, None)
        if session is not None:
            await self._emit(AuthEvent.SIGNED_OUT, session)

    async def get_session(self, access_token: str) -> Optional[AuthSession]:
        return self.sessions.get(access_token)

    # ---------------- Tables ----------------

    async def select(
        self,
        table: str,
        filters: Sequence[Filter] = (),
        *,
        order: Sequence[Order] = (),
        columns: Optional[Sequence[str]] = None,
        limit: Optional[int] = None,
    ) -> List[Dict[str, Any]]:
        self._guard(table)
        if table == "profiles":
            self._tick_profiles()
        rows = [dict(r) for r in self.tables[table].values() if all(_matches(r, f) for f in filters)]
        for o in reversed(order):
            rows.sort(key=lambda r: (r.get(o.column) is not None, r.get(o.column)), reverse=o.descending)
        if limit is not None:
            rows = rows[:limit]
        if columns:
            rows = [{k: r.get(k) for k in ["id", *columns]} for r in rows]
        return rows

    async def count(self, table: str, filters: Sequence[Filter] = ()) -> int:
        self._guard(table)
        return sum(1 for r in self.tables[table].values() if all(_matches(r, f) for f in filters))

    async def insert(self, table: str, row: Dict[str, Any]) -> Dict[str, Any]:
        self._guard(table)
        stored = dict(row)
        stored.setdefault("id", uuid4().hex)
        now = utcnow() + timedelta(microseconds=next(self._clock))
        stored.setdefault("created_at", now)
        stored.setdefault("updated_at", now)
        self.tables[table][stored["id"]] = stored
        return dict(stored)

    async def update(self, table: str, patch: Dict[str, Any], filters: Sequence[Filter]) -> int:
        self._guard(table)
        matched = 0
        for row in self.tables[table].values():
            if all(_matches(row, f) for f in filters):
                row.update({k: v for k, v in patch.items() if k != "id"})
                matched += 1
        return matched

    async def delete(self, table: str, filters: Sequence[Filter]) -> int:
        self._guard(table)
        doomed = [key for key, row in self.tables[table].items() if all(_matches(row, f) for f in filters)]
        for key in doomed:
            del self.tables[table][key]
        return len(doomed)

    # ---------------- Storage ----------------

    async def upload(self, bucket: str, path: str, data: bytes, content_type: str) -> str:
        if "storage" in self.failing:
            raise GatewayError("storage is unavailable")
        if (bucket, path) in self.blobs:
            raise GatewayError("The resource already exists")
        self.blobs[(bucket, path)] = (data, content_type)
        return path

    async def download(self, bucket: str, path: str) -> Optional[tuple[bytes, str]]:
        return self.blobs.get((bucket, path))


@pytest.fixture
def gateway() -> InMemoryGateway:
    return InMemoryGateway()


@pytest.fixture
def client(gateway: InMemoryGateway):
    app.dependency_overrides[get_gateway] = lambda: gateway
    with TestClient(app, headers={"apikey": API_KEY}) as test_client:
        yield test_client
    app.dependency_overrides.clear()


@pytest.fixture
def sign_up(client: TestClient):
    """Register through the API and return (user_id, auth headers)."""

    def _sign_up(email: str = "tutor@example.com", full_name: str = "Maria Silva", phone: str = "(63) 99999-1234"):
        response = client.post(
            "/api/v1/auth/sign-up",
            json={
                "email": email,
                "password": STRONG_PASSWORD,
                "confirm_password": STRONG_PASSWORD,
                "full_name": full_name,
                "phone": phone,
            },
        )
        assert response.status_code == 201, response.text
        payload = response.json()
        return payload["user_id"], {"Authorization": f"Bearer {payload['access_token']}"}

    return _sign_up


@pytest.fixture
def user_headers(sign_up) -> Dict[str, str]:
    return sign_up()[1]


@pytest.fixture
def admin_headers(sign_up, gateway: InMemoryGateway) -> Dict[str, str]:
    user_id, headers = sign_up(email="admin@example.com", full_name="Admin")
    gateway.tables["profiles"][user_id]["is_admin"] = True
    return headers
