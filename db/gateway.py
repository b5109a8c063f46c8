"""Narrow interface to the backend platform that owns data, identities and files.

The application never talks to MongoDB (or any other store) directly: every
read and write goes through a :class:`Gateway`, which offers table CRUD with a
tiny filter vocabulary, email/password auth with session-change
notifications, and blob storage with public URLs.
"""
from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from contextlib import contextmanager
from dataclasses import dataclass
from datetime import datetime, timezone
from enum import Enum
from functools import lru_cache
from typing import Any, Awaitable, Callable, Dict, Iterable, Iterator, List, Literal, Optional, Sequence
from urllib.parse import quote

from gridfs.errors import NoFile
from motor.motor_asyncio import AsyncIOMotorDatabase, AsyncIOMotorGridFSBucket
from pymongo import ASCENDING, DESCENDING
from pymongo.errors import DuplicateKeyError, PyMongoError

from core.config import settings
from core.errors import DuplicateRegistration, GatewayError, InvalidCredentials, WeakPassword
from core.security import create_access_token, decode_access_token, get_password_hash, verify_password
from db.database import get_bucket, get_database
from models.auth import AuthSession, AuthUser
from repositories.base import BaseRepository, new_id, utcnow


logger = logging.getLogger(__name__)

TABLES = frozenset({"profiles", "categories", "products", "services", "appointments"})
USERS_COLLECTION = "auth_users"
SESSIONS_COLLECTION = "auth_sessions"
MIN_PROVIDER_PASSWORD_LENGTH = 6


FilterOp = Literal["eq", "gte", "lte", "in"]


@dataclass(frozen=True)
class Filter:
    column: str
    op: FilterOp
    value: Any


def eq(column: str, value: Any) -> Filter:
    return Filter(column, "eq", value)


def gte(column: str, value: Any) -> Filter:
    return Filter(column, "gte", value)


def lte(column: str, value: Any) -> Filter:
    return Filter(column, "lte", value)


def in_(column: str, values: Iterable[Any]) -> Filter:
    return Filter(column, "in", tuple(values))


@dataclass(frozen=True)
class Order:
    column: str
    descending: bool = False


class AuthEvent(str, Enum):
    SIGNED_IN = "SIGNED_IN"
    SIGNED_OUT = "SIGNED_OUT"


AuthCallback = Callable[[AuthEvent, Optional[AuthSession]], Awaitable[None]]


class Subscription:
    def __init__(self, listeners: List[AuthCallback], callback: AuthCallback) -> None:
        self._listeners = listeners
        self._callback = callback
        self.active = True

    def unsubscribe(self) -> None:
        if self.active and self._callback in self._listeners:
            self._listeners.remove(self._callback)
        self.active = False


class Gateway(ABC):
    def __init__(self, *, public_base_url: str) -> None:
        self.public_base_url = public_base_url.rstrip("/")
        self._auth_listeners: List[AuthCallback] = []

    # ---------------- Auth ----------------

    @abstractmethod
    async def sign_up(self, email: str, password: str, metadata: Dict[str, Any] | None = None) -> AuthSession:
        ...

    @abstractmethod
    async def sign_in(self, email: str, password: str) -> AuthSession:
        ...

    @abstractmethod
    async def sign_out(self, access_token: str) -> None:
        ...

    @abstractmethod
    async def get_session(self, access_token: str) -> Optional[AuthSession]:
        ...

    def on_auth_state_change(self, callback: AuthCallback) -> Subscription:
        self._auth_listeners.append(callback)
        return Subscription(self._auth_listeners, callback)

    async def _emit(self, event: AuthEvent, session: Optional[AuthSession]) -> None:
        for callback in list(self._auth_listeners):
            try:
                await callback(event, session)
            except Exception:
                logger.exception("gateway.auth_listener_failed", extra={"event": event.value})

    # ---------------- Tables ----------------

    @abstractmethod
    async def select(
        self,
        table: str,
        filters: Sequence[Filter] = (),
        *,
        order: Sequence[Order] = (),
        columns: Optional[Sequence[str]] = None,
        limit: Optional[int] = None,
    ) -> List[Dict[str, Any]]:
        ...

    @abstractmethod
    async def count(self, table: str, filters: Sequence[Filter] = ()) -> int:
        ...

    @abstractmethod
    async def insert(self, table: str, row: Dict[str, Any]) -> Dict[str, Any]:
        ...

    @abstractmethod
    async def update(self, table: str, patch: Dict[str, Any], filters: Sequence[Filter]) -> int:
        ...

    @abstractmethod
    async def delete(self, table: str, filters: Sequence[Filter]) -> int:
        ...

    async def select_one(self, table: str, filters: Sequence[Filter]) -> Optional[Dict[str, Any]]:
        rows = await self.select(table, filters, limit=1)
        return rows[0] if rows else None

    # ---------------- Storage ----------------

    @abstractmethod
    async def upload(self, bucket: str, path: str, data: bytes, content_type: str) -> str:
        ...

    @abstractmethod
    async def download(self, bucket: str, path: str) -> Optional[tuple[bytes, str]]:
        ...

    def get_public_url(self, bucket: str, path: str) -> str:
        return f"{self.public_base_url}/api/v1/storage/{quote(bucket)}/{quote(path)}"

    async def ensure_indexes(self) -> None:
        """Prepare the backing store for unique emails and session expiry."""

    async def close(self) -> None:
        self._auth_listeners.clear()


def _check_table(table: str) -> None:
    if table not in TABLES:
        raise GatewayError(f"Unknown table: {table}")


def _field(column: str) -> str:
    return "_id" if column == "id" else column


_MONGO_OPS = {"eq": "$eq", "gte": "$gte", "lte": "$lte", "in": "$in"}


def to_mongo_query(filters: Sequence[Filter]) -> Dict[str, Any]:
    query: Dict[str, Any] = {}
    for f in filters:
        value = list(f.value) if f.op == "in" else f.value
        query.setdefault(_field(f.column), {})[_MONGO_OPS[f.op]] = value
    return query


def _to_row(doc: Dict[str, Any]) -> Dict[str, Any]:
    row = {k: v for k, v in doc.items() if k != "_id"}
    row["id"] = str(doc["_id"])
    return row


@contextmanager
def _translate_errors(operation: str, target: str) -> Iterator[None]:
    try:
        yield
    except PyMongoError as exc:
        logger.exception("gateway.operation_failed", extra={"operation": operation, "target": target})
        raise GatewayError(str(exc)) from exc


class MongoGateway(Gateway):
    """Gateway backed by MongoDB collections and GridFS buckets."""

    def __init__(
        self,
        db: AsyncIOMotorDatabase,
        *,
        public_base_url: str,
        auto_provision_profiles: bool = True,
        bucket_factory: Callable[[str], AsyncIOMotorGridFSBucket] = get_bucket,
    ) -> None:
        super().__init__(public_base_url=public_base_url)
        self.repo = BaseRepository(db)
        self.auto_provision_profiles = auto_provision_profiles
        self._bucket_factory = bucket_factory
        self._indexes_ready = False

    async def ensure_indexes(self) -> None:
        if self._indexes_ready:
            return
        with _translate_errors("ensure_indexes", USERS_COLLECTION):
            await self.repo.ensure_index(USERS_COLLECTION, "email", unique=True)
            # The server purges sessions once expires_at has passed
            await self.repo.ensure_index(SESSIONS_COLLECTION, "expires_at", expireAfterSeconds=0)
        self._indexes_ready = True
        logger.info("gateway.indexes_ready")

    # ---------------- Auth ----------------

    @staticmethod
    def _user_from_doc(doc: Dict[str, Any]) -> AuthUser:
        return AuthUser(
            id=str(doc["_id"]),
            email=doc["email"],
            user_metadata=doc.get("user_metadata") or {},
            created_at=doc.get("created_at"),
        )

    async def sign_up(self, email: str, password: str, metadata: Dict[str, Any] | None = None) -> AuthSession:
        email = (email or "").strip().lower()
        if len(password or "") < MIN_PROVIDER_PASSWORD_LENGTH:
            raise WeakPassword()
        metadata = dict(metadata or {})
        await self.ensure_indexes()
        with _translate_errors("sign_up", USERS_COLLECTION):
            # The unique email index is what rejects a second registration
            try:
                user_id = await self.repo.insert_one(
                    USERS_COLLECTION,
                    {"email": email, "hashed_password": get_password_hash(password), "user_metadata": metadata},
                )
            except DuplicateKeyError as exc:
                raise DuplicateRegistration() from exc
            if self.auto_provision_profiles:
                await self._provision_profile(user_id, email, metadata)
        logger.info("gateway.user_registered", extra={"user_id": user_id})
        return await self.sign_in(email, password)

    async def _provision_profile(self, user_id: str, email: str, metadata: Dict[str, Any]) -> None:
        # Mirrors the platform's new-user hook: one profile per identity
        await self.repo.insert_one(
            "profiles",
            {
                "_id": user_id,
                "email": email,
                "full_name": metadata.get("full_name"),
                "phone": metadata.get("phone"),
                "is_admin": False,
            },
        )

    async def sign_in(self, email: str, password: str) -> AuthSession:
        email = (email or "").strip().lower()
        await self.ensure_indexes()
        with _translate_errors("sign_in", USERS_COLLECTION):
            doc = await self.repo.find_one(USERS_COLLECTION, {"email": email})
            if not doc or not doc.get("hashed_password") or not verify_password(password or "", doc["hashed_password"]):
                raise InvalidCredentials()
            session_id = new_id()
            token, expires_at = create_access_token({"sub": str(doc["_id"]), "sid": session_id, "email": email})
            await self.repo.insert_one(
                SESSIONS_COLLECTION,
                {"_id": session_id, "user_id": str(doc["_id"]), "expires_at": expires_at},
            )
        session = AuthSession(access_token=token, expires_at=expires_at, user=self._user_from_doc(doc))
        await self._emit(AuthEvent.SIGNED_IN, session)
        return session

    async def get_session(self, access_token: str) -> Optional[AuthSession]:
        payload = decode_access_token(access_token)
        if not payload or not payload.get("sid") or not payload.get("sub"):
            return None
        with _translate_errors("get_session", SESSIONS_COLLECTION):
            session_doc = await self.repo.find_one(SESSIONS_COLLECTION, {"_id": payload["sid"]})
            if not session_doc or session_doc.get("user_id") != payload["sub"]:
                return None
            user_doc = await self.repo.find_one(USERS_COLLECTION, {"_id": payload["sub"]})
        if not user_doc:
            return None
        return AuthSession(
            access_token=access_token,
            expires_at=datetime.fromtimestamp(int(payload["exp"]), tz=timezone.utc),
            user=self._user_from_doc(user_doc),
        )

    async def sign_out(self, access_token: str) -> None:
        session = await self.get_session(access_token)
        if session is None:
            return
        payload = decode_access_token(access_token) or {}
        with _translate_errors("sign_out", SESSIONS_COLLECTION):
            await self.repo.delete_many(SESSIONS_COLLECTION, {"_id": payload.get("sid")})
        await self._emit(AuthEvent.SIGNED_OUT, session)

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
        _check_table(table)
        projection = {_field(c): 1 for c in columns} if columns else None
        sort = [(_field(o.column), DESCENDING if o.descending else ASCENDING) for o in order]
        with _translate_errors("select", table):
            docs = await self.repo.find_many(
                table, to_mongo_query(filters), projection=projection, sort=sort or None, limit=limit
            )
        return [_to_row(doc) for doc in docs]

    async def count(self, table: str, filters: Sequence[Filter] = ()) -> int:
        _check_table(table)
        with _translate_errors("count", table):
            return await self.repo.count_many(table, to_mongo_query(filters))

    async def insert(self, table: str, row: Dict[str, Any]) -> Dict[str, Any]:
        _check_table(table)
        doc = {k: v for k, v in row.items() if k != "id"}
        if row.get("id"):
            doc["_id"] = row["id"]
        with _translate_errors("insert", table):
            inserted_id = await self.repo.insert_one(table, doc)
            stored = await self.repo.find_one(table, {"_id": inserted_id})
        if stored is None:
            raise GatewayError(f"Inserted row vanished from {table}")
        return _to_row(stored)

    async def update(self, table: str, patch: Dict[str, Any], filters: Sequence[Filter]) -> int:
        _check_table(table)
        changes = {k: v for k, v in patch.items() if k != "id"}
        if not changes:
            return 0
        with _translate_errors("update", table):
            return await self.repo.update_many(table, to_mongo_query(filters), {"$set": changes})

    async def delete(self, table: str, filters: Sequence[Filter]) -> int:
        _check_table(table)
        with _translate_errors("delete", table):
            return await self.repo.delete_many(table, to_mongo_query(filters))

    # ---------------- Storage ----------------

    async def upload(self, bucket: str, path: str, data: bytes, content_type: str) -> str:
        grid = self._bucket_factory(bucket)
        with _translate_errors("upload", bucket):
            existing = await grid.find({"filename": path}).to_list(length=1)
            if existing:
                raise GatewayError("The resource already exists")
            await grid.upload_from_stream(path, data, metadata={"contentType": content_type})
        logger.info("gateway.blob_uploaded", extra={"bucket": bucket, "path": path, "size": len(data)})
        return path

    async def download(self, bucket: str, path: str) -> Optional[tuple[bytes, str]]:
        grid = self._bucket_factory(bucket)
        with _translate_errors("download", bucket):
            try:
                stream = await grid.open_download_stream_by_name(path)
            except NoFile:
                return None
            data = await stream.read()
        metadata = stream.metadata or {}
        return data, metadata.get("contentType", "application/octet-stream")

    async def close(self) -> None:
        await super().close()
        self.repo.db.client.close()


@lru_cache(maxsize=1)
def build_gateway() -> Gateway:
    return MongoGateway(
        get_database(),
        public_base_url=settings.public_base_url,
        auto_provision_profiles=settings.auto_provision_profiles,
    )


async def get_gateway() -> Gateway:
    return build_gateway()


__all__ = [
    "AuthEvent",
    "Filter",
    "Gateway",
    "GatewayError",
    "MongoGateway",
    "Order",
    "Subscription",
    "build_gateway",
    "eq",
    "get_gateway",
    "gte",
    "in_",
    "lte",
    "to_mongo_query",
    "utcnow",
]
