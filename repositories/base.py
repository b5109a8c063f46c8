from __future__ import annotations

from datetime import datetime, timezone
from typing import Any, Dict, List, Optional, Sequence
from uuid import uuid4

from motor.motor_asyncio import AsyncIOMotorDatabase


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def new_id() -> str:
    return uuid4().hex


class BaseRepository:
    def __init__(self, db: AsyncIOMotorDatabase) -> None:
        self.db = db

    async def find_many(
        self,
        collection: str,
        query: Dict[str, Any] | None = None,
        *,
        projection: Optional[Dict[str, int]] = None,
        sort: Optional[Sequence[tuple[str, int]]] = None,
        limit: Optional[int] = None,
        skip: Optional[int] = None,
    ) -> List[Dict[str, Any]]:
        cursor = self.db[collection].find(query or {}, projection)
        if sort:
            cursor = cursor.sort(list(sort))
        if skip:
            cursor = cursor.skip(skip)
        if limit:
            cursor = cursor.limit(limit)
        return [doc async for doc in cursor]

    async def count_many(self, collection: str, query: Dict[str, Any] | None = None) -> int:
        return await self.db[collection].count_documents(query or {})

    async def find_one(self, collection: str, query: Dict[str, Any]) -> Optional[Dict[str, Any]]:
        return await self.db[collection].find_one(query)

    async def insert_one(self, collection: str, doc: Dict[str, Any], *, with_timestamps: bool = True) -> str:
        doc = {**doc}
        # Rows are keyed by opaque string ids, never by server-generated ObjectIds
        if not doc.get("_id"):
            doc["_id"] = new_id()

        if with_timestamps:
            now = utcnow()
            if doc.get("created_at") is None:
                doc["created_at"] = now
            if doc.get("updated_at") is None:
                doc["updated_at"] = now
        result = await self.db[collection].insert_one(doc)
        return str(result.inserted_id)

    async def update_many(
        self,
        collection: str,
        filter_query: Dict[str, Any],
        update: Dict[str, Any],
    ) -> int:
        result = await self.db[collection].update_many(filter_query, update)
        return result.matched_count

    async def delete_many(self, collection: str, query: Dict[str, Any]) -> int:
        result = await self.db[collection].delete_many(query)
        return result.deleted_count

    async def ensure_index(self, collection: str, field: str, **options: Any) -> str:
        return await self.db[collection].create_index(field, **options)
