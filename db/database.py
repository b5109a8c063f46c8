from __future__ import annotations

from functools import lru_cache

from motor.motor_asyncio import AsyncIOMotorClient, AsyncIOMotorDatabase, AsyncIOMotorGridFSBucket

from core.config import settings


@lru_cache(maxsize=1)
def get_motor_client() -> AsyncIOMotorClient:
    return AsyncIOMotorClient(settings.gateway_url, appname="petshop-api")


def get_database() -> AsyncIOMotorDatabase:
    client = get_motor_client()
    return client[settings.database_name]


def get_bucket(name: str) -> AsyncIOMotorGridFSBucket:
    # One GridFS bucket per storage bucket name
    return AsyncIOMotorGridFSBucket(get_database(), bucket_name=name)
