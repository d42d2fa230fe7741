"""Motor client management for the backend.

One pooled client is shared by every request; it is created lazily on first
use (or eagerly from the app lifespan) and can be swapped in tests.
"""

from __future__ import annotations

from typing import Optional

from motor.motor_asyncio import AsyncIOMotorClient, AsyncIOMotorCollection, AsyncIOMotorDatabase

from quill.settings import settings

_client: Optional[AsyncIOMotorClient] = None


def init_client() -> AsyncIOMotorClient:
	global _client
	if _client is None:
		_client = AsyncIOMotorClient(
			settings.mongo_url,
			maxPoolSize=settings.mongo_max_pool_size,
			serverSelectionTimeoutMS=int(settings.search_timeout_seconds * 1000),
			tz_aware=True,
		)
	return _client


def get_database() -> AsyncIOMotorDatabase:
	return init_client()[settings.mongo_database]


def blogs_collection() -> AsyncIOMotorCollection:
	return get_database()[settings.mongo_blogs_collection]


def users_collection() -> AsyncIOMotorCollection:
	return get_database()[settings.mongo_users_collection]


async def ping() -> None:
	await get_database().command("ping")


def close_client() -> None:
	global _client
	if _client is not None:
		_client.close()
		_client = None
