"""Shared Redis client used for rate-limit counters and readiness pings.

Modules import the `redis_client` proxy once; tests point it at fakeredis
through `set_redis_client` without re-importing anything.
"""

from __future__ import annotations

from typing import Any

import redis.asyncio as redis

from quill.settings import settings


class RedisProxy:
	def __init__(self, client: redis.Redis) -> None:
		self._client = client

	@property
	def client(self) -> redis.Redis:
		return self._client

	def swap(self, client: redis.Redis) -> redis.Redis:
		previous, self._client = self._client, client
		return previous

	def __getattr__(self, name: str) -> Any:
		return getattr(self._client, name)


def _connect() -> redis.Redis:
	return redis.from_url(settings.redis_url, decode_responses=True, health_check_interval=30)


redis_client = RedisProxy(_connect())


def set_redis_client(client: redis.Redis) -> redis.Redis:
	"""Point the proxy at `client` and return the one it replaced."""

	return redis_client.swap(client)
