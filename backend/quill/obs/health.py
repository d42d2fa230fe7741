"""Liveness and readiness probes over the store and the rate-limit cache."""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass, field
from time import perf_counter
from typing import Any, Awaitable, Callable, Optional

from quill.infra import mongo
from quill.infra.redis import redis_client
from quill.obs import metrics
from quill.settings import settings

logger = logging.getLogger(__name__)


@dataclass(slots=True)
class Check:
	ok: bool
	latency_ms: Optional[float] = None
	error: Optional[str] = None
	backend: Optional[str] = None

	def as_dict(self) -> dict[str, Any]:
		data: dict[str, Any] = {"ok": self.ok}
		for name in ("latency_ms", "error", "backend"):
			value = getattr(self, name)
			if value is not None:
				data[name] = value
		return data


@dataclass(slots=True)
class Readiness:
	checks: dict[str, Check] = field(default_factory=dict)

	@property
	def ok(self) -> bool:
		return all(check.ok for check in self.checks.values())

	def payload(self) -> dict[str, Any]:
		return {
			"status": "ok" if self.ok else "degraded",
			"checks": {name: check.as_dict() for name, check in self.checks.items()},
		}


async def probe(
	name: str,
	ping: Callable[[], Awaitable[Any]],
	mark: Callable[..., None],
	*,
	timeout: float,
) -> Check:
	"""Time one dependency ping; failures become a failed check, never an exception."""

	start = perf_counter()
	try:
		await asyncio.wait_for(ping(), timeout=timeout)
	except Exception as exc:  # pragma: no cover - depends on runtime
		mark(False)
		logger.warning("health.%s_unavailable", name, exc_info=True)
		return Check(ok=False, error=str(exc) or type(exc).__name__)
	latency = perf_counter() - start
	mark(True, latency_seconds=latency)
	return Check(ok=True, latency_ms=round(latency * 1000, 2))


async def _store_check() -> Check:
	if settings.search_backend == "memory":
		return Check(ok=True, backend="memory")
	return await probe("mongo", mongo.ping, metrics.mark_mongo, timeout=0.5)


def liveness() -> dict[str, str]:
	return {"status": "ok"}


async def readiness() -> Readiness:
	redis_check, mongo_check = await asyncio.gather(
		probe("redis", redis_client.ping, metrics.mark_redis, timeout=0.2),
		_store_check(),
	)
	return Readiness(checks={"redis": redis_check, "mongo": mongo_check})
