"""Fixed-window request budgets kept in Redis."""

from __future__ import annotations

import time
from dataclasses import dataclass
from typing import Optional

from quill.infra.redis import redis_client


@dataclass(slots=True, frozen=True)
class Budget:
	allowed: bool
	used: int
	limit: int
	retry_after: int

	@property
	def remaining(self) -> int:
		return max(self.limit - self.used, 0)


def window_key(scope: str, client_id: str, window_seconds: int, now: float) -> tuple[str, int]:
	"""Key of the window containing `now` and the seconds until it closes."""

	opened = int(now // window_seconds) * window_seconds
	return f"rl:{scope}:{client_id}:{opened}", max(1, int(opened + window_seconds - now))


async def consume(
	scope: str,
	client_id: str,
	*,
	limit: int,
	window_seconds: int = 60,
	now: Optional[float] = None,
) -> Budget:
	"""Count one call against the caller's budget for the current window."""

	window_seconds = max(1, int(window_seconds))
	if now is None:
		now = time.time()
	key, retry_after = window_key(scope, client_id, window_seconds, now)
	if limit <= 0:
		return Budget(allowed=False, used=0, limit=0, retry_after=retry_after)
	async with redis_client.pipeline(transaction=True) as pipe:
		pipe.incr(key)
		pipe.expire(key, window_seconds)
		used, _ = await pipe.execute()
	used = int(used)
	return Budget(allowed=used <= limit, used=used, limit=limit, retry_after=retry_after)

