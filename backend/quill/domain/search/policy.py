"""Rate limits for Search & Discovery."""

from __future__ import annotations

import logging

from redis.exceptions import RedisError

from quill.domain.search.exceptions import SearchRateLimitError
from quill.infra.rate_limit import consume
from quill.settings import settings

logger = logging.getLogger(__name__)


async def enforce_rate_limit(client_id: str, *, kind: str = "search", limit: int | None = None) -> None:
	"""Ensure the caller remains within the per-minute budget.

	Calls are let through while Redis is unreachable.
	"""

	try:
		budget = await consume(
			kind,
			client_id,
			limit=settings.search_rate_limit_per_minute if limit is None else limit,
		)
	except RedisError as exc:
		logger.warning("search.rate_limit_unavailable kind=%s error=%s", kind, type(exc).__name__)
		return
	if not budget.allowed:
		logger.info(
			"search.rate_limited kind=%s used=%d limit=%d remaining=%d",
			kind,
			budget.used,
			budget.limit,
			budget.remaining,
		)
		raise SearchRateLimitError(retry_after=budget.retry_after)
