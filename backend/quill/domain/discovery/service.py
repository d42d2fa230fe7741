"""Blog listing and platform stats over the same read-only store."""

from __future__ import annotations

import asyncio
import logging
import math
import time
from typing import Awaitable, Optional, TypeVar

from quill.domain.discovery import schemas
from quill.domain.search import builders, models, projections
from quill.domain.search import store as store_module
from quill.domain.search.exceptions import QueryValidationError, SearchFailedError, StoreError
from quill.domain.search.service import gather_all
from quill.obs import metrics as obs_metrics
from quill.settings import settings

logger = logging.getLogger(__name__)

T = TypeVar("T")

_LISTING_KIND = "listing"
_STATS_KIND = "stats"

_CATEGORY_LOOKUP = {name.lower(): name for name in models.CATEGORIES}


def canonical_category(value: Optional[str]) -> str:
	"""Map a path segment onto a known category; `all` or blank means every category."""

	key = builders.normalize_term(value).lower()
	if not key or key == "all":
		return "all"
	try:
		return _CATEGORY_LOOKUP[key]
	except KeyError:
		raise QueryValidationError("unknown_category") from None


class DiscoveryService:
	def __init__(
		self,
		*,
		store: Optional[store_module.SearchStore] = None,
		timeout_seconds: Optional[float] = None,
	) -> None:
		self._store = store
		self._timeout = timeout_seconds

	def _resolve_store(self) -> store_module.SearchStore:
		return self._store or store_module.resolve_store()

	async def _guarded(self, kind: str, operation: Awaitable[T]) -> T:
		timeout = self._timeout or settings.search_timeout_seconds
		try:
			return await asyncio.wait_for(operation, timeout=timeout)
		except asyncio.TimeoutError as exc:
			obs_metrics.inc_search_failure(kind, "timeout")
			logger.warning("discovery.timeout kind=%s timeout=%.2fs", kind, timeout)
			raise SearchFailedError() from exc
		except StoreError as exc:
			obs_metrics.inc_search_failure(kind, "store")
			logger.error("discovery.store_failure kind=%s", kind, exc_info=exc)
			raise SearchFailedError() from exc

	async def list_blogs(self, query: schemas.ListingQuery) -> schemas.BlogListResponse:
		start = time.perf_counter()
		try:
			response = await self._guarded(_LISTING_KIND, self._list_blogs(self._resolve_store(), query))
			obs_metrics.inc_search_query(_LISTING_KIND)
			logger.info(
				"discovery.listing category=%s sort=%s page=%d results=%d",
				query.category or "all",
				query.sort_by,
				query.page,
				len(response.data),
			)
			return response
		finally:
			obs_metrics.observe_search_latency(_LISTING_KIND, time.perf_counter() - start)

	async def _list_blogs(self, store: store_module.SearchStore, query: schemas.ListingQuery) -> schemas.BlogListResponse:
		filter = builders.build_listing_filter(search=query.search, category=query.category)
		skip = (query.page - 1) * query.limit
		docs, total = await gather_all(
			store.find(
				store_module.BLOGS,
				filter,
				sort=builders.listing_sort(query.sort_by),
				skip=skip,
				limit=query.limit,
			),
			store.count(store_module.BLOGS, filter),
		)
		blogs = [models.BlogRecord.from_document(doc) for doc in docs]
		authors = await projections.load_authors(store, blogs)
		return schemas.BlogListResponse(
			data=projections.blog_results(blogs, authors),
			metadata=schemas.ListingMetadata(
				current_page=query.page,
				total_pages=math.ceil(total / query.limit),
				total_posts=total,
				has_more=skip + len(blogs) < total,
				results_per_page=query.limit,
			),
		)

	async def stats(self, category: Optional[str] = None) -> schemas.StatsResponse:
		label = canonical_category(category)
		start = time.perf_counter()
		try:
			response = await self._guarded(_STATS_KIND, self._stats(self._resolve_store(), label))
			obs_metrics.inc_search_query(_STATS_KIND)
			return response
		finally:
			obs_metrics.observe_search_latency(_STATS_KIND, time.perf_counter() - start)

	async def _stats(self, store: store_module.SearchStore, label: str) -> schemas.StatsResponse:
		filter = builders.build_listing_filter(category=label)
		total_blogs, sums, total_users, top = await gather_all(
			store.count(store_module.BLOGS, filter),
			store.sum_fields(store_module.BLOGS, filter, ("likes", "views")),
			store.count(store_module.USERS, {}),
			store.top_group(store_module.BLOGS, filter, "createdBy"),
		)
		top_author: Optional[schemas.TopAuthor] = None
		if top is not None:
			author_ref, count = top
			docs = await store.find(store_module.USERS, {"email": author_ref}, sort=[], limit=1)
			author = models.AuthorRecord.from_document(docs[0]) if docs else None
			top_author = schemas.TopAuthor(
				handle=author.username if author else None,
				name=author.name if author else None,
				total_blogs=count,
			)
		return schemas.StatsResponse(
			category=label,
			total_blogs=total_blogs,
			total_likes=sums["likes"],
			total_views=sums["views"],
			total_users=total_users,
			top_author=top_author,
		)
