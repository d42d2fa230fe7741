"""Service layer for Search & Discovery."""

from __future__ import annotations

import asyncio
import logging
import math
import time
from dataclasses import dataclass, field
from typing import Any, Awaitable, Optional

from quill.domain.search import builders, models, policy, projections, schemas
from quill.domain.search import store as store_module
from quill.domain.search.exceptions import SearchFailedError, StoreError
from quill.obs import metrics as obs_metrics
from quill.settings import settings

logger = logging.getLogger(__name__)


async def gather_all(*reads: Awaitable[Any]) -> list[Any]:
	"""Await every read concurrently; the first failure cancels the rest."""

	tasks = [asyncio.ensure_future(read) for read in reads]
	try:
		return await asyncio.gather(*tasks)
	except BaseException:
		for task in tasks:
			task.cancel()
		raise


@dataclass(slots=True)
class _Branch:
	items: list[Any] = field(default_factory=list)
	total: int = 0


class SearchService:
	"""Run the content, author and facet reads of one search and merge them."""

	def __init__(
		self,
		*,
		store: Optional[store_module.SearchStore] = None,
		timeout_seconds: Optional[float] = None,
		facet_limit: Optional[int] = None,
	) -> None:
		self._store = store
		self._timeout = timeout_seconds
		self._facet_limit = facet_limit

	def _resolve_store(self) -> store_module.SearchStore:
		return self._store or store_module.resolve_store()

	async def search(
		self,
		query: schemas.SearchQuery,
		*,
		client_id: Optional[str] = None,
	) -> schemas.SearchResponse:
		start = time.perf_counter()
		kind = builders.normalize_content_type(query.type)
		try:
			if client_id:
				await policy.enforce_rate_limit(client_id, kind="search")
			plan = builders.build_search_plan(query)
			if plan.empty:
				obs_metrics.inc_search_query("empty")
				return schemas.SearchResponse.empty()

			timeout = self._timeout or settings.search_timeout_seconds
			try:
				content, authors, suggestions = await asyncio.wait_for(
					self._run_branches(self._resolve_store(), plan),
					timeout=timeout,
				)
			except asyncio.TimeoutError as exc:
				obs_metrics.inc_search_failure(kind, "timeout")
				logger.warning("search.timeout type=%s timeout=%.2fs", kind, timeout)
				raise SearchFailedError() from exc
			except StoreError as exc:
				obs_metrics.inc_search_failure(kind, "store")
				logger.error("search.store_failure type=%s", kind, exc_info=exc)
				raise SearchFailedError() from exc

			total = content.total + authors.total
			response = schemas.SearchResponse(
				results=[*content.items, *authors.items],
				total_count=total,
				total_pages=math.ceil(total / plan.limit),
				current_page=plan.page,
				suggestions=suggestions,
			)
			obs_metrics.inc_search_query(kind)
			obs_metrics.set_search_results(kind, len(response.results))
			logger.info(
				"search.query type=%s query=%s results=%d total=%d",
				kind,
				builders.normalize_term(query.q)[:24],
				len(response.results),
				total,
			)
			return response
		finally:
			obs_metrics.observe_search_latency(kind, time.perf_counter() - start)

	async def _run_branches(
		self,
		store: store_module.SearchStore,
		plan: models.SearchPlan,
	) -> tuple[_Branch, _Branch, schemas.Suggestions]:
		content, authors, suggestions = await gather_all(
			self._content_branch(store, plan),
			self._author_branch(store, plan),
			store.facets(plan.facet_filter, limit=self._facet_limit or settings.search_facet_limit),
		)
		return content, authors, suggestions

	async def _content_branch(self, store: store_module.SearchStore, plan: models.SearchPlan) -> _Branch:
		if plan.content is None:
			return _Branch()
		docs, total = await gather_all(
			store.find(
				store_module.BLOGS,
				plan.content.filter,
				sort=plan.content.sort,
				skip=plan.skip,
				limit=plan.limit,
			),
			store.count(store_module.BLOGS, plan.content.filter),
		)
		blogs = [models.BlogRecord.from_document(doc) for doc in docs]
		authors = await projections.load_authors(store, blogs)
		return _Branch(items=projections.blog_results(blogs, authors), total=total)

	async def _author_branch(self, store: store_module.SearchStore, plan: models.SearchPlan) -> _Branch:
		if plan.authors is None:
			return _Branch()
		docs, total = await gather_all(
			store.find(
				store_module.USERS,
				plan.authors.filter,
				sort=plan.authors.sort,
				skip=plan.skip,
				limit=plan.limit,
			),
			store.count(store_module.USERS, plan.authors.filter),
		)
		items = [projections.user_result(models.AuthorRecord.from_document(doc)) for doc in docs]
		return _Branch(items=items, total=total)
