"""Document store adapters used by search & discovery.

`MongoSearchStore` talks to MongoDB through the shared motor client.
`MemorySearchStore` keeps documents in process and evaluates the subset of the
query language emitted by `builders`; tests and local runs use it.
"""

from __future__ import annotations

import asyncio
import copy
import logging
import re
from datetime import datetime, timezone
from typing import Any, Iterable, Mapping, Optional, Protocol

from pymongo.errors import PyMongoError

from quill.domain.search import facets, models, schemas
from quill.domain.search.exceptions import StoreError
from quill.infra import mongo
from quill.settings import settings

logger = logging.getLogger(__name__)

BLOGS = "blogs"
USERS = "users"

_USER_PROJECTION = {"password": 0, "providerId": 0, "emailVerificationToken": 0}


class SearchStore(Protocol):
	async def find(
		self,
		collection: str,
		filter: Mapping[str, Any],
		*,
		sort: models.SortSpec,
		skip: int = 0,
		limit: int = 0,
	) -> list[dict[str, Any]]: ...

	async def count(self, collection: str, filter: Mapping[str, Any]) -> int: ...

	async def facets(self, filter: Mapping[str, Any], *, limit: int) -> schemas.Suggestions: ...

	async def sum_fields(
		self, collection: str, filter: Mapping[str, Any], fields: Iterable[str]
	) -> dict[str, int]: ...

	async def top_group(
		self, collection: str, filter: Mapping[str, Any], field: str
	) -> Optional[tuple[str, int]]: ...


class MongoSearchStore:
	"""Read-only adapter over the `blogs` and `users` collections."""

	def __init__(self, *, max_time_ms: Optional[int] = None) -> None:
		self._max_time_ms = max_time_ms or int(settings.search_timeout_seconds * 1000)

	def _collection(self, name: str):
		if name == BLOGS:
			return mongo.blogs_collection()
		if name == USERS:
			return mongo.users_collection()
		raise StoreError(f"unknown_collection:{name}")

	async def find(
		self,
		collection: str,
		filter: Mapping[str, Any],
		*,
		sort: models.SortSpec,
		skip: int = 0,
		limit: int = 0,
	) -> list[dict[str, Any]]:
		projection = _USER_PROJECTION if collection == USERS else None
		try:
			cursor = self._collection(collection).find(dict(filter), projection)
			if sort:
				cursor = cursor.sort(sort)
			cursor = cursor.skip(skip).max_time_ms(self._max_time_ms)
			if limit:
				cursor = cursor.limit(limit)
			return await cursor.to_list(length=limit or None)
		except PyMongoError as exc:
			raise StoreError(str(exc)) from exc

	async def count(self, collection: str, filter: Mapping[str, Any]) -> int:
		try:
			return await self._collection(collection).count_documents(dict(filter), maxTimeMS=self._max_time_ms)
		except PyMongoError as exc:
			raise StoreError(str(exc)) from exc

	async def _aggregate(self, collection: str, pipeline: list[dict[str, Any]], *, length: Optional[int]) -> list[dict[str, Any]]:
		try:
			cursor = self._collection(collection).aggregate(pipeline, maxTimeMS=self._max_time_ms)
			return await cursor.to_list(length=length)
		except PyMongoError as exc:
			raise StoreError(str(exc)) from exc

	async def facets(self, filter: Mapping[str, Any], *, limit: int) -> schemas.Suggestions:
		pipeline = facets.build_facet_pipeline(filter, limit=limit)
		output = await self._aggregate(BLOGS, pipeline, length=1)
		return facets.parse_facet_output(output)

	async def sum_fields(self, collection: str, filter: Mapping[str, Any], fields: Iterable[str]) -> dict[str, int]:
		names = list(fields)
		group: dict[str, Any] = {"_id": None}
		for name in names:
			group[name] = {"$sum": f"${name}"}
		rows = await self._aggregate(collection, [{"$match": dict(filter)}, {"$group": group}], length=1)
		row = rows[0] if rows else {}
		return {name: int(row.get(name) or 0) for name in names}

	async def top_group(self, collection: str, filter: Mapping[str, Any], field: str) -> Optional[tuple[str, int]]:
		pipeline = [
			{"$match": dict(filter)},
			{"$group": {"_id": f"${field}", "count": {"$sum": 1}}},
			{"$sort": {"count": -1}},
			{"$limit": 1},
		]
		rows = await self._aggregate(collection, pipeline, length=1)
		if not rows or rows[0].get("_id") is None:
			return None
		return str(rows[0]["_id"]), int(rows[0]["count"])


def _as_list(value: Any) -> list[Any]:
	return list(value) if isinstance(value, (list, tuple, set)) else [value]


def _comparable(value: Any) -> Any:
	if isinstance(value, datetime) and value.tzinfo is None:
		return value.replace(tzinfo=timezone.utc)
	return value


def _compare(values: list[Any], bound: Any, op: str) -> bool:
	bound = _comparable(bound)
	for value in values:
		value = _comparable(value)
		if value is None or type(value) is not type(bound):
			continue
		if op == "$gte" and value >= bound:
			return True
		if op == "$gt" and value > bound:
			return True
		if op == "$lte" and value <= bound:
			return True
		if op == "$lt" and value < bound:
			return True
	return False


def _match_operators(value: Any, operators: Mapping[str, Any]) -> bool:
	values = _as_list(value)
	for op, arg in operators.items():
		if op == "$options":
			continue
		if op == "$regex":
			flags = re.IGNORECASE if "i" in str(operators.get("$options", "")) else 0
			pattern = re.compile(arg, flags)
			if not any(isinstance(item, str) and pattern.search(item) for item in values):
				return False
		elif op in ("$gte", "$gt", "$lte", "$lt"):
			if not _compare(values, arg, op):
				return False
		elif op == "$in":
			if not any(item in arg for item in values):
				return False
		elif op == "$nin":
			if any(item in arg for item in values):
				return False
		elif op == "$eq":
			if arg not in values:
				return False
		elif op == "$ne":
			if arg in values:
				return False
		else:
			raise StoreError(f"unsupported_operator:{op}")
	return True


def matches(doc: Mapping[str, Any], filter: Mapping[str, Any]) -> bool:
	"""Evaluate a MongoDB filter document against one document."""

	for key, cond in filter.items():
		if key == "$and":
			if not all(matches(doc, clause) for clause in cond):
				return False
		elif key == "$or":
			if not any(matches(doc, clause) for clause in cond):
				return False
		elif key.startswith("$"):
			raise StoreError(f"unsupported_operator:{key}")
		elif isinstance(cond, Mapping) and cond and all(str(op).startswith("$") for op in cond):
			if not _match_operators(doc.get(key), cond):
				return False
		elif cond not in _as_list(doc.get(key)):
			return False
	return True


def _sort_documents(docs: list[dict[str, Any]], sort: models.SortSpec) -> list[dict[str, Any]]:
	ordered = list(docs)
	# stable sorts applied from the least significant key
	for name, direction in reversed(sort):
		ordered.sort(
			key=lambda doc: (doc.get(name) is not None, _comparable(doc.get(name))),
			reverse=direction < 0,
		)
	return ordered


class MemorySearchStore:
	def __init__(self) -> None:
		self._lock = asyncio.Lock()
		self._collections: dict[str, list[dict[str, Any]]] = {BLOGS: [], USERS: []}

	async def reset(self) -> None:
		async with self._lock:
			for docs in self._collections.values():
				docs.clear()

	async def seed(
		self,
		*,
		blogs: Iterable[models.BlogRecord | Mapping[str, Any]] | None = None,
		users: Iterable[models.AuthorRecord | Mapping[str, Any]] | None = None,
	) -> None:
		async with self._lock:
			self._collections[BLOGS] = [_to_document(item) for item in blogs or []]
			self._collections[USERS] = [_to_document(item) for item in users or []]

	def _matching(self, collection: str, filter: Mapping[str, Any]) -> list[dict[str, Any]]:
		if collection not in self._collections:
			raise StoreError(f"unknown_collection:{collection}")
		return [doc for doc in self._collections[collection] if matches(doc, filter)]

	async def find(
		self,
		collection: str,
		filter: Mapping[str, Any],
		*,
		sort: models.SortSpec,
		skip: int = 0,
		limit: int = 0,
	) -> list[dict[str, Any]]:
		async with self._lock:
			docs = _sort_documents(self._matching(collection, filter), sort)
		window = docs[skip : skip + limit] if limit else docs[skip:]
		return [copy.deepcopy(doc) for doc in window]

	async def count(self, collection: str, filter: Mapping[str, Any]) -> int:
		async with self._lock:
			return len(self._matching(collection, filter))

	async def facets(self, filter: Mapping[str, Any], *, limit: int) -> schemas.Suggestions:
		async with self._lock:
			docs = self._matching(BLOGS, filter)
		return facets.summarize_documents(docs, limit=limit)

	async def sum_fields(self, collection: str, filter: Mapping[str, Any], fields: Iterable[str]) -> dict[str, int]:
		names = list(fields)
		async with self._lock:
			docs = self._matching(collection, filter)
		return {name: sum(int(doc.get(name) or 0) for doc in docs) for name in names}

	async def top_group(self, collection: str, filter: Mapping[str, Any], field: str) -> Optional[tuple[str, int]]:
		async with self._lock:
			docs = self._matching(collection, filter)
		counts: dict[str, int] = {}
		for doc in docs:
			value = doc.get(field)
			if value is not None:
				counts[str(value)] = counts.get(str(value), 0) + 1
		if not counts:
			return None
		value, count = max(counts.items(), key=lambda item: item[1])
		return value, count


def _to_document(item: models.BlogRecord | models.AuthorRecord | Mapping[str, Any]) -> dict[str, Any]:
	if isinstance(item, (models.BlogRecord, models.AuthorRecord)):
		return item.to_document()
	return dict(item)


_MEMORY = MemorySearchStore()


def resolve_store() -> SearchStore:
	"""Pick the configured store adapter."""

	backend = settings.search_backend
	if backend == "memory":
		return _MEMORY
	if backend != "mongo":
		logger.warning("search.store.unknown_backend backend=%s", backend)
	return MongoSearchStore()


async def seed_memory_store(
	*,
	blogs: Iterable[models.BlogRecord | Mapping[str, Any]] | None = None,
	users: Iterable[models.AuthorRecord | Mapping[str, Any]] | None = None,
) -> None:
	await _MEMORY.seed(blogs=blogs, users=users)


async def reset_memory_state() -> None:
	await _MEMORY.reset()


def memory_store() -> MemorySearchStore:
	return _MEMORY
