import pytest
from pymongo.errors import ExecutionTimeout

from quill.domain.search import store as store_module
from quill.domain.search.exceptions import StoreError
from quill.domain.search.store import BLOGS, USERS, MongoSearchStore


class StubCursor:
	def __init__(self, docs, calls):
		self._docs = docs
		self.calls = calls

	def sort(self, spec):
		self.calls.append(("sort", spec))
		return self

	def skip(self, count):
		self.calls.append(("skip", count))
		return self

	def limit(self, count):
		self.calls.append(("limit", count))
		return self

	def max_time_ms(self, ms):
		self.calls.append(("max_time_ms", ms))
		return self

	async def to_list(self, length=None):
		self.calls.append(("to_list", length))
		return list(self._docs)


class StubCollection:
	def __init__(self, docs=None, *, aggregate_rows=None, error=None):
		self.docs = docs or []
		self.aggregate_rows = aggregate_rows or []
		self.error = error
		self.calls = []

	def find(self, filter, projection=None):
		if self.error:
			raise self.error
		self.calls.append(("find", filter, projection))
		return StubCursor(self.docs, self.calls)

	async def count_documents(self, filter, **kwargs):
		if self.error:
			raise self.error
		self.calls.append(("count_documents", filter, kwargs))
		return len(self.docs)

	def aggregate(self, pipeline, **kwargs):
		if self.error:
			raise self.error
		self.calls.append(("aggregate", pipeline, kwargs))
		return StubCursor(self.aggregate_rows, self.calls)


@pytest.fixture
def collections(monkeypatch):
	stubs = {BLOGS: StubCollection(), USERS: StubCollection()}
	monkeypatch.setattr(store_module.mongo, "blogs_collection", lambda: stubs[BLOGS])
	monkeypatch.setattr(store_module.mongo, "users_collection", lambda: stubs[USERS])
	return stubs


@pytest.mark.asyncio
async def test_find_applies_sort_window_and_deadline(collections):
	collections[BLOGS].docs = [{"_id": "b2"}, {"_id": "b1"}]
	store = MongoSearchStore(max_time_ms=750)

	docs = await store.find(BLOGS, {"status": "published"}, sort=[("createdAt", -1)], skip=10, limit=5)

	assert [doc["_id"] for doc in docs] == ["b2", "b1"]
	assert collections[BLOGS].calls == [
		("find", {"status": "published"}, None),
		("sort", [("createdAt", -1)]),
		("skip", 10),
		("max_time_ms", 750),
		("limit", 5),
		("to_list", 5),
	]


@pytest.mark.asyncio
async def test_user_reads_hide_credentials(collections):
	store = MongoSearchStore(max_time_ms=100)

	await store.find(USERS, {"email": {"$in": ["a@example.com"]}}, sort=[])

	_, _, projection = collections[USERS].calls[0]
	assert projection["password"] == 0
	assert ("sort", []) not in collections[USERS].calls


@pytest.mark.asyncio
async def test_count_passes_deadline(collections):
	collections[USERS].docs = [{"_id": "u1"}, {"_id": "u2"}]
	store = MongoSearchStore(max_time_ms=300)

	assert await store.count(USERS, {}) == 2
	assert collections[USERS].calls == [("count_documents", {}, {"maxTimeMS": 300})]


@pytest.mark.asyncio
async def test_facets_run_pipeline_and_parse(collections):
	collections[BLOGS].aggregate_rows = [
		{
			"categories": [{"_id": "AI", "count": 2}],
			"tags": [{"_id": "llm", "count": 2}, {"_id": "x", "count": 1}],
		}
	]
	store = MongoSearchStore(max_time_ms=200)

	suggestions = await store.facets({"status": "published"}, limit=4)

	_, pipeline, kwargs = collections[BLOGS].calls[0]
	assert pipeline[0] == {"$match": {"status": "published"}}
	assert "$facet" in pipeline[1]
	assert kwargs == {"maxTimeMS": 200}
	assert [(bucket.value, bucket.count) for bucket in suggestions.categories] == [("AI", 2)]
	assert [(bucket.value, bucket.count) for bucket in suggestions.tags] == [("llm", 2), ("x", 1)]


@pytest.mark.asyncio
async def test_sum_fields_and_top_group(collections):
	store = MongoSearchStore(max_time_ms=200)

	collections[BLOGS].aggregate_rows = [{"_id": None, "likes": 7, "views": None}]
	assert await store.sum_fields(BLOGS, {"category": "AI"}, ["likes", "views"]) == {"likes": 7, "views": 0}
	_, pipeline, _ = collections[BLOGS].calls[-2]
	assert pipeline[1] == {"$group": {"_id": None, "likes": {"$sum": "$likes"}, "views": {"$sum": "$views"}}}

	collections[BLOGS].aggregate_rows = [{"_id": "ada@example.com", "count": 3}]
	assert await store.top_group(BLOGS, {}, "createdBy") == ("ada@example.com", 3)

	collections[BLOGS].aggregate_rows = []
	assert await store.top_group(BLOGS, {}, "createdBy") is None
	assert await store.sum_fields(BLOGS, {}, ["likes"]) == {"likes": 0}


@pytest.mark.asyncio
async def test_driver_errors_become_store_errors(collections):
	collections[BLOGS].error = ExecutionTimeout("operation exceeded time limit")
	store = MongoSearchStore(max_time_ms=10)

	with pytest.raises(StoreError):
		await store.find(BLOGS, {}, sort=[])
	with pytest.raises(StoreError):
		await store.count(BLOGS, {})
	with pytest.raises(StoreError):
		await store.facets({}, limit=3)


@pytest.mark.asyncio
async def test_unknown_collection_is_rejected():
	with pytest.raises(StoreError):
		await MongoSearchStore(max_time_ms=10).count("comments", {})
