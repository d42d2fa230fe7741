from datetime import datetime, timezone

import pytest

from quill.domain.search.exceptions import StoreError
from quill.domain.search.store import BLOGS, USERS, MemorySearchStore, matches


def test_matches_supports_builder_operators():
	doc = {
		"title": "Learning React Hooks",
		"tags": ["react", "frontend"],
		"status": "published",
		"createdAt": datetime(2024, 1, 5, tzinfo=timezone.utc),
		"views": 10,
	}

	assert matches(doc, {"title": {"$regex": "react", "$options": "i"}})
	assert not matches(doc, {"title": {"$regex": "react"}})
	assert matches(doc, {"tags": "frontend"})
	assert matches(doc, {"tags": {"$in": ["vue", "react"]}})
	assert matches(doc, {"tags": {"$nin": ["vue"]}})
	assert matches(doc, {"views": {"$gte": 10, "$lt": 11}})
	assert not matches(doc, {"createdAt": {"$gt": datetime(2024, 1, 5, tzinfo=timezone.utc)}})
	assert matches(doc, {"$and": [{"status": "published"}, {"$or": [{"title": "x"}, {"tags": "react"}]}]})
	assert not matches(doc, {"status": {"$ne": "published"}})
	assert not matches(doc, {"missing": "value"})


def test_naive_timestamps_compare_as_utc():
	doc = {"createdAt": datetime(2024, 1, 5, 12, 0)}
	assert matches(doc, {"createdAt": {"$lte": datetime(2024, 1, 5, 23, 0, tzinfo=timezone.utc)}})


def test_unsupported_operator_raises_store_error():
	with pytest.raises(StoreError):
		matches({"title": "x"}, {"title": {"$where": "1"}})
	with pytest.raises(StoreError):
		matches({"title": "x"}, {"$nor": [{"title": "y"}]})


@pytest.mark.asyncio
async def test_find_sorts_skips_and_copies(make_blog):
	store = MemorySearchStore()
	await store.seed(
		blogs=[
			make_blog("One", day=1, views=5, blog_id="b1"),
			make_blog("Two", day=2, views=5, blog_id="b2"),
			make_blog("Three", day=3, views=9, blog_id="b3"),
		]
	)

	docs = await store.find(BLOGS, {}, sort=[("views", -1), ("_id", -1)])
	assert [doc["_id"] for doc in docs] == ["b3", "b2", "b1"]

	window = await store.find(BLOGS, {}, sort=[("createdAt", 1)], skip=1, limit=1)
	assert [doc["_id"] for doc in window] == ["b2"]

	window[0]["title"] = "mutated"
	again = await store.find(BLOGS, {"_id": "b2"}, sort=[])
	assert again[0]["title"] == "Two"


@pytest.mark.asyncio
async def test_missing_sort_values_order_lowest():
	store = MemorySearchStore()
	await store.seed(blogs=[{"_id": "a", "views": None}, {"_id": "b", "views": 3}, {"_id": "c"}])

	docs = await store.find(BLOGS, {}, sort=[("views", -1)])
	assert docs[0]["_id"] == "b"

	docs = await store.find(BLOGS, {}, sort=[("views", 1)])
	assert docs[-1]["_id"] == "b"


@pytest.mark.asyncio
async def test_aggregates(make_blog, make_author):
	store = MemorySearchStore()
	await store.seed(
		blogs=[
			make_blog("A", category="AI", tags=["LLM", "ml"], views=3, likes=1, author="ada@example.com"),
			make_blog("B", category="AI", tags=["llm"], views=4, likes=2, author="ada@example.com"),
			make_blog("C", category="Design", tags=[], views=5, likes=0, author="bob@example.com"),
			make_blog("D", category=None, tags=["llm"], views=1, likes=0, author="bob@example.com", status="draft"),
		],
		users=[make_author("Ada", "ada")],
	)

	assert await store.count(BLOGS, {"status": "published"}) == 3
	assert await store.count(USERS, {}) == 1
	assert await store.sum_fields(BLOGS, {"category": "AI"}, ["likes", "views"]) == {"likes": 3, "views": 7}
	assert await store.top_group(BLOGS, {"status": "published"}, "createdBy") == ("ada@example.com", 2)
	assert await store.top_group(BLOGS, {"category": "Travel"}, "createdBy") is None

	suggestions = await store.facets({}, limit=10)
	assert [(bucket.value, bucket.count) for bucket in suggestions.categories] == [("AI", 2), ("Design", 1)]
	assert [(bucket.value, bucket.count) for bucket in suggestions.tags] == [("llm", 3), ("ml", 1)]


@pytest.mark.asyncio
async def test_unknown_collection_raises():
	store = MemorySearchStore()
	with pytest.raises(StoreError):
		await store.count("comments", {})
