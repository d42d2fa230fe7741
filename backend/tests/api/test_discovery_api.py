import pytest

from quill.domain.search.store import seed_memory_store


@pytest.mark.asyncio
async def test_list_blogs_endpoint(api_client, make_blog, make_author):
	await seed_memory_store(
		blogs=[
			make_blog("Hiking the Alps", category="Travel", views=40, author="lin@example.com"),
			make_blog("Packing lists", category="Travel", views=90, author="lin@example.com"),
			make_blog("Budget tracking", category="Business", views=10),
		],
		users=[make_author("Lin", "lin")],
	)

	response = await api_client.get(
		"/blogs",
		params={"category": "Travel", "sortBy": "mostViews", "limit": "1"},
	)
	payload = response.json()

	assert response.status_code == 200
	assert [item["title"] for item in payload["data"]] == ["Packing lists"]
	assert payload["data"][0]["authorHandle"] == "lin"
	assert payload["metadata"] == {
		"currentPage": 1,
		"totalPages": 2,
		"totalPosts": 2,
		"hasMore": True,
		"resultsPerPage": 1,
	}


@pytest.mark.asyncio
async def test_stats_endpoints(api_client, make_blog, make_author):
	await seed_memory_store(
		blogs=[
			make_blog("Sleep", category="Health", views=3, likes=1, author="mo@example.com"),
			make_blog("Running", category="Health", views=4, likes=2, author="mo@example.com"),
			make_blog("Budgets", category="Business", views=8, likes=0, author="kim@example.com"),
		],
		users=[make_author("Mo", "mo"), make_author("Kim", "kim")],
	)

	overall = (await api_client.get("/stats")).json()
	assert overall["category"] == "all"
	assert overall["totalBlogs"] == 3
	assert overall["totalViews"] == 15
	assert overall["totalUsers"] == 2
	assert overall["topAuthor"] == {"handle": "mo", "name": "Mo", "totalBlogs": 2}

	business = (await api_client.get("/stats/Business")).json()
	assert business["category"] == "Business"
	assert business["totalLikes"] == 0
	assert business["topAuthor"]["handle"] == "kim"


@pytest.mark.asyncio
async def test_stats_unknown_category(api_client):
	response = await api_client.get("/stats/Cooking")
	payload = response.json()

	assert response.status_code == 422
	assert payload["detail"] == "unknown_category"
	assert payload["request_id"] == response.headers["X-Request-Id"]
