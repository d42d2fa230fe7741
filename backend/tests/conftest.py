import sys
from datetime import datetime, timezone
from pathlib import Path

import pytest
import pytest_asyncio
from fakeredis.aioredis import FakeRedis
from httpx import ASGITransport, AsyncClient

# Ensure backend package is importable when tests run from repo root
BACKEND_ROOT = Path(__file__).resolve().parents[1]
if str(BACKEND_ROOT) not in sys.path:
	sys.path.insert(0, str(BACKEND_ROOT))

from quill.domain.search import models
from quill.domain.search.store import reset_memory_state
from quill.main import app
from quill.settings import settings


@pytest_asyncio.fixture(autouse=True)
async def fake_redis():
	from quill.infra.redis import redis_client, set_redis_client
	original = redis_client.client
	client = FakeRedis(decode_responses=True)
	set_redis_client(client)
	try:
		yield client
	finally:
		set_redis_client(original)
		await client.flushall()


@pytest_asyncio.fixture(autouse=True)
async def memory_backend(monkeypatch):
	"""Route every store read to the in-memory store."""
	monkeypatch.setattr(settings, "search_backend", "memory")
	monkeypatch.setattr(settings, "search_include_drafts", False)
	await reset_memory_state()
	yield
	await reset_memory_state()


@pytest.fixture
def make_blog():
	counter = {"n": 0}

	def _make(
		title: str,
		*,
		content: str = "<p>Body</p>",
		category: str | None = "Technology",
		tags: list[str] | None = None,
		author: str = "ada@example.com",
		day: int = 1,
		views: int = 0,
		likes: int = 0,
		status: str = "published",
		language: str = "html",
		blog_id: str | None = None,
	) -> models.BlogRecord:
		counter["n"] += 1
		return models.BlogRecord(
			id=blog_id or f"blog-{counter['n']:03d}",
			title=title,
			content=content,
			slug=title.lower().replace(" ", "-"),
			category=category,
			tags=list(tags or []),
			created_by=author,
			created_at=datetime(2024, 1, day, 12, 0, tzinfo=timezone.utc),
			views=views,
			likes=likes,
			status=status,
			language=language,
		)

	return _make


@pytest.fixture
def make_author():
	def _make(
		name: str,
		username: str,
		*,
		email: str | None = None,
		bio: str = "",
		follower: int = 0,
		author_id: str | None = None,
	) -> models.AuthorRecord:
		return models.AuthorRecord(
			id=author_id or f"user-{username}",
			name=name,
			username=username,
			email=email or f"{username}@example.com",
			bio=bio,
			follower=follower,
		)

	return _make


@pytest_asyncio.fixture
async def api_client():
	transport = ASGITransport(app=app)
	async with AsyncClient(transport=transport, base_url="http://testserver") as client:
		yield client
