"""Map stored documents onto the public result shapes."""

from __future__ import annotations

from typing import Iterable, Mapping

from quill.domain.search import models, sanitize, schemas
from quill.domain.search.store import USERS, SearchStore


async def load_authors(store: SearchStore, blogs: Iterable[models.BlogRecord]) -> dict[str, models.AuthorRecord]:
	"""Fetch the authors of `blogs` in one read, keyed by the blog's author reference."""

	refs = sorted({blog.created_by for blog in blogs if blog.created_by})
	if not refs:
		return {}
	docs = await store.find(USERS, {"email": {"$in": refs}}, sort=[])
	authors: dict[str, models.AuthorRecord] = {}
	for doc in docs:
		author = models.AuthorRecord.from_document(doc)
		if author.email:
			authors[author.email] = author
	return authors


def blog_result(blog: models.BlogRecord, author: models.AuthorRecord | None = None) -> schemas.BlogResult:
	text = sanitize.strip_markup(blog.content)
	return schemas.BlogResult(
		id=blog.id,
		slug=blog.slug,
		title=blog.title,
		excerpt=sanitize.excerpt(text),
		content=text,
		category=blog.category,
		tags=blog.tags,
		language=blog.language,
		created_at=blog.created_at,
		author_handle=author.username if author else None,
		author_name=author.name if author else None,
		views=blog.views,
		likes=blog.likes,
	)


def blog_results(
	blogs: Iterable[models.BlogRecord],
	authors: Mapping[str, models.AuthorRecord],
) -> list[schemas.BlogResult]:
	return [blog_result(blog, authors.get(blog.created_by or "")) for blog in blogs]


def user_result(author: models.AuthorRecord) -> schemas.UserResult:
	return schemas.UserResult(
		id=author.id,
		name=author.name,
		handle=author.username,
		bio=author.bio,
		avatar=author.image,
		followers=author.follower,
		following=author.following,
		blog_count=author.blog_count,
	)
