"""MongoDB query builders for search & discovery.

Everything here is pure: the builders turn request parameters into filter
and sort documents and never touch the store.
"""

from __future__ import annotations

import re
from datetime import date, datetime, time, timezone
from typing import Any, Optional

from quill.domain.search import models, schemas
from quill.settings import settings

CONTENT_TEXT_FIELDS = ("title", "content", "tags", "category")
AUTHOR_TEXT_FIELDS = ("name", "username", "bio")
LANGUAGES = ("html", "markdown")

PUBLISHED = {"status": "published"}

SORT_RECENT = "recent"

_CONTENT_SORTS: dict[str, models.SortSpec] = {
	"recent": [("createdAt", -1), ("_id", -1)],
	"popular": [("views", -1), ("_id", -1)],
	"liked": [("likes", -1), ("_id", -1)],
	"oldest": [("createdAt", 1), ("_id", 1)],
}

_AUTHOR_SORT: models.SortSpec = [("follower", -1), ("_id", 1)]

_LISTING_SORTS: dict[str, models.SortSpec] = {
	"newest": [("createdAt", -1)],
	"oldest": [("createdAt", 1)],
	"mostViews": [("views", -1), ("createdAt", -1)],
	"leastViews": [("views", 1), ("createdAt", -1)],
	"mostLikes": [("likes", -1), ("createdAt", -1)],
	"leastLikes": [("likes", 1), ("createdAt", -1)],
	"trending": [("views", -1), ("likes", -1), ("createdAt", -1)],
}

_CONTENT_TYPES = {
	"": models.CONTENT_TYPE_ALL,
	"all": models.CONTENT_TYPE_ALL,
	"blog": models.CONTENT_TYPE_BLOGS,
	"blogs": models.CONTENT_TYPE_BLOGS,
	"content": models.CONTENT_TYPE_BLOGS,
	"user": models.CONTENT_TYPE_USERS,
	"users": models.CONTENT_TYPE_USERS,
	"authors": models.CONTENT_TYPE_USERS,
}


def normalize_term(value: Optional[str]) -> str:
	"""Collapse whitespace and trim surrounding spaces."""

	if not value:
		return ""
	return " ".join(value.strip().split())


def normalize_tag(value: Optional[str]) -> str:
	return normalize_term(value).lower()


def normalize_content_type(value: Optional[str]) -> str:
	return _CONTENT_TYPES.get((value or "").strip().lower(), models.CONTENT_TYPE_ALL)


def text_clause(term: str, fields: tuple[str, ...]) -> dict[str, Any]:
	"""Case-insensitive substring match of `term` on any of `fields`."""

	pattern = re.escape(term)
	return {"$or": [{name: {"$regex": pattern, "$options": "i"}} for name in fields]}


def parse_date_bound(value: Optional[str], *, end_of_day: bool = False) -> Optional[datetime]:
	"""Parse an ISO date or datetime; anything unparseable is treated as no bound."""

	text = (value or "").strip()
	if not text:
		return None
	if text.endswith(("Z", "z")):
		text = f"{text[:-1]}+00:00"
	try:
		if len(text) == 10:
			day = date.fromisoformat(text)
			parsed = datetime.combine(day, time.max if end_of_day else time.min)
			if end_of_day:
				# stored timestamps carry millisecond precision
				parsed = parsed.replace(microsecond=999000)
		else:
			parsed = datetime.fromisoformat(text)
	except ValueError:
		return None
	if parsed.tzinfo is None:
		parsed = parsed.replace(tzinfo=timezone.utc)
	return parsed


def date_range_clause(date_from: Optional[str], date_to: Optional[str]) -> Optional[dict[str, Any]]:
	lower = parse_date_bound(date_from)
	upper = parse_date_bound(date_to, end_of_day=True)
	bounds: dict[str, datetime] = {}
	if lower is not None:
		bounds["$gte"] = lower
	if upper is not None:
		bounds["$lte"] = upper
	if not bounds:
		return None
	return {"createdAt": bounds}


def combine(clauses: list[dict[str, Any]]) -> dict[str, Any]:
	"""AND-combine clauses, keeping the document flat where possible."""

	if not clauses:
		return {}
	if len(clauses) == 1:
		return dict(clauses[0])
	return {"$and": clauses}


def content_sort(sort: Optional[str]) -> models.SortSpec:
	key = (sort or "").strip().lower()
	return list(_CONTENT_SORTS.get(key, _CONTENT_SORTS[SORT_RECENT]))


def listing_sort(sort_by: Optional[str]) -> models.SortSpec:
	return list(_LISTING_SORTS.get((sort_by or "").strip(), _LISTING_SORTS["newest"]))


def _visibility_clauses(include_drafts: bool) -> list[dict[str, Any]]:
	return [] if include_drafts else [dict(PUBLISHED)]


def _content_clauses(
	query: schemas.SearchQuery,
	*,
	term: str,
	include_drafts: bool,
	with_selection: bool,
) -> list[dict[str, Any]]:
	clauses = _visibility_clauses(include_drafts)
	if term:
		clauses.append(text_clause(term, CONTENT_TEXT_FIELDS))
	if with_selection:
		category = normalize_term(query.category)
		if category:
			clauses.append({"category": category})
		tag = normalize_tag(query.tag)
		if tag:
			clauses.append({"tags": tag})
	language = (query.language or "").strip().lower()
	if language in LANGUAGES:
		clauses.append({"language": language})
	dates = date_range_clause(query.date_from, query.date_to)
	if dates is not None:
		clauses.append(dates)
	return clauses


def build_search_plan(
	query: schemas.SearchQuery,
	*,
	include_drafts: Optional[bool] = None,
) -> models.SearchPlan:
	"""Translate a search query into per-entity filters, sorts and pagination."""

	if include_drafts is None:
		include_drafts = settings.search_include_drafts
	term = normalize_term(query.q)
	category = normalize_term(query.category)
	tag = normalize_tag(query.tag)
	limit = max(1, min(query.limit, settings.search_max_page_size))
	page = max(1, query.page)
	content_type = normalize_content_type(query.type)

	content_plan: Optional[models.BranchPlan] = None
	if content_type in (models.CONTENT_TYPE_ALL, models.CONTENT_TYPE_BLOGS):
		content_plan = models.BranchPlan(
			filter=combine(_content_clauses(query, term=term, include_drafts=include_drafts, with_selection=True)),
			sort=content_sort(query.sort),
		)

	# authors only carry text fields; without a term the branch would list everyone
	author_plan: Optional[models.BranchPlan] = None
	if term and content_type in (models.CONTENT_TYPE_ALL, models.CONTENT_TYPE_USERS):
		author_plan = models.BranchPlan(
			filter=text_clause(term, AUTHOR_TEXT_FIELDS),
			sort=list(_AUTHOR_SORT),
		)

	facet_filter = combine(_content_clauses(query, term=term, include_drafts=include_drafts, with_selection=False))
	return models.SearchPlan(
		content=content_plan,
		authors=author_plan,
		facet_filter=facet_filter,
		page=page,
		limit=limit,
		empty=not (term or category or tag),
	)


def build_listing_filter(
	*,
	search: Optional[str] = None,
	category: Optional[str] = None,
	include_drafts: Optional[bool] = None,
) -> dict[str, Any]:
	"""Filter for the paginated blog listing and category stats."""

	if include_drafts is None:
		include_drafts = settings.search_include_drafts
	clauses = _visibility_clauses(include_drafts)
	category = normalize_term(category)
	if category and category.lower() != "all":
		clauses.append({"category": category})
	term = normalize_term(search)
	if term:
		clauses.append(text_clause(term, CONTENT_TEXT_FIELDS))
	return combine(clauses)
