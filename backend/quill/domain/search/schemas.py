"""Pydantic schemas for Search & Discovery APIs."""

from __future__ import annotations

from datetime import datetime
from typing import Annotated, Any, Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, field_validator

from quill.settings import settings

DEFAULT_PAGE = 1


def blank_to_none(value: Any) -> Optional[str]:
	if value is None:
		return None
	text = str(value).strip()
	return text or None


def positive_int(value: Any, default: int) -> int:
	try:
		number = int(str(value).strip())
	except (TypeError, ValueError):
		return default
	return number if number >= 1 else default


class SearchQuery(BaseModel):
	"""Flat set of user-supplied search parameters.

	Parsing is permissive: malformed numbers fall back to defaults and blank
	strings count as absent, so every raw request maps to some query.
	"""

	q: Optional[str] = None
	type: str = "all"
	category: Optional[str] = None
	tag: Optional[str] = None
	language: Optional[str] = None
	date_from: Optional[str] = None
	date_to: Optional[str] = None
	page: int = DEFAULT_PAGE
	limit: int = Field(default_factory=lambda: settings.search_default_page_size)
	sort: str = "recent"

	@field_validator("q", "category", "tag", "language", "date_from", "date_to", mode="before")
	def _strip_optional(cls, value):  # type: ignore[override]
		return blank_to_none(value)

	@field_validator("type", "sort", mode="before")
	def _lower_choice(cls, value):  # type: ignore[override]
		return (blank_to_none(value) or "").lower()

	@field_validator("page", mode="before")
	def _coerce_page(cls, value):  # type: ignore[override]
		return positive_int(value, DEFAULT_PAGE)

	@field_validator("limit", mode="before")
	def _coerce_limit(cls, value):  # type: ignore[override]
		limit = positive_int(value, settings.search_default_page_size)
		return min(limit, settings.search_max_page_size)


class BlogResult(BaseModel):
	model_config = ConfigDict(populate_by_name=True)

	type: Literal["blog"] = "blog"
	id: str
	slug: Optional[str] = None
	title: str
	excerpt: str = ""
	content: str = ""
	category: Optional[str] = None
	tags: list[str] = Field(default_factory=list)
	language: str = "html"
	created_at: Optional[datetime] = Field(default=None, alias="createdAt")
	author_handle: Optional[str] = Field(default=None, alias="authorHandle")
	author_name: Optional[str] = Field(default=None, alias="authorName")
	views: int = Field(default=0, ge=0)
	likes: int = Field(default=0, ge=0)


class UserResult(BaseModel):
	model_config = ConfigDict(populate_by_name=True)

	type: Literal["user"] = "user"
	id: str
	name: str
	handle: Optional[str] = None
	bio: str = ""
	avatar: Optional[str] = None
	followers: int = Field(default=0, ge=0)
	following: int = Field(default=0, ge=0)
	blog_count: int = Field(default=0, ge=0, alias="blogCount")


SearchResult = Annotated[Union[BlogResult, UserResult], Field(discriminator="type")]


class FacetBucket(BaseModel):
	value: str
	count: int = Field(..., ge=0)


class Suggestions(BaseModel):
	categories: list[FacetBucket] = Field(default_factory=list)
	tags: list[FacetBucket] = Field(default_factory=list)


class SearchResponse(BaseModel):
	model_config = ConfigDict(populate_by_name=True)

	results: list[SearchResult] = Field(default_factory=list)
	total_count: int = Field(default=0, ge=0, alias="totalCount")
	total_pages: int = Field(default=0, ge=0, alias="totalPages")
	current_page: int = Field(default=DEFAULT_PAGE, ge=1, alias="currentPage")
	suggestions: Suggestions = Field(default_factory=Suggestions)

	@classmethod
	def empty(cls, page: int = DEFAULT_PAGE) -> "SearchResponse":
		return cls(results=[], total_count=0, total_pages=0, current_page=page)
