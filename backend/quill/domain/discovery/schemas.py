"""Pydantic schemas for blog listings and platform stats."""

from __future__ import annotations

from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

from quill.domain.search.schemas import BlogResult, blank_to_none, positive_int
from quill.settings import settings


class ListingQuery(BaseModel):
	page: int = 1
	limit: int = Field(default_factory=lambda: settings.listing_default_page_size)
	category: Optional[str] = None
	sort_by: str = "newest"
	search: Optional[str] = None

	@field_validator("category", "search", mode="before")
	def _strip_optional(cls, value):  # type: ignore[override]
		return blank_to_none(value)

	@field_validator("sort_by", mode="before")
	def _default_sort(cls, value):  # type: ignore[override]
		return blank_to_none(value) or "newest"

	@field_validator("page", mode="before")
	def _coerce_page(cls, value):  # type: ignore[override]
		return positive_int(value, 1)

	@field_validator("limit", mode="before")
	def _coerce_limit(cls, value):  # type: ignore[override]
		limit = positive_int(value, settings.listing_default_page_size)
		return min(limit, settings.search_max_page_size)


class ListingMetadata(BaseModel):
	model_config = ConfigDict(populate_by_name=True)

	current_page: int = Field(..., ge=1, alias="currentPage")
	total_pages: int = Field(..., ge=0, alias="totalPages")
	total_posts: int = Field(..., ge=0, alias="totalPosts")
	has_more: bool = Field(..., alias="hasMore")
	results_per_page: int = Field(..., ge=1, alias="resultsPerPage")


class BlogListResponse(BaseModel):
	data: list[BlogResult]
	metadata: ListingMetadata


class TopAuthor(BaseModel):
	model_config = ConfigDict(populate_by_name=True)

	handle: Optional[str] = None
	name: Optional[str] = None
	total_blogs: int = Field(..., ge=0, alias="totalBlogs")


class StatsResponse(BaseModel):
	model_config = ConfigDict(populate_by_name=True)

	category: str = "all"
	total_blogs: int = Field(..., ge=0, alias="totalBlogs")
	total_likes: int = Field(..., ge=0, alias="totalLikes")
	total_views: int = Field(..., ge=0, alias="totalViews")
	total_users: int = Field(..., ge=0, alias="totalUsers")
	top_author: Optional[TopAuthor] = Field(default=None, alias="topAuthor")
