"""REST endpoints for blog listings and platform stats."""

from __future__ import annotations

from typing import Optional

from fastapi import APIRouter, Query

from quill.domain.discovery import schemas
from quill.domain.discovery.service import DiscoveryService

router = APIRouter(tags=["discovery"])

_service = DiscoveryService()


@router.get("/blogs", response_model=schemas.BlogListResponse)
async def list_blogs_endpoint(
	page: Optional[str] = Query(default=None),
	limit: Optional[str] = Query(default=None),
	category: Optional[str] = Query(default=None),
	sort_by: Optional[str] = Query(default=None, alias="sortBy"),
	search: Optional[str] = Query(default=None),
) -> schemas.BlogListResponse:
	raw = {"page": page, "limit": limit, "category": category, "sort_by": sort_by, "search": search}
	query = schemas.ListingQuery(**{key: value for key, value in raw.items() if value is not None})
	return await _service.list_blogs(query)


@router.get("/stats", response_model=schemas.StatsResponse)
async def stats_endpoint() -> schemas.StatsResponse:
	return await _service.stats()


@router.get("/stats/{category}", response_model=schemas.StatsResponse)
async def category_stats_endpoint(category: str) -> schemas.StatsResponse:
	return await _service.stats(category)
