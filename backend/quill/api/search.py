"""REST endpoint for search."""

from __future__ import annotations

from typing import Optional

from fastapi import APIRouter, Query, Request

from quill.domain.search import schemas
from quill.domain.search.service import SearchService

router = APIRouter(tags=["search"])

_service = SearchService()


def _client_id(request: Request) -> Optional[str]:
	client = request.client
	return client.host if client else None


@router.get("/search", response_model=schemas.SearchResponse)
async def search_endpoint(
	request: Request,
	q: Optional[str] = Query(default=None, description="Free-text term"),
	type: Optional[str] = Query(default="all", description="all | blogs | users"),
	category: Optional[str] = Query(default=None),
	tag: Optional[str] = Query(default=None),
	language: Optional[str] = Query(default=None, description="html | markdown"),
	date_from: Optional[str] = Query(default=None, alias="from", description="ISO date lower bound"),
	date_to: Optional[str] = Query(default=None, alias="to", description="ISO date upper bound"),
	page: Optional[str] = Query(default=None),
	limit: Optional[str] = Query(default=None),
	sort: Optional[str] = Query(default="recent", description="recent | popular | liked | oldest"),
) -> schemas.SearchResponse:
	raw = {
		"q": q,
		"type": type,
		"category": category,
		"tag": tag,
		"language": language,
		"date_from": date_from,
		"date_to": date_to,
		"page": page,
		"limit": limit,
		"sort": sort,
	}
	query = schemas.SearchQuery(**{key: value for key, value in raw.items() if value is not None})
	# SearchError propagates to the handler in quill.api.errors
	return await _service.search(query, client_id=_client_id(request))
