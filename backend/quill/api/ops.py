"""Probes and the Prometheus scrape endpoint."""

from __future__ import annotations

import secrets
from typing import Optional

from fastapi import APIRouter, Depends, Header, HTTPException, Response, status
from fastapi.responses import JSONResponse
from prometheus_client import CONTENT_TYPE_LATEST, generate_latest

from quill.obs import health
from quill.settings import settings

router = APIRouter(tags=["ops"])


def presented_token(admin_header: Optional[str], authorization: Optional[str]) -> Optional[str]:
	if admin_header:
		return admin_header.strip()
	scheme, _, credentials = (authorization or "").partition(" ")
	if scheme.lower() == "bearer" and credentials:
		return credentials.strip()
	return None


async def require_metrics_access(
	x_admin_token: Optional[str] = Header(default=None, alias="X-Admin-Token"),
	authorization: Optional[str] = Header(default=None, alias="Authorization"),
) -> None:
	if settings.obs_metrics_public:
		return
	expected = settings.obs_admin_token
	if not expected:
		raise HTTPException(status.HTTP_403_FORBIDDEN, detail="admin_token_not_configured")
	provided = presented_token(x_admin_token, authorization) or ""
	if not secrets.compare_digest(provided.encode(), expected.encode()):
		raise HTTPException(status.HTTP_403_FORBIDDEN, detail="forbidden")


@router.get("/health/live")
async def health_live() -> dict[str, str]:
	return health.liveness()


@router.get("/health/ready")
async def health_ready() -> JSONResponse:
	report = await health.readiness()
	return JSONResponse(content=report.payload(), status_code=200 if report.ok else 503)


@router.get("/metrics", dependencies=[Depends(require_metrics_access)])
async def prometheus_metrics() -> Response:
	return Response(content=generate_latest(), media_type=CONTENT_TYPE_LATEST)
