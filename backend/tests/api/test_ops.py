import pytest
from prometheus_client import REGISTRY

from quill.settings import settings


@pytest.mark.asyncio
async def test_health_live(api_client):
	response = await api_client.get("/health/live")
	assert response.status_code == 200
	assert response.json() == {"status": "ok"}


@pytest.mark.asyncio
async def test_health_ready_with_memory_backend(api_client):
	response = await api_client.get("/health/ready")
	payload = response.json()

	assert response.status_code == 200
	assert payload["status"] == "ok"
	assert payload["checks"]["mongo"] == {"ok": True, "backend": "memory"}
	assert payload["checks"]["redis"]["ok"] is True


@pytest.mark.asyncio
async def test_metrics_requires_admin_token(api_client, monkeypatch):
	monkeypatch.setattr(settings, "obs_metrics_public", False)
	monkeypatch.setattr(settings, "obs_admin_token", "s3cret")

	denied = await api_client.get("/metrics")
	assert denied.status_code == 403
	assert denied.json()["detail"] == "forbidden"

	allowed = await api_client.get("/metrics", headers={"Authorization": "Bearer s3cret"})
	assert allowed.status_code == 200
	assert "quill_search_queries_total" in allowed.text


@pytest.mark.asyncio
async def test_metrics_public_when_configured(api_client, monkeypatch):
	monkeypatch.setattr(settings, "obs_metrics_public", True)

	labels = {"route": "/search", "method": "GET", "status": "200"}
	before = REGISTRY.get_sample_value("quill_http_requests_total", labels) or 0.0

	await api_client.get("/search", params={"q": "anything"})
	response = await api_client.get("/metrics")

	assert response.status_code == 200
	assert "quill_http_requests_total" in response.text
	assert REGISTRY.get_sample_value("quill_http_requests_total", labels) == before + 1


@pytest.mark.asyncio
async def test_metrics_rejects_non_ascii_token(api_client, monkeypatch):
	monkeypatch.setattr(settings, "obs_metrics_public", False)
	monkeypatch.setattr(settings, "obs_admin_token", "s3cret")

	response = await api_client.get("/metrics", headers={"X-Admin-Token": "é".encode("latin-1")})

	assert response.status_code == 403
	assert response.json()["detail"] == "forbidden"
