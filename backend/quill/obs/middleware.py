"""Per-request id, access log line and HTTP metrics."""

from __future__ import annotations

import time
from uuid import uuid4

from fastapi import Request
from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.responses import Response

from quill.obs import logging as obs_logging
from quill.obs import metrics

REQUEST_ID_HEADER = "X-Request-Id"

_QUIET_PATHS = ("/health/live", "/health/ready", "/metrics")


def route_label(request: Request) -> str:
	"""Route template when routing matched, raw path otherwise."""

	route = request.scope.get("route")
	return getattr(route, "path", None) or request.url.path


class ObservabilityMiddleware(BaseHTTPMiddleware):
	def __init__(self, app) -> None:
		super().__init__(app)
		self._logger = obs_logging.get_logger("quill.http")

	async def dispatch(self, request: Request, call_next: RequestResponseEndpoint) -> Response:
		request_id = request.headers.get(REQUEST_ID_HEADER) or uuid4().hex
		request.state.request_id = request_id
		client = request.client
		token = obs_logging.bind_context(
			request_id=request_id,
			client_ip=client.host if client else None,
		)
		start = time.perf_counter()
		status_code = 500
		try:
			response = await call_next(request)
			status_code = response.status_code
		except Exception:
			self._logger.exception("http_request_error", extra={"method": request.method, "path": request.url.path})
			raise
		finally:
			elapsed = time.perf_counter() - start
			metrics.observe_request(route_label(request), request.method, status_code, elapsed)
			obs_logging.reset_context(token)

		response.headers.setdefault(REQUEST_ID_HEADER, request_id)
		if request.url.path not in _QUIET_PATHS:
			self._logger.info(
				"http_request",
				extra={
					"request_id": request_id,
					"route": route_label(request),
					"method": request.method,
					"status": status_code,
					"duration_ms": round(elapsed * 1000, 2),
				},
			)
		return response


def install(app) -> None:
	app.add_middleware(ObservabilityMiddleware)
