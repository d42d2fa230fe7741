"""Prometheus collectors for the discovery API."""

from __future__ import annotations

from typing import Optional

from prometheus_client import Counter, Gauge, Histogram, Summary

_LATENCY_BUCKETS = (0.005, 0.02, 0.05, 0.1, 0.25, 0.5, 1.0, 2.5, 5.0, 10.0)

HTTP_REQUESTS = Counter(
	"quill_http_requests_total",
	"HTTP responses by route template and status",
	["route", "method", "status"],
)
HTTP_LATENCY = Histogram(
	"quill_http_request_duration_seconds",
	"Time from request receipt to response start",
	["route", "method"],
	buckets=_LATENCY_BUCKETS,
)

REDIS_UP = Gauge("quill_redis_up", "1 when the last Redis ping succeeded")
REDIS_PING = Summary("quill_redis_ping_seconds", "Redis ping round trip")
MONGO_UP = Gauge("quill_mongo_up", "1 when the last MongoDB ping succeeded")
MONGO_PING = Summary("quill_mongo_ping_seconds", "MongoDB ping round trip")

SEARCH_QUERIES = Counter(
	"quill_search_queries_total",
	"Completed search, listing and stats reads",
	["kind"],
)
SEARCH_LATENCY = Histogram(
	"quill_search_latency_seconds",
	"Wall time of one search, listing or stats read including all store calls",
	["kind"],
	buckets=_LATENCY_BUCKETS,
)
SEARCH_FAILURES = Counter(
	"quill_search_failures_total",
	"Reads aborted by a store error or the deadline",
	["kind", "reason"],
)
SEARCH_RESULTS = Gauge(
	"quill_search_results_last",
	"Items on the page returned by the latest search",
	["kind"],
)


def observe_request(route: str, method: str, status: int, elapsed_seconds: float) -> None:
	HTTP_REQUESTS.labels(route=route, method=method, status=str(status)).inc()
	HTTP_LATENCY.labels(route=route, method=method).observe(elapsed_seconds)


def _mark(up: Gauge, ping: Summary, ok: bool, latency_seconds: Optional[float]) -> None:
	up.set(1 if ok else 0)
	if ok and latency_seconds is not None:
		ping.observe(latency_seconds)


def mark_redis(ok: bool, *, latency_seconds: Optional[float] = None) -> None:
	_mark(REDIS_UP, REDIS_PING, ok, latency_seconds)


def mark_mongo(ok: bool, *, latency_seconds: Optional[float] = None) -> None:
	_mark(MONGO_UP, MONGO_PING, ok, latency_seconds)


def inc_search_query(kind: str) -> None:
	SEARCH_QUERIES.labels(kind=kind).inc()


def observe_search_latency(kind: str, latency_seconds: float) -> None:
	SEARCH_LATENCY.labels(kind=kind).observe(latency_seconds)


def inc_search_failure(kind: str, reason: str) -> None:
	SEARCH_FAILURES.labels(kind=kind, reason=reason).inc()


def set_search_results(kind: str, count: int) -> None:
	SEARCH_RESULTS.labels(kind=kind).set(count)
