"""Custom exceptions for search & discovery operations."""

from __future__ import annotations


class SearchError(Exception):
	"""Base class for search errors surfaced to callers."""

	def __init__(self, detail: str, *, status_code: int = 400) -> None:
		super().__init__(detail)
		self.detail = detail
		self.status_code = status_code

	def headers(self) -> dict[str, str]:
		return {}


class QueryValidationError(SearchError):
	"""Raised when a search query fails validation."""

	def __init__(self, detail: str, *, status_code: int = 422) -> None:
		super().__init__(detail, status_code=status_code)


class SearchRateLimitError(SearchError):
	"""Raised when the caller exceeds the search rate limit."""

	def __init__(self, *, retry_after: int | None = None) -> None:
		super().__init__("rate_limit", status_code=429)
		self.retry_after = retry_after

	def headers(self) -> dict[str, str]:
		return {"Retry-After": str(self.retry_after)} if self.retry_after else {}


class SearchFailedError(SearchError):
	"""Opaque failure returned when any store read of a search fails or times out."""

	def __init__(self, detail: str = "search_failed", *, status_code: int = 503) -> None:
		super().__init__(detail, status_code=status_code)


class StoreError(Exception):
	"""Raised by store adapters when the document store rejects or drops a read."""
