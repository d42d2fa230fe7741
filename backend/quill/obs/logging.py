"""JSON log lines carrying the request context of the current task."""

from __future__ import annotations

import json
import logging
import random
from contextvars import ContextVar, Token
from datetime import datetime, timezone
from typing import Any, Mapping, Optional

from quill.settings import settings

_CONTEXT: ContextVar[Mapping[str, str]] = ContextVar("quill_log_context", default={})

_LOGGER_NAME = "quill"
_HANDLER_NAME = "quill-json"

# log fields whose values never leave the process
_REDACTED_KEYS = ("token", "secret", "authorization", "password", "email", "cookie")

_MAX_TEXT = 256
_MAX_ITEMS = 10

_RECORD_ATTRS = frozenset(vars(logging.LogRecord("", 0, "", 0, "", (), None))) | {"message", "asctime"}


def bind_context(**fields: Optional[str]) -> Token:
	"""Add fields to the log context until the returned token is reset."""

	merged = dict(_CONTEXT.get())
	merged.update({key: value for key, value in fields.items() if value is not None})
	return _CONTEXT.set(merged)


def reset_context(token: Token) -> None:
	_CONTEXT.reset(token)


def current_context() -> Mapping[str, str]:
	return _CONTEXT.get()


def current_request_id() -> Optional[str]:
	return _CONTEXT.get().get("request_id")


def scrub(key: str, value: Any) -> Any:
	"""Redact sensitive fields and bound the size of everything else."""

	if any(word in key.lower() for word in _REDACTED_KEYS):
		return "[redacted]"
	if isinstance(value, str):
		return value if len(value) <= _MAX_TEXT else value[:_MAX_TEXT] + "…"
	if isinstance(value, Mapping):
		items = list(value.items())
		data = {str(k): scrub(str(k), v) for k, v in items[:_MAX_ITEMS]}
		if len(items) > _MAX_ITEMS:
			data["…"] = f"+{len(items) - _MAX_ITEMS} keys"
		return data
	if isinstance(value, (list, tuple, set, frozenset)):
		items = [scrub(key, item) for item in list(value)[:_MAX_ITEMS]]
		if len(value) > _MAX_ITEMS:
			items.append("…")
		return items
	return value


class JSONLogFormatter(logging.Formatter):
	def format(self, record: logging.LogRecord) -> str:  # noqa: A003
		payload: dict[str, Any] = {
			"ts": datetime.fromtimestamp(record.created, tz=timezone.utc).isoformat(),
			"level": record.levelname.lower(),
			"logger": record.name,
			"msg": record.getMessage(),
			"service": settings.service_name,
			"env": settings.environment,
			"commit": settings.git_commit,
		}
		payload.update(_CONTEXT.get())
		for key, value in vars(record).items():
			if key not in _RECORD_ATTRS and key not in payload:
				payload[key] = scrub(key, value)
		if record.exc_info:
			payload["exc_info"] = self.formatException(record.exc_info)
		return json.dumps(payload, separators=(",", ":"), default=str)


class InfoSamplingFilter(logging.Filter):
	"""Keep a sample of INFO records; every other level passes."""

	def __init__(self, rate: Optional[float] = None) -> None:
		super().__init__()
		self.rate = settings.obs_log_sampling_rate_info if rate is None else rate

	def filter(self, record: logging.LogRecord) -> bool:  # noqa: A003
		if record.levelno != logging.INFO or self.rate >= 1.0:
			return True
		return random.random() < max(self.rate, 0.0)


def configure_logging() -> logging.Logger:
	"""Install the JSON handler on the root logger once."""

	root = logging.getLogger()
	if not any(handler.get_name() == _HANDLER_NAME for handler in root.handlers):
		handler = logging.StreamHandler()
		handler.set_name(_HANDLER_NAME)
		handler.setFormatter(JSONLogFormatter())
		handler.addFilter(InfoSamplingFilter())
		root.addHandler(handler)
	root.setLevel(settings.obs_log_level)
	return logging.getLogger(_LOGGER_NAME)


def get_logger(name: Optional[str] = None) -> logging.Logger:
	return logging.getLogger(name or _LOGGER_NAME)
