"""Logging, metrics and health probes for the discovery API."""

from __future__ import annotations

from fastapi import FastAPI

from quill.obs import logging as obs_logging
from quill.obs import middleware
from quill.settings import settings


def init(app: FastAPI) -> None:
	"""Configure JSON logging and attach the request middleware to `app`."""

	if not settings.obs_enabled or getattr(app.state, "obs_installed", False):
		return
	obs_logging.configure_logging()
	middleware.install(app)
	app.state.obs_installed = True


__all__ = ["init"]
