"""FastAPI application entrypoint."""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from quill.api import discovery, ops, search
from quill.api.errors import install_error_handlers
from quill.infra import mongo
from quill.obs import init as obs_init
from quill.settings import settings

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
	if settings.search_backend == "mongo":
		mongo.init_client()
	logger.info("quill.startup backend=%s env=%s", settings.search_backend, settings.environment)
	try:
		yield
	finally:
		mongo.close_client()


app = FastAPI(title="Quill Discovery", lifespan=lifespan)
install_error_handlers(app)

allow_origins = list(settings.cors_allow_origins)
if not allow_origins:
	allow_origins = ["http://localhost:3000"] if settings.is_dev() else []

app.add_middleware(
	CORSMiddleware,
	allow_origins=allow_origins,
	allow_credentials=False,
	allow_methods=["GET"],
	allow_headers=["*"],
)
obs_init(app)

app.include_router(search.router, tags=["search"])
app.include_router(discovery.router, tags=["discovery"])
app.include_router(ops.router, tags=["ops"])
