"""Settings for the Quill discovery backend with observability configuration."""

from __future__ import annotations

from typing import Any, Optional

from pydantic import AliasChoices, Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


def _env_field(default, *env_names: str):
    if env_names:
        alias = AliasChoices(*env_names) if len(env_names) > 1 else env_names[0]
        return Field(default=default, validation_alias=alias)
    return Field(default=default)


class Settings(BaseSettings):
    mongo_url: str = _env_field("mongodb://127.0.0.1:27017", "MONGO_URL", "MONGODB_URL", "MONGODB_URI")
    mongo_database: str = _env_field("quill", "MONGO_DATABASE", "MONGODB_DATABASE")
    mongo_blogs_collection: str = _env_field("blogs", "MONGO_BLOGS_COLLECTION")
    mongo_users_collection: str = _env_field("users", "MONGO_USERS_COLLECTION")
    mongo_max_pool_size: int = _env_field(50, "MONGO_MAX_POOL_SIZE")
    redis_url: str = _env_field("redis://localhost:6379/0", "REDIS_URL")

    # "mongo" in deployments, "memory" for local runs without a database
    search_backend: str = _env_field("mongo", "SEARCH_BACKEND")
    search_timeout_seconds: float = _env_field(5.0, "SEARCH_TIMEOUT_SECONDS")
    search_default_page_size: int = _env_field(10, "SEARCH_DEFAULT_PAGE_SIZE")
    search_max_page_size: int = _env_field(50, "SEARCH_MAX_PAGE_SIZE")
    search_facet_limit: int = _env_field(10, "SEARCH_FACET_LIMIT")
    search_include_drafts: bool = _env_field(False, "SEARCH_INCLUDE_DRAFTS")
    search_rate_limit_per_minute: int = _env_field(60, "SEARCH_RATE_LIMIT_PER_MINUTE")
    listing_default_page_size: int = _env_field(9, "LISTING_DEFAULT_PAGE_SIZE")

    environment: str = _env_field("production", "ENV", "APP_ENV", "ENVIRONMENT")
    obs_enabled: bool = _env_field(True, "OBS_ENABLED")
    obs_metrics_public: bool = _env_field(False, "OBS_METRICS_PUBLIC")
    obs_log_level: str = _env_field("INFO", "LOG_LEVEL")
    obs_log_sampling_rate_info: float = _env_field(0.1, "LOG_SAMPLING_RATE_INFO")
    obs_admin_token: Optional[str] = _env_field(None, "OBS_ADMIN_TOKEN")
    service_name: str = _env_field("quill-discovery", "SERVICE_NAME")
    git_commit: str = _env_field("unknown", "GIT_COMMIT", "COMMIT_SHA", "SOURCE_VERSION")

    cors_allow_origins: Any = _env_field((), "CORS_ALLOW_ORIGINS")

    # Environment helpers
    def is_dev(self) -> bool:
        return self.environment.lower() in ("dev", "development")

    model_config = SettingsConfigDict(
        env_prefix="",
        env_file=".env",
        case_sensitive=False,
        env_nested_delimiter="__",
    )

    @field_validator("cors_allow_origins", mode="before")
    def _split_cors(cls, value):  # type: ignore[override]
        if value in (None, ""):
            return ()
        if isinstance(value, str):
            return tuple(part.strip() for part in value.split(",") if part.strip())
        if isinstance(value, (list, tuple, set)):
            return tuple(str(item).strip() for item in value if str(item).strip())
        return ()

    @field_validator("search_backend", mode="before")
    def _normalise_backend(cls, value):  # type: ignore[override]
        return str(value or "mongo").strip().lower()


def _normalise_level(level: str) -> str:
    return level.upper()


settings = Settings()
settings.obs_log_level = _normalise_level(settings.obs_log_level)

