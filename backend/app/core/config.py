from functools import lru_cache
from typing import Any

from pydantic import AnyUrl, Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


EXECUTION_MODES = {"runtime", "static"}
CACHE_BACKENDS = {"redis", "memory"}


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_file=".env", env_file_encoding="utf-8", extra="ignore"
    )

    debug: bool = Field(False, description="Enable FastAPI debug mode")
    environment: str = Field(
        default="development",
        description="Runtime environment (development|staging|production)",
    )
    execution_mode: str = Field(
        default="runtime",
        description=(
            "runtime for live requests, static while pre-rendering pages ahead of time "
            "(cache reads are refused in static mode, writes still happen)"
        ),
    )
    content_source_url: AnyUrl | str | None = Field(
        default=None,
        description="WordPress GraphQL endpoint serving escape rooms and blog posts",
    )
    content_source_timeout: float = Field(
        default=15.0,
        description="Per-request timeout (seconds) for content source calls",
        gt=0,
    )
    content_page_size: int = Field(
        default=100,
        description="Number of rooms requested per GraphQL page",
        ge=1,
        le=100,
    )
    cache_backend: str = Field(
        default="redis",
        description="Cache backend (redis|memory); memory keeps entries in this process only",
    )
    redis_url: str | None = Field(
        default=None,
        description="Redis connection URL (redis:// or rediss://); caching is disabled when unset",
    )
    redis_token: str | None = Field(
        default=None,
        description="Optional Redis password/token when it is not embedded in REDIS_URL",
    )
    redis_socket_timeout: float = Field(
        default=5.0,
        description="Socket connect/read timeout (seconds) for Redis commands",
        gt=0,
    )
    cache_coalesce_misses: bool = Field(
        default=True,
        description="Share one in-flight computation between concurrent misses on the same key",
    )
    cache_write_workers: int = Field(
        default=2,
        description="Background threads used for best-effort cache writes",
        ge=1,
    )
    cache_ttl_all_rooms: int = Field(86400, description="TTL for the full room dataset", ge=1)
    cache_ttl_single_room: int = Field(86400, description="TTL for single room lookups", ge=1)
    cache_ttl_blog: int = Field(3600, description="TTL for blog listings and posts", ge=1)
    cache_invalidation_secret: str | None = Field(
        default=None,
        description="Shared secret required by the cache invalidation endpoint (disabled when unset)",
    )

    @field_validator("execution_mode", mode="before")
    @classmethod
    def _validate_execution_mode(cls, value: Any) -> str:
        if value in (None, ""):
            return "runtime"
        mode = str(value).strip().lower()
        if mode not in EXECUTION_MODES:
            raise ValueError(
                "EXECUTION_MODE must be one of: " + ", ".join(sorted(EXECUTION_MODES))
            )
        return mode

    @field_validator("cache_backend", mode="before")
    @classmethod
    def _validate_cache_backend(cls, value: Any) -> str:
        if value in (None, ""):
            return "redis"
        backend = str(value).strip().lower()
        if backend not in CACHE_BACKENDS:
            raise ValueError(
                "CACHE_BACKEND must be one of: " + ", ".join(sorted(CACHE_BACKENDS))
            )
        return backend

    @field_validator(
        "content_source_url",
        "redis_url",
        "redis_token",
        "cache_invalidation_secret",
        mode="before",
    )
    @classmethod
    def _blank_to_none(cls, value: Any) -> Any:
        if isinstance(value, str) and not value.strip():
            return None
        return value

    @property
    def is_static_build(self) -> bool:
        return self.execution_mode == "static"

    @property
    def resolved_content_source_url(self) -> str | None:
        if self.content_source_url is None:
            return None
        return str(self.content_source_url)


@lru_cache
def get_settings() -> Settings:
    return Settings()


settings = get_settings()
