from __future__ import annotations

from dataclasses import dataclass

from loguru import logger

from app.cache import CacheInvalidator, CacheManager, build_cache_manager
from app.core.config import Settings
from app.services.blog_service import BlogService
from app.services.room_service import RoomService
from ingestion.client import ContentSourceClient


@dataclass(slots=True)
class ServiceContainer:
    """Process-wide collaborators, built once at startup and handed to callers."""

    settings: Settings
    cache: CacheManager
    client: ContentSourceClient
    rooms: RoomService
    blog: BlogService
    invalidator: CacheInvalidator

    def close(self) -> None:
        self.cache.close()
        self.client.close()


def build_container(
    settings: Settings,
    *,
    cache: CacheManager | None = None,
    client: ContentSourceClient | None = None,
) -> ServiceContainer:
    cache = cache if cache is not None else build_cache_manager(settings)
    client = client if client is not None else ContentSourceClient(
        url=settings.resolved_content_source_url,
        page_size=settings.content_page_size,
        timeout=settings.content_source_timeout,
    )
    if not client.is_configured:
        logger.warning("CONTENT_SOURCE_URL is not set; room and blog views will be empty")
    logger.info(
        "Services ready (cache={}, execution_mode={})",
        "degraded" if cache.degraded else cache.backend.name,
        settings.execution_mode,
    )
    return ServiceContainer(
        settings=settings,
        cache=cache,
        client=client,
        rooms=RoomService(cache, client, settings),
        blog=BlogService(cache, client, settings),
        invalidator=CacheInvalidator(cache),
    )
