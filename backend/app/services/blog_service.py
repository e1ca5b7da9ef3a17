"""Blog listings served through the same cache-aside layer as rooms."""

from __future__ import annotations

from loguru import logger

from app.cache import CacheManager
from app.cache import keys as cache_keys
from app.cache.codecs import BLOG_PAGE_CODEC, BLOG_POST_CODEC, BLOG_POST_LIST_CODEC
from app.core.config import Settings
from app.core.errors import ComputeFailed
from app.domain import BlogPage, BlogPost
from ingestion.client import ContentSourceClient
from ingestion.service import load_blog_page, load_blog_post, load_recent_blog_posts


class BlogService:
    def __init__(self, cache: CacheManager, client: ContentSourceClient, settings: Settings):
        self._cache = cache
        self._client = client
        self._settings = settings

    def list_posts(self, limit: int = 10, after: str | None = None) -> BlogPage:
        try:
            return self._cache.get_or_compute(
                cache_keys.blog_posts(limit, after),
                lambda: load_blog_page(self._client, limit=limit, after=after),
                self._settings.cache_ttl_blog,
                BLOG_PAGE_CODEC,
            )
        except ComputeFailed as exc:
            logger.error("Blog listing failed for {}: {}", exc.key, exc.__cause__)
            return BlogPage(posts=(), has_next_page=False, end_cursor=None)

    def recent_posts(self, limit: int = 5) -> list[BlogPost]:
        try:
            return self._cache.get_or_compute(
                cache_keys.blog_recent(limit),
                lambda: load_recent_blog_posts(self._client, limit=limit),
                self._settings.cache_ttl_blog,
                BLOG_POST_LIST_CODEC,
            )
        except ComputeFailed as exc:
            logger.error("Recent blog posts failed for {}: {}", exc.key, exc.__cause__)
            return []

    def get_post(self, slug: str) -> BlogPost | None:
        try:
            return self._cache.get_or_compute(
                cache_keys.blog_post(slug),
                lambda: load_blog_post(self._client, slug),
                self._settings.cache_ttl_blog,
                BLOG_POST_CODEC,
            )
        except ComputeFailed as exc:
            logger.error("Blog post lookup failed for {}: {}", exc.key, exc.__cause__)
            return None
