from __future__ import annotations

from unittest.mock import MagicMock

import pytest

from app.cache import keys as cache_keys
from app.core.errors import SourceUnavailable
from app.services.blog_service import BlogService
from ingestion.client import SourcePage


@pytest.fixture
def source(sample_blog_post_payload):
    client = MagicMock()
    client.fetch_blog_posts.return_value = SourcePage(
        nodes=[sample_blog_post_payload], has_next_page=True, end_cursor="cursor-2"
    )
    client.fetch_recent_blog_posts.return_value = [sample_blog_post_payload]
    client.fetch_blog_post_by_slug.side_effect = lambda slug: (
        sample_blog_post_payload if slug == sample_blog_post_payload["slug"] else None
    )
    return client


@pytest.fixture
def service(cache_manager, source, test_settings):
    return BlogService(cache_manager, source, test_settings)


def test_list_posts_is_cached_per_cursor(service, source, memory_backend):
    first = service.list_posts(limit=1)
    again = service.list_posts(limit=1)

    assert first == again
    assert first.has_next_page
    assert first.end_cursor == "cursor-2"
    assert first.posts[0].author.name == "Anonymous"
    assert source.fetch_blog_posts.call_count == 1
    assert memory_backend.get(cache_keys.blog_posts(1, None)) is not None

    service.list_posts(limit=1, after="cursor-2")
    assert source.fetch_blog_posts.call_count == 2
    source.fetch_blog_posts.assert_called_with(first=1, after="cursor-2")


def test_recent_posts(service, source):
    posts = service.recent_posts(3)

    assert [post.slug for post in posts] == ["how-to-beat-your-first-escape-room"]
    source.fetch_recent_blog_posts.assert_called_once_with(first=3)


def test_get_post_by_slug(service):
    post = service.get_post("how-to-beat-your-first-escape-room")

    assert post.title == "How to Beat Your First Escape Room"
    assert [tag.name for tag in post.tags] == ["Beginners"]
    assert service.get_post("missing") is None


def test_source_failure_yields_empty_page(service, source):
    source.fetch_blog_posts.side_effect = SourceUnavailable("timeout")
    source.fetch_recent_blog_posts.side_effect = SourceUnavailable("timeout")

    page = service.list_posts()

    assert page.posts == ()
    assert page.has_next_page is False
    assert service.recent_posts() == []
