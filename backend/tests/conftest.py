from __future__ import annotations

import json
import sys
from pathlib import Path

sys.path.insert(0, str(Path(__file__).resolve().parents[1]))

import pytest

from app.cache import CacheManager, InMemoryCacheBackend
from app.core.config import Settings
from app.domain import ROOM_VARIANT_LITE, NormalizedRoom


DATA_DIR = Path(__file__).parent / "data"


@pytest.fixture
def sample_room_payload() -> dict[str, object]:
    path = DATA_DIR / "sample_room.json"
    return json.loads(path.read_text(encoding="utf-8"))


@pytest.fixture
def sample_blog_post_payload() -> dict[str, object]:
    path = DATA_DIR / "sample_blog_post.json"
    return json.loads(path.read_text(encoding="utf-8"))


@pytest.fixture
def test_settings(monkeypatch) -> Settings:
    settings = Settings(
        _env_file=None,
        content_source_url="https://cms.example.com/graphql",
        content_page_size=100,
        redis_url=None,
        cache_invalidation_secret="s3cret",
    )
    monkeypatch.setattr("app.core.config.get_settings", lambda: settings)
    monkeypatch.setattr("app.core.config.settings", settings)
    return settings


@pytest.fixture
def memory_backend() -> InMemoryCacheBackend:
    return InMemoryCacheBackend()


@pytest.fixture
def cache_manager(memory_backend):
    """Manager over the in-memory backend with synchronous writes."""
    manager = CacheManager(memory_backend, background_writes=False)
    yield manager
    manager.close()


@pytest.fixture
def make_room():
    def _make(room_id: str, **overrides) -> NormalizedRoom:
        fields: dict[str, object] = {
            "id": room_id,
            "name": f"Room {room_id}",
            "slug": f"room-{room_id}",
            "variant": ROOM_VARIANT_LITE,
            "city": None,
            "state": None,
            "country": None,
            "theme": None,
            "status": "open",
            "rating": None,
            "review_count": None,
            "difficulty": None,
            "photo": None,
        }
        fields.update(overrides)
        return NormalizedRoom(**fields)

    return _make
