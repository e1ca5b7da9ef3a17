from __future__ import annotations

from unittest.mock import MagicMock

import pytest

from app.cache import CacheManager
from app.cache import keys as cache_keys
from app.core.errors import SourceError, SourceUnavailable
from app.services.room_service import RoomQuery, RoomService


def _raw_room(room_id: int, name: str, city: str, state: str, rating: str = "4.5") -> dict[str, object]:
    return {
        "id": f"node-{room_id}",
        "databaseId": room_id,
        "title": name,
        "slug": name.lower().replace(" ", "-"),
        "content": f"<p>{name} description</p>",
        "cities": {"nodes": [{"name": city}]},
        "states": {"nodes": [{"name": state}]},
        "countries": {"nodes": [{"name": "United States"}]},
        "roomCategories": {"nodes": [{"name": "Adventure"}]},
        "escapeRoomDetails": {"rating": rating, "reviewCount": "3"},
    }


CATALOG = [
    _raw_room(1, "Lost Tomb", "Los Angeles", "California", "4.8"),
    _raw_room(2, "Haunted Manor", "Los Angeles", "California", "0"),
    _raw_room(3, "Bank Heist", "San Diego", "California", "4.1"),
    _raw_room(4, "Space Station", "Austin", "Texas", "4.6"),
]


@pytest.fixture
def source():
    client = MagicMock()
    client.iter_rooms.side_effect = lambda: iter(CATALOG)
    client.fetch_room_by_id.side_effect = lambda room_id: next(
        (room for room in CATALOG if str(room["databaseId"]) == room_id), None
    )
    client.fetch_room_by_slug.side_effect = lambda slug: next(
        (room for room in CATALOG if room["slug"] == slug), None
    )
    return client


@pytest.fixture
def service(cache_manager, source, test_settings):
    return RoomService(cache_manager, source, test_settings)


def test_list_rooms_filters_and_counts(service):
    result = service.list_rooms(RoomQuery(state="california", limit=2))

    assert result.count == 3
    assert result.error is None
    assert [room.id for room in result.data] == ["1", "2"]
    assert all(room.is_lite for room in result.data)


def test_collection_is_fetched_once_and_reused(service, source, memory_backend):
    service.list_rooms(RoomQuery())
    service.states_with_counts()
    service.database_stats()

    assert source.iter_rooms.call_count == 1
    assert memory_backend.get(cache_keys.ALL_ROOMS) is not None


def test_derived_views_are_not_cached(service, memory_backend):
    service.states_with_counts()
    service.themes_with_counts()
    service.database_stats()

    assert memory_backend.keys("*") == [cache_keys.ALL_ROOMS]


def test_grouped_views(service):
    states = service.states_with_counts()
    cities = service.cities_with_counts("California")
    countries = service.countries_with_counts()

    assert [(entry.state, entry.room_count) for entry in states] == [("California", 3), ("Texas", 1)]
    assert [(entry.city, entry.room_count) for entry in cities] == [("Los Angeles", 2), ("San Diego", 1)]
    assert [(entry.country, entry.room_count) for entry in countries] == [("United States", 4)]
    assert service.states_with_counts(country="Canada") == []


def test_database_stats_ignores_unrated_rooms(service):
    stats = service.database_stats()

    assert stats.total_rooms == 4
    assert stats.rated_rooms == 3
    assert stats.average_rating == 4.5
    assert stats.total_reviews == 12


def test_featured_rooms_are_top_rated(service):
    assert [room.id for room in service.featured_rooms(2)] == ["1", "4"]


def test_single_room_uses_full_variant_and_its_own_key(service, memory_backend):
    room = service.get_room_by_id("1")

    assert room is not None
    assert not room.is_lite
    assert room.description == "Lost Tomb description"
    assert memory_backend.get(cache_keys.room_by_id("1")) is not None


def test_missing_room_is_none_and_not_cached(service, source, memory_backend):
    assert service.get_room_by_id("999") is None
    assert service.get_room_by_id("999") is None

    assert source.fetch_room_by_id.call_count == 2
    assert memory_backend.get(cache_keys.room_by_id("999")) is None


def test_room_by_slug(service):
    room = service.get_room_by_slug("bank-heist")

    assert room.id == "3"
    assert room.city == "San Diego"


def test_venue_lookup_returns_full_room(service):
    room = service.get_room_by_venue("haunted-manor", "Los Angeles", "California")

    assert room.id == "2"
    assert not room.is_lite


def test_venue_lookup_falls_back_to_lite_room(service, source):
    source.fetch_room_by_id.side_effect = SourceUnavailable("timeout")

    room = service.get_room_by_venue("haunted-manor", "Los Angeles", "California")

    assert room.id == "2"
    assert room.is_lite


def test_nearby(service):
    assert [room.id for room in service.nearby_rooms("1", "Los Angeles", "California")] == ["2"]
    assert [entry.city for entry in service.nearby_cities("California")] == ["Los Angeles", "San Diego"]


def test_source_failure_returns_empty_views(cache_manager, source, test_settings, memory_backend):
    source.iter_rooms.side_effect = SourceError("GraphQL request failed: 500")
    service = RoomService(cache_manager, source, test_settings)

    result = service.list_rooms(RoomQuery())

    assert result.data == []
    assert result.count == 0
    assert result.error is None
    assert service.states_with_counts() == []
    assert service.database_stats().total_rooms == 0
    assert memory_backend.keys("*") == []


def test_degraded_cache_still_serves_rooms(source, test_settings):
    service = RoomService(CacheManager(None), source, test_settings)

    assert service.list_rooms(RoomQuery()).count == 4
    assert service.list_rooms(RoomQuery()).count == 4
    assert source.iter_rooms.call_count == 2


def test_listed_room_comes_from_the_collection(service, source, memory_backend):
    room = service.find_listed_room("3")

    assert room.id == "3"
    assert room.is_lite
    assert service.find_listed_room("404") is None
    source.fetch_room_by_id.assert_not_called()
    assert source.iter_rooms.call_count == 1
    assert memory_backend.keys(cache_keys.ROOM_BY_ID + "*") == []
