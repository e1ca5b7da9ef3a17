"""Read-only facade over the cached room catalog used by the API."""

from __future__ import annotations

from dataclasses import dataclass, field

from loguru import logger

from app.cache import CacheManager
from app.cache import keys as cache_keys
from app.cache.codecs import ROOM_CODEC, ROOM_LIST_CODEC
from app.core.config import Settings
from app.core.errors import ComputeFailed
from app.domain import (
    CityCount,
    CountryCount,
    CountryStats,
    DatabaseStats,
    NormalizedRoom,
    StateCount,
    ThemeCount,
)
from ingestion.client import ContentSourceClient
from ingestion.service import load_room_by_id, load_room_by_slug, load_room_catalog

from . import aggregations


@dataclass(slots=True)
class RoomQuery:
    name: str | None = None
    city: str | None = None
    state: str | None = None
    country: str | None = None
    theme: str | None = None
    limit: int = 20
    offset: int = 0

    def to_filter_kwargs(self) -> dict[str, str | None]:
        return {
            "name": self.name,
            "city": self.city,
            "state": self.state,
            "country": self.country,
            "theme": self.theme,
        }


@dataclass(slots=True)
class RoomQueryResult:
    data: list[NormalizedRoom] = field(default_factory=list)
    error: str | None = None
    count: int = 0


def _log_compute_failure(operation: str, exc: ComputeFailed) -> None:
    cause = exc.__cause__
    logger.error(
        "{} failed for {}: {}",
        operation,
        exc.key,
        f"{type(cause).__name__}: {cause}" if cause else exc,
    )


class RoomService:
    """Serve listings and derived views from the one cached room collection.

    Every view is recomputed from ``escape-rooms:all``; on total failure list
    views come back empty and lookups return ``None`` instead of raising.
    """

    def __init__(self, cache: CacheManager, client: ContentSourceClient, settings: Settings):
        self._cache = cache
        self._client = client
        self._settings = settings

    def get_all_rooms(self) -> list[NormalizedRoom]:
        try:
            return self._cache.get_or_compute(
                cache_keys.ALL_ROOMS,
                lambda: load_room_catalog(self._client),
                self._settings.cache_ttl_all_rooms,
                ROOM_LIST_CODEC,
            )
        except ComputeFailed as exc:
            _log_compute_failure("Loading all rooms", exc)
            return []

    def list_rooms(self, query: RoomQuery) -> RoomQueryResult:
        rooms = aggregations.filter_rooms(self.get_all_rooms(), **query.to_filter_kwargs())
        return RoomQueryResult(
            data=aggregations.paginate(rooms, query.limit, query.offset),
            error=None,
            count=len(rooms),
        )

    def find_listed_room(self, room_id: str) -> NormalizedRoom | None:
        """Return the lite entry for ``room_id`` from the cached collection."""

        return next((room for room in self.get_all_rooms() if room.id == room_id), None)

    def get_room_by_id(self, room_id: str) -> NormalizedRoom | None:
        try:
            return self._cache.get_or_compute(
                cache_keys.room_by_id(room_id),
                lambda: load_room_by_id(self._client, room_id),
                self._settings.cache_ttl_single_room,
                ROOM_CODEC,
            )
        except ComputeFailed as exc:
            _log_compute_failure("Room lookup", exc)
            return None

    def get_room_by_slug(self, slug: str) -> NormalizedRoom | None:
        try:
            return self._cache.get_or_compute(
                cache_keys.room_by_slug(slug),
                lambda: load_room_by_slug(self._client, slug),
                self._settings.cache_ttl_single_room,
                ROOM_CODEC,
            )
        except ComputeFailed as exc:
            _log_compute_failure("Room slug lookup", exc)
            return None

    def get_room_by_venue(self, venue_name: str, city: str, state: str) -> NormalizedRoom | None:
        """Resolve a venue URL segment to the full room, falling back to the lite entry."""

        match = aggregations.find_by_venue(self.rooms_by_city(city, state), venue_name)
        if match is None:
            return None
        return self.get_room_by_id(match.id) or match

    def rooms_by_city(self, city: str, state: str | None = None, limit: int | None = None) -> list[NormalizedRoom]:
        rooms = aggregations.filter_rooms(self.get_all_rooms(), city=city, state=state)
        return rooms[:limit] if limit else rooms

    def rooms_by_state(self, state: str, limit: int | None = None) -> list[NormalizedRoom]:
        rooms = aggregations.filter_rooms(self.get_all_rooms(), state=state)
        return rooms[:limit] if limit else rooms

    def featured_rooms(self, limit: int = 6) -> list[NormalizedRoom]:
        return aggregations.top_rated(self.get_all_rooms(), limit)

    def states_with_counts(self, country: str | None = None) -> list[StateCount]:
        rooms = aggregations.scope_rooms(self.get_all_rooms(), country=country)
        return aggregations.group_by_state(rooms)

    def cities_with_counts(self, state: str | None = None) -> list[CityCount]:
        rooms = aggregations.scope_rooms(self.get_all_rooms(), state=state)
        return aggregations.group_by_city(rooms)

    def themes_with_counts(self) -> list[ThemeCount]:
        return aggregations.group_by_theme(self.get_all_rooms())

    def countries_with_counts(self) -> list[CountryCount]:
        return aggregations.group_by_country(self.get_all_rooms())

    def country_stats(self) -> list[CountryStats]:
        return aggregations.compute_country_stats(self.get_all_rooms())

    def database_stats(self) -> DatabaseStats:
        return aggregations.compute_stats(self.get_all_rooms())

    def nearby_cities(self, state: str, limit: int = 10) -> list[CityCount]:
        return aggregations.nearby_cities(self.get_all_rooms(), state=state, limit=limit)

    def nearby_rooms(self, room_id: str, city: str, state: str, limit: int = 6) -> list[NormalizedRoom]:
        return aggregations.nearby_rooms(
            self.get_all_rooms(), room_id=room_id, city=city, state=state, limit=limit
        )
