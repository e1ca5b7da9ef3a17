"""Derived views computed from the canonical room collection.

All functions are pure: the same input collection always yields the same
output, and nothing here touches the cache or the content source.
"""

from __future__ import annotations

import re
from collections.abc import Callable, Hashable, Iterable, Sequence
from typing import TypeVar

from app.domain import (
    CityCount,
    CountryCount,
    CountryStats,
    DatabaseStats,
    NormalizedRoom,
    StateCount,
    ThemeCount,
)

K = TypeVar("K", bound=Hashable)

DEFAULT_AVERAGE_RATING = 4.2

_SLUG_STRIP_RE = re.compile(r"[^a-z0-9\s-]")
_SLUG_SPACE_RE = re.compile(r"\s+")
_SLUG_DASH_RE = re.compile(r"-+")


def _contains(value: str | None, needle: str) -> bool:
    return value is not None and needle.lower() in value.lower()


def _equals(value: str | None, other: str) -> bool:
    return value is not None and value.strip().lower() == other.strip().lower()


def filter_rooms(
    rooms: Iterable[NormalizedRoom],
    *,
    name: str | None = None,
    city: str | None = None,
    state: str | None = None,
    country: str | None = None,
    theme: str | None = None,
) -> list[NormalizedRoom]:
    """Keep rooms matching every supplied filter.

    name/city/state/country match as case-insensitive substrings, theme as a
    case-insensitive exact value. A room missing a filtered field never matches.
    """

    filtered = list(rooms)
    if name:
        filtered = [room for room in filtered if _contains(room.name, name)]
    if city:
        filtered = [room for room in filtered if _contains(room.city, city)]
    if state:
        filtered = [room for room in filtered if _contains(room.state, state)]
    if country:
        filtered = [room for room in filtered if _contains(room.country, country)]
    if theme:
        filtered = [room for room in filtered if _equals(room.theme, theme)]
    return filtered


def scope_rooms(
    rooms: Iterable[NormalizedRoom],
    *,
    country: str | None = None,
    state: str | None = None,
) -> list[NormalizedRoom]:
    """Exact (case-insensitive) location scoping used by grouped views."""

    scoped = list(rooms)
    if country:
        scoped = [room for room in scoped if _equals(room.country, country)]
    if state:
        scoped = [room for room in scoped if _equals(room.state, state)]
    return scoped


def paginate(rooms: Sequence[NormalizedRoom], limit: int, offset: int = 0) -> list[NormalizedRoom]:
    if limit <= 0 or offset >= len(rooms):
        return []
    start = max(offset, 0)
    return list(rooms[start : start + limit])


def _count_by(rooms: Iterable[NormalizedRoom], key: Callable[[NormalizedRoom], K | None]) -> list[tuple[K, int]]:
    counts: dict[K, int] = {}
    for room in rooms:
        value = key(room)
        if value is None:
            continue
        counts[value] = counts.get(value, 0) + 1
    # sorted() is stable, so equal counts keep first-seen order
    return sorted(counts.items(), key=lambda item: item[1], reverse=True)


def _strip(value: str | None) -> str | None:
    if value is None:
        return None
    return value.strip() or None


def group_by_state(rooms: Iterable[NormalizedRoom]) -> list[StateCount]:
    return [
        StateCount(state=state, room_count=count)
        for state, count in _count_by(rooms, lambda room: _strip(room.state))
    ]


def group_by_city(rooms: Iterable[NormalizedRoom]) -> list[CityCount]:
    # keyed with the state so identically named cities stay apart
    def city_key(room: NormalizedRoom) -> tuple[str, str | None] | None:
        city = _strip(room.city)
        return (city, _strip(room.state)) if city else None

    return [
        CityCount(city=city, state=state, room_count=count)
        for (city, state), count in _count_by(rooms, city_key)
    ]


def group_by_theme(rooms: Iterable[NormalizedRoom]) -> list[ThemeCount]:
    return [
        ThemeCount(theme=theme, room_count=count)
        for theme, count in _count_by(rooms, lambda room: _strip(room.theme))
    ]


def group_by_country(rooms: Iterable[NormalizedRoom]) -> list[CountryCount]:
    return [
        CountryCount(country=country, room_count=count)
        for country, count in _count_by(rooms, lambda room: _strip(room.country))
    ]


def _city_label(room: NormalizedRoom) -> str | None:
    city = _strip(room.city)
    if not city:
        return None
    return f"{city}, {_strip(room.state) or ''}"


def compute_country_stats(rooms: Iterable[NormalizedRoom]) -> list[CountryStats]:
    per_country: dict[str, tuple[list[int], set[str], set[str]]] = {}
    for room in rooms:
        country = _strip(room.country)
        if not country:
            continue
        counter, states, cities = per_country.setdefault(country, ([0], set(), set()))
        counter[0] += 1
        state = _strip(room.state)
        if state:
            states.add(state)
        label = _city_label(room)
        if label:
            cities.add(label)

    stats = [
        CountryStats(
            country=country,
            room_count=counter[0],
            state_count=len(states),
            city_count=len(cities),
        )
        for country, (counter, states, cities) in per_country.items()
    ]
    return sorted(stats, key=lambda entry: entry.room_count, reverse=True)


def compute_stats(
    rooms: Sequence[NormalizedRoom],
    *,
    fallback_rating: float = DEFAULT_AVERAGE_RATING,
) -> DatabaseStats:
    cities = {label for label in (_city_label(room) for room in rooms) if label}
    states = {state for state in (_strip(room.state) for room in rooms) if state}
    countries = {country for country in (_strip(room.country) for room in rooms) if country}

    ratings = [room.rating for room in rooms if room.rating is not None]
    average = sum(ratings) / len(ratings) if ratings else fallback_rating

    return DatabaseStats(
        total_rooms=len(rooms),
        total_cities=len(cities),
        total_states=len(states),
        total_countries=len(countries),
        average_rating=round(average, 1),
        rated_rooms=len(ratings),
        total_reviews=sum(room.review_count or 0 for room in rooms),
    )


def top_rated(rooms: Iterable[NormalizedRoom], limit: int) -> list[NormalizedRoom]:
    rated = [room for room in rooms if room.rating is not None and room.rating > 0]
    rated.sort(key=lambda room: room.rating, reverse=True)
    return rated[: max(limit, 0)]


def nearby_rooms(
    rooms: Iterable[NormalizedRoom],
    *,
    room_id: str,
    city: str,
    state: str,
    limit: int,
) -> list[NormalizedRoom]:
    matches = [
        room
        for room in rooms
        if room.id != room_id and _equals(room.city, city) and _equals(room.state, state)
    ]
    return matches[: max(limit, 0)]


def nearby_cities(rooms: Iterable[NormalizedRoom], *, state: str, limit: int) -> list[CityCount]:
    in_state = [room for room in rooms if _equals(room.state, state)]
    return group_by_city(in_state)[: max(limit, 0)]


def slugify(text: str | None) -> str:
    if not text:
        return ""
    slug = _SLUG_STRIP_RE.sub("", text.lower())
    slug = _SLUG_SPACE_RE.sub("-", slug.strip())
    return _SLUG_DASH_RE.sub("-", slug)


def find_by_venue(rooms: Iterable[NormalizedRoom], venue_name: str) -> NormalizedRoom | None:
    """Return the first room whose slugified name overlaps the venue slug."""

    venue_slug = slugify(venue_name)
    if not venue_slug:
        return None
    for room in rooms:
        room_slug = slugify(room.name)
        if room_slug and (venue_slug in room_slug or room_slug in venue_slug):
            return room
    return None
