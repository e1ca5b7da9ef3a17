"""Typed domain representations used across ingestion, caching, and APIs."""

from __future__ import annotations

from dataclasses import dataclass


ROOM_VARIANT_FULL = "full"
ROOM_VARIANT_LITE = "lite"


@dataclass(frozen=True, slots=True)
class BusinessHour:
    day_of_week: str
    open_time: str | None
    close_time: str | None
    is_closed: bool


@dataclass(frozen=True, slots=True)
class Amenity:
    name: str
    category: str | None
    is_available: bool


@dataclass(frozen=True, slots=True)
class NormalizedRoom:
    """Canonical escape room snapshot.

    The lite variant leaves every heavy field (long-form text, schedules,
    amenities, booking links) absent; identity and categorical fields are
    shared by both variants.
    """

    id: str
    name: str
    slug: str | None
    variant: str
    city: str | None
    state: str | None
    country: str | None
    theme: str | None
    status: str | None
    rating: float | None
    review_count: int | None
    difficulty: str | None
    photo: str | None
    full_address: str | None = None
    postal_code: str | None = None
    latitude: float | None = None
    longitude: float | None = None
    phone: str | None = None
    website: str | None = None
    price: str | None = None
    team_size: str | None = None
    duration: str | None = None
    created_at: str | None = None
    updated_at: str | None = None
    description: str | None = None
    post_content: str | None = None
    working_hours: str | None = None
    order_links: str | None = None
    check_url: str | None = None
    business_hours: tuple[BusinessHour, ...] | None = None
    amenities: tuple[Amenity, ...] | None = None

    @property
    def is_lite(self) -> bool:
        return self.variant == ROOM_VARIANT_LITE


@dataclass(frozen=True, slots=True)
class BlogAuthor:
    name: str
    avatar: str | None = None


@dataclass(frozen=True, slots=True)
class BlogTerm:
    id: str
    name: str
    slug: str | None


@dataclass(frozen=True, slots=True)
class BlogImage:
    source_url: str
    alt_text: str
    width: int | None = None
    height: int | None = None


@dataclass(frozen=True, slots=True)
class BlogPost:
    id: str
    database_id: int | None
    title: str
    slug: str
    content: str
    excerpt: str
    date: str | None
    modified: str | None
    author: BlogAuthor
    featured_image: BlogImage | None = None
    categories: tuple[BlogTerm, ...] = ()
    tags: tuple[BlogTerm, ...] = ()


@dataclass(frozen=True, slots=True)
class BlogPage:
    posts: tuple[BlogPost, ...]
    has_next_page: bool
    end_cursor: str | None


@dataclass(slots=True)
class StateCount:
    state: str
    room_count: int


@dataclass(slots=True)
class CityCount:
    city: str
    state: str | None
    room_count: int


@dataclass(slots=True)
class ThemeCount:
    theme: str
    room_count: int


@dataclass(slots=True)
class CountryCount:
    country: str
    room_count: int


@dataclass(slots=True)
class CountryStats:
    country: str
    room_count: int
    state_count: int
    city_count: int


@dataclass(slots=True)
class DatabaseStats:
    total_rooms: int
    total_cities: int
    total_states: int
    total_countries: int
    average_rating: float
    rated_rooms: int
    total_reviews: int
