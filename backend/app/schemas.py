from datetime import datetime
from typing import Any

from pydantic import BaseModel, Field


class BusinessHour(BaseModel):
    day_of_week: str
    open_time: str | None = None
    close_time: str | None = None
    is_closed: bool = False

    model_config = {"from_attributes": True}


class Amenity(BaseModel):
    name: str
    category: str | None = None
    is_available: bool = True

    model_config = {"from_attributes": True}


class Room(BaseModel):
    id: str
    name: str
    slug: str | None = None
    variant: str
    city: str | None = None
    state: str | None = None
    country: str | None = None
    theme: str | None = None
    status: str | None = None
    rating: float | None = None
    review_count: int | None = None
    difficulty: str | None = None
    photo: str | None = None
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
    business_hours: list[BusinessHour] | None = None
    amenities: list[Amenity] | None = None

    model_config = {"from_attributes": True}


class RoomList(BaseModel):
    data: list[Room]
    error: str | None = None
    count: int


class StateCount(BaseModel):
    state: str
    room_count: int

    model_config = {"from_attributes": True}


class CityCount(BaseModel):
    city: str
    state: str | None = None
    room_count: int

    model_config = {"from_attributes": True}


class ThemeCount(BaseModel):
    theme: str
    room_count: int

    model_config = {"from_attributes": True}


class CountryCount(BaseModel):
    country: str
    room_count: int

    model_config = {"from_attributes": True}


class CountryStats(BaseModel):
    country: str
    room_count: int
    state_count: int
    city_count: int

    model_config = {"from_attributes": True}


class DatabaseStats(BaseModel):
    total_rooms: int
    total_cities: int
    total_states: int
    total_countries: int
    average_rating: float
    rated_rooms: int
    total_reviews: int

    model_config = {"from_attributes": True}


class BlogAuthor(BaseModel):
    name: str
    avatar: str | None = None

    model_config = {"from_attributes": True}


class BlogTerm(BaseModel):
    id: str
    name: str
    slug: str | None = None

    model_config = {"from_attributes": True}


class BlogImage(BaseModel):
    source_url: str
    alt_text: str = ""
    width: int | None = None
    height: int | None = None

    model_config = {"from_attributes": True}


class BlogPost(BaseModel):
    id: str
    database_id: int | None = None
    title: str
    slug: str
    content: str
    excerpt: str
    date: str | None = None
    modified: str | None = None
    author: BlogAuthor
    featured_image: BlogImage | None = None
    categories: list[BlogTerm] = Field(default_factory=list)
    tags: list[BlogTerm] = Field(default_factory=list)

    model_config = {"from_attributes": True}


class BlogPage(BaseModel):
    posts: list[BlogPost]
    has_next_page: bool
    end_cursor: str | None = None

    model_config = {"from_attributes": True}


class CacheInvalidationRequest(BaseModel):
    secret: str
    keys: list[str] | None = None
    patterns: list[str] | None = None


class CacheInvalidationResponse(BaseModel):
    success: bool
    message: str
    removed: int
    keys: list[str] = Field(default_factory=list)
    patterns: list[str] = Field(default_factory=list)
    timestamp: datetime


class CacheStats(BaseModel):
    available: bool
    total_keys: int
    room_keys: int
    blog_keys: int

    model_config = {"from_attributes": True}


class CacheKeyDescriptor(BaseModel):
    name: str
    key: str


class CacheStatsResponse(BaseModel):
    success: bool
    stats: CacheStats
    cache_keys: list[CacheKeyDescriptor]


class HealthStatus(BaseModel):
    status: str
    message: str
    details: dict[str, Any] = Field(default_factory=dict)
    timestamp: datetime
