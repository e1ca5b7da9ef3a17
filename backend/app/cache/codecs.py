"""JSON codecs mapping domain values to cache payloads and back."""

from __future__ import annotations

import json
from dataclasses import asdict, dataclass
from typing import Any, Callable, Generic, TypeVar

from app.domain import (
    Amenity,
    BlogAuthor,
    BlogImage,
    BlogPage,
    BlogPost,
    BlogTerm,
    BusinessHour,
    NormalizedRoom,
)

T = TypeVar("T")


@dataclass(frozen=True, slots=True)
class CacheCodec(Generic[T]):
    name: str
    encode: Callable[[T], str]
    decode: Callable[[str], T]


def _dumps(value: Any) -> str:
    return json.dumps(value, separators=(",", ":"), ensure_ascii=False)


def room_to_dict(room: NormalizedRoom) -> dict[str, Any]:
    return asdict(room)


def room_from_dict(payload: dict[str, Any]) -> NormalizedRoom:
    data = dict(payload)
    hours = data.get("business_hours")
    if hours is not None:
        data["business_hours"] = tuple(BusinessHour(**entry) for entry in hours)
    amenities = data.get("amenities")
    if amenities is not None:
        data["amenities"] = tuple(Amenity(**entry) for entry in amenities)
    return NormalizedRoom(**data)


def _decode_room_list(raw: str) -> list[NormalizedRoom]:
    payload = json.loads(raw)
    if not isinstance(payload, list):
        raise ValueError("Cached room collection is not a list")
    return [room_from_dict(item) for item in payload]


def _decode_room(raw: str) -> NormalizedRoom:
    payload = json.loads(raw)
    if not isinstance(payload, dict):
        raise ValueError("Cached room is not an object")
    return room_from_dict(payload)


def blog_post_from_dict(payload: dict[str, Any]) -> BlogPost:
    data = dict(payload)
    data["author"] = BlogAuthor(**data["author"])
    image = data.get("featured_image")
    data["featured_image"] = BlogImage(**image) if image else None
    data["categories"] = tuple(BlogTerm(**term) for term in data.get("categories") or ())
    data["tags"] = tuple(BlogTerm(**term) for term in data.get("tags") or ())
    return BlogPost(**data)


def _decode_blog_page(raw: str) -> BlogPage:
    payload = json.loads(raw)
    return BlogPage(
        posts=tuple(blog_post_from_dict(post) for post in payload["posts"]),
        has_next_page=bool(payload["has_next_page"]),
        end_cursor=payload.get("end_cursor"),
    )


JSON_CODEC: CacheCodec[Any] = CacheCodec("json", _dumps, json.loads)

ROOM_LIST_CODEC: CacheCodec[list[NormalizedRoom]] = CacheCodec(
    "room-list",
    lambda rooms: _dumps([room_to_dict(room) for room in rooms]),
    _decode_room_list,
)

ROOM_CODEC: CacheCodec[NormalizedRoom] = CacheCodec(
    "room",
    lambda room: _dumps(room_to_dict(room)),
    _decode_room,
)

BLOG_POST_CODEC: CacheCodec[BlogPost] = CacheCodec(
    "blog-post",
    lambda post: _dumps(asdict(post)),
    lambda raw: blog_post_from_dict(json.loads(raw)),
)

BLOG_POST_LIST_CODEC: CacheCodec[list[BlogPost]] = CacheCodec(
    "blog-post-list",
    lambda posts: _dumps([asdict(post) for post in posts]),
    lambda raw: [blog_post_from_dict(item) for item in json.loads(raw)],
)

BLOG_PAGE_CODEC: CacheCodec[BlogPage] = CacheCodec(
    "blog-page",
    lambda page: _dumps(asdict(page)),
    _decode_blog_page,
)
