from __future__ import annotations

import html
import re
from typing import Any

from dateutil import parser as date_parser

from app.domain import (
    ROOM_VARIANT_FULL,
    ROOM_VARIANT_LITE,
    Amenity,
    BlogAuthor,
    BlogImage,
    BlogPost,
    BlogTerm,
    BusinessHour,
    NormalizedRoom,
)


_TAG_RE = re.compile(r"<[^>]*>")
_WHITESPACE_RE = re.compile(r"\s+")


def strip_html(value: str) -> str:
    """Drop markup and decode entities from CMS rendered HTML."""

    text = _TAG_RE.sub("", value)
    text = html.unescape(text).replace("\xa0", " ")
    return _WHITESPACE_RE.sub(" ", text).strip()


def excerpt(content: str, max_length: int = 160) -> str:
    plain = strip_html(content)
    if len(plain) <= max_length:
        return plain
    return plain[:max_length].strip() + "..."


def _clean_str(value: Any) -> str | None:
    """Return a stripped string, mapping the CMS 'unset' encodings to None."""

    if value is None or isinstance(value, (dict, list)):
        return None
    text = str(value).strip()
    return text or None


def _parse_float(value: Any) -> float | None:
    if value is None or value == "":
        return None
    try:
        return float(value)
    except (TypeError, ValueError):
        return None


def _parse_int(value: Any) -> int | None:
    if value is None or value == "":
        return None
    try:
        return int(value)
    except (TypeError, ValueError):
        float_val = _parse_float(value)
        if float_val is None:
            return None
        return int(round(float_val))


def _parse_rating(value: Any) -> float | None:
    # ACF stores an unrated venue as 0
    rating = _parse_float(value)
    if rating is None or rating <= 0:
        return None
    return rating


def _parse_coordinate(value: Any) -> float | None:
    coordinate = _parse_float(value)
    if coordinate is None or coordinate == 0:
        return None
    return coordinate


def _normalize_timestamp(value: Any) -> str | None:
    if not value:
        return None
    try:
        return date_parser.isoparse(str(value)).isoformat()
    except (ValueError, TypeError, OverflowError):
        return None


def _first_term(raw: dict[str, Any], connection: str) -> str | None:
    payload = raw.get(connection)
    if not isinstance(payload, dict):
        return None
    nodes = payload.get("nodes")
    if not isinstance(nodes, list):
        return None
    for node in nodes:
        if isinstance(node, dict):
            name = _clean_str(node.get("name"))
            if name:
                return name
    return None


def _featured_image(raw: dict[str, Any]) -> dict[str, Any] | None:
    image = raw.get("featuredImage")
    if not isinstance(image, dict):
        return None
    node = image.get("node")
    return node if isinstance(node, dict) else None


def _details(raw: dict[str, Any]) -> dict[str, Any]:
    details = raw.get("escapeRoomDetails")
    return details if isinstance(details, dict) else {}


def _build_business_hours(details: dict[str, Any]) -> tuple[BusinessHour, ...]:
    entries = details.get("businessHours")
    if not isinstance(entries, list):
        return ()
    hours: list[BusinessHour] = []
    for entry in entries:
        if not isinstance(entry, dict):
            continue
        day = _clean_str(entry.get("dayOfWeek"))
        if not day:
            continue
        hours.append(
            BusinessHour(
                day_of_week=day,
                open_time=_clean_str(entry.get("openTime")),
                close_time=_clean_str(entry.get("closeTime")),
                is_closed=bool(entry.get("isClosed")),
            )
        )
    return tuple(hours)


def _build_amenities(details: dict[str, Any]) -> tuple[Amenity, ...]:
    entries = details.get("amenities")
    if not isinstance(entries, list):
        return ()
    amenities: list[Amenity] = []
    for entry in entries:
        if not isinstance(entry, dict):
            continue
        name = _clean_str(entry.get("amenityName"))
        if not name:
            continue
        amenities.append(
            Amenity(
                name=name,
                category=_clean_str(entry.get("amenityCategory")),
                is_available=entry.get("isAvailable") is not False,
            )
        )
    return tuple(amenities)


def _room_identity(raw: dict[str, Any]) -> str:
    raw_id = raw.get("databaseId")
    if raw_id is None or raw_id == "":
        raw_id = raw.get("id")
    if raw_id is None or raw_id == "":
        raise ValueError("Room record is missing an identifier")
    return str(raw_id)


def _common_fields(raw: dict[str, Any]) -> dict[str, Any]:
    details = _details(raw)
    image = _featured_image(raw)
    published = _normalize_timestamp(raw.get("date"))
    return {
        "id": _room_identity(raw),
        "name": _clean_str(raw.get("title")) or "",
        "slug": _clean_str(raw.get("slug")),
        "city": _first_term(raw, "cities"),
        "state": _first_term(raw, "states"),
        "country": _first_term(raw, "countries"),
        "theme": _first_term(raw, "roomCategories"),
        "status": _clean_str(details.get("status")),
        "rating": _parse_rating(details.get("rating")),
        "review_count": _parse_int(details.get("reviewCount")),
        "difficulty": _clean_str(details.get("difficulty")),
        "photo": _clean_str(image.get("sourceUrl")) if image else None,
        "full_address": _clean_str(details.get("fullAddress")),
        "postal_code": _clean_str(details.get("postalCode")),
        "latitude": _parse_coordinate(details.get("latitude")),
        "longitude": _parse_coordinate(details.get("longitude")),
        "phone": _clean_str(details.get("phone")),
        "website": _clean_str(details.get("website")),
        "price": _clean_str(details.get("price")),
        "team_size": _clean_str(details.get("teamSize")),
        "duration": _clean_str(details.get("duration")),
        "created_at": published,
        "updated_at": published,
    }


def normalize_room(raw_room: dict[str, Any]) -> NormalizedRoom:
    """Build the full room variant, including long-form content."""

    details = _details(raw_room)
    content = _clean_str(raw_room.get("content"))
    return NormalizedRoom(
        **_common_fields(raw_room),
        variant=ROOM_VARIANT_FULL,
        description=strip_html(content) if content else None,
        post_content=content,
        working_hours=_clean_str(details.get("workingHours")),
        order_links=_clean_str(details.get("orderLinks")),
        check_url=_clean_str(details.get("checkUrl")),
        business_hours=_build_business_hours(details),
        amenities=_build_amenities(details),
    )


def normalize_room_lite(raw_room: dict[str, Any]) -> NormalizedRoom:
    """Build the cache-friendly variant used for list views and aggregates."""

    return NormalizedRoom(**_common_fields(raw_room), variant=ROOM_VARIANT_LITE)


def _blog_terms(raw: dict[str, Any], connection: str) -> tuple[BlogTerm, ...]:
    payload = raw.get(connection)
    nodes = payload.get("nodes") if isinstance(payload, dict) else None
    if not isinstance(nodes, list):
        return ()
    terms: list[BlogTerm] = []
    for node in nodes:
        if not isinstance(node, dict):
            continue
        name = _clean_str(node.get("name"))
        if not name:
            continue
        terms.append(
            BlogTerm(id=str(node.get("id") or name), name=name, slug=_clean_str(node.get("slug")))
        )
    return tuple(terms)


def normalize_blog_post(raw_post: dict[str, Any]) -> BlogPost:
    image = _featured_image(raw_post)
    featured_image = None
    if image and _clean_str(image.get("sourceUrl")):
        media = image.get("mediaDetails") if isinstance(image.get("mediaDetails"), dict) else {}
        featured_image = BlogImage(
            source_url=str(image["sourceUrl"]).strip(),
            alt_text=_clean_str(image.get("altText")) or "",
            width=_parse_int(media.get("width")),
            height=_parse_int(media.get("height")),
        )

    author_payload = raw_post.get("author")
    author_node = author_payload.get("node") if isinstance(author_payload, dict) else None
    author_node = author_node if isinstance(author_node, dict) else {}
    avatar = author_node.get("avatar")

    content = raw_post.get("content") or ""
    raw_excerpt = _clean_str(raw_post.get("excerpt"))
    return BlogPost(
        id=str(raw_post.get("id") or raw_post.get("databaseId") or ""),
        database_id=_parse_int(raw_post.get("databaseId")),
        title=_clean_str(raw_post.get("title")) or "",
        slug=_clean_str(raw_post.get("slug")) or "",
        content=content,
        excerpt=strip_html(raw_excerpt) if raw_excerpt else excerpt(content),
        date=_normalize_timestamp(raw_post.get("date")),
        modified=_normalize_timestamp(raw_post.get("modified")),
        author=BlogAuthor(
            name=_clean_str(author_node.get("name")) or "Anonymous",
            avatar=_clean_str(avatar.get("url")) if isinstance(avatar, dict) else None,
        ),
        featured_image=featured_image,
        categories=_blog_terms(raw_post, "categories"),
        tags=_blog_terms(raw_post, "tags"),
    )
