from __future__ import annotations

from loguru import logger

from app.domain import BlogPage, BlogPost, NormalizedRoom

from .client import ContentSourceClient
from .normalize import normalize_blog_post, normalize_room, normalize_room_lite


def load_room_catalog(client: ContentSourceClient) -> list[NormalizedRoom]:
    """Fetch every room page and return the lite variants in source order."""

    rooms: list[NormalizedRoom] = []
    skipped = 0
    for raw_room in client.iter_rooms():
        try:
            rooms.append(normalize_room_lite(raw_room))
        except ValueError as exc:
            skipped += 1
            logger.warning("Skipping invalid room record: {}", exc)
    if skipped:
        logger.warning("Skipped {} room records without an identifier", skipped)
    logger.info("Loaded {} rooms from the content source", len(rooms))
    return rooms


def load_room_by_id(client: ContentSourceClient, room_id: str) -> NormalizedRoom | None:
    raw_room = client.fetch_room_by_id(room_id)
    if raw_room is None:
        logger.info("Room {} not found in the content source", room_id)
        return None
    return normalize_room(raw_room)


def load_room_by_slug(client: ContentSourceClient, slug: str) -> NormalizedRoom | None:
    raw_room = client.fetch_room_by_slug(slug)
    if raw_room is None:
        logger.info("Room with slug {} not found in the content source", slug)
        return None
    return normalize_room(raw_room)


def load_blog_page(client: ContentSourceClient, *, limit: int, after: str | None) -> BlogPage:
    page = client.fetch_blog_posts(first=limit, after=after)
    return BlogPage(
        posts=tuple(normalize_blog_post(post) for post in page.nodes),
        has_next_page=page.has_next_page,
        end_cursor=page.end_cursor,
    )


def load_recent_blog_posts(client: ContentSourceClient, *, limit: int) -> list[BlogPost]:
    return [normalize_blog_post(post) for post in client.fetch_recent_blog_posts(first=limit)]


def load_blog_post(client: ContentSourceClient, slug: str) -> BlogPost | None:
    raw_post = client.fetch_blog_post_by_slug(slug)
    if raw_post is None:
        return None
    return normalize_blog_post(raw_post)
