"""Cache key namespace.

Only canonical datasets and single entities are stored; grouped counts and
statistics are always recomputed from ``ALL_ROOMS``.
"""

from __future__ import annotations


ROOM_NAMESPACE = "escape-rooms:"
BLOG_NAMESPACE = "blog:"

ALL_ROOMS = ROOM_NAMESPACE + "all"
ROOM_BY_ID = ROOM_NAMESPACE + "id:"
ROOM_BY_SLUG = ROOM_NAMESPACE + "slug:"
BLOG_POSTS = BLOG_NAMESPACE + "posts:"
BLOG_RECENT = BLOG_NAMESPACE + "recent:"
BLOG_POST = BLOG_NAMESPACE + "post:"

ROOM_PATTERN = ROOM_NAMESPACE + "*"
BLOG_PATTERN = BLOG_NAMESPACE + "*"
ALL_PATTERNS = (ROOM_PATTERN, BLOG_PATTERN)

HEALTH_CHECK = "health-check:"


def room_by_id(room_id: str) -> str:
    return f"{ROOM_BY_ID}{room_id}"


def room_by_slug(slug: str) -> str:
    return f"{ROOM_BY_SLUG}{slug}"


def blog_posts(limit: int, after: str | None) -> str:
    return f"{BLOG_POSTS}{limit}:{after or 'start'}"


def blog_recent(limit: int) -> str:
    return f"{BLOG_RECENT}{limit}"


def blog_post(slug: str) -> str:
    return f"{BLOG_POST}{slug}"


def named_keys() -> dict[str, str]:
    """Key prefixes by name, as reported by the cache stats endpoint."""

    return {
        "ALL_ROOMS": ALL_ROOMS,
        "ROOM_BY_ID": ROOM_BY_ID,
        "ROOM_BY_SLUG": ROOM_BY_SLUG,
        "BLOG_POSTS": BLOG_POSTS,
        "BLOG_RECENT": BLOG_RECENT,
        "BLOG_POST": BLOG_POST,
    }
