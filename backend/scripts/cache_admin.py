import argparse

from loguru import logger

from app.cache import keys as cache_keys
from app.core.config import get_settings
from app.core.container import build_container


def parse_args() -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Inspect and maintain the escape room cache")
    subparsers = parser.add_subparsers(dest="command", required=True)

    warm = subparsers.add_parser("warm", help="Load the room catalog and store it in the cache")
    warm.add_argument(
        "--with-blog",
        action="store_true",
        help="Also warm the first blog listing page and the recent posts widget.",
    )

    invalidate = subparsers.add_parser("invalidate", help="Evict specific keys or key patterns")
    invalidate.add_argument(
        "--key",
        action="append",
        default=None,
        metavar="KEY",
        help="Exact cache key to evict (repeatable, e.g. --key escape-rooms:all)",
    )
    invalidate.add_argument(
        "--pattern",
        action="append",
        default=None,
        metavar="GLOB",
        help="Glob pattern of keys to evict (repeatable, e.g. --pattern 'blog:*')",
    )

    subparsers.add_parser("clear", help="Evict every room and blog key")
    subparsers.add_parser("stats", help="Print key counts per namespace")
    return parser.parse_args()


def _warm(container, with_blog: bool) -> None:
    if container.cache.degraded:
        logger.warning("Cache is not available; nothing to warm")
        return
    rooms = container.rooms.get_all_rooms()
    logger.info("Warmed {} with {} rooms", cache_keys.ALL_ROOMS, len(rooms))
    if with_blog:
        page = container.blog.list_posts()
        recent = container.blog.recent_posts()
        logger.info("Warmed blog listing ({} posts) and recent posts ({})", len(page.posts), len(recent))
    container.cache.flush()


def _invalidate(container, keys: list[str] | None, patterns: list[str] | None) -> None:
    if not keys and not patterns:
        logger.warning("Nothing to invalidate; pass --key and/or --pattern")
        return
    removed = container.invalidator.invalidate_many(keys or [])
    for pattern in patterns or []:
        removed += container.invalidator.invalidate_pattern(pattern)
    logger.info("Invalidated {} keys", removed)


def main() -> None:
    args = parse_args()
    settings = get_settings()
    container = build_container(settings)

    try:
        if args.command == "warm":
            _warm(container, args.with_blog)
        elif args.command == "invalidate":
            _invalidate(container, args.key, args.pattern)
        elif args.command == "clear":
            removed = container.invalidator.clear_all()
            logger.info("Cleared {} keys", removed)
        elif args.command == "stats":
            stats = container.invalidator.stats()
            logger.info(
                "Cache available={} total={} rooms={} blog={}",
                stats.available,
                stats.total_keys,
                stats.room_keys,
                stats.blog_keys,
            )
    finally:
        container.close()


if __name__ == "__main__":
    main()
