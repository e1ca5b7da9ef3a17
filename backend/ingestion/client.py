from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Iterable

import httpx
from loguru import logger

from app.core.config import settings
from app.core.errors import SourceError, SourceUnavailable

from . import queries


@dataclass(slots=True)
class SourcePage:
    """One page of raw nodes plus the cursor needed to request the next one."""

    nodes: list[dict[str, Any]] = field(default_factory=list)
    has_next_page: bool = False
    end_cursor: str | None = None


def _extract_page(data: dict[str, Any], connection: str) -> SourcePage:
    payload = data.get(connection)
    if not isinstance(payload, dict):
        raise SourceError(f"Content source response is missing the '{connection}' connection")

    # a truncated page must fail the whole walk, never end it early
    raw_nodes = payload.get("nodes")
    if not isinstance(raw_nodes, list):
        raise SourceError(f"Content source '{connection}' page has no nodes list")
    page_info = payload.get("pageInfo")
    if not isinstance(page_info, dict):
        raise SourceError(f"Content source '{connection}' page is missing pageInfo")

    nodes = [node for node in raw_nodes if isinstance(node, dict)]
    return SourcePage(
        nodes=nodes,
        has_next_page=bool(page_info.get("hasNextPage")),
        end_cursor=page_info.get("endCursor"),
    )


class ContentSourceClient:
    """Thin wrapper around the WordPress GraphQL endpoint."""

    def __init__(
        self,
        *,
        url: str | None = None,
        page_size: int | None = None,
        timeout: float | None = None,
        transport: httpx.BaseTransport | None = None,
    ) -> None:
        self.url = url or settings.resolved_content_source_url
        self.page_size = page_size or settings.content_page_size
        self.timeout = timeout or settings.content_source_timeout
        self.client = httpx.Client(
            timeout=self.timeout,
            transport=transport,
            headers={"Content-Type": "application/json"},
        )

    @property
    def is_configured(self) -> bool:
        return bool(self.url)

    def execute(self, query: str, variables: dict[str, Any] | None = None) -> dict[str, Any]:
        """POST a GraphQL document and return its ``data`` object."""

        if not self.url:
            raise SourceUnavailable("Content source URL is not configured")

        try:
            response = self.client.post(self.url, json={"query": query, "variables": variables or {}})
        except httpx.TimeoutException as exc:
            raise SourceUnavailable(
                f"Content source timed out after {self.timeout}s"
            ) from exc
        except httpx.TransportError as exc:
            raise SourceUnavailable(f"Content source unreachable: {exc}") from exc

        if response.is_error:
            raise SourceError(
                f"GraphQL request failed: {response.status_code} {response.reason_phrase}",
                status_code=response.status_code,
            )

        try:
            payload = response.json()
        except ValueError as exc:
            raise SourceError("Content source returned a non-JSON response") from exc

        if not isinstance(payload, dict):
            raise SourceError("Content source returned an unexpected payload")

        errors = payload.get("errors")
        if errors:
            first = errors[0] if isinstance(errors, list) and errors else {}
            message = first.get("message") if isinstance(first, dict) else None
            raise SourceError(message or "GraphQL query failed")

        data = payload.get("data")
        if not isinstance(data, dict):
            raise SourceError("Content source response is missing 'data'")
        return data

    def fetch_page(self, *, cursor: str | None) -> SourcePage:
        variables: dict[str, Any] = {"first": self.page_size, "after": cursor}
        logger.debug("Content source escapeRooms page first={} after={}", self.page_size, cursor)
        data = self.execute(queries.GET_ESCAPE_ROOMS, variables)
        return _extract_page(data, "escapeRooms")

    def iter_rooms(self) -> Iterable[dict[str, Any]]:
        cursor: str | None = None
        seen_cursors: set[str] = set()
        while True:
            page = self.fetch_page(cursor=cursor)
            yield from page.nodes

            if not page.has_next_page:
                break

            next_cursor = page.end_cursor
            if not next_cursor or next_cursor in seen_cursors:
                raise SourceError(
                    "Content source reported more pages without a new continuation cursor"
                )
            seen_cursors.add(next_cursor)
            cursor = next_cursor

    def fetch_all(self) -> list[dict[str, Any]]:
        """Walk every page and return the raw rooms in source order."""

        rooms = list(self.iter_rooms())
        logger.info("Fetched {} rooms from the content source", len(rooms))
        return rooms

    def fetch_room_by_id(self, room_id: str) -> dict[str, Any] | None:
        data = self.execute(queries.GET_ESCAPE_ROOM_BY_ID, {"id": room_id})
        room = data.get("escapeRoom")
        return room if isinstance(room, dict) else None

    def fetch_room_by_slug(self, slug: str) -> dict[str, Any] | None:
        data = self.execute(queries.GET_ESCAPE_ROOM_BY_SLUG, {"slug": slug})
        room = data.get("escapeRoom")
        return room if isinstance(room, dict) else None

    def fetch_blog_posts(self, *, first: int = 10, after: str | None = None) -> SourcePage:
        data = self.execute(queries.GET_BLOG_POSTS, {"first": first, "after": after})
        return _extract_page(data, "posts")

    def fetch_recent_blog_posts(self, *, first: int = 5) -> list[dict[str, Any]]:
        data = self.execute(queries.GET_RECENT_BLOG_POSTS, {"first": first})
        return _extract_page(data, "posts").nodes

    def fetch_blog_post_by_slug(self, slug: str) -> dict[str, Any] | None:
        data = self.execute(queries.GET_BLOG_POST_BY_SLUG, {"slug": slug})
        post = data.get("post")
        return post if isinstance(post, dict) else None

    def ping(self) -> str:
        data = self.execute(queries.PING)
        return str(data.get("__typename") or "Query")

    def close(self) -> None:
        self.client.close()

    def __enter__(self) -> "ContentSourceClient":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()
