from __future__ import annotations

import secrets
from datetime import datetime, timezone
from typing import Annotated

from fastapi import Depends, FastAPI, HTTPException, Query, Request
from fastapi.responses import JSONResponse
from loguru import logger

from . import schemas
from .cache import CacheInvalidator
from .cache import keys as cache_keys
from .core.config import Settings, settings
from .core.container import ServiceContainer, build_container
from .core.errors import CacheBackendError, ContentSourceError
from .services.blog_service import BlogService
from .services.room_service import RoomQuery, RoomService

app = FastAPI(title="Escape Room Directory API", version="0.1.0", debug=settings.debug)


@app.on_event("startup")
def on_startup() -> None:
    """Connect to the cache and content source once per process."""

    app.state.container = build_container(settings)


@app.on_event("shutdown")
def on_shutdown() -> None:
    container: ServiceContainer | None = getattr(app.state, "container", None)
    if container is not None:
        container.close()


def _now() -> datetime:
    return datetime.now(timezone.utc)


def _container(request: Request) -> ServiceContainer:
    return request.app.state.container


def _settings() -> Settings:
    return settings


def _room_service(container: ServiceContainer = Depends(_container)) -> RoomService:
    """Provide the room service bound to the process cache manager."""

    return container.rooms


def _blog_service(container: ServiceContainer = Depends(_container)) -> BlogService:
    return container.blog


def _cache_invalidator(container: ServiceContainer = Depends(_container)) -> CacheInvalidator:
    return container.invalidator


def _require_secret(provided: str | None, config: Settings) -> None:
    expected = config.cache_invalidation_secret
    if not expected:
        raise HTTPException(status_code=403, detail="Cache invalidation is disabled")
    if not provided or not secrets.compare_digest(provided, expected):
        raise HTTPException(status_code=401, detail="Invalid secret key")


@app.get("/healthz", tags=["system"])
def healthcheck() -> dict[str, str]:
    """Basic readiness probe consumed by infrastructure monitors."""

    return {"status": "ok"}


@app.get("/health/cache", response_model=schemas.HealthStatus, tags=["system"])
def cache_health(container: ServiceContainer = Depends(_container)):
    """Round-trip a short-lived key through the cache backend."""

    backend = container.cache.backend
    if backend is None:
        payload = schemas.HealthStatus(
            status="degraded",
            message="Cache backend not configured or unreachable at startup",
            timestamp=_now(),
        )
        return JSONResponse(status_code=503, content=payload.model_dump(mode="json"))

    details: dict[str, object] = {"backend": backend.name}
    test_key = f"{cache_keys.HEALTH_CHECK}{int(_now().timestamp() * 1000)}"
    try:
        details["ping"] = backend.ping()
        backend.set(test_key, "ok", 60)
        details["write_success"] = True
        try:
            details["read_success"] = backend.get(test_key) == "ok"
        except CacheBackendError as exc:
            details["read_success"] = False
            details["read_error"] = str(exc)
    except CacheBackendError as exc:
        logger.error("Cache health check failed: {}", exc)
        payload = schemas.HealthStatus(
            status="error", message=str(exc), details=details, timestamp=_now()
        )
        return JSONResponse(status_code=503, content=payload.model_dump(mode="json"))

    return schemas.HealthStatus(
        status="ok", message="Cache connection successful", details=details, timestamp=_now()
    )


@app.get("/health/source", response_model=schemas.HealthStatus, tags=["system"])
def source_health(container: ServiceContainer = Depends(_container)):
    """Probe the content source with a trivial GraphQL query."""

    try:
        query_type = container.client.ping()
    except ContentSourceError as exc:
        logger.error("Content source health check failed: {}", exc)
        payload = schemas.HealthStatus(
            status="error",
            message=str(exc),
            details={"error_type": type(exc).__name__},
            timestamp=_now(),
        )
        return JSONResponse(status_code=503, content=payload.model_dump(mode="json"))
    return schemas.HealthStatus(
        status="ok",
        message="Content source connection successful",
        details={"query_type": query_type},
        timestamp=_now(),
    )


def _room_query(
    *,
    name: Annotated[str | None, Query(description="Substring of the room name")] = None,
    city: Annotated[str | None, Query(description="Substring of the city name")] = None,
    state: Annotated[str | None, Query(description="Substring of the state name")] = None,
    country: Annotated[str | None, Query(description="Substring of the country name")] = None,
    theme: Annotated[str | None, Query(description="Exact theme (case-insensitive)")] = None,
    limit: Annotated[int, Query(ge=1, le=500)] = 20,
    offset: Annotated[int, Query(ge=0)] = 0,
) -> RoomQuery:
    """Normalize shared room listing query parameters."""

    return RoomQuery(
        name=name,
        city=city,
        state=state,
        country=country,
        theme=theme,
        limit=limit,
        offset=offset,
    )


@app.get("/rooms", response_model=schemas.RoomList, tags=["rooms"])
def list_rooms(
    *,
    query: RoomQuery = Depends(_room_query),
    service: RoomService = Depends(_room_service),
):
    """List rooms with optional filtering and pagination."""

    result = service.list_rooms(query)
    return schemas.RoomList(
        data=[schemas.Room.model_validate(room) for room in result.data],
        error=result.error,
        count=result.count,
    )


@app.get("/rooms/slug/{slug}", response_model=schemas.Room, tags=["rooms"])
def get_room_by_slug(slug: str, service: RoomService = Depends(_room_service)):
    room = service.get_room_by_slug(slug)
    if not room:
        raise HTTPException(status_code=404, detail="Room not found")
    return schemas.Room.model_validate(room)


@app.get("/rooms/{room_id}", response_model=schemas.Room, tags=["rooms"])
def get_room(room_id: str, service: RoomService = Depends(_room_service)):
    """Retrieve a single room (full variant) by its database identifier."""

    room = service.get_room_by_id(room_id)
    if not room:
        raise HTTPException(status_code=404, detail="Room not found")
    return schemas.Room.model_validate(room)


@app.get("/rooms/{room_id}/nearby", response_model=list[schemas.Room], tags=["rooms"])
def get_nearby_rooms(
    room_id: str,
    limit: Annotated[int, Query(ge=1, le=50)] = 6,
    service: RoomService = Depends(_room_service),
):
    room = service.find_listed_room(room_id)
    if not room:
        raise HTTPException(status_code=404, detail="Room not found")
    if not room.city or not room.state:
        return []
    nearby = service.nearby_rooms(room_id, room.city, room.state, limit=limit)
    return [schemas.Room.model_validate(item) for item in nearby]


@app.get("/venues", response_model=schemas.Room, tags=["rooms"])
def get_venue(
    name: Annotated[str, Query(min_length=1)],
    city: Annotated[str, Query(min_length=1)],
    state: Annotated[str, Query(min_length=1)],
    service: RoomService = Depends(_room_service),
):
    """Resolve a venue by name within a city."""

    room = service.get_room_by_venue(name, city, state)
    if not room:
        raise HTTPException(status_code=404, detail="Venue not found")
    return schemas.Room.model_validate(room)


@app.get("/featured", response_model=list[schemas.Room], tags=["rooms"])
def featured_rooms(
    limit: Annotated[int, Query(ge=1, le=50)] = 6,
    service: RoomService = Depends(_room_service),
):
    return [schemas.Room.model_validate(room) for room in service.featured_rooms(limit)]


@app.get("/states", response_model=list[schemas.StateCount], tags=["locations"])
def list_states(
    country: Annotated[str | None, Query(description="Restrict to one country")] = None,
    service: RoomService = Depends(_room_service),
):
    return [schemas.StateCount.model_validate(item) for item in service.states_with_counts(country)]


@app.get("/states/{state}/nearby-cities", response_model=list[schemas.CityCount], tags=["locations"])
def list_nearby_cities(
    state: str,
    limit: Annotated[int, Query(ge=1, le=100)] = 10,
    service: RoomService = Depends(_room_service),
):
    return [schemas.CityCount.model_validate(item) for item in service.nearby_cities(state, limit)]


@app.get("/cities", response_model=list[schemas.CityCount], tags=["locations"])
def list_cities(
    state: Annotated[str | None, Query(description="Restrict to one state")] = None,
    service: RoomService = Depends(_room_service),
):
    return [schemas.CityCount.model_validate(item) for item in service.cities_with_counts(state)]


@app.get("/themes", response_model=list[schemas.ThemeCount], tags=["themes"])
def list_themes(service: RoomService = Depends(_room_service)):
    return [schemas.ThemeCount.model_validate(item) for item in service.themes_with_counts()]


@app.get("/countries", response_model=list[schemas.CountryStats], tags=["locations"])
def list_countries(service: RoomService = Depends(_room_service)):
    return [schemas.CountryStats.model_validate(item) for item in service.country_stats()]


@app.get("/stats", response_model=schemas.DatabaseStats, tags=["stats"])
def database_stats(service: RoomService = Depends(_room_service)):
    """Global directory statistics recomputed from the cached catalog."""

    return schemas.DatabaseStats.model_validate(service.database_stats())


@app.get("/blog/posts", response_model=schemas.BlogPage, tags=["blog"])
def list_blog_posts(
    limit: Annotated[int, Query(ge=1, le=50)] = 10,
    after: Annotated[str | None, Query(description="Cursor returned by the previous page")] = None,
    service: BlogService = Depends(_blog_service),
):
    return schemas.BlogPage.model_validate(service.list_posts(limit, after))


@app.get("/blog/recent", response_model=list[schemas.BlogPost], tags=["blog"])
def recent_blog_posts(
    limit: Annotated[int, Query(ge=1, le=20)] = 5,
    service: BlogService = Depends(_blog_service),
):
    return [schemas.BlogPost.model_validate(post) for post in service.recent_posts(limit)]


@app.get("/blog/posts/{slug}", response_model=schemas.BlogPost, tags=["blog"])
def get_blog_post(slug: str, service: BlogService = Depends(_blog_service)):
    post = service.get_post(slug)
    if not post:
        raise HTTPException(status_code=404, detail="Post not found")
    return schemas.BlogPost.model_validate(post)


@app.post("/cache/invalidate", response_model=schemas.CacheInvalidationResponse, tags=["cache"])
def invalidate_cache(
    body: schemas.CacheInvalidationRequest,
    config: Settings = Depends(_settings),
    invalidator: CacheInvalidator = Depends(_cache_invalidator),
):
    """Evict specific keys/patterns, or everything when neither is given."""

    _require_secret(body.secret, config)

    keys = body.keys or []
    patterns = body.patterns or []
    if keys or patterns:
        removed = invalidator.invalidate_many(keys)
        removed += sum(invalidator.invalidate_pattern(pattern) for pattern in patterns)
        message = f"Invalidated {len(keys)} keys and {len(patterns)} patterns"
    else:
        removed = invalidator.clear_all()
        message = "All cache cleared. The next request fetches fresh data from the content source."

    return schemas.CacheInvalidationResponse(
        success=True,
        message=message,
        removed=removed,
        keys=keys,
        patterns=patterns,
        timestamp=_now(),
    )


@app.get("/cache/stats", response_model=schemas.CacheStatsResponse, tags=["cache"])
def cache_stats(
    secret: Annotated[str | None, Query()] = None,
    config: Settings = Depends(_settings),
    invalidator: CacheInvalidator = Depends(_cache_invalidator),
):
    _require_secret(secret, config)
    return schemas.CacheStatsResponse(
        success=True,
        stats=schemas.CacheStats.model_validate(invalidator.stats()),
        cache_keys=[
            schemas.CacheKeyDescriptor(name=name, key=key)
            for name, key in cache_keys.named_keys().items()
        ],
    )
