"""Domain models representing normalized directory data."""

from .models import (
    ROOM_VARIANT_FULL,
    ROOM_VARIANT_LITE,
    Amenity,
    BlogAuthor,
    BlogImage,
    BlogPage,
    BlogPost,
    BlogTerm,
    BusinessHour,
    CityCount,
    CountryCount,
    CountryStats,
    DatabaseStats,
    NormalizedRoom,
    StateCount,
    ThemeCount,
)

__all__ = [
    "ROOM_VARIANT_FULL",
    "ROOM_VARIANT_LITE",
    "Amenity",
    "BlogAuthor",
    "BlogImage",
    "BlogPage",
    "BlogPost",
    "BlogTerm",
    "BusinessHour",
    "CityCount",
    "CountryCount",
    "CountryStats",
    "DatabaseStats",
    "NormalizedRoom",
    "StateCount",
    "ThemeCount",
]
