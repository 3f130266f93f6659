"""Pydantic models shared across the search layers."""

from __future__ import annotations

import math

from pydantic import BaseModel, ConfigDict, Field

EARTH_RADIUS_METERS = 6_371_000.0


class SearchResult(BaseModel):
    """A single place returned by a search provider."""

    model_config = ConfigDict(frozen=True)

    id: str = Field(min_length=1)
    name: str
    subtitle: str = ""
    latitude: float = Field(ge=-90, le=90)
    longitude: float = Field(ge=-180, le=180)
    category: str | None = None
    source: str = "unknown"

    def distance_to(self, latitude: float, longitude: float) -> float:
        """Great-circle distance in metres from the given point."""

        lat1, lat2 = math.radians(self.latitude), math.radians(latitude)
        d_lat = lat2 - lat1
        d_lon = math.radians(longitude - self.longitude)
        a = math.sin(d_lat / 2) ** 2 + math.cos(lat1) * math.cos(lat2) * math.sin(d_lon / 2) ** 2
        return 2 * EARTH_RADIUS_METERS * math.asin(math.sqrt(a))

    def formatted_distance(self, latitude: float, longitude: float) -> str:
        meters = self.distance_to(latitude, longitude)
        if meters < 1000:
            return f"{round(meters)} m"
        return f"{meters / 1000:.1f} km"


class GeoRegion(BaseModel):
    """Map viewport used to bias a search towards nearby places."""

    model_config = ConfigDict(frozen=True)

    center_latitude: float = Field(ge=-90, le=90)
    center_longitude: float = Field(ge=-180, le=180)
    latitude_delta: float = Field(default=0.1, gt=0, le=180)
    longitude_delta: float = Field(default=0.1, gt=0, le=360)

    def bounding_box(self) -> tuple[float, float, float, float]:
        """Return ``(min_lon, min_lat, max_lon, max_lat)`` clamped to valid ranges."""

        half_lat = self.latitude_delta / 2
        half_lon = self.longitude_delta / 2
        return (
            max(self.center_longitude - half_lon, -180.0),
            max(self.center_latitude - half_lat, -90.0),
            min(self.center_longitude + half_lon, 180.0),
            min(self.center_latitude + half_lat, 90.0),
        )


class QueryState(BaseModel):
    """Immutable snapshot of what the search UI should display."""

    model_config = ConfigDict(frozen=True)

    text: str = ""
    results: tuple[SearchResult, ...] = ()
    is_loading: bool = False
    error_message: str | None = None
    selected: SearchResult | None = None
    recent_searches: tuple[SearchResult, ...] = ()
    is_active: bool = False

    @property
    def has_results(self) -> bool:
        return bool(self.results)

    @property
    def is_search_empty(self) -> bool:
        return not self.text.strip()

    @property
    def should_show_results(self) -> bool:
        return self.is_active and (self.has_results or self.is_loading or self.error_message is not None)

    @property
    def is_showing_recent_searches(self) -> bool:
        return self.is_search_empty and self.has_results


__all__ = [
    "SearchResult",
    "GeoRegion",
    "QueryState",
]
