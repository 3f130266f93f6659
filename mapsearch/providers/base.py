"""Capabilities a location search backend can offer."""

from __future__ import annotations

from typing import Protocol, Sequence, runtime_checkable

from mapsearch.domain.models import GeoRegion, SearchResult


@runtime_checkable
class BasicSearch(Protocol):
    async def search(self, query: str) -> Sequence[SearchResult]:
        """Return ranked results or raise a ``SearchError``."""
        ...


@runtime_checkable
class BiasedSearch(Protocol):
    async def search_in_region(self, query: str, region: GeoRegion) -> Sequence[SearchResult]:
        """Like ``search`` but prefers places inside ``region``."""
        ...


__all__ = ["BasicSearch", "BiasedSearch"]
