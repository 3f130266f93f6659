"""Mapbox Search Box provider."""

from __future__ import annotations

from typing import Any, Sequence

import httpx

from mapsearch.config import ProviderSettings
from mapsearch.domain.models import GeoRegion, SearchResult
from mapsearch.logging import logger
from mapsearch.services.exceptions import (
    InvalidQueryError,
    NoResultsError,
    ProviderAuthError,
    RateLimitExceededError,
    SearchError,
    SearchTimeoutError,
    SearchTransportError,
    ServiceUnavailableError,
)
from mapsearch.utils.retry import retry_async

SOURCE = "mapbox"


class MapboxSearchProvider:
    """Forward geocoding against the Search Box ``/forward`` endpoint.

    Implements both the plain and the region-biased search capability.
    Transport and HTTP failures are translated into ``SearchError`` subclasses
    and retryable ones are retried with linear backoff.
    """

    def __init__(
        self,
        http_client: httpx.AsyncClient,
        settings: ProviderSettings | None = None,
    ) -> None:
        self._client = http_client
        self._settings = settings or ProviderSettings()

    async def search(self, query: str) -> Sequence[SearchResult]:
        return await self._search(query, region=None)

    async def search_in_region(self, query: str, region: GeoRegion) -> Sequence[SearchResult]:
        return await self._search(query, region=region)

    async def _search(self, query: str, region: GeoRegion | None) -> list[SearchResult]:
        query = (query or "").strip()
        if not query:
            raise InvalidQueryError("Search query must not be empty.")

        token = self._read_secret(self._settings.mapbox_access_token)
        if not token:
            raise ProviderAuthError("Mapbox access token is not configured.")

        params = self._build_params(query, token, region)

        async def _request() -> list[SearchResult]:
            payload = await self._fetch(params)
            results = self._parse_features(payload)
            if not results:
                raise NoResultsError(f"No results for {query!r}.")
            return results

        return await retry_async(
            _request,
            max_attempts=self._settings.max_attempts,
            base_delay=self._settings.retry_base_delay,
            should_retry=lambda exc: isinstance(exc, SearchError) and exc.retryable,
            delay_for=lambda exc: self._settings.retry_base_delay * getattr(exc, "retry_delay", 1.0),
            logger=logger,
            operation_name="mapbox_forward",
        )

    def _build_params(self, query: str, token: str, region: GeoRegion | None) -> dict[str, Any]:
        params: dict[str, Any] = {
            "q": query,
            "access_token": token,
            "limit": self._settings.result_limit,
            "language": self._settings.language,
        }
        if self._settings.country:
            params["country"] = self._settings.country
        if region is not None:
            params["proximity"] = f"{region.center_longitude},{region.center_latitude}"
            params["bbox"] = ",".join(f"{value:.6f}" for value in region.bounding_box())
        return params

    async def _fetch(self, params: dict[str, Any]) -> dict[str, Any]:
        url = f"{str(self._settings.base_url).rstrip('/')}/forward"
        try:
            response = await self._client.get(
                url,
                params=params,
                timeout=self._settings.request_timeout_seconds,
            )
        except httpx.TimeoutException as exc:
            raise SearchTimeoutError(f"Mapbox request timed out: {exc}") from exc
        except httpx.RequestError as exc:
            raise SearchTransportError(f"Mapbox request failed: {exc}") from exc

        status = response.status_code
        if status == 429:
            raise RateLimitExceededError("Mapbox rate limit exceeded.")
        if status in (401, 403):
            raise ProviderAuthError(f"Mapbox rejected the access token ({status}).")
        if status >= 500:
            raise ServiceUnavailableError(f"Mapbox unavailable ({status}): {response.text[:200]}")
        if status >= 400:
            raise InvalidQueryError(f"Mapbox rejected the query ({status}): {response.text[:200]}")

        try:
            data = response.json()
        except ValueError as exc:
            raise ServiceUnavailableError("Mapbox returned a malformed response.") from exc
        if not isinstance(data, dict):
            raise ServiceUnavailableError("Mapbox returned a malformed response.")
        return data

    @staticmethod
    def _parse_features(payload: dict[str, Any]) -> list[SearchResult]:
        results: list[SearchResult] = []
        seen: set[str] = set()
        for feature in payload.get("features", []) or []:
            props = feature.get("properties") or {}
            place_id = props.get("mapbox_id")
            if not place_id or place_id in seen:
                continue

            coordinates = props.get("coordinates") or {}
            latitude = coordinates.get("latitude")
            longitude = coordinates.get("longitude")
            if latitude is None or longitude is None:
                # GeoJSON geometry is [longitude, latitude]
                point = (feature.get("geometry") or {}).get("coordinates") or []
                if len(point) < 2:
                    continue
                longitude, latitude = point[0], point[1]

            categories = props.get("poi_category") or []
            results.append(
                SearchResult(
                    id=place_id,
                    name=props.get("name") or "Unknown Location",
                    subtitle=props.get("full_address") or props.get("place_formatted") or "",
                    latitude=latitude,
                    longitude=longitude,
                    category=categories[0] if categories else props.get("feature_type"),
                    source=SOURCE,
                )
            )
            seen.add(place_id)
        return results

    @staticmethod
    def _read_secret(secret: Any) -> str | None:
        if not secret:
            return None
        try:
            return secret.get_secret_value()
        except AttributeError:
            return str(secret)


__all__ = ["MapboxSearchProvider"]
