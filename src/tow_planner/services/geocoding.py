from __future__ import annotations

import asyncio
import logging
import re
import time
from collections.abc import Callable
from typing import Any

from django.conf import settings

from tow_planner.exceptions import (
    ExternalServiceError,
    LocationNotFoundError,
    ProviderNetworkError,
    TowPlannerError,
)
from tow_planner.services.cache import TtlCache
from tow_planner.services.http import ProviderHttpClient, read_json
from tow_planner.services.rate_limit import RateLimiter
from tow_planner.services.retry import SleepFunc, linear_backoff, retry_with_backoff
from tow_planner.services.types import (
    Coordinate,
    ErrorKind,
    GeocodeCacheEntry,
    PlaceSuggestion,
    ServiceError,
)

logger = logging.getLogger(__name__)

RETRYABLE_STATUS = 503
_WHITESPACE = re.compile(r"\s+")


class GeocodingClient:
    """Nominatim-compatible geocoder with a TTL cache and a shared rate limit.

    One instance is meant to live for the whole process (or UI session); the
    cache and the rate limiter are per instance, so separate instances never
    share state.
    """

    def __init__(
        self,
        *,
        base_url: str | None = None,
        country_code: str | None = None,
        cache_ttl_seconds: float | None = None,
        min_interval_seconds: float | None = None,
        retry_count: int | None = None,
        retry_delay_seconds: float | None = None,
        cache_max_entries: int | None = None,
        http: ProviderHttpClient | None = None,
        clock: Callable[[], float] = time.monotonic,
        sleep: SleepFunc = asyncio.sleep,
    ) -> None:
        self.base_url = (base_url or settings.GEOCODING_BASE_URL).rstrip("/")
        self.country_code = (
            settings.GEOCODING_COUNTRY_CODE if country_code is None else country_code
        ).lower()
        self.cache_ttl = (
            settings.GEOCODE_CACHE_TTL_SECONDS if cache_ttl_seconds is None else cache_ttl_seconds
        )
        self.retry_count = settings.GEOCODING_RETRY_COUNT if retry_count is None else retry_count
        retry_delay = (
            settings.GEOCODING_RETRY_DELAY_SECONDS
            if retry_delay_seconds is None
            else retry_delay_seconds
        )
        min_interval = (
            settings.GEOCODING_MIN_INTERVAL_SECONDS
            if min_interval_seconds is None
            else min_interval_seconds
        )
        self.http = http or ProviderHttpClient(user_agent=settings.GEOCODING_USER_AGENT)
        self.clock = clock
        self.sleep = sleep
        self.backoff = linear_backoff(retry_delay)
        self.rate_limiter = RateLimiter(min_interval, clock=clock, sleep=sleep)
        max_entries = (
            settings.GEOCODE_CACHE_MAX_ENTRIES if cache_max_entries is None else cache_max_entries
        )
        self.cache: TtlCache[GeocodeCacheEntry] = TtlCache(self.cache_ttl, max_entries, clock=clock)
        self.suggestion_cache: TtlCache[list[PlaceSuggestion]] = TtlCache(
            self.cache_ttl, max_entries, clock=clock
        )

    async def geocode(self, place_text: str) -> Coordinate | ServiceError:
        query = (place_text or "").strip()
        if not query:
            return ServiceError(kind=ErrorKind.NOT_FOUND, message="Location text is empty")

        cache_key = self.cache_key(query, self.country_code)
        entry = self.cache.get(cache_key)
        if entry is not None:
            logger.debug("Geocode cache hit for %r", query)
            return entry.coordinates

        try:
            payload = await self._request("/search", self._search_params(query, limit=1))
            coordinates = self._parse_coordinate(payload, query)
        except TowPlannerError as exc:
            logger.warning("Geocoding %r failed: %s", query, exc)
            return exc.to_error()

        self.cache.set(
            cache_key,
            GeocodeCacheEntry(key=cache_key, coordinates=coordinates, timestamp=self.clock()),
        )
        return coordinates

    async def suggest(self, place_text: str, *, limit: int = 5) -> list[PlaceSuggestion]:
        query = (place_text or "").strip()
        if not query:
            return []

        cache_key = f"{self.cache_key(query, self.country_code)}|{limit}"
        cached = self.suggestion_cache.get(cache_key)
        if cached is not None:
            return cached

        try:
            payload = await self._request("/search", self._search_params(query, limit=limit))
        except TowPlannerError as exc:
            logger.warning("Suggestions for %r failed: %s", query, exc)
            return []

        suggestions: dict[str, PlaceSuggestion] = {}
        for item in payload if isinstance(payload, list) else []:
            try:
                label = str(item["display_name"])
                point = Coordinate(lat=float(item["lat"]), lon=float(item["lon"]))
            except (KeyError, TypeError, ValueError):
                continue
            suggestions.setdefault(label, PlaceSuggestion(label=label, coordinates=point))

        result = list(suggestions.values())
        self.suggestion_cache.set(cache_key, result)
        return result

    async def reverse(self, coordinate: Coordinate) -> PlaceSuggestion | ServiceError:
        params = {
            "format": "jsonv2",
            "lat": f"{coordinate.lat:.6f}",
            "lon": f"{coordinate.lon:.6f}",
            "zoom": 18,
            "addressdetails": 1,
        }
        try:
            payload = await self._request("/reverse", params)
            if not isinstance(payload, dict) or "display_name" not in payload:
                raise LocationNotFoundError("No address found for these coordinates")
            return PlaceSuggestion(
                label=str(payload["display_name"]),
                coordinates=Coordinate(lat=float(payload["lat"]), lon=float(payload["lon"])),
            )
        except (KeyError, TypeError, ValueError):
            return ServiceError(
                kind=ErrorKind.PROVIDER_ERROR, message="Invalid reverse geocoding response"
            )
        except TowPlannerError as exc:
            logger.warning("Reverse geocoding %s failed: %s", coordinate, exc)
            return exc.to_error()

    @staticmethod
    def cache_key(query: str, country_code: str) -> str:
        normalized = _WHITESPACE.sub(" ", query.strip()).lower()
        return f"{normalized}|{country_code}"

    def _search_params(self, query: str, *, limit: int) -> dict[str, Any]:
        params: dict[str, Any] = {"q": query, "format": "jsonv2", "limit": limit}
        if self.country_code:
            params["countrycodes"] = self.country_code
        return params

    async def _request(self, path: str, params: dict[str, Any]) -> Any:
        async def attempt() -> Any:
            await self.rate_limiter.wait()
            response = await self.http.get(f"{self.base_url}{path}", params=params)
            if response.status_code >= 400:
                raise ExternalServiceError(
                    f"Geocoding provider returned HTTP {response.status_code}",
                    status=response.status_code,
                )
            return read_json(response)

        return await retry_with_backoff(
            attempt,
            max_retries=self.retry_count,
            delay=self.backoff,
            should_retry=_is_transient,
            sleep=self.sleep,
            label="Geocoding request",
        )

    @staticmethod
    def _parse_coordinate(payload: Any, query: str) -> Coordinate:
        if not isinstance(payload, list) or not payload:
            raise LocationNotFoundError(f"Location {query!r} could not be resolved")

        first = payload[0]
        try:
            return Coordinate(lat=float(first["lat"]), lon=float(first["lon"]))
        except (KeyError, TypeError, ValueError) as exc:
            raise ExternalServiceError("Invalid geocoding response") from exc


def _is_transient(exc: Exception) -> bool:
    if isinstance(exc, ProviderNetworkError):
        return True
    return isinstance(exc, ExternalServiceError) and exc.status == RETRYABLE_STATUS
