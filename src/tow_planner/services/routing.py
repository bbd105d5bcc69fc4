from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from typing import Any

from django.conf import settings
from django.core.exceptions import ImproperlyConfigured

from tow_planner.exceptions import (
    ExternalServiceError,
    InvalidLocationError,
    MissingCredentialError,
    NoRouteFoundError,
    TowPlannerError,
)
from tow_planner.services.http import ProviderHttpClient, read_json
from tow_planner.services.types import Coordinate, RouteResult, ServiceError

logger = logging.getLogger(__name__)

METERS_TO_MILES = 0.000621371
SECONDS_PER_HOUR = 3600.0


class RouteProvider(ABC):
    """A driving-directions provider normalized to ``RouteResult``."""

    name = ""

    @abstractmethod
    async def fetch_route(self, origin: Coordinate, destination: Coordinate) -> RouteResult:
        """Return the route or raise a ``TowPlannerError`` subclass."""


class OsrmRouteProvider(RouteProvider):
    """OSRM ``/route/v1/driving``. Consumes meters and seconds."""

    name = "osrm"
    INVALID_LOCATION_CODES = frozenset({"NoSegment", "InvalidValue", "InvalidQuery", "InvalidUrl"})

    def __init__(self, *, base_url: str | None = None, http: ProviderHttpClient | None = None):
        self.base_url = (base_url or settings.OSRM_BASE_URL).rstrip("/")
        self.http = http or ProviderHttpClient()

    async def fetch_route(self, origin: Coordinate, destination: Coordinate) -> RouteResult:
        coordinates = ";".join(
            f"{point.lon:.6f},{point.lat:.6f}" for point in (origin, destination)
        )
        response = await self.http.get(
            f"{self.base_url}/route/v1/driving/{coordinates}",
            params={"overview": "full", "geometries": "geojson", "steps": "false"},
        )
        payload = read_json(response)
        code = payload.get("code") if isinstance(payload, dict) else None

        if code == "NoRoute":
            raise NoRouteFoundError("No drivable route between these locations")
        if code in self.INVALID_LOCATION_CODES:
            raise InvalidLocationError(
                str(payload.get("message") or "Location is outside the road network"),
                status=response.status_code,
            )
        if response.status_code >= 400 or code != "Ok":
            raise ExternalServiceError(
                f"OSRM returned HTTP {response.status_code} ({code or 'no code'})",
                status=response.status_code,
            )
        return self._parse_response(payload)

    def _parse_response(self, payload: dict[str, Any]) -> RouteResult:
        routes = payload.get("routes")
        if not isinstance(routes, list):
            raise ExternalServiceError("Malformed OSRM response")
        if not routes:
            raise NoRouteFoundError("No drivable route between these locations")

        first = routes[0]
        try:
            coordinates = tuple(
                Coordinate(lat=float(lat), lon=float(lon))
                for lon, lat, *_ in first.get("geometry", {}).get("coordinates", [])
            )
            distance_meters = float(first["distance"])
            duration_seconds = float(first["duration"])
        except (KeyError, TypeError, ValueError) as exc:
            raise ExternalServiceError("Malformed OSRM response") from exc

        return RouteResult(
            coordinates=coordinates,
            distance_miles=distance_meters * METERS_TO_MILES,
            duration_hours=duration_seconds / SECONDS_PER_HOUR,
            provider=self.name,
        )


class OpenRouteServiceProvider(RouteProvider):
    """openrouteservice ``/v2/directions/{profile}`` GeoJSON response.

    Consumes meters and seconds from ``properties.summary`` and, when the
    response carries them, ``properties.ascent``/``descent`` in meters.
    """

    name = "openrouteservice"
    INVALID_LOCATION_CODES = frozenset({2010})
    NO_ROUTE_CODES = frozenset({2004, 2009})

    def __init__(
        self,
        *,
        base_url: str | None = None,
        api_key: str | None = None,
        profile: str = "driving-hgv",
        http: ProviderHttpClient | None = None,
    ):
        self.base_url = (base_url or settings.OPENROUTESERVICE_BASE_URL).rstrip("/")
        self.api_key = settings.OPENROUTESERVICE_API_KEY if api_key is None else api_key
        self.profile = profile
        self.http = http or ProviderHttpClient()

    async def fetch_route(self, origin: Coordinate, destination: Coordinate) -> RouteResult:
        if not self.api_key:
            raise MissingCredentialError("openrouteservice API key is not configured")

        response = await self.http.get(
            f"{self.base_url}/v2/directions/{self.profile}",
            params={
                "api_key": self.api_key,
                "start": f"{origin.lon:.6f},{origin.lat:.6f}",
                "end": f"{destination.lon:.6f},{destination.lat:.6f}",
            },
        )
        payload = read_json(response)

        if response.status_code >= 400:
            error = payload.get("error") if isinstance(payload, dict) else None
            code = error.get("code") if isinstance(error, dict) else None
            message = error.get("message") if isinstance(error, dict) else None
            if code in self.INVALID_LOCATION_CODES:
                raise InvalidLocationError(
                    message or "Location is outside the road network", status=response.status_code
                )
            if code in self.NO_ROUTE_CODES:
                raise NoRouteFoundError(
                    message or "No drivable route between these locations",
                    status=response.status_code,
                )
            raise ExternalServiceError(
                f"openrouteservice returned HTTP {response.status_code}",
                status=response.status_code,
            )
        return self._parse_response(payload, response.status_code)

    def _parse_response(self, payload: Any, status: int) -> RouteResult:
        features = payload.get("features") if isinstance(payload, dict) else None
        if not isinstance(features, list):
            raise ExternalServiceError("Malformed openrouteservice response", status=status)
        if not features:
            raise NoRouteFoundError("No drivable route between these locations")

        feature = features[0]
        try:
            properties = feature["properties"]
            summary = properties["summary"]
            coordinates = tuple(
                Coordinate(lat=float(lat), lon=float(lon))
                for lon, lat, *_ in feature["geometry"]["coordinates"]
            )
            distance_meters = float(summary.get("distance", 0.0))
            duration_seconds = float(summary.get("duration", 0.0))
        except (KeyError, TypeError, ValueError) as exc:
            raise ExternalServiceError("Malformed openrouteservice response") from exc

        return RouteResult(
            coordinates=coordinates,
            distance_miles=distance_meters * METERS_TO_MILES,
            duration_hours=duration_seconds / SECONDS_PER_HOUR,
            ascent_meters=_optional_float(properties.get("ascent")),
            descent_meters=_optional_float(properties.get("descent")),
            provider=self.name,
        )


def _optional_float(value: Any) -> float | None:
    if value is None:
        return None
    try:
        return float(value)
    except (TypeError, ValueError):
        return None


ROUTE_PROVIDERS: dict[str, type[RouteProvider]] = {
    OsrmRouteProvider.name: OsrmRouteProvider,
    OpenRouteServiceProvider.name: OpenRouteServiceProvider,
}


def build_route_provider(
    name: str | None = None, *, http: ProviderHttpClient | None = None
) -> RouteProvider:
    provider_name = (name or settings.ROUTING_PROVIDER).lower()
    provider_class = ROUTE_PROVIDERS.get(provider_name)
    if provider_class is None:
        raise ImproperlyConfigured(f"Unknown ROUTING_PROVIDER {provider_name!r}")
    return provider_class(http=http)


class RouteClient:
    """Single-shot routing. No retries at this layer."""

    def __init__(self, provider: RouteProvider | None = None) -> None:
        self.provider = provider or build_route_provider()

    async def route(
        self, origin: Coordinate, destination: Coordinate
    ) -> RouteResult | ServiceError:
        try:
            result = await self.provider.fetch_route(origin, destination)
        except TowPlannerError as exc:
            logger.warning("Routing via %s failed: %s", self.provider.name, exc)
            return exc.to_error()

        logger.debug(
            "Route via %s: %.1f mi, %.2f h",
            self.provider.name,
            result.distance_miles,
            result.duration_hours,
        )
        return result
