from __future__ import annotations

import logging
from collections.abc import Sequence

from django.conf import settings

from tow_planner.exceptions import ExternalServiceError, TowPlannerError
from tow_planner.services.geo import climb_totals, sample_polyline
from tow_planner.services.http import ProviderHttpClient, read_json
from tow_planner.services.types import Coordinate

logger = logging.getLogger(__name__)


class ElevationClient:
    """open-elevation ``/api/v1/lookup`` client. Elevations are in meters."""

    def __init__(
        self,
        *,
        base_url: str | None = None,
        sample_points: int | None = None,
        http: ProviderHttpClient | None = None,
    ) -> None:
        self.base_url = (settings.ELEVATION_BASE_URL if base_url is None else base_url).rstrip("/")
        self.sample_points = (
            settings.ELEVATION_SAMPLE_POINTS if sample_points is None else sample_points
        )
        self.http = http or ProviderHttpClient()

    @property
    def enabled(self) -> bool:
        return bool(self.base_url)

    async def elevations(self, points: Sequence[Coordinate]) -> list[float]:
        if not points:
            return []

        locations = "|".join(f"{point.lat:.6f},{point.lon:.6f}" for point in points)
        response = await self.http.get(
            f"{self.base_url}/api/v1/lookup", params={"locations": locations}
        )
        if response.status_code >= 400:
            raise ExternalServiceError(
                f"Elevation provider returned HTTP {response.status_code}",
                status=response.status_code,
            )

        payload = read_json(response)
        results = payload.get("results") if isinstance(payload, dict) else None
        if not isinstance(results, list) or len(results) != len(points):
            raise ExternalServiceError("Malformed elevation response")
        try:
            return [float(result["elevation"]) for result in results]
        except (KeyError, TypeError, ValueError) as exc:
            raise ExternalServiceError("Malformed elevation response") from exc

    async def climb(self, route_points: Sequence[Coordinate]) -> tuple[float, float] | None:
        """Ascent and descent in meters along a sampled route, or None on failure."""
        if not self.enabled or len(route_points) < 2:
            return None

        sampled = sample_polyline(route_points, self.sample_points)
        try:
            profile = await self.elevations(sampled)
        except TowPlannerError as exc:
            logger.warning("Elevation lookup failed, skipping elevation adjustment: %s", exc)
            return None
        return climb_totals(profile)
