from __future__ import annotations

import asyncio
import logging
import threading
import uuid
from datetime import date

from django.conf import settings
from django.utils import timezone

from tow_planner.services.elevation import ElevationClient
from tow_planner.services.fuel_prices import FuelPriceClient
from tow_planner.services.geocoding import GeocodingClient
from tow_planner.services.mpg import estimate_mpg, highway_fraction_from_speed
from tow_planner.services.routing import RouteClient
from tow_planner.services.types import (
    ErrorKind,
    FuelPriceQuote,
    PlanError,
    PriceSource,
    RouteHint,
    RouteResult,
    ServiceError,
    Trip,
    TripEstimate,
    VehicleProfile,
)

logger = logging.getLogger(__name__)


class RequestSequence:
    """Issues increasing tokens so only the newest in-flight plan is kept."""

    def __init__(self) -> None:
        self._latest = 0
        self._lock = threading.Lock()

    def issue(self) -> int:
        with self._lock:
            self._latest += 1
            return self._latest

    def is_current(self, token: int) -> bool:
        with self._lock:
            return token == self._latest


def calculate_fuel(
    distance_miles: float, mpg: float, price_per_gallon: float
) -> tuple[float, float, float]:
    """Gallons, cost and cost per mile, guarded against zero distance or MPG."""
    fuel_gallons = distance_miles / mpg if mpg > 0 else 0.0
    fuel_cost = fuel_gallons * price_per_gallon
    cost_per_mile = fuel_cost / distance_miles if distance_miles > 0 else 0.0
    return fuel_gallons, fuel_cost, cost_per_mile


class TripPlanner:
    """Geocode, route, estimate MPG and price a trip.

    Geocoding and routing failures come back as ``PlanError``; the remaining
    steps are arithmetic and cannot fail, so a ``TripEstimate`` is always
    complete.
    """

    def __init__(
        self,
        geocoding_client: GeocodingClient | None = None,
        route_client: RouteClient | None = None,
        fuel_price_client: FuelPriceClient | None = None,
        elevation_client: ElevationClient | None = None,
    ) -> None:
        self.geocoding_client = geocoding_client or GeocodingClient()
        self.route_client = route_client or RouteClient()
        self.fuel_price_client = fuel_price_client or FuelPriceClient()
        self.elevation_client = elevation_client or ElevationClient()

    async def plan_trip(
        self,
        origin_text: str,
        destination_text: str,
        profile: VehicleProfile,
        is_round_trip: bool = False,
        *,
        fuel_price: float | None = None,
        use_route_hints: bool = True,
        sequence: RequestSequence | None = None,
    ) -> TripEstimate | PlanError:
        token = sequence.issue() if sequence is not None else None

        price_task: asyncio.Task[FuelPriceQuote] | None = None
        if fuel_price is None:
            price_task = asyncio.create_task(
                self.fuel_price_client.current_price(profile.fuel_type)
            )

        try:
            result = await self._plan(
                origin_text,
                destination_text,
                profile,
                is_round_trip,
                fuel_price=fuel_price,
                price_task=price_task,
                use_route_hints=use_route_hints,
            )
        finally:
            if price_task is not None and not price_task.done():
                price_task.cancel()

        if sequence is not None and token is not None and not sequence.is_current(token):
            logger.debug("Discarding superseded plan %s -> %s", origin_text, destination_text)
            return PlanError(
                step="plan",
                error=ServiceError(
                    kind=ErrorKind.SUPERSEDED, message="A newer trip plan is in progress"
                ),
            )
        return result

    async def _plan(
        self,
        origin_text: str,
        destination_text: str,
        profile: VehicleProfile,
        is_round_trip: bool,
        *,
        fuel_price: float | None,
        price_task: asyncio.Task[FuelPriceQuote] | None,
        use_route_hints: bool,
    ) -> TripEstimate | PlanError:
        origin, destination = await asyncio.gather(
            self.geocoding_client.geocode(origin_text),
            self.geocoding_client.geocode(destination_text),
        )
        if isinstance(origin, ServiceError):
            return PlanError(step="geocode_origin", error=origin)
        if isinstance(destination, ServiceError):
            return PlanError(step="geocode_destination", error=destination)

        route = await self.route_client.route(origin, destination)
        if isinstance(route, ServiceError):
            return PlanError(step="route", error=route)

        route_hint = await self._route_hint(route) if use_route_hints else None
        mpg = estimate_mpg(profile, route_hint)

        if price_task is not None:
            quote = await price_task
            price_per_gallon = quote.price_per_gallon
            price_source = quote.source
        else:
            price_per_gallon = float(fuel_price or 0.0)
            price_source = PriceSource.USER

        multiplier = 2 if is_round_trip else 1
        distance_miles = route.distance_miles * multiplier
        fuel_gallons, fuel_cost, cost_per_mile = calculate_fuel(
            distance_miles, mpg, price_per_gallon
        )

        logger.info(
            "Planned %s -> %s: %.1f mi at %.1f mpg, $%.2f",
            origin_text,
            destination_text,
            distance_miles,
            mpg,
            fuel_cost,
        )
        return TripEstimate(
            origin=origin_text.strip(),
            destination=destination_text.strip(),
            is_round_trip=is_round_trip,
            one_way_miles=route.distance_miles,
            distance_miles=distance_miles,
            duration_hours=route.duration_hours * multiplier,
            estimated_mpg=mpg,
            fuel_gallons=fuel_gallons,
            fuel_cost=fuel_cost,
            cost_per_mile=cost_per_mile,
            price_per_gallon=price_per_gallon,
            price_source=price_source,
            route=route,
            route_hint=route_hint,
        )

    async def _route_hint(self, route: RouteResult) -> RouteHint:
        ascent = route.ascent_meters
        if ascent is None:
            climb = await self.elevation_client.climb(route.coordinates)
            ascent = climb[0] if climb is not None else 0.0
        return RouteHint(
            ascent_meters=ascent,
            highway_fraction=highway_fraction_from_speed(
                route.distance_miles, route.duration_hours
            ),
        )

    def confirm(
        self, estimate: TripEstimate, profile: VehicleProfile, trip_date: date | None = None
    ) -> Trip:
        duration_hours = estimate.duration_hours
        if duration_hours <= 0 and estimate.distance_miles > 0:
            duration_hours = estimate.distance_miles / settings.AVERAGE_SPEED_MPH

        return Trip(
            id=uuid.uuid4().hex,
            date=trip_date or timezone.localdate(),
            origin=estimate.origin,
            destination=estimate.destination,
            is_round_trip=estimate.is_round_trip,
            distance_miles=estimate.distance_miles,
            duration_hours=duration_hours,
            fuel_gallons=estimate.fuel_gallons,
            fuel_cost=estimate.fuel_cost,
            mpg=estimate.estimated_mpg,
            cost_per_mile=estimate.cost_per_mile,
            price_per_gallon=estimate.price_per_gallon,
            vehicle_profile=profile,
            route=estimate.route,
        )
