from __future__ import annotations

import datetime as dt
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, model_validator

from tow_planner.services.types import (
    FuelEntry,
    FuelPriceQuote,
    FuelStatistics,
    FuelType,
    LoadStatus,
    PriceSource,
    RouteResult,
    Trip,
    TripEstimate,
    TripStatistics,
    VehicleClass,
    VehicleProfile,
    WheelConfig,
)


class VehicleProfileSchema(BaseModel):
    model_config = ConfigDict(extra="forbid")

    vehicle_class: VehicleClass
    wheel_config: WheelConfig | None = None
    fuel_type: FuelType
    load_status: LoadStatus
    trailer_weight_lbs: float = Field(default=0.0, ge=0.0, le=100_000.0)

    @model_validator(mode="after")
    def _require_wheel_config_for_pickups(self) -> VehicleProfileSchema:
        if self.vehicle_class.is_pickup and self.wheel_config is None:
            raise ValueError("wheel_config is required for pickup truck classes")
        return self

    def to_profile(self) -> VehicleProfile:
        return VehicleProfile(
            vehicle_class=self.vehicle_class,
            wheel_config=self.wheel_config if self.vehicle_class.is_pickup else None,
            fuel_type=self.fuel_type,
            load_status=self.load_status,
            trailer_weight_lbs=self.trailer_weight_lbs,
        )


class MpgEstimateRequest(BaseModel):
    model_config = ConfigDict(extra="forbid")

    vehicle: VehicleProfileSchema
    ascent_meters: float | None = Field(default=None, ge=0.0)
    highway_fraction: float | None = Field(default=None, ge=0.0, le=1.0)
    tank_gallons: float | None = Field(default=None, gt=0.0, le=300.0)
    fuel_price_per_gallon: float | None = Field(default=None, gt=0.0, le=50.0)


class TripPlanRequest(BaseModel):
    model_config = ConfigDict(extra="forbid", str_strip_whitespace=True)

    origin: str = Field(min_length=1, max_length=300)
    destination: str = Field(min_length=1, max_length=300)
    vehicle: VehicleProfileSchema
    is_round_trip: bool = False
    fuel_price_per_gallon: float | None = Field(default=None, gt=0.0, le=50.0)
    use_route_hints: bool = True


class TripConfirmRequest(BaseModel):
    """The estimate the user accepted, as returned by the trip-plan endpoint.

    Extra keys (such as the route geometry) are ignored so a trip-plan response
    can be posted back unchanged together with the vehicle.
    """

    model_config = ConfigDict(extra="ignore", str_strip_whitespace=True)

    origin: str = Field(min_length=1, max_length=300)
    destination: str = Field(min_length=1, max_length=300)
    vehicle: VehicleProfileSchema
    is_round_trip: bool = False
    one_way_miles: float | None = Field(default=None, ge=0.0)
    distance_miles: float = Field(ge=0.0)
    duration_hours: float = Field(default=0.0, ge=0.0)
    estimated_mpg: float = Field(gt=0.0)
    fuel_gallons: float = Field(ge=0.0)
    fuel_cost: float = Field(ge=0.0)
    cost_per_mile: float = Field(ge=0.0)
    price_per_gallon: float = Field(gt=0.0, le=50.0)
    price_source: PriceSource = PriceSource.USER
    trip_date: dt.date | None = None

    def to_estimate(self) -> TripEstimate:
        one_way_miles = self.one_way_miles
        if one_way_miles is None:
            one_way_miles = self.distance_miles / 2 if self.is_round_trip else self.distance_miles
        return TripEstimate(
            origin=self.origin,
            destination=self.destination,
            is_round_trip=self.is_round_trip,
            one_way_miles=one_way_miles,
            distance_miles=self.distance_miles,
            duration_hours=self.duration_hours,
            estimated_mpg=self.estimated_mpg,
            fuel_gallons=self.fuel_gallons,
            fuel_cost=self.fuel_cost,
            cost_per_mile=self.cost_per_mile,
            price_per_gallon=self.price_per_gallon,
            price_source=self.price_source,
        )


class FuelEntryRequest(BaseModel):
    model_config = ConfigDict(extra="forbid")

    odometer: float = Field(ge=0.0)
    gallons: float = Field(gt=0.0, le=1000.0)
    price_per_gallon: float = Field(gt=0.0, le=50.0)
    entry_date: dt.date | None = None


class CoordinateResponse(BaseModel):
    lat: float
    lon: float


class PlaceResponse(BaseModel):
    label: str
    coordinates: CoordinateResponse


class RouteResponse(BaseModel):
    provider: str
    distance_miles: float
    duration_hours: float
    ascent_meters: float | None
    descent_meters: float | None
    geometry: dict[str, Any]

    @classmethod
    def from_result(cls, route: RouteResult) -> RouteResponse:
        return cls(
            provider=route.provider,
            distance_miles=round(route.distance_miles, 3),
            duration_hours=round(route.duration_hours, 3),
            ascent_meters=route.ascent_meters,
            descent_meters=route.descent_meters,
            geometry={
                "type": "LineString",
                "coordinates": [[point.lon, point.lat] for point in route.coordinates],
            },
        )


class FuelPriceResponse(BaseModel):
    fuel_type: FuelType
    price_per_gallon: float
    source: PriceSource
    period: str | None

    @classmethod
    def from_quote(cls, quote: FuelPriceQuote) -> FuelPriceResponse:
        return cls(
            fuel_type=quote.fuel_type,
            price_per_gallon=round(quote.price_per_gallon, 3),
            source=quote.source,
            period=quote.period,
        )


class MpgEstimateResponse(BaseModel):
    base_mpg: float
    adjustment_factor: float
    estimated_mpg: float
    range_miles: float | None = None
    cost_per_mile: float | None = None


class TripEstimateResponse(BaseModel):
    origin: str
    destination: str
    is_round_trip: bool
    one_way_miles: float
    distance_miles: float
    duration_hours: float
    estimated_mpg: float
    fuel_gallons: float
    fuel_cost: float
    cost_per_mile: float
    price_per_gallon: float
    price_source: PriceSource
    route: RouteResponse | None

    @classmethod
    def from_estimate(cls, estimate: TripEstimate) -> TripEstimateResponse:
        return cls(
            origin=estimate.origin,
            destination=estimate.destination,
            is_round_trip=estimate.is_round_trip,
            one_way_miles=round(estimate.one_way_miles, 3),
            distance_miles=round(estimate.distance_miles, 3),
            duration_hours=round(estimate.duration_hours, 2),
            estimated_mpg=round(estimate.estimated_mpg, 2),
            fuel_gallons=round(estimate.fuel_gallons, 3),
            fuel_cost=round(estimate.fuel_cost, 2),
            cost_per_mile=round(estimate.cost_per_mile, 3),
            price_per_gallon=round(estimate.price_per_gallon, 3),
            price_source=estimate.price_source,
            route=RouteResponse.from_result(estimate.route) if estimate.route else None,
        )


class TripResponse(BaseModel):
    id: str
    date: dt.date
    origin: str
    destination: str
    is_round_trip: bool
    distance_miles: float
    duration_hours: float
    fuel_gallons: float
    fuel_cost: float
    mpg: float
    cost_per_mile: float
    price_per_gallon: float
    vehicle: VehicleProfileSchema

    @classmethod
    def from_trip(cls, trip: Trip) -> TripResponse:
        profile = trip.vehicle_profile
        return cls(
            id=trip.id,
            date=trip.date,
            origin=trip.origin,
            destination=trip.destination,
            is_round_trip=trip.is_round_trip,
            distance_miles=round(trip.distance_miles, 2),
            duration_hours=round(trip.duration_hours, 2),
            fuel_gallons=round(trip.fuel_gallons, 2),
            fuel_cost=round(trip.fuel_cost, 2),
            mpg=round(trip.mpg, 1),
            cost_per_mile=round(trip.cost_per_mile, 3),
            price_per_gallon=round(trip.price_per_gallon, 3),
            vehicle=VehicleProfileSchema(
                vehicle_class=profile.vehicle_class,
                wheel_config=profile.wheel_config,
                fuel_type=profile.fuel_type,
                load_status=profile.load_status,
                trailer_weight_lbs=profile.trailer_weight_lbs,
            ),
        )


class TripStatisticsResponse(BaseModel):
    trip_count: int
    total_miles: float
    total_hours: float
    total_fuel_gallons: float
    total_fuel_cost: float
    average_mpg: float
    average_cost_per_mile: float
    mpg_by_vehicle_class: dict[str, float]

    @classmethod
    def from_statistics(cls, stats: TripStatistics) -> TripStatisticsResponse:
        return cls(
            trip_count=stats.trip_count,
            total_miles=round(stats.total_miles, 2),
            total_hours=round(stats.total_hours, 2),
            total_fuel_gallons=round(stats.total_fuel_gallons, 2),
            total_fuel_cost=round(stats.total_fuel_cost, 2),
            average_mpg=round(stats.average_mpg, 1),
            average_cost_per_mile=round(stats.average_cost_per_mile, 3),
            mpg_by_vehicle_class={
                name: round(mpg, 1) for name, mpg in stats.by_vehicle_class.items()
            },
        )


class FuelEntryResponse(BaseModel):
    id: str
    date: dt.date
    odometer: float
    gallons: float
    price_per_gallon: float
    total_cost: float
    mpg: float

    @classmethod
    def from_entry(cls, entry: FuelEntry) -> FuelEntryResponse:
        return cls(
            id=entry.id,
            date=entry.date,
            odometer=entry.odometer,
            gallons=round(entry.gallons, 3),
            price_per_gallon=round(entry.price_per_gallon, 3),
            total_cost=round(entry.total_cost, 2),
            mpg=round(entry.mpg, 1),
        )


class FuelStatisticsResponse(BaseModel):
    entry_count: int
    total_gallons: float
    total_cost: float
    total_miles: float
    average_mpg: float
    cost_per_mile: float

    @classmethod
    def from_statistics(cls, stats: FuelStatistics) -> FuelStatisticsResponse:
        return cls(
            entry_count=stats.entry_count,
            total_gallons=round(stats.total_gallons, 2),
            total_cost=round(stats.total_cost, 2),
            total_miles=round(stats.total_miles, 1),
            average_mpg=round(stats.average_mpg, 1),
            cost_per_mile=round(stats.cost_per_mile, 3),
        )
