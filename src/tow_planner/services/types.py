from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date
from enum import StrEnum


class ErrorKind(StrEnum):
    NOT_FOUND = "not_found"
    NO_ROUTE = "no_route"
    INVALID_LOCATION = "invalid_location"
    PROVIDER_ERROR = "provider_error"
    NETWORK_ERROR = "network_error"
    TIMEOUT = "timeout"
    MISSING_CREDENTIAL = "missing_credential"
    SUPERSEDED = "superseded"


class VehicleClass(StrEnum):
    CLASS1 = "class1"
    CLASS2 = "class2"
    CLASS3 = "class3"
    CLASS4 = "class4"
    CLASS_A = "classA"
    CLASS_B = "classB"
    CLASS_B_PLUS = "classBPlus"
    CLASS_C = "classC"
    SUPER_C = "superC"

    @property
    def is_pickup(self) -> bool:
        return self in PICKUP_CLASSES


PICKUP_CLASSES = frozenset(
    {VehicleClass.CLASS1, VehicleClass.CLASS2, VehicleClass.CLASS3, VehicleClass.CLASS4}
)


class WheelConfig(StrEnum):
    SRW = "srw"
    DRW = "drw"


class FuelType(StrEnum):
    GAS = "gas"
    DIESEL = "diesel"


class LoadStatus(StrEnum):
    EMPTY = "empty"
    LOADED = "loaded"
    TOWING = "towing"


class PriceSource(StrEnum):
    PROVIDER = "provider"
    DEFAULT = "default"
    USER = "user"


@dataclass(slots=True, frozen=True)
class Coordinate:
    lat: float
    lon: float


@dataclass(slots=True, frozen=True)
class GeocodeCacheEntry:
    key: str
    coordinates: Coordinate
    timestamp: float


@dataclass(slots=True, frozen=True)
class PlaceSuggestion:
    label: str
    coordinates: Coordinate


@dataclass(slots=True, frozen=True)
class RouteResult:
    """Driving route normalized to miles and hours."""

    coordinates: tuple[Coordinate, ...]
    distance_miles: float
    duration_hours: float
    ascent_meters: float | None = None
    descent_meters: float | None = None
    provider: str = ""


@dataclass(slots=True, frozen=True)
class VehicleProfile:
    vehicle_class: VehicleClass
    fuel_type: FuelType
    load_status: LoadStatus
    wheel_config: WheelConfig | None = None
    trailer_weight_lbs: float = 0.0

    def __post_init__(self) -> None:
        if self.vehicle_class.is_pickup and self.wheel_config is None:
            raise ValueError(f"{self.vehicle_class} requires a wheel configuration")
        if self.trailer_weight_lbs < 0:
            raise ValueError("Trailer weight cannot be negative")


@dataclass(slots=True, frozen=True)
class RouteHint:
    ascent_meters: float = 0.0
    highway_fraction: float = 0.0


@dataclass(slots=True, frozen=True)
class FuelPriceQuote:
    price_per_gallon: float
    source: PriceSource
    fuel_type: FuelType
    period: str | None = None


@dataclass(slots=True, frozen=True)
class ServiceError:
    kind: ErrorKind
    message: str
    status: int | None = None


@dataclass(slots=True, frozen=True)
class PlanError:
    step: str
    error: ServiceError

    @property
    def kind(self) -> ErrorKind:
        return self.error.kind

    @property
    def message(self) -> str:
        return f"{STEP_MESSAGES.get(self.step, 'Trip planning failed')}: {self.error.message}"


STEP_MESSAGES = {
    "geocode_origin": "Could not find the starting location",
    "geocode_destination": "Could not find the destination",
    "route": "Could not find a route between these locations",
    "plan": "Trip plan was replaced by a newer request",
}


@dataclass(slots=True, frozen=True)
class TripEstimate:
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
    route: RouteResult | None = None
    route_hint: RouteHint | None = None


@dataclass(slots=True, frozen=True)
class Trip:
    id: str
    date: date
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
    vehicle_profile: VehicleProfile
    route: RouteResult | None = None


@dataclass(slots=True, frozen=True)
class TripStatistics:
    trip_count: int = 0
    total_miles: float = 0.0
    total_hours: float = 0.0
    total_fuel_gallons: float = 0.0
    total_fuel_cost: float = 0.0
    average_mpg: float = 0.0
    average_cost_per_mile: float = 0.0
    by_vehicle_class: dict[str, float] = field(default_factory=dict)


@dataclass(slots=True, frozen=True)
class FuelEntry:
    """One fill-up; ``mpg`` is measured against the previous odometer reading."""

    id: str
    date: date
    odometer: float
    gallons: float
    price_per_gallon: float
    total_cost: float
    mpg: float


@dataclass(slots=True, frozen=True)
class FuelStatistics:
    entry_count: int = 0
    total_gallons: float = 0.0
    total_cost: float = 0.0
    total_miles: float = 0.0
    average_mpg: float = 0.0
    cost_per_mile: float = 0.0
