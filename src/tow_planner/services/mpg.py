"""Fuel economy estimates for pickups and motorhomes.

All functions here are pure: no I/O and no rounding. Display rounding is left
to the caller.
"""

from __future__ import annotations

from tow_planner.services.types import (
    FuelType,
    LoadStatus,
    RouteHint,
    VehicleClass,
    VehicleProfile,
    WheelConfig,
)

TRAILER_PENALTY_PER_LB = 0.000001
ASCENT_PENALTY_PER_METER = 0.00005
HIGHWAY_BONUS = 0.1
MIN_ADJUSTMENT_FACTOR = 0.01

# Average speeds (mph) bounding the highway-share estimate.
CITY_SPEED_MPH = 35.0
HIGHWAY_SPEED_MPH = 65.0

_PICKUP_BASE_MPG: dict[VehicleClass, dict[WheelConfig, dict[FuelType, tuple[int, int, int]]]] = {
    VehicleClass.CLASS1: {
        WheelConfig.SRW: {FuelType.GAS: (18, 15, 10), FuelType.DIESEL: (22, 18, 12)},
        WheelConfig.DRW: {FuelType.GAS: (17, 14, 9), FuelType.DIESEL: (21, 17, 11)},
    },
    VehicleClass.CLASS2: {
        WheelConfig.SRW: {FuelType.GAS: (16, 13, 8), FuelType.DIESEL: (20, 16, 10)},
        WheelConfig.DRW: {FuelType.GAS: (15, 12, 7), FuelType.DIESEL: (19, 15, 9)},
    },
    VehicleClass.CLASS3: {
        WheelConfig.SRW: {FuelType.GAS: (14, 11, 7), FuelType.DIESEL: (18, 14, 9)},
        WheelConfig.DRW: {FuelType.GAS: (13, 10, 6), FuelType.DIESEL: (17, 13, 8)},
    },
    VehicleClass.CLASS4: {
        WheelConfig.SRW: {FuelType.GAS: (12, 9, 6), FuelType.DIESEL: (16, 12, 8)},
        WheelConfig.DRW: {FuelType.GAS: (11, 8, 5), FuelType.DIESEL: (15, 11, 7)},
    },
}

_MOTORHOME_BASE_MPG: dict[VehicleClass, dict[FuelType, tuple[int, int, int]]] = {
    VehicleClass.CLASS_A: {FuelType.GAS: (8, 6, 4), FuelType.DIESEL: (10, 8, 5)},
    VehicleClass.CLASS_B: {FuelType.GAS: (15, 12, 8), FuelType.DIESEL: (18, 15, 10)},
    VehicleClass.CLASS_B_PLUS: {FuelType.GAS: (13, 10, 7), FuelType.DIESEL: (16, 13, 9)},
    VehicleClass.CLASS_C: {FuelType.GAS: (12, 9, 6), FuelType.DIESEL: (15, 12, 8)},
    VehicleClass.SUPER_C: {FuelType.GAS: (10, 8, 5), FuelType.DIESEL: (13, 10, 7)},
}

_LOAD_INDEX = {LoadStatus.EMPTY: 0, LoadStatus.LOADED: 1, LoadStatus.TOWING: 2}


def base_mpg(
    vehicle_class: VehicleClass,
    wheel_config: WheelConfig | None,
    fuel_type: FuelType,
    load_status: LoadStatus,
) -> float:
    """Nominal MPG from the static table.

    Pickup classes are keyed by wheel configuration; motorhome classes ignore it.
    """
    index = _LOAD_INDEX[load_status]
    if vehicle_class.is_pickup:
        if wheel_config is None:
            raise ValueError(f"{vehicle_class} requires a wheel configuration")
        return float(_PICKUP_BASE_MPG[vehicle_class][wheel_config][fuel_type][index])
    return float(_MOTORHOME_BASE_MPG[vehicle_class][fuel_type][index])


def base_mpg_table() -> dict[tuple[VehicleClass, WheelConfig | None, FuelType, LoadStatus], float]:
    table: dict[tuple[VehicleClass, WheelConfig | None, FuelType, LoadStatus], float] = {}
    for vehicle_class, by_wheel in _PICKUP_BASE_MPG.items():
        for wheel_config, by_fuel in by_wheel.items():
            for fuel_type, values in by_fuel.items():
                for load_status, index in _LOAD_INDEX.items():
                    table[(vehicle_class, wheel_config, fuel_type, load_status)] = float(
                        values[index]
                    )
    for vehicle_class, by_fuel in _MOTORHOME_BASE_MPG.items():
        for fuel_type, values in by_fuel.items():
            for load_status, index in _LOAD_INDEX.items():
                table[(vehicle_class, None, fuel_type, load_status)] = float(values[index])
    return table


def adjustment_factor(profile: VehicleProfile, route_hint: RouteHint | None = None) -> float:
    factor = 1.0
    if profile.load_status == LoadStatus.TOWING and profile.trailer_weight_lbs:
        factor *= max(1 - profile.trailer_weight_lbs * TRAILER_PENALTY_PER_LB, 0.0)

    if route_hint is not None:
        ascent = max(route_hint.ascent_meters, 0.0)
        factor *= max(1 - ascent * ASCENT_PENALTY_PER_METER, 0.0)
        highway_fraction = min(max(route_hint.highway_fraction, 0.0), 1.0)
        factor *= 1 + highway_fraction * HIGHWAY_BONUS

    return max(factor, MIN_ADJUSTMENT_FACTOR)


def estimate_mpg(profile: VehicleProfile, route_hint: RouteHint | None = None) -> float:
    base = base_mpg(
        profile.vehicle_class, profile.wheel_config, profile.fuel_type, profile.load_status
    )
    return base * adjustment_factor(profile, route_hint)


def highway_fraction_from_speed(distance_miles: float, duration_hours: float) -> float:
    """Share of highway driving inferred from the route's average speed.

    35 mph or slower counts as all surface streets, 65 mph or faster as all
    highway, linear in between.
    """
    if duration_hours <= 0 or distance_miles <= 0:
        return 0.0
    average_speed = distance_miles / duration_hours
    fraction = (average_speed - CITY_SPEED_MPH) / (HIGHWAY_SPEED_MPH - CITY_SPEED_MPH)
    return min(max(fraction, 0.0), 1.0)


def range_miles(
    profile: VehicleProfile, tank_gallons: float, route_hint: RouteHint | None = None
) -> float:
    return max(tank_gallons, 0.0) * estimate_mpg(profile, route_hint)


def fuel_cost_per_mile(
    profile: VehicleProfile, price_per_gallon: float, route_hint: RouteHint | None = None
) -> float:
    return price_per_gallon / estimate_mpg(profile, route_hint)
