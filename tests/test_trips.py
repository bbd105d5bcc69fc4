from __future__ import annotations

from datetime import date

import pytest

from tow_planner.services.trips import FuelLog, TripLog, summarize_fuel_entries, summarize_trips
from tow_planner.services.types import (
    FuelStatistics,
    FuelType,
    LoadStatus,
    Trip,
    TripStatistics,
    VehicleClass,
    VehicleProfile,
    WheelConfig,
)

PICKUP = VehicleProfile(
    vehicle_class=VehicleClass.CLASS2,
    wheel_config=WheelConfig.DRW,
    fuel_type=FuelType.DIESEL,
    load_status=LoadStatus.TOWING,
    trailer_weight_lbs=9000,
)
MOTORHOME = VehicleProfile(
    vehicle_class=VehicleClass.CLASS_A,
    fuel_type=FuelType.GAS,
    load_status=LoadStatus.LOADED,
)


def _trip(
    trip_id: str, profile: VehicleProfile, miles: float, gallons: float, cost: float
) -> Trip:
    return Trip(
        id=trip_id,
        date=date(2024, 6, 1),
        origin="Denver, CO",
        destination="Moab, UT",
        is_round_trip=False,
        distance_miles=miles,
        duration_hours=miles / 60,
        fuel_gallons=gallons,
        fuel_cost=cost,
        mpg=miles / gallons,
        cost_per_mile=cost / miles,
        price_per_gallon=cost / gallons,
        vehicle_profile=profile,
    )


def test_empty_log_has_zero_statistics() -> None:
    assert TripLog().statistics() == TripStatistics()
    assert summarize_trips([]) == TripStatistics()


def test_trip_log_add_get_and_clear() -> None:
    log = TripLog()
    trip = _trip("a1", PICKUP, 300.0, 30.0, 120.0)

    assert log.add(trip) is trip
    assert len(log) == 1
    assert log.get("a1") == trip
    assert log.get("missing") is None

    log.clear()
    assert log.all() == []


def test_all_returns_a_copy() -> None:
    log = TripLog()
    log.add(_trip("a1", PICKUP, 300.0, 30.0, 120.0))

    log.all().clear()

    assert len(log) == 1


def test_statistics_are_distance_weighted() -> None:
    trips = [
        _trip("a1", PICKUP, 300.0, 30.0, 120.0),
        _trip("a2", PICKUP, 100.0, 20.0, 80.0),
        _trip("b1", MOTORHOME, 200.0, 25.0, 87.5),
    ]

    stats = summarize_trips(trips)

    assert stats.trip_count == 3
    assert stats.total_miles == pytest.approx(600.0)
    assert stats.total_hours == pytest.approx(10.0)
    assert stats.total_fuel_gallons == pytest.approx(75.0)
    assert stats.total_fuel_cost == pytest.approx(287.5)
    assert stats.average_mpg == pytest.approx(8.0)
    assert stats.average_cost_per_mile == pytest.approx(287.5 / 600.0)
    assert stats.by_vehicle_class == {
        "class2": pytest.approx(400.0 / 50.0),
        "classA": pytest.approx(8.0),
    }


def test_zero_fuel_trips_do_not_divide_by_zero() -> None:
    trip = Trip(
        id="z",
        date=date(2024, 6, 1),
        origin="A",
        destination="A",
        is_round_trip=False,
        distance_miles=0.0,
        duration_hours=0.0,
        fuel_gallons=0.0,
        fuel_cost=0.0,
        mpg=0.0,
        cost_per_mile=0.0,
        price_per_gallon=3.5,
        vehicle_profile=MOTORHOME,
    )

    stats = summarize_trips([trip])

    assert stats.trip_count == 1
    assert stats.average_mpg == 0
    assert stats.average_cost_per_mile == 0
    assert stats.by_vehicle_class == {"classA": 0.0}


def test_first_fill_up_has_no_mpg() -> None:
    log = FuelLog()

    entry = log.record(
        odometer=42_000, gallons=30, price_per_gallon=4.1, entry_date=date(2024, 5, 1)
    )

    assert entry.mpg == 0.0
    assert entry.total_cost == pytest.approx(123.0)
    assert entry.date == date(2024, 5, 1)
    assert len(log) == 1


def test_fill_up_mpg_uses_miles_since_previous_entry() -> None:
    log = FuelLog()
    log.record(odometer=42_000, gallons=30, price_per_gallon=4.0)

    entry = log.record(odometer=42_330, gallons=33, price_per_gallon=4.0)

    assert entry.mpg == pytest.approx(10.0)


def test_odometer_going_backwards_records_no_mpg() -> None:
    log = FuelLog()
    log.record(odometer=42_000, gallons=30, price_per_gallon=4.0)

    entry = log.record(odometer=41_900, gallons=10, price_per_gallon=4.0)

    assert entry.mpg == 0.0
    assert log.statistics().total_miles == 0.0
    assert log.statistics().cost_per_mile == 0.0


def test_fuel_statistics_average_only_measured_fill_ups() -> None:
    log = FuelLog()
    log.record(odometer=10_000, gallons=20, price_per_gallon=4.0)
    log.record(odometer=10_240, gallons=20, price_per_gallon=4.0)
    log.record(odometer=10_600, gallons=30, price_per_gallon=5.0)

    stats = log.statistics()

    assert stats.entry_count == 3
    assert stats.total_gallons == pytest.approx(70.0)
    assert stats.total_cost == pytest.approx(310.0)
    assert stats.total_miles == pytest.approx(600.0)
    assert stats.average_mpg == pytest.approx(12.0)
    assert stats.cost_per_mile == pytest.approx(310.0 / 600.0)


def test_fuel_statistics_for_no_entries() -> None:
    assert summarize_fuel_entries([]) == FuelStatistics()
    assert FuelLog().statistics() == FuelStatistics()
