from __future__ import annotations

import threading
import uuid
from datetime import date

import polars as pl
from django.utils import timezone

from tow_planner.services.types import FuelEntry, FuelStatistics, Trip, TripStatistics


class TripLog:
    """Append-only, in-memory log of confirmed trips."""

    def __init__(self) -> None:
        self._trips: list[Trip] = []
        self._lock = threading.Lock()

    def __len__(self) -> int:
        with self._lock:
            return len(self._trips)

    def add(self, trip: Trip) -> Trip:
        with self._lock:
            self._trips.append(trip)
        return trip

    def all(self) -> list[Trip]:
        with self._lock:
            return list(self._trips)

    def get(self, trip_id: str) -> Trip | None:
        return next((trip for trip in self.all() if trip.id == trip_id), None)

    def clear(self) -> None:
        with self._lock:
            self._trips.clear()

    def statistics(self) -> TripStatistics:
        return summarize_trips(self.all())


def summarize_trips(trips: list[Trip]) -> TripStatistics:
    """Totals and fleet averages; averages are distance-weighted, not per-trip means."""
    if not trips:
        return TripStatistics()

    frame = pl.DataFrame(
        {
            "vehicle_class": [str(trip.vehicle_profile.vehicle_class) for trip in trips],
            "miles": [trip.distance_miles for trip in trips],
            "hours": [trip.duration_hours for trip in trips],
            "gallons": [trip.fuel_gallons for trip in trips],
            "cost": [trip.fuel_cost for trip in trips],
        },
        schema={
            "vehicle_class": pl.Utf8,
            "miles": pl.Float64,
            "hours": pl.Float64,
            "gallons": pl.Float64,
            "cost": pl.Float64,
        },
    )

    totals = frame.select(
        pl.len().alias("trip_count"),
        pl.col("miles").sum(),
        pl.col("hours").sum(),
        pl.col("gallons").sum(),
        pl.col("cost").sum(),
    ).row(0, named=True)

    by_class = (
        frame.group_by("vehicle_class")
        .agg(pl.col("miles").sum(), pl.col("gallons").sum())
        .with_columns(
            pl.when(pl.col("gallons") > 0)
            .then(pl.col("miles") / pl.col("gallons"))
            .otherwise(0.0)
            .alias("mpg")
        )
        .sort("vehicle_class")
    )

    total_miles = float(totals["miles"])
    total_gallons = float(totals["gallons"])
    total_cost = float(totals["cost"])
    return TripStatistics(
        trip_count=int(totals["trip_count"]),
        total_miles=total_miles,
        total_hours=float(totals["hours"]),
        total_fuel_gallons=total_gallons,
        total_fuel_cost=total_cost,
        average_mpg=total_miles / total_gallons if total_gallons > 0 else 0.0,
        average_cost_per_mile=total_cost / total_miles if total_miles > 0 else 0.0,
        by_vehicle_class={
            row["vehicle_class"]: float(row["mpg"]) for row in by_class.iter_rows(named=True)
        },
    )


class FuelLog:
    """In-memory fill-up log. Entries are kept in the order they were recorded."""

    def __init__(self) -> None:
        self._entries: list[FuelEntry] = []
        self._lock = threading.Lock()

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)

    def record(
        self,
        odometer: float,
        gallons: float,
        price_per_gallon: float,
        entry_date: date | None = None,
    ) -> FuelEntry:
        with self._lock:
            previous = self._entries[-1] if self._entries else None
            miles_driven = odometer - previous.odometer if previous is not None else 0.0
            entry = FuelEntry(
                id=uuid.uuid4().hex,
                date=entry_date or timezone.localdate(),
                odometer=odometer,
                gallons=gallons,
                price_per_gallon=price_per_gallon,
                total_cost=gallons * price_per_gallon,
                mpg=miles_driven / gallons if miles_driven > 0 and gallons > 0 else 0.0,
            )
            self._entries.append(entry)
        return entry

    def all(self) -> list[FuelEntry]:
        with self._lock:
            return list(self._entries)

    def statistics(self) -> FuelStatistics:
        return summarize_fuel_entries(self.all())


def summarize_fuel_entries(entries: list[FuelEntry]) -> FuelStatistics:
    """Fill-up totals. Average MPG skips entries with no measured MPG (the first fill-up)."""
    if not entries:
        return FuelStatistics()

    frame = pl.DataFrame(
        {
            "odometer": [entry.odometer for entry in entries],
            "gallons": [entry.gallons for entry in entries],
            "cost": [entry.total_cost for entry in entries],
            "mpg": [entry.mpg for entry in entries],
        },
        schema={
            "odometer": pl.Float64,
            "gallons": pl.Float64,
            "cost": pl.Float64,
            "mpg": pl.Float64,
        },
    )

    totals = frame.select(
        pl.len().alias("entry_count"),
        pl.col("gallons").sum(),
        pl.col("cost").sum(),
        (pl.col("odometer").last() - pl.col("odometer").first()).alias("miles"),
        pl.col("mpg").filter(pl.col("mpg") > 0).mean().alias("average_mpg"),
    ).row(0, named=True)

    total_miles = max(float(totals["miles"]), 0.0)
    total_cost = float(totals["cost"])
    return FuelStatistics(
        entry_count=int(totals["entry_count"]),
        total_gallons=float(totals["gallons"]),
        total_cost=total_cost,
        total_miles=total_miles,
        average_mpg=float(totals["average_mpg"] or 0.0),
        cost_per_mile=total_cost / total_miles if total_miles > 0 else 0.0,
    )
