from __future__ import annotations

import json
from typing import Any

from asgiref.sync import async_to_sync
from django.conf import settings
from django.http import HttpRequest, HttpResponse, JsonResponse
from django.views.decorators.csrf import csrf_exempt
from django.views.decorators.http import require_GET, require_http_methods, require_POST
from pydantic import BaseModel, ValidationError

from tow_planner.schemas import (
    CoordinateResponse,
    FuelEntryRequest,
    FuelEntryResponse,
    FuelPriceResponse,
    FuelStatisticsResponse,
    MpgEstimateRequest,
    MpgEstimateResponse,
    PlaceResponse,
    RouteResponse,
    TripConfirmRequest,
    TripEstimateResponse,
    TripPlanRequest,
    TripResponse,
    TripStatisticsResponse,
)
from tow_planner.services import mpg
from tow_planner.services.planner import TripPlanner
from tow_planner.services.trips import FuelLog, TripLog
from tow_planner.services.types import (
    Coordinate,
    ErrorKind,
    FuelType,
    PlanError,
    PlaceSuggestion,
    RouteHint,
    ServiceError,
)

ERROR_STATUS = {
    ErrorKind.NOT_FOUND: 404,
    ErrorKind.INVALID_LOCATION: 400,
    ErrorKind.NO_ROUTE: 422,
    ErrorKind.SUPERSEDED: 409,
    ErrorKind.PROVIDER_ERROR: 502,
    ErrorKind.NETWORK_ERROR: 502,
    ErrorKind.MISSING_CREDENTIAL: 503,
    ErrorKind.TIMEOUT: 504,
}

_trip_planner: TripPlanner | None = None
_trip_log: TripLog | None = None
_fuel_log: FuelLog | None = None


def get_trip_planner() -> TripPlanner:
    global _trip_planner
    if _trip_planner is None:
        _trip_planner = TripPlanner()
    return _trip_planner


def get_trip_log() -> TripLog:
    global _trip_log
    if _trip_log is None:
        _trip_log = TripLog()
    return _trip_log


def get_fuel_log() -> FuelLog:
    global _fuel_log
    if _fuel_log is None:
        _fuel_log = FuelLog()
    return _fuel_log


@require_GET
def health_view(_: HttpRequest) -> HttpResponse:
    return JsonResponse(
        {
            "status": "ok",
            "routing_provider": settings.ROUTING_PROVIDER,
            "live_fuel_prices": bool(settings.EIA_API_KEY),
            "trips": len(get_trip_log()),
            "fuel_entries": len(get_fuel_log()),
        }
    )


@require_GET
def geocode_view(request: HttpRequest) -> HttpResponse:
    query = request.GET.get("q", "").strip()
    if not query:
        return _error_response("validation_error", "Query parameter 'q' is required", status=400)

    result = async_to_sync(get_trip_planner().geocoding_client.geocode)(query)
    if isinstance(result, ServiceError):
        return _service_error_response(result)
    coordinates = CoordinateResponse(lat=result.lat, lon=result.lon)
    return JsonResponse({"query": query, "coordinates": coordinates.model_dump()})


@require_GET
def suggest_view(request: HttpRequest) -> HttpResponse:
    query = request.GET.get("q", "").strip()
    try:
        limit = min(max(int(request.GET.get("limit", "5")), 1), 10)
    except ValueError:
        return _error_response("validation_error", "limit must be an integer", status=400)

    suggestions = async_to_sync(get_trip_planner().geocoding_client.suggest)(query, limit=limit)
    return JsonResponse({"results": [_place_payload(place) for place in suggestions]})


@require_GET
def reverse_geocode_view(request: HttpRequest) -> HttpResponse:
    try:
        coordinate = Coordinate(lat=float(request.GET["lat"]), lon=float(request.GET["lon"]))
    except (KeyError, ValueError):
        return _error_response("validation_error", "lat and lon must be numbers", status=400)

    result = async_to_sync(get_trip_planner().geocoding_client.reverse)(coordinate)
    if isinstance(result, ServiceError):
        return _service_error_response(result)
    return JsonResponse(_place_payload(result))


@require_GET
def route_view(request: HttpRequest) -> HttpResponse:
    start = _parse_lon_lat(request.GET.get("start", ""))
    end = _parse_lon_lat(request.GET.get("end", ""))
    if start is None or end is None:
        return _error_response(
            "validation_error", "start and end must be given as 'lon,lat'", status=400
        )

    result = async_to_sync(get_trip_planner().route_client.route)(start, end)
    if isinstance(result, ServiceError):
        return _service_error_response(result)
    return JsonResponse(RouteResponse.from_result(result).model_dump(mode="json"))


@require_GET
def fuel_price_view(request: HttpRequest) -> HttpResponse:
    try:
        fuel_type = FuelType(request.GET.get("fuel_type", FuelType.GAS.value))
    except ValueError:
        return _error_response("validation_error", "fuel_type must be gas or diesel", status=400)

    quote = async_to_sync(get_trip_planner().fuel_price_client.current_price)(fuel_type)
    return JsonResponse(FuelPriceResponse.from_quote(quote).model_dump(mode="json"))


@csrf_exempt
@require_POST
def mpg_estimate_view(request: HttpRequest) -> HttpResponse:
    parsed = _validate(request, MpgEstimateRequest)
    if isinstance(parsed, HttpResponse):
        return parsed

    profile = parsed.vehicle.to_profile()
    route_hint = None
    if parsed.ascent_meters is not None or parsed.highway_fraction is not None:
        route_hint = RouteHint(
            ascent_meters=parsed.ascent_meters or 0.0,
            highway_fraction=parsed.highway_fraction or 0.0,
        )

    estimated = mpg.estimate_mpg(profile, route_hint)
    response = MpgEstimateResponse(
        base_mpg=mpg.base_mpg(
            profile.vehicle_class, profile.wheel_config, profile.fuel_type, profile.load_status
        ),
        adjustment_factor=round(mpg.adjustment_factor(profile, route_hint), 4),
        estimated_mpg=round(estimated, 2),
        range_miles=(
            round(mpg.range_miles(profile, parsed.tank_gallons, route_hint), 1)
            if parsed.tank_gallons is not None
            else None
        ),
        cost_per_mile=(
            round(mpg.fuel_cost_per_mile(profile, parsed.fuel_price_per_gallon, route_hint), 3)
            if parsed.fuel_price_per_gallon is not None
            else None
        ),
    )
    return JsonResponse(response.model_dump(mode="json"))


@csrf_exempt
@require_POST
def trip_plan_view(request: HttpRequest) -> HttpResponse:
    parsed = _validate(request, TripPlanRequest)
    if isinstance(parsed, HttpResponse):
        return parsed

    result = _plan(parsed)
    if isinstance(result, PlanError):
        return _plan_error_response(result)
    return JsonResponse(TripEstimateResponse.from_estimate(result).model_dump(mode="json"))


@csrf_exempt
@require_http_methods(["GET", "POST"])
def trips_view(request: HttpRequest) -> HttpResponse:
    trip_log = get_trip_log()
    if request.method == "GET":
        trips = [TripResponse.from_trip(trip).model_dump(mode="json") for trip in trip_log.all()]
        return JsonResponse({"trips": trips})

    parsed = _validate(request, TripConfirmRequest)
    if isinstance(parsed, HttpResponse):
        return parsed

    trip = get_trip_planner().confirm(
        parsed.to_estimate(), parsed.vehicle.to_profile(), parsed.trip_date
    )
    trip_log.add(trip)
    return JsonResponse(TripResponse.from_trip(trip).model_dump(mode="json"), status=201)


@require_GET
def trip_stats_view(_: HttpRequest) -> HttpResponse:
    stats = get_trip_log().statistics()
    return JsonResponse(TripStatisticsResponse.from_statistics(stats).model_dump(mode="json"))


@csrf_exempt
@require_http_methods(["GET", "POST"])
def fuel_entries_view(request: HttpRequest) -> HttpResponse:
    fuel_log = get_fuel_log()
    if request.method == "GET":
        entries = [
            FuelEntryResponse.from_entry(entry).model_dump(mode="json") for entry in fuel_log.all()
        ]
        return JsonResponse({"entries": entries})

    parsed = _validate(request, FuelEntryRequest)
    if isinstance(parsed, HttpResponse):
        return parsed

    entry = fuel_log.record(
        parsed.odometer, parsed.gallons, parsed.price_per_gallon, parsed.entry_date
    )
    return JsonResponse(FuelEntryResponse.from_entry(entry).model_dump(mode="json"), status=201)


@require_GET
def fuel_stats_view(_: HttpRequest) -> HttpResponse:
    stats = get_fuel_log().statistics()
    return JsonResponse(FuelStatisticsResponse.from_statistics(stats).model_dump(mode="json"))


def _plan(parsed: TripPlanRequest) -> Any:
    planner = get_trip_planner()
    return async_to_sync(planner.plan_trip)(
        parsed.origin,
        parsed.destination,
        parsed.vehicle.to_profile(),
        parsed.is_round_trip,
        fuel_price=parsed.fuel_price_per_gallon,
        use_route_hints=parsed.use_route_hints,
    )


def _validate(request: HttpRequest, schema: type[BaseModel]) -> Any:
    payload = _parse_json_payload(request)
    if isinstance(payload, JsonResponse):
        return payload

    try:
        return schema.model_validate(payload)
    except ValidationError as exc:
        return JsonResponse(
            {
                "error": {
                    "code": "validation_error",
                    "message": "Invalid request payload",
                    "details": exc.errors(include_url=False, include_context=False),
                }
            },
            status=400,
        )


def _parse_json_payload(request: HttpRequest) -> dict[str, Any] | JsonResponse:
    if not request.body:
        return {}

    try:
        payload = json.loads(request.body)
    except json.JSONDecodeError:
        return _error_response("invalid_json", "Request body must be valid JSON", status=400)

    if not isinstance(payload, dict):
        return _error_response("invalid_json", "JSON body must be an object", status=400)

    return payload


def _parse_lon_lat(value: str) -> Coordinate | None:
    parts = value.split(",")
    if len(parts) != 2:
        return None
    try:
        lon, lat = (float(part) for part in parts)
    except ValueError:
        return None
    if not (-90.0 <= lat <= 90.0 and -180.0 <= lon <= 180.0):
        return None
    return Coordinate(lat=lat, lon=lon)


def _place_payload(place: PlaceSuggestion) -> dict[str, Any]:
    return PlaceResponse(
        label=place.label,
        coordinates=CoordinateResponse(lat=place.coordinates.lat, lon=place.coordinates.lon),
    ).model_dump()


def _plan_error_response(error: PlanError) -> JsonResponse:
    return JsonResponse(
        {"error": {"code": str(error.kind), "step": error.step, "message": error.message}},
        status=ERROR_STATUS.get(error.kind, 502),
    )


def _service_error_response(error: ServiceError) -> JsonResponse:
    return _error_response(str(error.kind), error.message, status=ERROR_STATUS.get(error.kind, 502))


def _error_response(code: str, message: str, status: int) -> JsonResponse:
    return JsonResponse({"error": {"code": code, "message": message}}, status=status)
