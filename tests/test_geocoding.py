from __future__ import annotations

import asyncio

import httpx
import pytest

from tow_planner.services.geocoding import GeocodingClient
from tow_planner.services.http import ProviderHttpClient
from tow_planner.services.types import Coordinate, ErrorKind, PlaceSuggestion, ServiceError

DENVER = [{"lat": "39.7392364", "lon": "-104.984862", "display_name": "Denver, Colorado, USA"}]


def _client(http, clock) -> GeocodingClient:
    return GeocodingClient(
        base_url="https://geo.test",
        country_code="us",
        cache_ttl_seconds=86400,
        min_interval_seconds=1.0,
        retry_count=3,
        retry_delay_seconds=1.0,
        http=http,
        clock=clock,
        sleep=clock.sleep,
    )


def test_geocode_returns_coordinates_and_scopes_to_us(make_http, clock) -> None:
    http = make_http(lambda request: httpx.Response(200, json=DENVER))
    client = _client(http, clock)

    result = asyncio.run(client.geocode("Denver, CO"))

    assert result == Coordinate(lat=39.7392364, lon=-104.984862)
    request = http.transport.requests[0]
    assert request.url.path == "/search"
    assert request.url.params["q"] == "Denver, CO"
    assert request.url.params["countrycodes"] == "us"
    assert request.url.params["limit"] == "1"


def test_second_geocode_within_ttl_is_served_from_cache(make_http, clock) -> None:
    http = make_http(lambda request: httpx.Response(200, json=DENVER))
    client = _client(http, clock)

    first = asyncio.run(client.geocode("Denver, CO"))
    clock.advance(3600)
    second = asyncio.run(client.geocode("Denver, CO"))

    assert first == second
    assert len(http.transport.requests) == 1


def test_cache_key_ignores_case_and_extra_whitespace(make_http, clock) -> None:
    http = make_http(lambda request: httpx.Response(200, json=DENVER))
    client = _client(http, clock)

    asyncio.run(client.geocode("Denver, CO"))
    asyncio.run(client.geocode("  denver,   co "))

    assert len(http.transport.requests) == 1


def test_expired_cache_entry_triggers_new_lookup(make_http, clock) -> None:
    http = make_http(lambda request: httpx.Response(200, json=DENVER))
    client = _client(http, clock)

    asyncio.run(client.geocode("Denver, CO"))
    asyncio.run(client.geocode("Denver, CO"))
    clock.advance(86400 + 1)
    asyncio.run(client.geocode("Denver, CO"))

    assert len(http.transport.requests) == 2


def test_outbound_calls_are_spaced_by_rate_limit(make_http, clock) -> None:
    http = make_http(lambda request: httpx.Response(200, json=DENVER))
    client = _client(http, clock)

    asyncio.run(client.geocode("Denver, CO"))
    asyncio.run(client.geocode("Boulder, CO"))

    assert clock.sleeps == [pytest.approx(1.0)]


def test_separate_clients_do_not_share_cache(make_http, clock) -> None:
    http = make_http(lambda request: httpx.Response(200, json=DENVER))

    asyncio.run(_client(http, clock).geocode("Denver, CO"))
    asyncio.run(_client(http, clock).geocode("Denver, CO"))

    assert len(http.transport.requests) == 2


def test_503_is_retried_with_linear_backoff(make_http, clock) -> None:
    responses = iter(
        [
            httpx.Response(503),
            httpx.Response(503),
            httpx.Response(200, json=DENVER),
        ]
    )
    http = make_http(lambda request: next(responses))
    client = _client(http, clock)

    result = asyncio.run(client.geocode("Denver, CO"))

    assert isinstance(result, Coordinate)
    assert len(http.transport.requests) == 3
    assert clock.sleeps == [pytest.approx(1.0), pytest.approx(2.0)]


def test_retries_exhausted_returns_failure_instead_of_raising(make_http, clock) -> None:
    http = make_http(lambda request: httpx.Response(503))
    client = _client(http, clock)

    result = asyncio.run(client.geocode("Denver, CO"))

    assert isinstance(result, ServiceError)
    assert result.kind == ErrorKind.PROVIDER_ERROR
    assert result.status == 503
    assert len(http.transport.requests) == 4


def test_network_errors_are_retried_then_reported(make_http, clock) -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("connection refused", request=request)

    http = make_http(handler)
    client = _client(http, clock)

    result = asyncio.run(client.geocode("Denver, CO"))

    assert isinstance(result, ServiceError)
    assert result.kind == ErrorKind.NETWORK_ERROR
    assert len(http.transport.requests) == 4


def test_timeout_is_reported_as_timeout(make_http, clock) -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ReadTimeout("slow", request=request)

    client = _client(make_http(handler), clock)

    result = asyncio.run(client.geocode("Denver, CO"))

    assert isinstance(result, ServiceError)
    assert result.kind == ErrorKind.TIMEOUT


def test_client_errors_are_not_retried(make_http, clock) -> None:
    http = make_http(lambda request: httpx.Response(403))
    client = _client(http, clock)

    result = asyncio.run(client.geocode("Denver, CO"))

    assert isinstance(result, ServiceError)
    assert result.status == 403
    assert len(http.transport.requests) == 1


def test_unknown_place_is_not_found_and_not_cached(make_http, clock) -> None:
    http = make_http(lambda request: httpx.Response(200, json=[]))
    client = _client(http, clock)

    first = asyncio.run(client.geocode("Nowhereville, ZZ"))
    second = asyncio.run(client.geocode("Nowhereville, ZZ"))

    assert isinstance(first, ServiceError)
    assert first.kind == ErrorKind.NOT_FOUND
    assert isinstance(second, ServiceError)
    assert len(http.transport.requests) == 2


def test_blank_text_is_rejected_without_network(make_http, clock) -> None:
    http = make_http(lambda request: httpx.Response(200, json=DENVER))
    client = _client(http, clock)

    result = asyncio.run(client.geocode("   "))

    assert isinstance(result, ServiceError)
    assert result.kind == ErrorKind.NOT_FOUND
    assert http.transport.requests == []


def test_suggest_deduplicates_by_display_name(make_http, clock) -> None:
    payload = [
        {"lat": "39.74", "lon": "-104.98", "display_name": "Denver, Colorado, USA"},
        {"lat": "39.75", "lon": "-104.99", "display_name": "Denver, Colorado, USA"},
        {"lat": "40.58", "lon": "-105.08", "display_name": "Fort Collins, Colorado, USA"},
        {"lat": "bad", "lon": "-1", "display_name": "Broken"},
    ]
    http = make_http(lambda request: httpx.Response(200, json=payload))
    client = _client(http, clock)

    suggestions = asyncio.run(client.suggest("Colorado", limit=5))

    assert [place.label for place in suggestions] == [
        "Denver, Colorado, USA",
        "Fort Collins, Colorado, USA",
    ]
    assert suggestions[0].coordinates == Coordinate(lat=39.74, lon=-104.98)
    assert http.transport.requests[0].url.params["limit"] == "5"


def test_suggest_failure_returns_empty_list(make_http, clock) -> None:
    client = _client(make_http(lambda request: httpx.Response(500)), clock)

    assert asyncio.run(client.suggest("Denver")) == []


def test_reverse_geocode(make_http, clock) -> None:
    payload = {"lat": "39.7392", "lon": "-104.9903", "display_name": "Civic Center, Denver"}
    http = make_http(lambda request: httpx.Response(200, json=payload))
    client = _client(http, clock)

    result = asyncio.run(client.reverse(Coordinate(lat=39.7392, lon=-104.9903)))

    assert result == PlaceSuggestion(
        label="Civic Center, Denver", coordinates=Coordinate(lat=39.7392, lon=-104.9903)
    )
    assert http.transport.requests[0].url.path == "/reverse"


def test_reverse_geocode_without_match(make_http, clock) -> None:
    http = make_http(lambda request: httpx.Response(200, json={"error": "Unable to geocode"}))
    client = _client(http, clock)

    result = asyncio.run(client.reverse(Coordinate(lat=0.0, lon=0.0)))

    assert isinstance(result, ServiceError)
    assert result.kind == ErrorKind.NOT_FOUND


def test_requests_go_through_cors_relay_when_configured(clock) -> None:
    requests: list[httpx.Request] = []

    def handler(request: httpx.Request) -> httpx.Response:
        requests.append(request)
        return httpx.Response(200, json=DENVER)

    http = ProviderHttpClient(
        timeout=5.0,
        relay_url="https://relay.test/?url=",
        relay_key="secret",
        transport=httpx.MockTransport(handler),
    )
    client = _client(http, clock)

    result = asyncio.run(client.geocode("Denver, CO"))

    assert isinstance(result, Coordinate)
    assert requests[0].url.host == "relay.test"
    assert "geo.test" in str(requests[0].url)
    assert requests[0].headers["x-cors-api-key"] == "secret"


def test_expired_entry_is_removed_from_cache(make_http, clock) -> None:
    http = make_http(lambda request: httpx.Response(200, json=DENVER))
    client = _client(http, clock)
    key = GeocodingClient.cache_key("Denver, CO", "us")

    asyncio.run(client.geocode("Denver, CO"))
    assert key in client.cache

    clock.advance(86400 + 1)
    assert client.cache.get(key) is None
    assert key not in client.cache
    assert len(client.cache) == 0


def test_cache_evicts_least_recently_used_past_max_entries(make_http, clock) -> None:
    http = make_http(lambda request: httpx.Response(200, json=DENVER))
    client = GeocodingClient(
        base_url="https://geo.test",
        country_code="us",
        min_interval_seconds=0.0,
        cache_max_entries=2,
        http=http,
        clock=clock,
        sleep=clock.sleep,
    )

    asyncio.run(client.geocode("Denver, CO"))
    asyncio.run(client.geocode("Boulder, CO"))
    asyncio.run(client.geocode("Denver, CO"))
    asyncio.run(client.geocode("Golden, CO"))

    assert len(client.cache) == 2
    assert GeocodingClient.cache_key("Boulder, CO", "us") not in client.cache
    assert GeocodingClient.cache_key("Denver, CO", "us") in client.cache
    assert len(http.transport.requests) == 3


def test_suggestion_cache_is_bounded(make_http, clock) -> None:
    http = make_http(lambda request: httpx.Response(200, json=DENVER))
    client = GeocodingClient(
        base_url="https://geo.test",
        min_interval_seconds=0.0,
        cache_max_entries=3,
        http=http,
        clock=clock,
        sleep=clock.sleep,
    )

    for prefix in ("D", "De", "Den", "Denv", "Denve", "Denver"):
        asyncio.run(client.suggest(prefix))

    assert len(client.suggestion_cache) == 3
