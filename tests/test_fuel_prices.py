from __future__ import annotations

import asyncio

import httpx
import pytest

from tow_planner.services.fuel_prices import EIA_SERIES, FuelPriceClient
from tow_planner.services.types import FuelType, PriceSource

EIA_PAYLOAD = {
    "response": {
        "data": [
            {"period": "2024-06-03", "value": 3.912},
            {"period": "2024-06-17", "value": 3.876},
            {"period": "2024-06-10", "value": 3.889},
        ]
    }
}


def _client(http, api_key: str = "eia-key") -> FuelPriceClient:
    return FuelPriceClient(
        base_url="https://eia.test/v2",
        api_key=api_key,
        default_prices={FuelType.GAS: 3.50, FuelType.DIESEL: 4.00},
        cache_ttl_seconds=3600,
        http=http,
    )


def test_missing_api_key_returns_default_without_network(make_http) -> None:
    http = make_http(lambda request: httpx.Response(200, json=EIA_PAYLOAD))

    quote = asyncio.run(_client(http, api_key="").current_price(FuelType.DIESEL))

    assert quote.price_per_gallon == pytest.approx(4.00)
    assert quote.source == PriceSource.DEFAULT
    assert quote.fuel_type == FuelType.DIESEL
    assert http.transport.requests == []


def test_live_price_uses_latest_period(make_http) -> None:
    http = make_http(lambda request: httpx.Response(200, json=EIA_PAYLOAD))

    quote = asyncio.run(_client(http).current_price("gas"))

    assert quote.price_per_gallon == pytest.approx(3.876)
    assert quote.period == "2024-06-17"
    assert quote.source == PriceSource.PROVIDER
    request = http.transport.requests[0]
    assert request.url.path == f"/v2/seriesid/{EIA_SERIES[FuelType.GAS]}"
    assert request.url.params["api_key"] == "eia-key"


def test_diesel_uses_diesel_series(make_http) -> None:
    http = make_http(lambda request: httpx.Response(200, json=EIA_PAYLOAD))

    asyncio.run(_client(http).current_price(FuelType.DIESEL))

    assert EIA_SERIES[FuelType.DIESEL] in http.transport.requests[0].url.path


@pytest.mark.parametrize(
    "response",
    [
        httpx.Response(500, text="server error"),
        httpx.Response(200, json={"response": {"data": []}}),
        httpx.Response(200, json={"response": {"data": [{"period": "2024-06-17", "value": 0}]}}),
        httpx.Response(200, text="<html>not json</html>"),
    ],
)
def test_provider_problems_fall_back_to_default(make_http, response) -> None:
    http = make_http(lambda request: response)

    quote = asyncio.run(_client(http).current_price(FuelType.GAS))

    assert quote.price_per_gallon == pytest.approx(3.50)
    assert quote.source == PriceSource.DEFAULT


def test_network_failure_falls_back_to_default(make_http) -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("unreachable", request=request)

    quote = asyncio.run(_client(make_http(handler)).current_price(FuelType.GAS))

    assert quote.source == PriceSource.DEFAULT


def test_live_quote_is_cached(make_http) -> None:
    http = make_http(lambda request: httpx.Response(200, json=EIA_PAYLOAD))
    client = _client(http)

    first = asyncio.run(client.current_price(FuelType.GAS))
    second = asyncio.run(client.current_price(FuelType.GAS))

    assert first == second
    assert len(http.transport.requests) == 1


def test_default_quote_is_not_cached(make_http) -> None:
    responses = iter(
        [httpx.Response(500), httpx.Response(200, json=EIA_PAYLOAD)]
    )
    http = make_http(lambda request: next(responses))
    client = _client(http)

    first = asyncio.run(client.current_price(FuelType.GAS))
    second = asyncio.run(client.current_price(FuelType.GAS))

    assert first.source == PriceSource.DEFAULT
    assert second.source == PriceSource.PROVIDER
    assert len(http.transport.requests) == 2
