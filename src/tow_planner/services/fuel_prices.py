from __future__ import annotations

import logging
from typing import Any

from django.conf import settings
from django.core.cache import cache

from tow_planner.exceptions import ExternalServiceError, MissingCredentialError, TowPlannerError
from tow_planner.services.http import ProviderHttpClient, read_json
from tow_planner.services.types import FuelPriceQuote, FuelType, PriceSource

logger = logging.getLogger(__name__)

# EIA weekly U.S. retail averages, dollars per gallon.
EIA_SERIES = {
    FuelType.GAS: "PET.EMM_EPM0_PTE_NUS_DPG.W",
    FuelType.DIESEL: "PET.EMD_EPD2D_PTE_NUS_DPG.W",
}


class FuelPriceClient:
    """Weekly average fuel prices from the EIA API, with hardcoded fallbacks.

    ``current_price`` never fails: any problem (no API key, network error,
    empty series) yields the default price tagged ``PriceSource.DEFAULT``.
    Live quotes are kept in the Django cache.
    """

    def __init__(
        self,
        *,
        base_url: str | None = None,
        api_key: str | None = None,
        default_prices: dict[FuelType, float] | None = None,
        cache_ttl_seconds: int | None = None,
        http: ProviderHttpClient | None = None,
    ) -> None:
        self.base_url = (base_url or settings.EIA_BASE_URL).rstrip("/")
        self.api_key = settings.EIA_API_KEY if api_key is None else api_key
        self.default_prices = default_prices or {
            FuelType.GAS: settings.DEFAULT_GAS_PRICE,
            FuelType.DIESEL: settings.DEFAULT_DIESEL_PRICE,
        }
        self.cache_ttl = (
            settings.FUEL_PRICE_CACHE_TTL_SECONDS
            if cache_ttl_seconds is None
            else cache_ttl_seconds
        )
        self.http = http or ProviderHttpClient()

    async def current_price(self, fuel_type: FuelType | str) -> FuelPriceQuote:
        fuel_type = FuelType(fuel_type)
        cache_key = self._cache_key(fuel_type)
        cached = cache.get(cache_key)
        if cached:
            return FuelPriceQuote(
                price_per_gallon=cached["price"],
                source=PriceSource.PROVIDER,
                fuel_type=fuel_type,
                period=cached["period"],
            )

        try:
            price, period = await self._fetch_latest(fuel_type)
        except MissingCredentialError as exc:
            logger.info("%s; using default %s price", exc, fuel_type)
            return self.default_quote(fuel_type)
        except TowPlannerError as exc:
            logger.warning("Fuel price lookup failed, using default %s price: %s", fuel_type, exc)
            return self.default_quote(fuel_type)

        cache.set(cache_key, {"price": price, "period": period}, timeout=self.cache_ttl)
        return FuelPriceQuote(
            price_per_gallon=price,
            source=PriceSource.PROVIDER,
            fuel_type=fuel_type,
            period=period,
        )

    def default_quote(self, fuel_type: FuelType | str) -> FuelPriceQuote:
        fuel_type = FuelType(fuel_type)
        return FuelPriceQuote(
            price_per_gallon=self.default_prices[fuel_type],
            source=PriceSource.DEFAULT,
            fuel_type=fuel_type,
        )

    async def _fetch_latest(self, fuel_type: FuelType) -> tuple[float, str | None]:
        if not self.api_key:
            raise MissingCredentialError("EIA API key is not configured")

        response = await self.http.get(
            f"{self.base_url}/seriesid/{EIA_SERIES[fuel_type]}",
            params={"api_key": self.api_key},
        )
        if response.status_code >= 400:
            raise ExternalServiceError(
                f"EIA returned HTTP {response.status_code}", status=response.status_code
            )
        return self._parse_latest(read_json(response))

    @staticmethod
    def _parse_latest(payload: Any) -> tuple[float, str | None]:
        data = payload.get("response", {}).get("data") if isinstance(payload, dict) else None
        if not isinstance(data, list) or not data:
            raise ExternalServiceError("No price data available")

        try:
            latest = max(data, key=lambda row: str(row.get("period") or ""))
            price = float(latest["value"])
        except (AttributeError, KeyError, TypeError, ValueError) as exc:
            raise ExternalServiceError("Malformed EIA price data") from exc
        if price <= 0:
            raise ExternalServiceError("EIA reported a non-positive price")
        return price, latest.get("period")

    @staticmethod
    def _cache_key(fuel_type: FuelType) -> str:
        return f"fuel-price:{fuel_type}"
