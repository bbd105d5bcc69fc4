from __future__ import annotations

import logging
from typing import Any
from urllib.parse import quote

import httpx
from django.conf import settings

from tow_planner.exceptions import ProviderNetworkError, ProviderTimeoutError

logger = logging.getLogger(__name__)


class ProviderHttpClient:
    """Async GET helper shared by the provider clients.

    A fresh ``httpx.AsyncClient`` is opened per call so a client instance can be
    driven from any event loop. When a CORS relay is configured the target URL
    is percent-encoded and appended to the relay endpoint.

    Transport failures are raised as ``ProviderTimeoutError`` or
    ``ProviderNetworkError``; HTTP status handling is left to the caller.
    """

    def __init__(
        self,
        *,
        timeout: float | None = None,
        user_agent: str | None = None,
        relay_url: str | None = None,
        relay_key: str | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self.timeout = settings.HTTP_TIMEOUT_SECONDS if timeout is None else timeout
        self.user_agent = user_agent
        self.relay_url = settings.CORS_RELAY_URL if relay_url is None else relay_url
        self.relay_key = settings.CORS_RELAY_KEY if relay_key is None else relay_key
        self.transport = transport

    async def get(
        self,
        url: str,
        *,
        params: dict[str, Any] | None = None,
        headers: dict[str, str] | None = None,
    ) -> httpx.Response:
        target = httpx.URL(url, params=params) if params else httpx.URL(url)
        request_headers = {"Accept": "application/json"}
        if self.user_agent:
            request_headers["User-Agent"] = self.user_agent
        if headers:
            request_headers.update(headers)

        request_url = str(target)
        if self.relay_url:
            request_url = f"{self.relay_url}{quote(str(target), safe='')}"
            if self.relay_key:
                request_headers["x-cors-api-key"] = self.relay_key

        logger.debug("GET %s%s", target.host, target.path)
        try:
            async with httpx.AsyncClient(timeout=self.timeout, transport=self.transport) as client:
                return await client.get(request_url, headers=request_headers)
        except httpx.TimeoutException as exc:
            raise ProviderTimeoutError(f"Request to {target.host} timed out") from exc
        except httpx.TransportError as exc:
            raise ProviderNetworkError(f"Could not reach {target.host}") from exc


def read_json(response: httpx.Response) -> Any:
    try:
        return response.json()
    except ValueError:
        return None
