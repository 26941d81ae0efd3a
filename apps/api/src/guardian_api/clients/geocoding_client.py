from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass

import httpx

from risk_engine.errors import InvalidArgumentError
from risk_engine.models import GeoPoint

from guardian_api.errors import ApiError


@dataclass(frozen=True)
class GeocodeResult:
    location: GeoPoint
    display_name: str


class GeocodingProviderClient:
    """Forward geocoding against a Nominatim ``/search`` endpoint.

    Nominatim's usage policy requires an identifying User-Agent, so one is
    always sent.
    """

    def __init__(
        self,
        base_url: str,
        user_agent: str,
        timeout_seconds: float = 5.0,
        client_factory: Callable[[], httpx.AsyncClient] | None = None,
    ) -> None:
        self._base_url = base_url.rstrip("/")
        self._user_agent = user_agent
        self._timeout_seconds = timeout_seconds
        self._client_factory = client_factory

    async def geocode(self, query: str) -> GeocodeResult | None:
        params = {"q": query, "format": "jsonv2", "limit": 1}
        headers = {"User-Agent": self._user_agent, "Accept": "application/json"}
        try:
            factory = self._client_factory or (lambda: httpx.AsyncClient(timeout=self._timeout_seconds))
            async with factory() as client:
                response = await client.get(f"{self._base_url}/search", params=params, headers=headers)
                response.raise_for_status()
        except httpx.TimeoutException as exc:
            raise ApiError("UPSTREAM_TIMEOUT", "Geocoding provider timeout", 504) from exc
        except httpx.HTTPStatusError as exc:
            raise ApiError("UPSTREAM_HTTP_ERROR", "Geocoding provider returned error", 502) from exc
        except httpx.HTTPError as exc:
            raise ApiError("UPSTREAM_FAILURE", "Geocoding provider request failed", 502) from exc

        try:
            items = response.json()
        except ValueError as exc:
            raise ApiError("UPSTREAM_BAD_RESPONSE", "Geocoding provider returned non-JSON body", 502) from exc
        if not isinstance(items, list):
            raise ApiError("UPSTREAM_BAD_RESPONSE", "Geocoding provider returned malformed body", 502)
        if not items:
            return None
        first = items[0]
        try:
            location = GeoPoint(lat=float(first["lat"]), lng=float(first["lon"]))
            display_name = str(first.get("display_name", "") or "")
        except (AttributeError, KeyError, TypeError, ValueError, InvalidArgumentError) as exc:
            raise ApiError("UPSTREAM_BAD_RESPONSE", "Geocoding provider returned malformed result", 502) from exc
        return GeocodeResult(location=location, display_name=display_name)
