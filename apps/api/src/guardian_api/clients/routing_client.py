from __future__ import annotations

import logging
from collections.abc import Callable
from dataclasses import dataclass
from typing import Any

import httpx

from risk_engine.errors import InvalidArgumentError
from risk_engine.models import GeoPoint

from guardian_api.errors import ApiError

logger = logging.getLogger(__name__)


def _decode_json(response: httpx.Response) -> Any:
    try:
        return response.json()
    except ValueError as exc:
        raise ApiError("UPSTREAM_BAD_RESPONSE", "Routing provider returned non-JSON body", 502) from exc


@dataclass(frozen=True)
class RouteCandidate:
    """A provider route normalized to plain points.

    ``distance_meters`` and ``duration_seconds`` are provider metadata kept
    beside the geometry for display; the risk engine only sees ``points``.
    """

    points: tuple[GeoPoint, ...]
    distance_meters: float
    duration_seconds: float


class RoutingProviderClient:
    """Client for an OSRM-compatible ``/route/v1`` endpoint."""

    def __init__(
        self,
        base_url: str,
        profile: str = "driving",
        timeout_seconds: float = 5.0,
        client_factory: Callable[[], httpx.AsyncClient] | None = None,
    ) -> None:
        self._base_url = base_url.rstrip("/")
        self._profile = profile
        self._timeout_seconds = timeout_seconds
        self._client_factory = client_factory

    async def fetch_routes(
        self,
        origin: GeoPoint,
        destination: GeoPoint,
        alternatives: bool = True,
    ) -> list[RouteCandidate]:
        # OSRM expects lng,lat pairs
        coordinates = f"{origin.lng},{origin.lat};{destination.lng},{destination.lat}"
        params = {
            "alternatives": "true" if alternatives else "false",
            "overview": "full",
            "geometries": "geojson",
        }
        try:
            factory = self._client_factory or (lambda: httpx.AsyncClient(timeout=self._timeout_seconds))
            async with factory() as client:
                response = await client.get(
                    f"{self._base_url}/route/v1/{self._profile}/{coordinates}",
                    params=params,
                )
                if response.status_code == 400:
                    # OSRM answers NoRoute / InvalidQuery with 400 and a JSON body
                    return self._parse_routes(_decode_json(response))
                response.raise_for_status()
        except httpx.TimeoutException as exc:
            raise ApiError("UPSTREAM_TIMEOUT", "Routing provider timeout", 504) from exc
        except httpx.HTTPStatusError as exc:
            raise ApiError("UPSTREAM_HTTP_ERROR", "Routing provider returned error", 502) from exc
        except httpx.HTTPError as exc:
            raise ApiError("UPSTREAM_FAILURE", "Routing provider request failed", 502) from exc

        return self._parse_routes(_decode_json(response))

    def _parse_routes(self, payload: Any) -> list[RouteCandidate]:
        if not isinstance(payload, dict):
            raise ApiError("UPSTREAM_BAD_RESPONSE", "Routing provider returned malformed body", 502)
        code = payload.get("code")
        if code != "Ok":
            logger.info("routing_no_route", extra={"component": "api", "provider_code": code})
            return []
        routes = payload.get("routes", [])
        if not isinstance(routes, list):
            raise ApiError("UPSTREAM_BAD_RESPONSE", "Routing provider returned malformed routes", 502)
        candidates: list[RouteCandidate] = []
        for raw in routes:
            try:
                candidates.append(
                    RouteCandidate(
                        points=tuple(
                            GeoPoint(lat=float(lat), lng=float(lng)) for lng, lat in raw["geometry"]["coordinates"]
                        ),
                        distance_meters=float(raw.get("distance", 0.0)),
                        duration_seconds=float(raw.get("duration", 0.0)),
                    )
                )
            except (AttributeError, KeyError, TypeError, ValueError, InvalidArgumentError) as exc:
                raise ApiError("UPSTREAM_BAD_RESPONSE", "Routing provider returned malformed geometry", 502) from exc
        return candidates
