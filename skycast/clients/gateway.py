from __future__ import annotations

import logging
from typing import Any, TypeVar

import httpx
from pydantic import BaseModel, ValidationError as SchemaError

from skycast.core.errors import NotFoundError, UpstreamError
from skycast.models.query import Query
from skycast.models.weather import Astronomy, ForecastSet, PlaceCandidate, WeatherSnapshot
from skycast.schemas.weather import (
    AstronomyOut,
    ForecastOut,
    PlaceCandidateOut,
    WeatherSnapshotOut,
)

logger = logging.getLogger(__name__)

DEFAULT_GATEWAY_URL = "http://localhost:3001/api"
MIN_SEARCH_LENGTH = 2

M = TypeVar("M", bound=BaseModel)


class GatewayClient:
    """Async client for the SkyCast gateway's ``/api`` surface."""

    def __init__(
        self,
        *,
        base_url: str = DEFAULT_GATEWAY_URL,
        timeout_seconds: float | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        options: dict[str, Any] = {}
        if timeout_seconds is not None:
            options["timeout"] = timeout_seconds
        self._client = httpx.AsyncClient(
            base_url=base_url.rstrip("/"),
            headers={"Accept": "application/json"},
            transport=transport,
            **options,
        )

    async def aclose(self) -> None:
        await self._client.aclose()

    async def __aenter__(self) -> GatewayClient:
        return self

    async def __aexit__(self, *exc_info: Any) -> None:
        await self.aclose()

    async def current(self, query: Query) -> WeatherSnapshot:
        data = await self._get(
            "/weather", query.to_params(), failure="Failed to fetch weather data"
        )
        return _decode(WeatherSnapshotOut, data).to_model()

    async def current_by_city(self, city: str) -> WeatherSnapshot:
        return await self.current(Query.for_city(city))

    async def current_by_coords(self, lat: float, lon: float) -> WeatherSnapshot:
        return await self.current(Query.for_coordinates(lat, lon))

    async def forecast(self, query: Query, *, hour: int | None = None) -> ForecastSet:
        params = query.to_params()
        if hour is not None:
            params["hour"] = str(hour)
        data = await self._get("/forecast", params, failure="Failed to fetch forecast")
        return _decode(ForecastOut, data).to_model()

    async def search(self, text: str) -> list[PlaceCandidate]:
        if len(text.strip()) < MIN_SEARCH_LENGTH:
            return []
        data = await self._get("/search", {"q": text.strip()}, failure="Search failed")
        if not isinstance(data, list):
            raise UpstreamError("Invalid search data received")
        return [_decode(PlaceCandidateOut, item).to_model() for item in data]

    async def astronomy(self, query: Query) -> Astronomy:
        data = await self._get(
            "/astronomy", query.to_params(), failure="Failed to fetch astronomy data"
        )
        return _decode(AstronomyOut, data).to_model()

    async def _get(self, path: str, params: dict[str, str], *, failure: str) -> Any:
        logger.debug("Gateway request %s %s", path, params)
        try:
            resp = await self._client.get(path, params=params)
        except httpx.RequestError as e:
            raise UpstreamError(failure) from e

        if resp.is_error:
            message = _error_message(resp) or failure
            if resp.status_code == 404 or "no matching location" in message.lower():
                raise NotFoundError(message, status_code=resp.status_code)
            raise UpstreamError(message, status_code=resp.status_code)
        try:
            return resp.json()
        except ValueError as e:
            raise UpstreamError(failure) from e


def _error_message(resp: httpx.Response) -> str | None:
    try:
        body = resp.json()
    except ValueError:
        return None
    if isinstance(body, dict) and isinstance(body.get("error"), str):
        return body["error"]
    return None


def _decode(model: type[M], data: Any) -> M:
    try:
        return model.model_validate(data)
    except SchemaError as e:
        raise UpstreamError(f"Invalid {model.__name__} received") from e
