from __future__ import annotations

from collections.abc import Callable
from datetime import datetime
from typing import Annotated

from fastapi import Depends, Query as QueryParam, Request

from skycast.clients.weatherapi import WeatherApiClient
from skycast.core.config import Settings
from skycast.models.query import Query
from skycast.services.gateway import ResponseCache, WeatherGateway

Clock = Callable[[], datetime]


def get_settings(request: Request) -> Settings:
    return request.app.state.settings


def get_weather_api_client(request: Request) -> WeatherApiClient:
    return request.app.state.weather_api_client


def get_response_cache(request: Request) -> ResponseCache | None:
    return getattr(request.app.state, "response_cache", None)


def get_gateway(
    client: Annotated[WeatherApiClient, Depends(get_weather_api_client)],
    cache: Annotated[ResponseCache | None, Depends(get_response_cache)],
    settings: Annotated[Settings, Depends(get_settings)],
) -> WeatherGateway:
    return WeatherGateway(client=client, cache=cache, forecast_days=settings.forecast_days)


def get_clock() -> Clock:
    return datetime.now


def get_lookup_query(
    city: Annotated[str | None, QueryParam()] = None,
    lat: Annotated[float | None, QueryParam(ge=-90.0, le=90.0)] = None,
    lon: Annotated[float | None, QueryParam(ge=-180.0, le=180.0)] = None,
) -> Query:
    return Query.build(city=city, lat=lat, lon=lon)


Gateway = Annotated[WeatherGateway, Depends(get_gateway)]
LookupQuery = Annotated[Query, Depends(get_lookup_query)]
