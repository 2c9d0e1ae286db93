from __future__ import annotations

from typing import Annotated

from fastapi import APIRouter, Depends, Query as QueryParam

from skycast.api.deps import Clock, Gateway, LookupQuery, get_clock
from skycast.schemas.weather import (
    AstronomyOut,
    ForecastOut,
    PlaceCandidateOut,
    WeatherSnapshotOut,
)

router = APIRouter()


@router.get("/weather", response_model=WeatherSnapshotOut)
def current_weather(query: LookupQuery, gateway: Gateway) -> WeatherSnapshotOut:
    snapshot = gateway.get_current_conditions(query)
    return WeatherSnapshotOut.from_model(snapshot)


@router.get("/forecast", response_model=ForecastOut)
def forecast(
    query: LookupQuery,
    gateway: Gateway,
    clock: Annotated[Clock, Depends(get_clock)],
    hour: Annotated[int | None, QueryParam(ge=0, le=23)] = None,
) -> ForecastOut:
    now = clock()
    if hour is not None:
        now = now.replace(hour=hour)
    return ForecastOut.from_model(gateway.get_forecast(query, now=now))


@router.get("/search", response_model=list[PlaceCandidateOut])
def search(gateway: Gateway, q: str | None = None) -> list[PlaceCandidateOut]:
    return [PlaceCandidateOut.from_model(p) for p in gateway.search_places(q)]


@router.get("/astronomy", response_model=AstronomyOut)
def astronomy(query: LookupQuery, gateway: Gateway) -> AstronomyOut:
    return AstronomyOut.from_model(gateway.get_astronomy(query))
