from __future__ import annotations

from dataclasses import dataclass

from skycast.models.weather import WeatherSnapshot


@dataclass(frozen=True)
class LastLocation:
    lat: float
    lon: float
    name: str


@dataclass(frozen=True)
class FavoriteCity:
    id: str
    name: str
    added_at: str
    weather: WeatherSnapshot | None = None
