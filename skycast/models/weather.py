from __future__ import annotations

from dataclasses import dataclass, field


@dataclass(frozen=True)
class Location:
    latitude: float
    longitude: float
    city_name: str
    country: str
    region: str = ""

    @property
    def display_name(self) -> str:
        return f"{self.city_name}, {self.country}"


@dataclass(frozen=True)
class AirQuality:
    co: float | None = None
    no2: float | None = None
    o3: float | None = None
    so2: float | None = None
    pm2_5: float | None = None
    pm10: float | None = None
    us_epa_index: int | None = None
    gb_defra_index: int | None = None


@dataclass(frozen=True)
class WeatherSnapshot:
    location: Location
    temperature: float | None
    feels_like: float | None
    humidity: int | float | None
    wind_speed: float | None
    wind_degree: int | float | None
    wind_dir: str | None
    uv_index: float | None
    visibility: float | None
    pressure: float | None
    dew_point: float | None
    description: str
    condition: str
    icon: str | None
    local_time: str | None = None
    air_quality: AirQuality | None = None


@dataclass(frozen=True)
class HourlyPoint:
    time: str
    temperature: float | None
    feels_like: float | None
    icon: str | None
    description: str
    humidity: int | float | None
    wind_speed: float | None
    chance_of_rain: float | None


@dataclass(frozen=True)
class DailyPoint:
    date: str
    min_temperature: float | None
    max_temperature: float | None
    icon: str | None
    description: str
    humidity: int | float | None
    wind_speed: float | None
    chance_of_rain: float | None
    uv_index: float | None
    sunrise: str | None
    sunset: str | None
    moonrise: str | None
    moonset: str | None
    moon_phase: str | None


@dataclass(frozen=True)
class ForecastSet:
    location: Location
    hourly: list[HourlyPoint] = field(default_factory=list)
    daily: list[DailyPoint] = field(default_factory=list)


@dataclass(frozen=True)
class PlaceCandidate:
    name: str
    region: str
    country: str
    latitude: float
    longitude: float
    url: str | None = None


@dataclass(frozen=True)
class Astronomy:
    sunrise: str | None
    sunset: str | None
    moonrise: str | None
    moonset: str | None
    moon_phase: str | None
    moon_illumination: str | None
