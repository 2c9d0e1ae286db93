from __future__ import annotations

import logging
from typing import Any

import httpx

from skycast.core.config import WEATHERAPI_BASE_URL
from skycast.core.errors import NotFoundError, UpstreamError
from skycast.models.weather import (
    AirQuality,
    Astronomy,
    DailyPoint,
    ForecastSet,
    HourlyPoint,
    Location,
    PlaceCandidate,
    WeatherSnapshot,
)

logger = logging.getLogger(__name__)

# WeatherAPI.com error code for "No matching location found."
NO_MATCHING_LOCATION = 1006


class WeatherApiClient:
    """Thin synchronous client for the WeatherAPI.com v1 JSON endpoints.

    Every method returns the provider's raw payload. Failures are raised as
    ``UpstreamError`` carrying the provider status; nothing is retried.
    """

    def __init__(
        self,
        *,
        api_key: str,
        timeout_seconds: float,
        base_url: str = WEATHERAPI_BASE_URL,
        transport: httpx.BaseTransport | None = None,
    ) -> None:
        self._api_key = api_key
        self._base_url = base_url.rstrip("/")
        self._client = httpx.Client(
            timeout=timeout_seconds,
            headers={"Accept": "application/json"},
            transport=transport,
        )

    @property
    def has_api_key(self) -> bool:
        return bool(self._api_key)

    def close(self) -> None:
        self._client.close()

    def fetch_current(self, q: str) -> dict[str, Any]:
        return self._get(
            "current.json",
            {"q": q, "aqi": "yes"},
            failure="Weather API call failed",
        )

    def fetch_forecast(self, q: str, *, days: int) -> dict[str, Any]:
        return self._get(
            "forecast.json",
            {"q": q, "days": str(days), "aqi": "yes", "alerts": "yes"},
            failure="Forecast API call failed",
        )

    def fetch_search(self, q: str) -> list[dict[str, Any]]:
        payload = self._get("search.json", {"q": q}, failure="Search API call failed")
        if not isinstance(payload, list):
            raise UpstreamError("Invalid search data received")
        return payload

    def fetch_astronomy(self, q: str) -> dict[str, Any]:
        return self._get(
            "astronomy.json", {"q": q}, failure="Astronomy API call failed"
        )

    def _get(self, endpoint: str, params: dict[str, str], *, failure: str) -> Any:
        url = f"{self._base_url}/{endpoint}"
        logger.info("Making provider request to %s q=%s", endpoint, params.get("q"))
        try:
            resp = self._client.get(url, params={"key": self._api_key, **params})
        except httpx.RequestError as e:
            logger.error("Provider request to %s failed: %s", endpoint, e)
            raise UpstreamError(failure) from e

        if resp.is_error:
            message, code = _error_details(resp)
            logger.error(
                "Provider %s returned %d: %s", endpoint, resp.status_code, message or "-"
            )
            if code == NO_MATCHING_LOCATION:
                raise NotFoundError(message or "City not found", status_code=resp.status_code)
            raise UpstreamError(message or failure, status_code=resp.status_code)

        try:
            return resp.json()
        except ValueError as e:
            raise UpstreamError(f"Invalid response from {endpoint}") from e


def _error_details(resp: httpx.Response) -> tuple[str | None, int | None]:
    try:
        body = resp.json()
    except ValueError:
        return None, None
    error = body.get("error") if isinstance(body, dict) else None
    if not isinstance(error, dict):
        return None, None
    code = error.get("code")
    return _str_or_none(error.get("message")), code if isinstance(code, int) else None


def parse_location(payload: dict[str, Any]) -> Location:
    loc = payload.get("location")
    if not isinstance(loc, dict):
        raise UpstreamError("Invalid weather data received")
    return Location(
        latitude=float(loc.get("lat", 0.0)),
        longitude=float(loc.get("lon", 0.0)),
        city_name=str(loc.get("name", "")),
        country=str(loc.get("country", "")),
        region=str(loc.get("region") or ""),
    )


def parse_current(payload: dict[str, Any]) -> WeatherSnapshot:
    current = payload.get("current") if isinstance(payload, dict) else None
    if not isinstance(current, dict) or not isinstance(payload.get("location"), dict):
        raise UpstreamError("Invalid weather data received")

    condition = current.get("condition") or {}
    text = str(condition.get("text") or "")
    return WeatherSnapshot(
        location=parse_location(payload),
        temperature=_float_or_none(current.get("temp_c")),
        feels_like=_float_or_none(current.get("feelslike_c")),
        humidity=_number_or_none(current.get("humidity")),
        wind_speed=_float_or_none(current.get("wind_kph")),
        wind_degree=_number_or_none(current.get("wind_degree")),
        wind_dir=_str_or_none(current.get("wind_dir")),
        uv_index=_float_or_none(current.get("uv")),
        visibility=_float_or_none(current.get("vis_km")),
        pressure=_float_or_none(current.get("pressure_mb")),
        dew_point=_float_or_none(current.get("dewpoint_c")),
        description=text,
        condition=text.lower(),
        icon=_str_or_none(condition.get("icon")),
        local_time=_str_or_none(payload["location"].get("localtime")),
        air_quality=_parse_air_quality(current.get("air_quality")),
    )


def _parse_air_quality(raw: Any) -> AirQuality | None:
    if not isinstance(raw, dict):
        return None
    return AirQuality(
        co=_float_or_none(raw.get("co")),
        no2=_float_or_none(raw.get("no2")),
        o3=_float_or_none(raw.get("o3")),
        so2=_float_or_none(raw.get("so2")),
        pm2_5=_float_or_none(raw.get("pm2_5")),
        pm10=_float_or_none(raw.get("pm10")),
        us_epa_index=_int_or_none(raw.get("us-epa-index")),
        gb_defra_index=_int_or_none(raw.get("gb-defra-index")),
    )


def parse_forecast(payload: dict[str, Any], *, hour: int, max_hours: int = 24) -> ForecastSet:
    """Normalize a forecast payload.

    ``hourly`` starts at ``hour`` on the first provider day and continues into
    the following day until ``max_hours`` entries are collected.
    """
    forecast = payload.get("forecast") if isinstance(payload, dict) else None
    days = forecast.get("forecastday") if isinstance(forecast, dict) else None
    if not isinstance(days, list) or not days:
        raise UpstreamError("Invalid forecast data received")

    hourly: list[HourlyPoint] = [
        _parse_hour(h) for h in (days[0].get("hour") or [])[hour:]
    ]
    if len(hourly) < max_hours and len(days) > 1:
        remaining = max_hours - len(hourly)
        hourly.extend(_parse_hour(h) for h in (days[1].get("hour") or [])[:remaining])

    return ForecastSet(
        location=parse_location(payload),
        hourly=hourly[:max_hours],
        daily=[_parse_day(d) for d in days],
    )


def _parse_hour(raw: dict[str, Any]) -> HourlyPoint:
    condition = raw.get("condition") or {}
    return HourlyPoint(
        time=str(raw.get("time", "")),
        temperature=_float_or_none(raw.get("temp_c")),
        feels_like=_float_or_none(raw.get("feelslike_c")),
        icon=_str_or_none(condition.get("icon")),
        description=str(condition.get("text") or ""),
        humidity=_number_or_none(raw.get("humidity")),
        wind_speed=_float_or_none(raw.get("wind_kph")),
        chance_of_rain=_float_or_none(raw.get("chance_of_rain")),
    )


def _parse_day(raw: dict[str, Any]) -> DailyPoint:
    day = raw.get("day") or {}
    astro = raw.get("astro") or {}
    condition = day.get("condition") or {}
    return DailyPoint(
        date=str(raw.get("date", "")),
        min_temperature=_float_or_none(day.get("mintemp_c")),
        max_temperature=_float_or_none(day.get("maxtemp_c")),
        icon=_str_or_none(condition.get("icon")),
        description=str(condition.get("text") or ""),
        humidity=_number_or_none(day.get("avghumidity")),
        wind_speed=_float_or_none(day.get("maxwind_kph")),
        chance_of_rain=_float_or_none(day.get("daily_chance_of_rain")),
        uv_index=_float_or_none(day.get("uv")),
        sunrise=_str_or_none(astro.get("sunrise")),
        sunset=_str_or_none(astro.get("sunset")),
        moonrise=_str_or_none(astro.get("moonrise")),
        moonset=_str_or_none(astro.get("moonset")),
        moon_phase=_str_or_none(astro.get("moon_phase")),
    )


def parse_search(payload: list[dict[str, Any]]) -> list[PlaceCandidate]:
    return [
        PlaceCandidate(
            name=str(item.get("name", "")),
            region=str(item.get("region") or ""),
            country=str(item.get("country", "")),
            latitude=float(item.get("lat", 0.0)),
            longitude=float(item.get("lon", 0.0)),
            url=_str_or_none(item.get("url")),
        )
        for item in payload
        if isinstance(item, dict)
    ]


def parse_astronomy(payload: dict[str, Any]) -> Astronomy:
    try:
        astro = payload["astronomy"]["astro"]
    except (KeyError, TypeError) as e:
        raise UpstreamError("Invalid astronomy data received") from e
    return Astronomy(
        sunrise=_str_or_none(astro.get("sunrise")),
        sunset=_str_or_none(astro.get("sunset")),
        moonrise=_str_or_none(astro.get("moonrise")),
        moonset=_str_or_none(astro.get("moonset")),
        moon_phase=_str_or_none(astro.get("moon_phase")),
        moon_illumination=_str_or_none(astro.get("moon_illumination")),
    )


def _float_or_none(v: Any) -> float | None:
    try:
        if v is None:
            return None
        return float(v)
    except (TypeError, ValueError):
        return None


def _number_or_none(v: Any) -> int | float | None:
    """Like ``_float_or_none`` but keeps provider integers as ``int``."""
    if isinstance(v, bool):
        return None
    if isinstance(v, int):
        return v
    return _float_or_none(v)


def _int_or_none(v: Any) -> int | None:
    try:
        if v is None:
            return None
        return int(v)
    except (TypeError, ValueError):
        return None


def _str_or_none(v: Any) -> str | None:
    if v is None:
        return None
    if isinstance(v, str):
        return v
    return str(v)
