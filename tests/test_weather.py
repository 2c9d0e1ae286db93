from __future__ import annotations

import logging
from datetime import datetime

import httpx
import pytest
import respx
from fastapi.testclient import TestClient

from skycast.api import deps
from skycast.core.config import Settings
from skycast.core.errors import UpstreamError
from skycast.factory import create_app
from tests.fakes import PROVIDER_URL, FakeWeatherApiClient, load_fixture


def test_weather_by_city_end_to_end(settings: Settings) -> None:
    app = create_app(settings)
    with respx.mock:
        route = respx.get(f"{PROVIDER_URL}/current.json").mock(
            return_value=httpx.Response(200, json=load_fixture("weatherapi_current_london.json"))
        )
        with TestClient(app) as client:
            resp = client.get("/api/weather", params={"city": "London"})

    assert resp.status_code == 200, resp.text
    body = resp.json()
    assert body["city"] == "London"
    assert body["country"] == "United Kingdom"
    assert body["condition"] == "partly cloudy"
    assert body["description"] == "Partly Cloudy"
    assert "aqi" in body and body["aqi"] is None

    request = route.calls[0].request
    assert request.url.params["q"] == "London"
    assert request.url.params["key"] == "test-key"
    assert request.url.params["aqi"] == "yes"


def test_weather_field_mapping(client: TestClient) -> None:
    resp = client.get("/api/weather", params={"city": "London"})
    assert resp.status_code == 200, resp.text
    body = resp.json()
    assert body["temperature"] == 16.2
    assert body["feelsLike"] == 16.2
    assert body["humidity"] == 59
    assert type(body["humidity"]) is int
    assert type(body["windDirection"]) is int
    assert body["windSpeed"] == 16.9
    assert body["windDirection"] == 280
    assert body["windDir"] == "W"
    assert body["uvIndex"] == 4.0
    assert body["visibility"] == 10.0
    assert body["pressure"] == 1015.0
    assert body["dewPoint"] == 8.1
    assert body["lat"] == 51.52
    assert body["lon"] == -0.11
    assert body["localtime"] == "2024-06-10 13:45"
    assert body["region"] == "City of London, Greater London"


def test_weather_includes_air_quality(
    client: TestClient, fake_provider: FakeWeatherApiClient
) -> None:
    fake_provider.air_quality = True
    body = client.get("/api/weather", params={"city": "Paris"}).json()
    assert body["city"] == "Paris"
    assert body["aqi"]["us_epa_index"] == 1
    assert body["aqi"]["gb_defra_index"] == 1
    assert body["aqi"]["pm2_5"] == 5.5


def test_weather_by_coordinates(client: TestClient, fake_provider: FakeWeatherApiClient) -> None:
    resp = client.get("/api/weather", params={"lat": 51.5, "lon": -0.1})
    assert resp.status_code == 200, resp.text
    assert fake_provider.calls == [("current", "51.5,-0.1")]


def test_weather_requires_city_or_coordinates(client: TestClient) -> None:
    for params in ({}, {"lat": 51.5}, {"city": "  "}):
        resp = client.get("/api/weather", params=params)
        assert resp.status_code == 400
        assert resp.json() == {"error": "City name or coordinates are required"}


def test_weather_rejects_bad_coordinates(client: TestClient) -> None:
    resp = client.get("/api/weather", params={"lat": "north", "lon": 0})
    assert resp.status_code == 400
    assert "error" in resp.json()


def test_weather_unknown_city_passes_provider_status(client: TestClient) -> None:
    resp = client.get("/api/weather", params={"city": "Atlantis"})
    assert resp.status_code == 400
    assert resp.json() == {"error": "No matching location found."}


def test_weather_upstream_failure_passes_status(
    client: TestClient, fake_provider: FakeWeatherApiClient
) -> None:
    fake_provider.errors["London"] = UpstreamError("API key is invalid.", status_code=401)
    resp = client.get("/api/weather", params={"city": "London"})
    assert resp.status_code == 401
    assert resp.json() == {"error": "API key is invalid."}


def test_forecast_windows_hourly_from_requested_hour(client: TestClient) -> None:
    resp = client.get("/api/forecast", params={"city": "London", "hour": 20})
    assert resp.status_code == 200, resp.text
    body = resp.json()

    hourly = body["hourly"]
    assert len(hourly) == 24
    assert hourly[0]["time"] == "2024-06-10 20:00"
    assert hourly[3]["time"] == "2024-06-10 23:00"
    assert hourly[4]["time"] == "2024-06-11 00:00"
    assert hourly[-1]["time"] == "2024-06-11 19:00"
    times = [datetime.strptime(h["time"], "%Y-%m-%d %H:%M") for h in hourly]
    assert all((b - a).total_seconds() == 3600 for a, b in zip(times, times[1:]))
    assert {"temperature", "icon", "description", "humidity", "windSpeed",
            "chanceOfRain", "feelsLike"} <= set(hourly[0])

    daily = body["daily"]
    assert len(daily) == 10
    assert daily[0]["date"] == "2024-06-10"
    assert daily[0]["minTemp"] == 10.0
    assert daily[0]["maxTemp"] == 20.0
    assert daily[0]["sunrise"] == "04:43 AM"
    assert daily[0]["moonPhase"] == "Waxing Crescent"
    assert body["location"] == {
        "name": "London",
        "country": "United Kingdom",
        "lat": 51.52,
        "lon": -0.11,
    }


def test_forecast_defaults_to_server_clock(settings: Settings) -> None:
    app = create_app(settings)
    fake = FakeWeatherApiClient()
    app.dependency_overrides[deps.get_weather_api_client] = lambda: fake
    app.dependency_overrides[deps.get_clock] = lambda: (lambda: datetime(2024, 6, 10, 7, 30))
    with TestClient(app) as client:
        hourly = client.get("/api/forecast", params={"lat": 1, "lon": 2}).json()["hourly"]
    assert len(hourly) == 24
    assert hourly[0]["time"] == "2024-06-10 07:00"
    assert hourly[-1]["time"] == "2024-06-11 06:00"


def test_forecast_at_midnight_stays_within_first_day(client: TestClient) -> None:
    hourly = client.get("/api/forecast", params={"city": "Oslo", "hour": 0}).json()["hourly"]
    assert len(hourly) == 24
    assert hourly[0]["time"].endswith("00:00")
    assert hourly[-1]["time"] == "2024-06-10 23:00"


def test_forecast_rejects_out_of_range_hour(client: TestClient) -> None:
    resp = client.get("/api/forecast", params={"city": "London", "hour": 24})
    assert resp.status_code == 400


def test_search(client: TestClient) -> None:
    resp = client.get("/api/search", params={"q": "lon"})
    assert resp.status_code == 200, resp.text
    places = resp.json()
    assert [p["country"] for p in places] == ["United Kingdom", "Canada"]
    assert places[0] == {
        "name": "London",
        "country": "United Kingdom",
        "region": "City of London, Greater London",
        "lat": 51.52,
        "lon": -0.11,
        "url": "london-city-of-london-greater-london-united-kingdom",
    }


def test_search_requires_query(client: TestClient) -> None:
    resp = client.get("/api/search")
    assert resp.status_code == 400
    assert resp.json() == {"error": "Search query is required"}


def test_astronomy(client: TestClient) -> None:
    resp = client.get("/api/astronomy", params={"city": "London"})
    assert resp.status_code == 200, resp.text
    assert resp.json() == {
        "sunrise": "04:43 AM",
        "sunset": "09:17 PM",
        "moonrise": "07:36 AM",
        "moonset": "12:39 AM",
        "moonPhase": "Waxing Crescent",
        "moonIllumination": "12",
    }


def test_astronomy_requires_query(client: TestClient) -> None:
    assert client.get("/api/astronomy").status_code == 400


def test_precipitation_tile_redirects(client: TestClient) -> None:
    resp = client.get(
        "/api/precipitation-tile",
        params={"z": 3, "x": 4, "y": 2},
        follow_redirects=False,
    )
    assert resp.status_code == 302
    assert resp.headers["location"] == (
        "https://tile.openweathermap.org/map/precipitation_new/3/4/2.png?appid=tile-key"
    )


def test_precipitation_tile_requires_coordinates(client: TestClient) -> None:
    resp = client.get("/api/precipitation-tile", params={"z": 3, "x": 4})
    assert resp.status_code == 400
    assert resp.json() == {"error": "Missing tile parameters (z, x, y)"}


def test_health(client: TestClient) -> None:
    body = client.get("/api/health").json()
    assert body["status"] == "ok"
    assert body["apiKey"] == "configured"
    assert "timestamp" in body


def test_health_reports_missing_key(
    client: TestClient, fake_provider: FakeWeatherApiClient
) -> None:
    fake_provider.api_key = ""
    assert client.get("/api/health").json()["apiKey"] == "missing"


def test_validate_key(client: TestClient, fake_provider: FakeWeatherApiClient) -> None:
    resp = client.get("/api/validate-key")
    assert resp.status_code == 200
    assert resp.json() == {"valid": True, "message": "WeatherAPI key is working"}

    fake_provider.errors["London"] = UpstreamError("API key is invalid.", status_code=401)
    resp = client.get("/api/validate-key")
    assert resp.status_code == 401
    assert resp.json() == {"valid": False, "error": "API key is invalid."}


def test_unknown_endpoint(client: TestClient) -> None:
    resp = client.get("/api/nope")
    assert resp.status_code == 404
    assert resp.json() == {"error": "Endpoint not found"}


def test_responses_are_cached_within_ttl(settings: Settings) -> None:
    settings.cache_ttl_seconds = 300
    app = create_app(settings)
    fake = FakeWeatherApiClient()
    app.dependency_overrides[deps.get_weather_api_client] = lambda: fake
    with TestClient(app) as client:
        first = client.get("/api/weather", params={"city": "London"})
        second = client.get("/api/weather", params={"city": "London"})
        client.get("/api/weather", params={"city": "Paris"})

    assert first.json() == second.json()
    assert fake.calls == [("current", "London"), ("current", "Paris")]


def test_startup_warns_without_tile_key(
    settings: Settings, caplog: pytest.LogCaptureFixture
) -> None:
    app = create_app(settings.model_copy(update={"tile_api_key": ""}))
    app.dependency_overrides[deps.get_weather_api_client] = lambda: FakeWeatherApiClient()
    with caplog.at_level(logging.WARNING, logger="skycast.factory"):
        with TestClient(app):
            pass
    assert "Tile API key is missing" in caplog.text


def test_startup_quiet_with_tile_key(
    settings: Settings, caplog: pytest.LogCaptureFixture
) -> None:
    with caplog.at_level(logging.WARNING, logger="skycast.factory"):
        with TestClient(create_app(settings)):
            pass
    assert "Tile API key" not in caplog.text
