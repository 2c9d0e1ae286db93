from __future__ import annotations

import pytest
from fastapi.testclient import TestClient

from skycast.api import deps
from skycast.core.config import Settings
from skycast.factory import create_app
from skycast.repositories.kv import InMemoryKeyValueStore
from skycast.repositories.preferences import PreferenceStore
from tests.fakes import PROVIDER_URL, FakeWeatherApiClient


@pytest.fixture()
def settings() -> Settings:
    return Settings(
        _env_file=None,
        env="test",
        debug=True,
        docs_enabled=False,
        log_level="DEBUG",
        cors_origins=["http://localhost"],
        trusted_hosts=["testserver", "localhost"],
        weather_api_key="test-key",
        weather_api_base_url=PROVIDER_URL,
        weather_timeout_seconds=1.0,
        cache_ttl_seconds=0,
        tile_api_key="tile-key",
    )


@pytest.fixture()
def fake_provider() -> FakeWeatherApiClient:
    return FakeWeatherApiClient()


@pytest.fixture()
def client(settings: Settings, fake_provider: FakeWeatherApiClient) -> TestClient:
    app = create_app(settings)
    app.dependency_overrides[deps.get_weather_api_client] = lambda: fake_provider
    with TestClient(app) as client:
        yield client


@pytest.fixture()
def kv() -> InMemoryKeyValueStore:
    return InMemoryKeyValueStore()


@pytest.fixture()
def preferences(kv: InMemoryKeyValueStore) -> PreferenceStore:
    return PreferenceStore(kv)
