from __future__ import annotations

from pydantic import AnyHttpUrl, Field
from pydantic_settings import BaseSettings, SettingsConfigDict

WEATHERAPI_BASE_URL = "https://api.weatherapi.com/v1"
PRECIPITATION_TILE_URL = (
    "https://tile.openweathermap.org/map/precipitation_new/{z}/{x}/{y}.png?appid={key}"
)


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_file=".env",
        env_prefix="SKYCAST_",
        case_sensitive=False,
    )

    env: str = Field(default="development")
    debug: bool = Field(default=False)
    docs_enabled: bool = Field(default=True)
    log_level: str = Field(default="INFO")

    cors_origins: list[str] = Field(default_factory=list)
    trusted_hosts: list[str] = Field(default_factory=list)

    weather_api_key: str = Field(default="")
    weather_api_base_url: AnyHttpUrl = Field(default=WEATHERAPI_BASE_URL)
    weather_timeout_seconds: float = Field(default=10.0, ge=1.0, le=60.0)
    forecast_days: int = Field(default=10, ge=1, le=14)
    cache_ttl_seconds: int = Field(default=300, ge=0, le=3600)

    tile_url_template: str = Field(default=PRECIPITATION_TILE_URL, min_length=10)
    tile_api_key: str = Field(default="")

    gateway_url: AnyHttpUrl = Field(default="http://localhost:3001/api")
    default_city: str = Field(default="Chennai", min_length=1, max_length=128)
    geolocation_lat: float | None = Field(default=None, ge=-90.0, le=90.0)
    geolocation_lon: float | None = Field(default=None, ge=-180.0, le=180.0)

    @property
    def is_production(self) -> bool:
        return self.env.lower() == "production"

    @property
    def api_base_url(self) -> str:
        return str(self.weather_api_base_url).rstrip("/")


def load_settings() -> Settings:
    settings = Settings()
    if not settings.cors_origins:
        settings.cors_origins = ["http://localhost:3000", "http://localhost:8080"]
    return settings
