from __future__ import annotations

import logging
import threading
from collections.abc import Callable
from datetime import datetime, timezone
from typing import Any, TypeVar

from skycast.clients.weatherapi import (
    WeatherApiClient,
    parse_astronomy,
    parse_current,
    parse_forecast,
    parse_search,
)
from skycast.core.errors import UpstreamError, ValidationError
from skycast.models.query import Query
from skycast.models.weather import Astronomy, ForecastSet, PlaceCandidate, WeatherSnapshot

logger = logging.getLogger(__name__)

DEFAULT_CACHE_TTL_SECONDS = 300
HOURLY_WINDOW = 24

T = TypeVar("T")


class ResponseCache:
    """Time-boxed store for raw provider payloads.

    Entries older than ``ttl_seconds`` are treated as missing and are purged
    on the next write; a TTL of 0 disables caching entirely.
    """

    def __init__(
        self,
        *,
        ttl_seconds: int = DEFAULT_CACHE_TTL_SECONDS,
        clock: Callable[[], datetime] | None = None,
    ) -> None:
        self._ttl_seconds = max(int(ttl_seconds), 0)
        self._clock = clock or (lambda: datetime.now(tz=timezone.utc))
        self._lock = threading.Lock()
        self._entries: dict[str, tuple[datetime, Any]] = {}

    @property
    def ttl_seconds(self) -> int:
        return self._ttl_seconds

    def get(self, key: str) -> Any | None:
        if self._ttl_seconds <= 0:
            return None
        now = self._clock()
        with self._lock:
            entry = self._entries.get(key)
            if entry is None:
                return None
            stored_at, payload = entry
            if (now - stored_at).total_seconds() >= self._ttl_seconds:
                del self._entries[key]
                return None
            return payload

    def put(self, key: str, payload: Any) -> None:
        if self._ttl_seconds <= 0:
            return
        now = self._clock()
        with self._lock:
            self._entries = {
                k: entry
                for k, entry in self._entries.items()
                if (now - entry[0]).total_seconds() < self._ttl_seconds
            }
            self._entries[key] = (now, payload)

    def clear(self) -> None:
        with self._lock:
            self._entries.clear()

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)


class WeatherGateway:
    def __init__(
        self,
        *,
        client: WeatherApiClient,
        cache: ResponseCache | None = None,
        forecast_days: int = 10,
    ) -> None:
        self._client = client
        self._cache = cache
        self._forecast_days = forecast_days

    def get_current_conditions(self, query: Query) -> WeatherSnapshot:
        q = query.to_provider()
        snapshot = self._cached(
            f"current:{q}", lambda: self._client.fetch_current(q), parse_current
        )
        logger.info("Resolved weather for %s", snapshot.location.display_name)
        return snapshot

    def get_forecast(self, query: Query, *, now: datetime | None = None) -> ForecastSet:
        q = query.to_provider()
        hour = (now or datetime.now()).hour
        forecast = self._cached(
            f"forecast:{self._forecast_days}:{q}",
            lambda: self._client.fetch_forecast(q, days=self._forecast_days),
            lambda payload: parse_forecast(payload, hour=hour, max_hours=HOURLY_WINDOW),
        )
        logger.info(
            "Forecast for %s: %d hourly, %d daily",
            forecast.location.display_name,
            len(forecast.hourly),
            len(forecast.daily),
        )
        return forecast

    def search_places(self, text: str | None) -> list[PlaceCandidate]:
        if text is None or not text.strip():
            raise ValidationError("Search query is required")
        q = text.strip()
        places = self._cached(
            f"search:{q.lower()}", lambda: self._client.fetch_search(q), parse_search
        )
        logger.info("Found %d places for query %r", len(places), q)
        return places

    def get_astronomy(self, query: Query) -> Astronomy:
        q = query.to_provider()
        return self._cached(
            f"astronomy:{q}", lambda: self._client.fetch_astronomy(q), parse_astronomy
        )

    def validate_key(self) -> tuple[bool, str]:
        try:
            self._client.fetch_current("London")
        except UpstreamError as e:
            if e.status_code >= 500:
                raise
            return False, e.message
        return True, "WeatherAPI key is working"

    def _cached(
        self, key: str, fetch: Callable[[], Any], parse: Callable[[Any], T]
    ) -> T:
        if self._cache is not None:
            hit = self._cache.get(key)
            if hit is not None:
                logger.debug("Cache hit for %s", key)
                return parse(hit)
        payload = fetch()
        result = parse(payload)
        if self._cache is not None:
            self._cache.put(key, payload)
        return result
