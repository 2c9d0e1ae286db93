from __future__ import annotations

import asyncio
import logging
import time
from collections.abc import Callable
from dataclasses import dataclass, replace
from datetime import datetime, timezone
from typing import Protocol

from skycast.core.errors import NotFoundError, SkyCastError, ValidationError
from skycast.models.preferences import FavoriteCity
from skycast.models.query import Query
from skycast.models.weather import WeatherSnapshot
from skycast.repositories.preferences import PreferenceStore

logger = logging.getLogger(__name__)


class CurrentWeatherSource(Protocol):
    async def current(self, query: Query) -> WeatherSnapshot: ...


@dataclass(frozen=True)
class FavoritesRefreshResult:
    requested: int
    refreshed: int
    failed: int
    favorites: list[FavoriteCity]


def _millis() -> int:
    return time.time_ns() // 1_000_000


class FavoritesManager:
    def __init__(
        self,
        *,
        source: CurrentWeatherSource,
        preferences: PreferenceStore,
        id_clock: Callable[[], int] | None = None,
    ) -> None:
        self._source = source
        self._preferences = preferences
        self._id_clock = id_clock or _millis
        self._last_id = 0

    def list_all(self) -> list[FavoriteCity]:
        return self._preferences.get_favorites()

    async def add(self, city: str) -> FavoriteCity:
        """Verify ``city`` resolves and store it under the provider's name.

        Nothing is persisted when the lookup fails.
        """
        name = city.strip()
        if not name:
            raise ValidationError("City name is required")

        weather = await self._source.current(Query.for_city(name))
        favorite = FavoriteCity(
            id=self._next_id(),
            name=weather.location.display_name,
            added_at=datetime.now(tz=timezone.utc).isoformat(),
            weather=weather,
        )
        self._preferences.save_favorites([*self._preferences.get_favorites(), favorite])
        logger.info("Added favorite %s (%s)", favorite.name, favorite.id)
        return favorite

    def remove(self, favorite_id: str) -> bool:
        favorites = self._preferences.get_favorites()
        remaining = [f for f in favorites if f.id != favorite_id]
        if len(remaining) == len(favorites):
            return False
        self._preferences.save_favorites(remaining)
        logger.info("Removed favorite %s", favorite_id)
        return True

    async def refresh(self, favorite_id: str) -> FavoriteCity:
        favorites = self._preferences.get_favorites()
        target = next((f for f in favorites if f.id == favorite_id), None)
        if target is None:
            raise NotFoundError(f"Favorite {favorite_id} not found")

        refreshed = await self._fetch(target)
        self._store_refreshed({refreshed.id: refreshed})
        return refreshed

    async def refresh_all(self) -> FavoritesRefreshResult:
        favorites = self._preferences.get_favorites()
        results = await asyncio.gather(
            *(self._fetch(f) for f in favorites), return_exceptions=True
        )

        updated: dict[str, FavoriteCity] = {}
        failed = 0
        for favorite, result in zip(favorites, results):
            if isinstance(result, SkyCastError):
                logger.error("Failed to refresh weather for %s: %s", favorite.name, result.message)
                failed += 1
            elif isinstance(result, BaseException):
                raise result
            else:
                updated[favorite.id] = result

        merged = self._store_refreshed(updated)
        return FavoritesRefreshResult(
            requested=len(favorites),
            refreshed=len(updated),
            failed=failed,
            favorites=merged,
        )

    async def _fetch(self, favorite: FavoriteCity) -> FavoriteCity:
        weather = await self._source.current(Query.for_city(favorite.name))
        return replace(favorite, weather=weather)

    def _store_refreshed(self, updated: dict[str, FavoriteCity]) -> list[FavoriteCity]:
        # Entries removed while fetching stay removed.
        merged = [updated.get(f.id, f) for f in self._preferences.get_favorites()]
        if updated:
            self._preferences.save_favorites(merged)
        return merged

    def _next_id(self) -> str:
        candidate = self._id_clock()
        existing = {f.id for f in self._preferences.get_favorites()}
        while candidate <= self._last_id or str(candidate) in existing:
            candidate += 1
        self._last_id = candidate
        return str(candidate)
