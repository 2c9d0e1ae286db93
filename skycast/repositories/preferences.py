from __future__ import annotations

import json
import logging
from typing import Any

from pydantic import TypeAdapter, ValidationError as SchemaError

from skycast.models.preferences import FavoriteCity, LastLocation
from skycast.repositories.kv import KeyValueStore
from skycast.schemas.preferences import FavoriteCityRecord, LastLocationRecord

logger = logging.getLogger(__name__)

LAST_CITY_KEY = "lastSearchedCity"
LAST_LOCATION_KEY = "lastKnownLocation"
RECENT_SEARCHES_KEY = "recentSearches"
FAVORITES_KEY = "weatherFavorites"

MAX_RECENT_SEARCHES = 5

_favorites_adapter = TypeAdapter(list[FavoriteCityRecord])


class PreferenceStore:
    """Typed access to the four persisted preference records.

    Each record is read and written independently; a record that fails to
    decode is treated as absent.
    """

    def __init__(self, store: KeyValueStore) -> None:
        self._store = store

    # last searched city

    def get_last_city(self) -> str | None:
        value = self._store.get(LAST_CITY_KEY)
        return value or None

    def save_last_city(self, city: str) -> None:
        self._store.set(LAST_CITY_KEY, city)

    # last known location

    def get_last_location(self) -> LastLocation | None:
        raw = self._load_json(LAST_LOCATION_KEY)
        if raw is None:
            return None
        try:
            return LastLocationRecord.model_validate(raw).to_model()
        except SchemaError:
            logger.warning("Discarding malformed %s record", LAST_LOCATION_KEY)
            return None

    def save_last_location(self, location: LastLocation) -> None:
        record = LastLocationRecord.from_model(location)
        self._store.set(LAST_LOCATION_KEY, record.model_dump_json())

    # recent searches

    def get_recent_searches(self) -> list[str]:
        raw = self._load_json(RECENT_SEARCHES_KEY)
        if not isinstance(raw, list):
            return []
        return [item for item in raw if isinstance(item, str)][:MAX_RECENT_SEARCHES]

    def add_recent_search(self, city: str) -> list[str]:
        recent = self.get_recent_searches()
        updated = [city, *(c for c in recent if c != city)][:MAX_RECENT_SEARCHES]
        self._store.set(RECENT_SEARCHES_KEY, json.dumps(updated))
        return updated

    def remove_recent_search(self, city: str) -> list[str]:
        updated = [c for c in self.get_recent_searches() if c != city]
        self._store.set(RECENT_SEARCHES_KEY, json.dumps(updated))
        return updated

    # favorites

    def get_favorites(self) -> list[FavoriteCity]:
        raw = self._load_json(FAVORITES_KEY)
        if raw is None:
            return []
        try:
            records = _favorites_adapter.validate_python(raw)
        except SchemaError:
            logger.warning("Discarding malformed %s record", FAVORITES_KEY)
            return []
        return [r.to_model() for r in records]

    def save_favorites(self, favorites: list[FavoriteCity]) -> None:
        records = [FavoriteCityRecord.from_model(f) for f in favorites]
        self._store.set(
            FAVORITES_KEY,
            _favorites_adapter.dump_json(records, by_alias=True).decode("utf-8"),
        )

    def clear(self) -> None:
        for key in (LAST_CITY_KEY, LAST_LOCATION_KEY, RECENT_SEARCHES_KEY):
            self._store.delete(key)

    def _load_json(self, key: str) -> Any | None:
        raw = self._store.get(key)
        if raw is None:
            return None
        try:
            return json.loads(raw)
        except ValueError:
            logger.warning("Discarding undecodable %s record", key)
            return None
