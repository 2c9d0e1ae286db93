from __future__ import annotations

import asyncio
import logging
from collections.abc import Callable
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Protocol

from skycast.core.errors import LocationPermissionError

logger = logging.getLogger(__name__)

GEOLOCATION_TIMEOUT_SECONDS = 10.0
GEOLOCATION_MAXIMUM_AGE_SECONDS = 300.0


@dataclass(frozen=True)
class Position:
    lat: float
    lon: float
    timestamp: datetime


class GeolocationProvider(Protocol):
    async def read_position(self) -> Position: ...


class StaticGeolocation:
    """Reports a fixed position, e.g. one taken from configuration."""

    def __init__(
        self,
        lat: float,
        lon: float,
        *,
        clock: Callable[[], datetime] | None = None,
    ) -> None:
        self._lat = lat
        self._lon = lon
        self._clock = clock or (lambda: datetime.now(tz=timezone.utc))

    async def read_position(self) -> Position:
        return Position(lat=self._lat, lon=self._lon, timestamp=self._clock())


class UnsupportedGeolocation:
    async def read_position(self) -> Position:
        raise LocationPermissionError("Geolocation is not supported")


class Geolocator:
    """Reads device positions with a timeout, reusing recent fixes.

    A fix no older than ``maximum_age_seconds`` is returned without asking the
    provider again. Every failure surfaces as ``LocationPermissionError``.
    """

    def __init__(
        self,
        provider: GeolocationProvider,
        *,
        timeout_seconds: float = GEOLOCATION_TIMEOUT_SECONDS,
        maximum_age_seconds: float = GEOLOCATION_MAXIMUM_AGE_SECONDS,
        clock: Callable[[], datetime] | None = None,
    ) -> None:
        self._provider = provider
        self._timeout_seconds = timeout_seconds
        self._maximum_age_seconds = maximum_age_seconds
        self._clock = clock or (lambda: datetime.now(tz=timezone.utc))
        self._last_fix: Position | None = None

    async def locate(self) -> Position:
        cached = self._last_fix
        if cached is not None:
            age = (self._clock() - cached.timestamp).total_seconds()
            if age <= self._maximum_age_seconds:
                return cached

        try:
            position = await asyncio.wait_for(
                self._provider.read_position(), timeout=self._timeout_seconds
            )
        except asyncio.TimeoutError as e:
            logger.warning("Geolocation timed out after %.1fs", self._timeout_seconds)
            raise LocationPermissionError("Timed out getting location") from e
        except LocationPermissionError:
            raise
        except Exception as e:  # noqa: BLE001
            logger.warning("Geolocation error: %s", e)
            raise LocationPermissionError("Failed to get location") from e

        self._last_fix = position
        logger.info("Got current location: %.4f, %.4f", position.lat, position.lon)
        return position
