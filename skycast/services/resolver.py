from __future__ import annotations

import asyncio
import logging
from collections.abc import Awaitable, Callable
from dataclasses import dataclass, replace
from datetime import datetime
from enum import Enum
from typing import Protocol

from skycast.core.errors import SkyCastError, ValidationError
from skycast.models.preferences import LastLocation
from skycast.models.query import Query
from skycast.models.weather import Astronomy, ForecastSet, Location, WeatherSnapshot
from skycast.repositories.preferences import PreferenceStore
from skycast.services.geolocation import Geolocator

logger = logging.getLogger(__name__)

DEFAULT_CITY = "Chennai"
EXHAUSTED_MESSAGE = "Failed to load weather data"
CANCELLED_MESSAGE = "Weather request cancelled"


class WeatherSource(Protocol):
    async def current(self, query: Query) -> WeatherSnapshot: ...

    async def forecast(self, query: Query, *, hour: int | None = None) -> ForecastSet: ...

    async def astronomy(self, query: Query) -> Astronomy: ...


class ResolutionStatus(str, Enum):
    IDLE = "idle"
    RESOLVING = "resolving"
    RESOLVED = "resolved"
    FAILED = "failed"


@dataclass(frozen=True)
class ResolverState:
    status: ResolutionStatus = ResolutionStatus.IDLE
    location: Location | None = None
    weather: WeatherSnapshot | None = None
    display_name: str | None = None
    error: str | None = None
    generation: int = 0


class ResolutionContext:
    """Coordinates of the most recent successful resolution.

    Derived lookups (forecast, astronomy) read their query from here.
    """

    def __init__(self) -> None:
        self._lat: float | None = None
        self._lon: float | None = None

    @property
    def coordinates(self) -> tuple[float, float] | None:
        if self._lat is None or self._lon is None:
            return None
        return self._lat, self._lon

    def remember(self, lat: float, lon: float) -> None:
        self._lat = lat
        self._lon = lon

    def query(self) -> Query:
        coords = self.coordinates
        if coords is None:
            raise ValidationError("No location specified")
        return Query.for_coordinates(*coords)


@dataclass(frozen=True)
class _Outcome:
    weather: WeatherSnapshot
    display_name: str
    searched_city: str | None = None
    record_recent: bool = False


Listener = Callable[[ResolverState], None]


class LocationResolver:
    """Decides which location's weather is current and keeps it consistent.

    Only one resolution runs at a time: a new request cancels the in-flight
    one, and a result may only be committed by the most recent request.
    """

    def __init__(
        self,
        *,
        source: WeatherSource,
        preferences: PreferenceStore,
        geolocator: Geolocator,
        context: ResolutionContext | None = None,
        default_city: str = DEFAULT_CITY,
        clock: Callable[[], datetime] | None = None,
    ) -> None:
        self._source = source
        self._preferences = preferences
        self._geolocator = geolocator
        self._context = context or ResolutionContext()
        self._default_city = default_city
        self._clock = clock or datetime.now
        self._state = ResolverState()
        self._generation = 0
        self._inflight: asyncio.Task[_Outcome] | None = None
        self._listeners: list[Listener] = []

    @property
    def state(self) -> ResolverState:
        return self._state

    @property
    def context(self) -> ResolutionContext:
        return self._context

    def subscribe(self, listener: Listener) -> Callable[[], None]:
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    async def start(self) -> ResolverState:
        """Run the start-up fallback chain.

        Sources are tried in order: device geolocation, last searched city,
        last known coordinates, then the default city. Exhausting them all
        leaves the resolver in ``FAILED`` without raising.
        """
        try:
            return await self._submit(self._start_chain)
        except SkyCastError:
            return self._state

    async def search_city(self, city: str) -> ResolverState:
        name = city.strip()
        if not name:
            raise ValidationError("City name is required")

        async def job() -> _Outcome:
            weather = await self._source.current(Query.for_city(name))
            return _Outcome(
                weather=weather,
                display_name=weather.location.display_name,
                searched_city=name,
                record_recent=True,
            )

        return await self._submit(job)

    async def use_my_location(self) -> ResolverState:
        async def job() -> _Outcome:
            position = await self._geolocator.locate()
            return await self._by_coordinates(position.lat, position.lon)

        return await self._submit(job)

    async def select_coordinates(self, lat: float, lon: float) -> ResolverState:
        return await self._submit(lambda: self._by_coordinates(lat, lon))

    async def forecast(self, *, hour: int | None = None) -> ForecastSet:
        """Forecast for the resolved coordinates, windowed from ``hour``.

        ``hour`` defaults to the local hour so the gateway's own clock is
        never used.
        """
        query = self._context.query()
        if hour is None:
            hour = self._clock().hour
        return await self._source.forecast(query, hour=hour)

    async def astronomy(self) -> Astronomy:
        return await self._source.astronomy(self._context.query())

    async def _start_chain(self) -> _Outcome:
        try:
            position = await self._geolocator.locate()
            return await self._by_coordinates(position.lat, position.lon)
        except SkyCastError as e:
            logger.info("Location access failed: %s", e.message)

        last_city = self._preferences.get_last_city()
        if last_city:
            logger.info("Loading last searched city: %s", last_city)
            try:
                weather = await self._source.current(Query.for_city(last_city))
                return _Outcome(
                    weather=weather,
                    display_name=weather.location.display_name,
                    searched_city=last_city,
                )
            except SkyCastError as e:
                logger.info("Last searched city failed: %s", e.message)

        last_location = self._preferences.get_last_location()
        if last_location is not None:
            logger.info("Loading last known location: %s", last_location.name or "-")
            try:
                outcome = await self._by_coordinates(last_location.lat, last_location.lon)
                if last_location.name:
                    outcome = replace(outcome, display_name=last_location.name)
                return outcome
            except SkyCastError as e:
                logger.info("Last known location failed: %s", e.message)

        logger.info("Falling back to %s", self._default_city)
        try:
            weather = await self._source.current(Query.for_city(self._default_city))
        except SkyCastError as e:
            logger.error("Failed to load initial weather: %s", e.message)
            raise SkyCastError(EXHAUSTED_MESSAGE) from e
        return _Outcome(
            weather=weather,
            display_name=weather.location.display_name,
            searched_city=self._default_city,
        )

    async def _by_coordinates(self, lat: float, lon: float) -> _Outcome:
        weather = await self._source.current(Query.for_coordinates(lat, lon))
        return _Outcome(weather=weather, display_name=weather.location.display_name)

    async def _submit(self, job: Callable[[], Awaitable[_Outcome]]) -> ResolverState:
        self._generation += 1
        generation = self._generation

        previous = self._inflight
        if previous is not None and not previous.done():
            logger.debug("Cancelling superseded resolution")
            previous.cancel()

        self._publish(
            replace(
                self._state,
                status=ResolutionStatus.RESOLVING,
                error=None,
                generation=generation,
            )
        )

        task: asyncio.Task[_Outcome] = asyncio.ensure_future(job())
        self._inflight = task
        try:
            outcome = await task
        except asyncio.CancelledError:
            if task.cancelled() and generation != self._generation:
                return self._state
            task.cancel()
            if generation == self._generation:
                logger.info("Resolution cancelled by caller")
                self._publish(
                    replace(
                        self._state,
                        status=ResolutionStatus.FAILED,
                        error=CANCELLED_MESSAGE,
                        generation=generation,
                    )
                )
            raise
        except SkyCastError as e:
            if generation != self._generation:
                return self._state
            self._publish(
                replace(
                    self._state,
                    status=ResolutionStatus.FAILED,
                    error=e.message,
                    generation=generation,
                )
            )
            raise
        finally:
            if self._inflight is task:
                self._inflight = None

        if generation != self._generation:
            logger.debug("Discarding stale resolution for %s", outcome.display_name)
            return self._state

        self._commit(outcome, generation)
        return self._state

    def _commit(self, outcome: _Outcome, generation: int) -> None:
        weather = outcome.weather
        location = weather.location
        self._context.remember(location.latitude, location.longitude)
        self._publish(
            ResolverState(
                status=ResolutionStatus.RESOLVED,
                location=location,
                weather=weather,
                display_name=outcome.display_name,
                error=None,
                generation=generation,
            )
        )

        if outcome.searched_city is not None:
            self._preferences.save_last_city(outcome.searched_city)
        if outcome.record_recent and outcome.searched_city is not None:
            self._preferences.add_recent_search(outcome.searched_city)
        self._preferences.save_last_location(
            LastLocation(
                lat=location.latitude,
                lon=location.longitude,
                name=outcome.display_name,
            )
        )

    def _publish(self, state: ResolverState) -> None:
        self._state = state
        for listener in list(self._listeners):
            try:
                listener(state)
            except Exception:  # noqa: BLE001
                logger.exception("Resolver listener failed")
