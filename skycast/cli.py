"""Command-line shell over the SkyCast client: resolve, forecast, favorites."""

from __future__ import annotations

import argparse
import asyncio
import logging
import sys
from pathlib import Path

import uvicorn

from skycast.clients.gateway import GatewayClient
from skycast.core.config import Settings, load_settings
from skycast.core.errors import SkyCastError
from skycast.core.logging import configure_logging
from skycast.models.weather import ForecastSet, WeatherSnapshot
from skycast.repositories.kv import JsonFileKeyValueStore
from skycast.repositories.preferences import PreferenceStore
from skycast.services.favorites import FavoritesManager
from skycast.services.geolocation import (
    GeolocationProvider,
    Geolocator,
    StaticGeolocation,
    UnsupportedGeolocation,
)
from skycast.services.resolver import LocationResolver, ResolutionStatus

logger = logging.getLogger(__name__)

DEFAULT_STORE = "~/.skycast/preferences.json"


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="skycast", description="SkyCast weather lookup")
    parser.add_argument("--gateway-url", default=None, help="Gateway base URL (…/api)")
    parser.add_argument("--store", default=DEFAULT_STORE, help="Preferences JSON path")
    parser.add_argument("-v", "--verbose", action="store_true", help="Debug logging")

    sub = parser.add_subparsers(dest="command")

    serve_p = sub.add_parser("serve", help="Run the weather gateway")
    serve_p.add_argument("--port", type=int, default=3001)

    now_p = sub.add_parser("now", help="Show current conditions")
    now_p.add_argument("city", nargs="?", help="City to search (default: start-up chain)")
    now_p.add_argument("--here", action="store_true", help="Use device location")

    fc_p = sub.add_parser("forecast", help="Hourly and daily forecast for the last location")
    fc_p.add_argument("--hour", type=int, default=None, help="Local hour to start from")

    search_p = sub.add_parser("search", help="Search places")
    search_p.add_argument("text")

    recent_p = sub.add_parser("recent", help="Show recent searches")
    recent_p.add_argument("--remove", default=None, help="Forget one recent search")
    recent_p.add_argument("--clear", action="store_true", help="Forget city, location, recents")

    fav_p = sub.add_parser("favorites", help="Manage favorite cities")
    fav_sub = fav_p.add_subparsers(dest="action")
    fav_sub.add_parser("list", help="List favorites")
    add_p = fav_sub.add_parser("add", help="Add a favorite city")
    add_p.add_argument("city")
    rm_p = fav_sub.add_parser("remove", help="Remove a favorite by id")
    rm_p.add_argument("id")
    rf_p = fav_sub.add_parser("refresh", help="Refresh one or all favorites")
    rf_p.add_argument("id", nargs="?")

    return parser


def main(argv: list[str] | None = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)
    if args.command is None:
        parser.print_help()
        return 1

    settings = load_settings()
    configure_logging("DEBUG" if args.verbose else settings.log_level)

    if args.command == "serve":
        uvicorn.run(
            "skycast.main:app",
            host="0.0.0.0",
            port=args.port,
            reload=not settings.is_production,
        )
        return 0

    try:
        return asyncio.run(_run(args, settings))
    except SkyCastError as e:
        print(f"Error: {e.message}", file=sys.stderr)
        return 1


async def _run(args: argparse.Namespace, settings: Settings) -> int:
    preferences = PreferenceStore(JsonFileKeyValueStore(Path(args.store)))
    base_url = args.gateway_url or str(settings.gateway_url)

    async with GatewayClient(base_url=base_url) as gateway:
        if args.command == "recent":
            return _recent(args, preferences)
        if args.command == "search":
            for place in await gateway.search(args.text):
                print(
                    f"{place.name}, {place.region}, {place.country}"
                    f" ({place.latitude}, {place.longitude})"
                )
            return 0
        if args.command == "favorites":
            manager = FavoritesManager(source=gateway, preferences=preferences)
            return await _favorites(args, manager)

        resolver = LocationResolver(
            source=gateway,
            preferences=preferences,
            geolocator=Geolocator(_geolocation_provider(settings)),
            default_city=settings.default_city,
        )
        if args.command == "now":
            if args.city:
                state = await resolver.search_city(args.city)
            elif args.here:
                state = await resolver.use_my_location()
            else:
                state = await resolver.start()
            if state.status is not ResolutionStatus.RESOLVED or state.weather is None:
                print(f"Error: {state.error or 'Failed to load weather data'}", file=sys.stderr)
                return 1
            print(format_snapshot(state.weather, state.display_name))
            return 0

        if args.command == "forecast":
            last = preferences.get_last_location()
            if last is None:
                state = await resolver.start()
                if state.status is not ResolutionStatus.RESOLVED:
                    print(f"Error: {state.error}", file=sys.stderr)
                    return 1
            else:
                resolver.context.remember(last.lat, last.lon)
            print(format_forecast(await resolver.forecast(hour=args.hour)))
            return 0

    return 1


def _recent(args: argparse.Namespace, preferences: PreferenceStore) -> int:
    if args.clear:
        preferences.clear()
        return 0
    recent = (
        preferences.remove_recent_search(args.remove)
        if args.remove
        else preferences.get_recent_searches()
    )
    for name in recent:
        print(name)
    return 0


async def _favorites(args: argparse.Namespace, favorites: FavoritesManager) -> int:
    action = args.action or "list"
    if action == "add":
        favorite = await favorites.add(args.city)
        print(f"Added {favorite.name} ({favorite.id})")
        return 0
    if action == "remove":
        if not favorites.remove(args.id):
            print(f"No favorite with id {args.id}", file=sys.stderr)
            return 1
        return 0
    if action == "refresh":
        if args.id:
            await favorites.refresh(args.id)
        else:
            result = await favorites.refresh_all()
            if result.failed:
                print(f"{result.failed} of {result.requested} favorites failed to refresh")

    for favorite in favorites.list_all():
        line = f"{favorite.id}  {favorite.name}"
        if favorite.weather is not None:
            line += f"  {_temp(favorite.weather.temperature)}  {favorite.weather.description}"
        print(line)
    return 0


def _geolocation_provider(settings: Settings) -> GeolocationProvider:
    if settings.geolocation_lat is not None and settings.geolocation_lon is not None:
        return StaticGeolocation(settings.geolocation_lat, settings.geolocation_lon)
    return UnsupportedGeolocation()


def _temp(value: float | None) -> str:
    return "--" if value is None else f"{value:.0f}°C"


def format_snapshot(weather: WeatherSnapshot, display_name: str | None = None) -> str:
    lines = [
        display_name or weather.location.display_name,
        f"  {_temp(weather.temperature)} {weather.description}"
        f" (feels like {_temp(weather.feels_like)})",
        f"  humidity {weather.humidity}%  wind {weather.wind_speed} km/h"
        f" {weather.wind_dir or ''}".rstrip(),
        f"  pressure {weather.pressure} mb  visibility {weather.visibility} km"
        f"  uv {weather.uv_index}",
    ]
    if weather.air_quality is not None:
        lines.append(f"  air quality (US EPA) {weather.air_quality.us_epa_index}")
    return "\n".join(lines)


def format_forecast(forecast: ForecastSet) -> str:
    lines = [forecast.location.display_name, "Hourly:"]
    lines.extend(
        f"  {p.time}  {_temp(p.temperature)}  {p.description}  rain {p.chance_of_rain}%"
        for p in forecast.hourly
    )
    lines.append("Daily:")
    lines.extend(
        f"  {d.date}  {_temp(d.min_temperature)}/{_temp(d.max_temperature)}  {d.description}"
        f"  sunrise {d.sunrise}  sunset {d.sunset}"
        for d in forecast.daily
    )
    return "\n".join(lines)


if __name__ == "__main__":
    raise SystemExit(main())
