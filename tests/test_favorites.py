from __future__ import annotations

import asyncio

import pytest

from skycast.core.errors import NotFoundError, UpstreamError, ValidationError
from skycast.repositories.preferences import PreferenceStore
from skycast.services.favorites import FavoritesManager
from tests.fakes import FakeWeatherSource, make_snapshot


def make_manager(
    preferences: PreferenceStore, source: FakeWeatherSource, *, ids: list[int] | None = None
) -> FavoritesManager:
    clock = iter(ids) if ids is not None else None
    return FavoritesManager(
        source=source,
        preferences=preferences,
        id_clock=(lambda: next(clock)) if clock is not None else None,
    )


@pytest.fixture()
def source() -> FakeWeatherSource:
    london = make_snapshot("London", "United Kingdom", temperature=16.0)
    paris = make_snapshot("Paris", "France", temperature=21.0)
    return FakeWeatherSource(
        {
            "london": london,
            "London, United Kingdom": london,
            "Paris": paris,
            "Paris, France": paris,
        }
    )


def test_add_stores_provider_name(preferences: PreferenceStore, source: FakeWeatherSource) -> None:
    manager = make_manager(preferences, source, ids=[1718000000000])

    favorite = asyncio.run(manager.add(" london "))

    assert favorite.name == "London, United Kingdom"
    assert favorite.id == "1718000000000"
    assert favorite.weather is not None
    assert favorite.weather.temperature == 16.0
    assert favorite.added_at.endswith("+00:00")
    assert manager.list_all() == [favorite]


def test_failed_add_leaves_list_unchanged(
    preferences: PreferenceStore, source: FakeWeatherSource
) -> None:
    manager = make_manager(preferences, source)
    asyncio.run(manager.add("Paris"))
    before = manager.list_all()

    with pytest.raises(NotFoundError):
        asyncio.run(manager.add("Atlantis"))
    with pytest.raises(ValidationError):
        asyncio.run(manager.add("   "))

    assert manager.list_all() == before


def test_ids_are_unique_with_same_clock_reading(
    preferences: PreferenceStore, source: FakeWeatherSource
) -> None:
    manager = make_manager(preferences, source, ids=[500, 500, 499])

    async def scenario() -> list[str]:
        return [(await manager.add(city)).id for city in ["london", "Paris", "london"]]

    assert asyncio.run(scenario()) == ["500", "501", "502"]


def test_remove(preferences: PreferenceStore, source: FakeWeatherSource) -> None:
    manager = make_manager(preferences, source, ids=[1, 2])

    async def scenario() -> None:
        await manager.add("london")
        await manager.add("Paris")

    asyncio.run(scenario())

    assert manager.remove("1") is True
    assert manager.remove("1") is False
    assert [f.name for f in manager.list_all()] == ["Paris, France"]


def test_refresh_one(preferences: PreferenceStore, source: FakeWeatherSource) -> None:
    manager = make_manager(preferences, source, ids=[1])
    asyncio.run(manager.add("Paris"))
    source.snapshots["Paris, France"] = make_snapshot("Paris", "France", temperature=25.0)

    refreshed = asyncio.run(manager.refresh("1"))

    assert refreshed.weather is not None
    assert refreshed.weather.temperature == 25.0
    assert manager.list_all()[0].weather.temperature == 25.0
    assert source.calls[-1] == "Paris, France"


def test_refresh_unknown_id(preferences: PreferenceStore, source: FakeWeatherSource) -> None:
    manager = make_manager(preferences, source)
    with pytest.raises(NotFoundError):
        asyncio.run(manager.refresh("404"))


def test_refresh_all_isolates_failures(
    preferences: PreferenceStore, source: FakeWeatherSource
) -> None:
    manager = make_manager(preferences, source, ids=[1, 2])

    async def scenario() -> None:
        await manager.add("london")
        await manager.add("Paris")

    asyncio.run(scenario())
    source.errors["London, United Kingdom"] = UpstreamError("Weather API call failed")
    source.snapshots["Paris, France"] = make_snapshot("Paris", "France", temperature=30.0)

    result = asyncio.run(manager.refresh_all())

    assert (result.requested, result.refreshed, result.failed) == (2, 1, 1)
    by_id = {f.id: f for f in manager.list_all()}
    assert by_id["1"].weather.temperature == 16.0
    assert by_id["2"].weather.temperature == 30.0
    assert result.favorites == manager.list_all()


def test_refresh_all_empty(preferences: PreferenceStore, source: FakeWeatherSource) -> None:
    result = asyncio.run(make_manager(preferences, source).refresh_all())
    assert (result.requested, result.refreshed, result.failed) == (0, 0, 0)
    assert result.favorites == []
