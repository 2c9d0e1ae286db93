from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field

from skycast.models.preferences import FavoriteCity, LastLocation
from skycast.schemas.weather import WeatherSnapshotOut


class LastLocationRecord(BaseModel):
    lat: float
    lon: float
    name: str = ""

    @classmethod
    def from_model(cls, location: LastLocation) -> LastLocationRecord:
        return cls(lat=location.lat, lon=location.lon, name=location.name)

    def to_model(self) -> LastLocation:
        return LastLocation(lat=self.lat, lon=self.lon, name=self.name)


class FavoriteCityRecord(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    id: str = Field(min_length=1)
    name: str = Field(min_length=1)
    added_at: str = Field(alias="addedAt")
    weather: WeatherSnapshotOut | None = None

    @classmethod
    def from_model(cls, favorite: FavoriteCity) -> FavoriteCityRecord:
        return cls(
            id=favorite.id,
            name=favorite.name,
            added_at=favorite.added_at,
            weather=(
                WeatherSnapshotOut.from_model(favorite.weather)
                if favorite.weather is not None
                else None
            ),
        )

    def to_model(self) -> FavoriteCity:
        return FavoriteCity(
            id=self.id,
            name=self.name,
            added_at=self.added_at,
            weather=self.weather.to_model() if self.weather is not None else None,
        )
