from __future__ import annotations

from dataclasses import dataclass

from skycast.core.errors import ValidationError


@dataclass(frozen=True)
class Query:
    """A weather lookup key: a place name or a latitude/longitude pair."""

    city: str | None = None
    lat: float | None = None
    lon: float | None = None

    @classmethod
    def build(
        cls,
        *,
        city: str | None = None,
        lat: float | None = None,
        lon: float | None = None,
    ) -> Query:
        if city is not None and city.strip():
            return cls(city=city.strip())
        if lat is not None and lon is not None:
            return cls(lat=float(lat), lon=float(lon))
        raise ValidationError("City name or coordinates are required")

    @classmethod
    def for_city(cls, city: str) -> Query:
        return cls.build(city=city)

    @classmethod
    def for_coordinates(cls, lat: float, lon: float) -> Query:
        return cls.build(lat=lat, lon=lon)

    @property
    def is_city(self) -> bool:
        return self.city is not None

    def to_provider(self) -> str:
        if self.city is not None:
            return self.city
        return f"{self.lat},{self.lon}"

    def to_params(self) -> dict[str, str]:
        if self.city is not None:
            return {"city": self.city}
        return {"lat": str(self.lat), "lon": str(self.lon)}
