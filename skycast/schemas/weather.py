from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field

from skycast.models.weather import (
    AirQuality,
    Astronomy,
    DailyPoint,
    ForecastSet,
    HourlyPoint,
    Location,
    PlaceCandidate,
    WeatherSnapshot,
)


class _WireModel(BaseModel):
    model_config = ConfigDict(populate_by_name=True)


class AirQualityOut(_WireModel):
    co: float | None = None
    no2: float | None = None
    o3: float | None = None
    so2: float | None = None
    pm2_5: float | None = None
    pm10: float | None = None
    us_epa_index: int | None = None
    gb_defra_index: int | None = None


class WeatherSnapshotOut(_WireModel):
    temperature: float | None = None
    feels_like: float | None = Field(default=None, alias="feelsLike")
    humidity: int | float | None = None
    wind_speed: float | None = Field(default=None, alias="windSpeed")
    wind_direction: int | float | None = Field(default=None, alias="windDirection")
    wind_dir: str | None = Field(default=None, alias="windDir")
    uv_index: float | None = Field(default=None, alias="uvIndex")
    visibility: float | None = None
    pressure: float | None = None
    dew_point: float | None = Field(default=None, alias="dewPoint")
    description: str = ""
    icon: str | None = None
    city: str
    country: str
    region: str = ""
    condition: str = ""
    lat: float
    lon: float
    localtime: str | None = None
    aqi: AirQualityOut | None = None

    @classmethod
    def from_model(cls, snapshot: WeatherSnapshot) -> WeatherSnapshotOut:
        loc = snapshot.location
        aqi = None
        if snapshot.air_quality is not None:
            aqi = AirQualityOut.model_validate(snapshot.air_quality.__dict__)
        return cls(
            temperature=snapshot.temperature,
            feels_like=snapshot.feels_like,
            humidity=snapshot.humidity,
            wind_speed=snapshot.wind_speed,
            wind_direction=snapshot.wind_degree,
            wind_dir=snapshot.wind_dir,
            uv_index=snapshot.uv_index,
            visibility=snapshot.visibility,
            pressure=snapshot.pressure,
            dew_point=snapshot.dew_point,
            description=snapshot.description,
            icon=snapshot.icon,
            city=loc.city_name,
            country=loc.country,
            region=loc.region,
            condition=snapshot.condition,
            lat=loc.latitude,
            lon=loc.longitude,
            localtime=snapshot.local_time,
            aqi=aqi,
        )

    def to_model(self) -> WeatherSnapshot:
        return WeatherSnapshot(
            location=Location(
                latitude=self.lat,
                longitude=self.lon,
                city_name=self.city,
                country=self.country,
                region=self.region,
            ),
            temperature=self.temperature,
            feels_like=self.feels_like,
            humidity=self.humidity,
            wind_speed=self.wind_speed,
            wind_degree=self.wind_direction,
            wind_dir=self.wind_dir,
            uv_index=self.uv_index,
            visibility=self.visibility,
            pressure=self.pressure,
            dew_point=self.dew_point,
            description=self.description,
            condition=self.condition,
            icon=self.icon,
            local_time=self.localtime,
            air_quality=AirQuality(**self.aqi.model_dump()) if self.aqi else None,
        )


class HourlyPointOut(_WireModel):
    time: str
    temperature: float | None = None
    icon: str | None = None
    description: str = ""
    humidity: int | float | None = None
    wind_speed: float | None = Field(default=None, alias="windSpeed")
    chance_of_rain: float | None = Field(default=None, alias="chanceOfRain")
    feels_like: float | None = Field(default=None, alias="feelsLike")

    @classmethod
    def from_model(cls, point: HourlyPoint) -> HourlyPointOut:
        return cls(
            time=point.time,
            temperature=point.temperature,
            icon=point.icon,
            description=point.description,
            humidity=point.humidity,
            wind_speed=point.wind_speed,
            chance_of_rain=point.chance_of_rain,
            feels_like=point.feels_like,
        )

    def to_model(self) -> HourlyPoint:
        return HourlyPoint(
            time=self.time,
            temperature=self.temperature,
            feels_like=self.feels_like,
            icon=self.icon,
            description=self.description,
            humidity=self.humidity,
            wind_speed=self.wind_speed,
            chance_of_rain=self.chance_of_rain,
        )


class DailyPointOut(_WireModel):
    date: str
    min_temp: float | None = Field(default=None, alias="minTemp")
    max_temp: float | None = Field(default=None, alias="maxTemp")
    icon: str | None = None
    description: str = ""
    humidity: int | float | None = None
    wind_speed: float | None = Field(default=None, alias="windSpeed")
    chance_of_rain: float | None = Field(default=None, alias="chanceOfRain")
    sunrise: str | None = None
    sunset: str | None = None
    moonrise: str | None = None
    moonset: str | None = None
    moon_phase: str | None = Field(default=None, alias="moonPhase")
    uv_index: float | None = Field(default=None, alias="uvIndex")

    @classmethod
    def from_model(cls, point: DailyPoint) -> DailyPointOut:
        return cls(
            date=point.date,
            min_temp=point.min_temperature,
            max_temp=point.max_temperature,
            icon=point.icon,
            description=point.description,
            humidity=point.humidity,
            wind_speed=point.wind_speed,
            chance_of_rain=point.chance_of_rain,
            sunrise=point.sunrise,
            sunset=point.sunset,
            moonrise=point.moonrise,
            moonset=point.moonset,
            moon_phase=point.moon_phase,
            uv_index=point.uv_index,
        )

    def to_model(self) -> DailyPoint:
        return DailyPoint(
            date=self.date,
            min_temperature=self.min_temp,
            max_temperature=self.max_temp,
            icon=self.icon,
            description=self.description,
            humidity=self.humidity,
            wind_speed=self.wind_speed,
            chance_of_rain=self.chance_of_rain,
            uv_index=self.uv_index,
            sunrise=self.sunrise,
            sunset=self.sunset,
            moonrise=self.moonrise,
            moonset=self.moonset,
            moon_phase=self.moon_phase,
        )


class ForecastLocationOut(_WireModel):
    name: str
    country: str
    lat: float
    lon: float


class ForecastOut(_WireModel):
    hourly: list[HourlyPointOut] = Field(default_factory=list)
    daily: list[DailyPointOut] = Field(default_factory=list)
    location: ForecastLocationOut

    @classmethod
    def from_model(cls, forecast: ForecastSet) -> ForecastOut:
        loc = forecast.location
        return cls(
            hourly=[HourlyPointOut.from_model(p) for p in forecast.hourly],
            daily=[DailyPointOut.from_model(p) for p in forecast.daily],
            location=ForecastLocationOut(
                name=loc.city_name, country=loc.country, lat=loc.latitude, lon=loc.longitude
            ),
        )

    def to_model(self) -> ForecastSet:
        return ForecastSet(
            location=Location(
                latitude=self.location.lat,
                longitude=self.location.lon,
                city_name=self.location.name,
                country=self.location.country,
            ),
            hourly=[p.to_model() for p in self.hourly],
            daily=[p.to_model() for p in self.daily],
        )


class PlaceCandidateOut(_WireModel):
    name: str
    country: str
    region: str = ""
    lat: float
    lon: float
    url: str | None = None

    @classmethod
    def from_model(cls, place: PlaceCandidate) -> PlaceCandidateOut:
        return cls(
            name=place.name,
            country=place.country,
            region=place.region,
            lat=place.latitude,
            lon=place.longitude,
            url=place.url,
        )

    def to_model(self) -> PlaceCandidate:
        return PlaceCandidate(
            name=self.name,
            region=self.region,
            country=self.country,
            latitude=self.lat,
            longitude=self.lon,
            url=self.url,
        )


class AstronomyOut(_WireModel):
    sunrise: str | None = None
    sunset: str | None = None
    moonrise: str | None = None
    moonset: str | None = None
    moon_phase: str | None = Field(default=None, alias="moonPhase")
    moon_illumination: str | None = Field(default=None, alias="moonIllumination")

    @classmethod
    def from_model(cls, astro: Astronomy) -> AstronomyOut:
        return cls.model_validate(astro.__dict__)

    def to_model(self) -> Astronomy:
        return Astronomy(**self.model_dump())
