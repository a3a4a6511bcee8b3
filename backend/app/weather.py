"""Current conditions and 5-day forecast from OpenWeatherMap, with mock fallbacks."""

from __future__ import annotations

import logging
import math
import random
from collections import Counter
from dataclasses import dataclass, field
from datetime import UTC, date, datetime, timedelta, timezone
from typing import Any

import httpx

from .hotel import HOTEL, HotelProfile
from .metrics import record_provider_call
from .settings import key_configured, settings

logger = logging.getLogger(__name__)

FORECAST_DAYS = 5
ICON_URL_TEMPLATE = "https://openweathermap.org/img/wn/{icon}@2x.png"

MOCK_DESCRIPTIONS = ("clear sky", "few clouds", "scattered clouds", "partly cloudy")
MOCK_ICONS = ("01d", "02d", "03d", "04d")


class WeatherUnavailable(RuntimeError):
    pass


@dataclass(slots=True)
class WeatherSnapshot:
    location: str
    temperature: int
    feels_like: int
    humidity: int
    description: str
    main: str
    icon: str
    wind_speed: float
    visibility: int
    pressure: int
    sunrise: str
    sunset: str
    timestamp: str
    mock: bool = False


@dataclass(slots=True)
class ForecastDay:
    date: str
    min_temp: int
    max_temp: int
    description: str
    icon: str
    avg_humidity: int
    avg_wind_speed: int


@dataclass(slots=True)
class WeatherForecast:
    location: str
    forecast: list[ForecastDay] = field(default_factory=list)
    timestamp: str = ""
    mock: bool = False


def round_half_up(value: float) -> int:
    return math.floor(value + 0.5)


def weather_icon_url(icon: str) -> str:
    return ICON_URL_TEMPLATE.format(icon=icon)


def most_common(values: list[str]) -> str:
    """Most frequent value; ties go to the value seen first."""
    return Counter(values).most_common(1)[0][0]


def _now_iso() -> str:
    return datetime.now(UTC).isoformat()


def _local_zone(offset_seconds: Any) -> timezone:
    try:
        return timezone(timedelta(seconds=int(offset_seconds or 0)))
    except (TypeError, ValueError):
        return UTC


def _clock_time(epoch: Any, zone: timezone) -> str:
    return datetime.fromtimestamp(int(epoch), tz=zone).strftime("%H:%M")


def mock_weather(location: str) -> WeatherSnapshot:
    return WeatherSnapshot(
        location=location,
        temperature=28,
        feels_like=31,
        humidity=65,
        description="clear sky",
        main="Clear",
        icon="01d",
        wind_speed=5,
        visibility=10,
        pressure=1013,
        sunrise="06:30",
        sunset="18:45",
        timestamp=_now_iso(),
        mock=True,
    )


def mock_forecast(location: str, *, today: date | None = None, rng: random.Random | None = None) -> WeatherForecast:
    start = today or date.today()
    rnd = rng or random
    days = [
        ForecastDay(
            date=(start + timedelta(days=offset)).isoformat(),
            min_temp=24 + rnd.randrange(5),
            max_temp=32 + rnd.randrange(8),
            description=rnd.choice(MOCK_DESCRIPTIONS),
            icon=rnd.choice(MOCK_ICONS),
            avg_humidity=60 + rnd.randrange(20),
            avg_wind_speed=3 + rnd.randrange(5),
        )
        for offset in range(FORECAST_DAYS)
    ]
    return WeatherForecast(location=location, forecast=days, timestamp=_now_iso(), mock=True)


def format_current_weather(data: dict[str, Any]) -> WeatherSnapshot:
    main = data["main"]
    condition = data["weather"][0]
    wind = data.get("wind") or {}
    sys_block = data.get("sys") or {}
    zone = _local_zone(data.get("timezone"))
    visibility = data.get("visibility")
    return WeatherSnapshot(
        location=data.get("name", ""),
        temperature=round_half_up(main["temp"]),
        feels_like=round_half_up(main["feels_like"]),
        humidity=main["humidity"],
        description=condition["description"],
        main=condition.get("main", ""),
        icon=condition["icon"],
        wind_speed=wind.get("speed") or 0,
        visibility=round_half_up(visibility / 1000) if visibility else 10,
        pressure=main["pressure"],
        sunrise=_clock_time(sys_block["sunrise"], zone),
        sunset=_clock_time(sys_block["sunset"], zone),
        timestamp=_now_iso(),
    )


def format_forecast(data: dict[str, Any]) -> WeatherForecast:
    city = data.get("city") or {}
    zone = _local_zone(city.get("timezone"))
    buckets: dict[str, dict[str, list[Any]]] = {}
    for item in data.get("list") or []:
        day = datetime.fromtimestamp(int(item["dt"]), tz=zone).date().isoformat()
        bucket = buckets.setdefault(
            day,
            {"temperatures": [], "descriptions": [], "icons": [], "humidity": [], "wind": []},
        )
        bucket["temperatures"].append(item["main"]["temp"])
        bucket["descriptions"].append(item["weather"][0]["description"])
        bucket["icons"].append(item["weather"][0]["icon"])
        bucket["humidity"].append(item["main"].get("humidity", 0))
        bucket["wind"].append((item.get("wind") or {}).get("speed") or 0)

    days: list[ForecastDay] = []
    for day, bucket in list(buckets.items())[:FORECAST_DAYS]:
        days.append(
            ForecastDay(
                date=day,
                min_temp=round_half_up(min(bucket["temperatures"])),
                max_temp=round_half_up(max(bucket["temperatures"])),
                description=most_common(bucket["descriptions"]),
                icon=most_common(bucket["icons"]),
                avg_humidity=round_half_up(sum(bucket["humidity"]) / len(bucket["humidity"])),
                avg_wind_speed=round_half_up(sum(bucket["wind"]) / len(bucket["wind"])),
            )
        )
    return WeatherForecast(location=city.get("name", ""), forecast=days, timestamp=_now_iso())


class WeatherService:
    def __init__(
        self,
        *,
        api_key: str | None = None,
        client: httpx.AsyncClient | None = None,
        hotel: HotelProfile = HOTEL,
    ) -> None:
        self.api_key = api_key if api_key is not None else settings.OPENWEATHER_API_KEY
        self.hotel = hotel
        self._client = client
        self._owns_client = client is None

    @property
    def configured(self) -> bool:
        return key_configured(self.api_key)

    def _client_or_create(self) -> httpx.AsyncClient:
        if self._client is None:
            self._client = httpx.AsyncClient(
                base_url=settings.WEATHER_API_BASE.rstrip("/"),
                timeout=settings.WEATHER_TIMEOUT_SECONDS,
            )
        return self._client

    def _location(self, lat: float | None, lon: float | None) -> tuple[float, float]:
        if lat is None or lon is None:
            return self.hotel.coordinates
        return lat, lon

    async def _fetch(self, path: str, lat: float, lon: float) -> dict[str, Any]:
        params = {"lat": lat, "lon": lon, "appid": self.api_key, "units": settings.WEATHER_UNITS}
        try:
            response = await self._client_or_create().get(path, params=params)
        except httpx.HTTPError as exc:
            raise WeatherUnavailable(f"Weather request failed: {exc}") from exc
        if response.status_code >= 400:
            raise WeatherUnavailable(f"Weather API error: {response.status_code}")
        try:
            return response.json()
        except ValueError as exc:
            raise WeatherUnavailable("Invalid JSON from weather API") from exc

    async def get_current_weather(
        self, lat: float | None = None, lon: float | None = None
    ) -> WeatherSnapshot:
        if not self.configured:
            record_provider_call("weather", "current", "mock")
            return mock_weather(self.hotel.city)
        lat, lon = self._location(lat, lon)
        try:
            snapshot = format_current_weather(await self._fetch("/weather", lat, lon))
        except (WeatherUnavailable, KeyError, IndexError, TypeError, ValueError) as exc:
            logger.warning("Current weather lookup failed at (%.4f,%.4f): %s", lat, lon, exc)
            record_provider_call("weather", "current", "error")
            return mock_weather(self.hotel.city)
        record_provider_call("weather", "current", "ok")
        return snapshot

    async def get_weather_forecast(
        self, lat: float | None = None, lon: float | None = None
    ) -> WeatherForecast:
        if not self.configured:
            record_provider_call("weather", "forecast", "mock")
            return mock_forecast(self.hotel.city)
        lat, lon = self._location(lat, lon)
        try:
            forecast = format_forecast(await self._fetch("/forecast", lat, lon))
        except (WeatherUnavailable, KeyError, IndexError, TypeError, ValueError) as exc:
            logger.warning("Weather forecast lookup failed at (%.4f,%.4f): %s", lat, lon, exc)
            record_provider_call("weather", "forecast", "error")
            return mock_forecast(self.hotel.city)
        record_provider_call("weather", "forecast", "ok")
        return forecast

    async def aclose(self) -> None:
        if self._client is not None and self._owns_client:
            await self._client.aclose()
            self._client = None


__all__ = [
    "ForecastDay",
    "WeatherForecast",
    "WeatherService",
    "WeatherSnapshot",
    "WeatherUnavailable",
    "format_current_weather",
    "format_forecast",
    "mock_forecast",
    "mock_weather",
    "most_common",
    "weather_icon_url",
]
