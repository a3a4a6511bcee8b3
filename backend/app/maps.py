"""Routes, nearby places and geocoding around the hotel via Google Maps web services."""

from __future__ import annotations

import logging
import math
import re
from dataclasses import dataclass, field
from datetime import UTC, datetime
from typing import Any

import httpx

from .hotel import HOTEL, HotelProfile
from .metrics import record_provider_call
from .settings import key_configured, settings
from .weather import round_half_up

logger = logging.getLogger(__name__)

EARTH_RADIUS_KM = 6371
MAX_PLACE_RESULTS = 10
PHOTO_MAX_WIDTH = 400
TRAVEL_MODES = {"DRIVING", "WALKING", "BICYCLING", "TRANSIT"}

_TAG_RE = re.compile(r"<[^>]*>")


class MapsUnavailable(RuntimeError):
    pass


@dataclass(slots=True)
class RouteStep:
    instruction: str
    distance: str
    duration: str
    maneuver: str = ""


@dataclass(slots=True)
class Directions:
    distance: str
    duration: str
    start_address: str
    end_address: str
    steps: list[RouteStep] = field(default_factory=list)
    overview: str | None = None
    bounds: dict[str, Any] | None = None
    timestamp: str = ""
    mock: bool = False


@dataclass(slots=True)
class Place:
    id: str
    name: str
    address: str
    rating: float
    price_level: int
    photos: list[str]
    types: list[str]
    geometry: dict[str, float]
    opening_hours: dict[str, Any] | None
    distance: float


@dataclass(slots=True)
class GeocodeResult:
    lat: float
    lng: float
    address: str


def _haversine_km(lat1: float, lon1: float, lat2: float, lon2: float) -> float:
    dlat = math.radians(lat2 - lat1)
    dlon = math.radians(lon2 - lon1)
    a = (
        math.sin(dlat / 2) ** 2
        + math.cos(math.radians(lat1)) * math.cos(math.radians(lat2)) * math.sin(dlon / 2) ** 2
    )
    return EARTH_RADIUS_KM * 2 * math.atan2(math.sqrt(a), math.sqrt(1 - a))


def calculate_distance(lat1: float, lon1: float, lat2: float, lon2: float) -> float:
    """Great-circle distance in km, rounded half up to one decimal."""
    return round_half_up(_haversine_km(lat1, lon1, lat2, lon2) * 10) / 10


def strip_html(text: str) -> str:
    return _TAG_RE.sub("", text or "")


def _now_iso() -> str:
    return datetime.now(UTC).isoformat()


def mock_directions(destination: str, hotel: HotelProfile = HOTEL) -> Directions:
    return Directions(
        distance="3.2 km",
        duration="12 mins",
        start_address=hotel.address,
        end_address=destination,
        steps=[
            RouteStep("Head north on Main Street", "500 m", "2 mins", "straight"),
            RouteStep("Turn right onto Park Avenue", "1.2 km", "4 mins", "turn-right"),
            RouteStep("Continue straight for 1.5 km", "1.5 km", "6 mins", "straight"),
        ],
        timestamp=_now_iso(),
        mock=True,
    )


def _mock_place_catalog() -> list[Place]:
    return [
        Place(
            id="mock-1",
            name="Spice Garden Restaurant",
            address="123 Park Avenue, New Delhi",
            rating=4.5,
            price_level=2,
            photos=["https://images.pexels.com/photos/262978/pexels-photo-262978.jpeg"],
            types=["restaurant", "food"],
            geometry={"lat": 28.6149, "lng": 77.2100},
            opening_hours={"is_open": True},
            distance=0.8,
        ),
        Place(
            id="mock-2",
            name="Dragon Palace",
            address="456 Central Street, New Delhi",
            rating=4.2,
            price_level=1,
            photos=["https://images.pixabay.com/photo/2017/01/26/02/06/platter-2009590_1280.jpg"],
            types=["restaurant", "food"],
            geometry={"lat": 28.6129, "lng": 77.2080},
            opening_hours={"is_open": True},
            distance=1.2,
        ),
    ]


def mock_places(query: str, place_type: str) -> list[Place]:
    needle = (query or "").lower()
    return [
        place
        for place in _mock_place_catalog()
        if needle in place.name.lower() or place_type in place.types
    ]


class MapsService:
    """
    Thin async adapter over the Directions, Places and Geocoding web services.

    `initialize()` must succeed before lookups reach the provider; until then
    directions and places answer with mock data and geocoding returns None.
    """

    def __init__(
        self,
        *,
        api_key: str | None = None,
        client: httpx.AsyncClient | None = None,
        hotel: HotelProfile = HOTEL,
    ) -> None:
        self.api_key = api_key if api_key is not None else settings.GOOGLE_MAPS_API_KEY
        self.hotel = hotel
        self._client = client
        self._owns_client = client is None
        self._ready = False

    @property
    def initialized(self) -> bool:
        return self._ready

    def initialize(self) -> bool:
        if self._ready:
            return True
        if not key_configured(self.api_key):
            logger.info("Maps provider not initialized: GOOGLE_MAPS_API_KEY not configured")
            return False
        if self._client is None:
            self._client = httpx.AsyncClient(
                base_url=settings.MAPS_API_BASE.rstrip("/"),
                timeout=settings.MAPS_TIMEOUT_SECONDS,
            )
        self._ready = True
        return True

    async def _call(self, path: str, params: dict[str, Any]) -> dict[str, Any]:
        if not self._ready or self._client is None:
            raise MapsUnavailable("Maps service not initialized")
        try:
            response = await self._client.get(path, params={**params, "key": self.api_key})
        except httpx.HTTPError as exc:
            raise MapsUnavailable(f"Maps request failed: {exc}") from exc
        if response.status_code >= 400:
            raise MapsUnavailable(f"Maps API error: {response.status_code}")
        try:
            data = response.json()
        except ValueError as exc:
            raise MapsUnavailable("Invalid JSON from maps API") from exc
        status = data.get("status")
        if status != "OK":
            raise MapsUnavailable(f"{path} request failed: {status}")
        return data

    def _photo_url(self, reference: str) -> str:
        base = settings.MAPS_API_BASE.rstrip("/")
        return (
            f"{base}/place/photo?maxwidth={PHOTO_MAX_WIDTH}"
            f"&photo_reference={reference}&key={self.api_key}"
        )

    def format_directions(self, data: dict[str, Any]) -> Directions:
        route = data["routes"][0]
        leg = route["legs"][0]
        return Directions(
            distance=leg["distance"]["text"],
            duration=leg["duration"]["text"],
            start_address=leg.get("start_address", ""),
            end_address=leg.get("end_address", ""),
            steps=[
                RouteStep(
                    instruction=strip_html(step.get("html_instructions", "")),
                    distance=step["distance"]["text"],
                    duration=step["duration"]["text"],
                    maneuver=step.get("maneuver") or "",
                )
                for step in leg.get("steps", [])
            ],
            overview=(route.get("overview_polyline") or {}).get("points"),
            bounds=route.get("bounds"),
            timestamp=_now_iso(),
        )

    def format_places(self, results: list[dict[str, Any]]) -> list[Place]:
        places: list[Place] = []
        for item in results[:MAX_PLACE_RESULTS]:
            location = item["geometry"]["location"]
            lat, lng = float(location["lat"]), float(location["lng"])
            hours = item.get("opening_hours")
            places.append(
                Place(
                    id=item.get("place_id", ""),
                    name=item.get("name", ""),
                    address=item.get("formatted_address", ""),
                    rating=item.get("rating") or 0,
                    price_level=item.get("price_level") or 0,
                    photos=[
                        self._photo_url(photo["photo_reference"])
                        for photo in item.get("photos") or []
                        if photo.get("photo_reference")
                    ],
                    types=list(item.get("types") or []),
                    geometry={"lat": lat, "lng": lng},
                    opening_hours=(
                        {"is_open": hours.get("open_now"), "periods": hours.get("periods")}
                        if hours
                        else None
                    ),
                    distance=calculate_distance(
                        self.hotel.latitude, self.hotel.longitude, lat, lng
                    ),
                )
            )
        return places

    async def get_directions(self, destination: str, mode: str = "DRIVING") -> Directions:
        travel_mode = (mode or "").upper()
        try:
            if travel_mode not in TRAVEL_MODES:
                raise MapsUnavailable(f"Unsupported travel mode: {mode}")
            data = await self._call(
                "/directions/json",
                {
                    "origin": f"{self.hotel.latitude},{self.hotel.longitude}",
                    "destination": destination,
                    "mode": travel_mode.lower(),
                    "units": "metric",
                },
            )
            directions = self.format_directions(data)
        except (MapsUnavailable, KeyError, IndexError, TypeError) as exc:
            logger.warning("Directions to %r unavailable, using mock route: %s", destination, exc)
            record_provider_call("maps", "directions", "mock")
            return mock_directions(destination, self.hotel)
        record_provider_call("maps", "directions", "ok")
        return directions

    async def search_nearby_places(
        self, query: str, place_type: str = "restaurant", radius: int = 5000
    ) -> list[Place]:
        try:
            data = await self._call(
                "/place/textsearch/json",
                {
                    "query": query,
                    "location": f"{self.hotel.latitude},{self.hotel.longitude}",
                    "radius": radius,
                    "type": place_type,
                },
            )
            places = self.format_places(data.get("results") or [])
        except (MapsUnavailable, KeyError, IndexError, TypeError, ValueError) as exc:
            logger.warning("Places search %r unavailable, using mock places: %s", query, exc)
            record_provider_call("maps", "places", "mock")
            return mock_places(query, place_type)
        record_provider_call("maps", "places", "ok")
        return places

    async def geocode_address(self, address: str) -> GeocodeResult | None:
        try:
            data = await self._call("/geocode/json", {"address": address})
            top = data["results"][0]
            location = top["geometry"]["location"]
            result = GeocodeResult(
                lat=float(location["lat"]),
                lng=float(location["lng"]),
                address=top.get("formatted_address", ""),
            )
        except (MapsUnavailable, KeyError, IndexError, TypeError, ValueError) as exc:
            logger.warning("Geocoding %r failed: %s", address, exc)
            record_provider_call("maps", "geocode", "miss")
            return None
        record_provider_call("maps", "geocode", "ok")
        return result

    async def aclose(self) -> None:
        if self._client is not None and self._owns_client:
            await self._client.aclose()
            self._client = None
        self._ready = False


__all__ = [
    "Directions",
    "GeocodeResult",
    "MapsService",
    "MapsUnavailable",
    "Place",
    "RouteStep",
    "calculate_distance",
    "mock_directions",
    "mock_places",
    "strip_html",
]
