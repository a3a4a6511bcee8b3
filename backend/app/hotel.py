from __future__ import annotations

from dataclasses import dataclass, field

from .settings import Settings, settings

HOTEL_SERVICES = (
    "Room Service (24/7)",
    "Concierge Services",
    "Spa & Wellness Center",
    "Fitness Center",
    "Restaurant & Bar",
    "Laundry Service",
    "Business Center",
    "Airport Transfer",
    "Valet Parking",
)

HOTEL_AMENITIES = (
    "Free WiFi",
    "Swimming Pool",
    "Air Conditioning",
    "Mini Bar",
    "Safe Deposit Box",
    "Cable TV",
    "Room Service",
    "Housekeeping",
)

VOICE_LANGUAGES = {
    "en": "en-US",
    "hi": "hi-IN",
}


@dataclass(frozen=True, slots=True)
class HotelProfile:
    name: str
    latitude: float
    longitude: float
    address: str
    city: str
    check_in: str
    check_out: str
    phone: str
    email: str
    services: tuple[str, ...] = field(default=HOTEL_SERVICES)
    amenities: tuple[str, ...] = field(default=HOTEL_AMENITIES)

    @property
    def coordinates(self) -> tuple[float, float]:
        return self.latitude, self.longitude

    @classmethod
    def from_settings(cls, config: Settings) -> HotelProfile:
        return cls(
            name=config.HOTEL_NAME,
            latitude=config.HOTEL_LATITUDE,
            longitude=config.HOTEL_LONGITUDE,
            address=config.HOTEL_ADDRESS,
            city=config.HOTEL_CITY,
            check_in=config.HOTEL_CHECK_IN,
            check_out=config.HOTEL_CHECK_OUT,
            phone=config.HOTEL_PHONE,
            email=config.HOTEL_EMAIL,
        )


HOTEL = HotelProfile.from_settings(settings)


def voice_locale(language: str) -> str:
    """Speech locale for a UI language; unknown languages use the English voice."""
    return VOICE_LANGUAGES.get(language, VOICE_LANGUAGES["en"])


__all__ = ["HOTEL", "HOTEL_AMENITIES", "HOTEL_SERVICES", "HotelProfile", "VOICE_LANGUAGES", "voice_locale"]
