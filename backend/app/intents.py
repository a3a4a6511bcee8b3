"""Keyword intent classifier for guest messages."""

from __future__ import annotations

from enum import StrEnum


class Intent(StrEnum):
    WEATHER = "weather"
    RESTAURANT = "restaurant"
    TRANSPORTATION = "transportation"
    DIRECTIONS = "directions"
    HOTEL_INFO = "hotel_info"
    ATTRACTIONS = "attractions"
    BOOKING = "booking"
    GENERAL = "general"


# Checked top to bottom; the first label with a matching keyword wins.
# Matching is plain substring containment, so "eat" also hits "weather"
# and "ola" hits "hola". The order keeps weather ahead of restaurant.
INTENT_KEYWORDS: tuple[tuple[Intent, tuple[str, ...]], ...] = (
    (Intent.WEATHER, ("weather", "temperature", "rain", "मौसम")),
    (Intent.RESTAURANT, ("restaurant", "food", "eat", "dining", "रेस्टोरेंट", "खाना")),
    (Intent.TRANSPORTATION, ("cab", "taxi", "uber", "ola", "ride", "transport", "टैक्सी")),
    (Intent.DIRECTIONS, ("direction", "map", "route", "how to get", "दिशा", "रास्ता")),
    (Intent.HOTEL_INFO, ("check-in", "check-out", "checkout", "amenities", "services", "hotel")),
    (Intent.ATTRACTIONS, ("attraction", "tourist", "visit", "sightseeing", "places", "घूमना")),
    (Intent.BOOKING, ("book", "reservation", "reserve", "बुकिंग")),
)

LIVE_DATA_INTENTS = frozenset(
    {Intent.WEATHER, Intent.DIRECTIONS, Intent.TRANSPORTATION, Intent.RESTAURANT}
)


def detect_intent(message: str) -> Intent:
    lowered = (message or "").lower()
    for intent, keywords in INTENT_KEYWORDS:
        if any(keyword in lowered for keyword in keywords):
            return intent
    return Intent.GENERAL


def requires_live_data(intent: Intent) -> bool:
    """True when answering the intent benefits from a weather or maps lookup."""
    return intent in LIVE_DATA_INTENTS


__all__ = ["INTENT_KEYWORDS", "Intent", "LIVE_DATA_INTENTS", "detect_intent", "requires_live_data"]
