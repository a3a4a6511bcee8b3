from __future__ import annotations

from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field

from .intents import Intent


class ChatRequest(BaseModel):
    message: str = Field(min_length=1, max_length=2000)


class ChatMessage(BaseModel):
    role: Literal["system", "user", "assistant"]
    content: str


class AssistantReplyOut(BaseModel):
    text: str
    intent: Intent
    requires_action: bool
    timestamp: str
    fallback: bool = False


class ChatResponse(BaseModel):
    reply: AssistantReplyOut
    weather: dict[str, Any] | None = None
    directions: dict[str, Any] | None = None
    places: list[dict[str, Any]] = Field(default_factory=list)


class HistoryResponse(BaseModel):
    session_id: str
    messages: list[ChatMessage]


class GuestProfileUpdate(BaseModel):
    """Fields merged over the stored profile; unknown keys are kept as-is."""

    model_config = ConfigDict(extra="allow")

    name: str | None = Field(default=None, max_length=120)
    room_number: str | None = Field(default=None, max_length=16)
    language: str | None = Field(default=None, max_length=8)


class LanguageUpdate(BaseModel):
    language: Literal["en", "hi"]


class LanguageResponse(BaseModel):
    language: str
    voice_locale: str


class HotelResponse(BaseModel):
    name: str
    latitude: float
    longitude: float
    address: str
    check_in: str
    check_out: str
    phone: str
    email: str
    services: list[str]
    amenities: list[str]
    default_language: str
    supported_languages: list[str]
    voice_languages: dict[str, str]
