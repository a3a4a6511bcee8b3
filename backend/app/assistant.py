from __future__ import annotations

import logging
from collections.abc import Callable, Mapping
from dataclasses import dataclass
from datetime import UTC, datetime
from typing import Any

from .hotel import HOTEL, HotelProfile
from .intents import Intent, detect_intent, requires_live_data
from .metrics import assistant_replies_total
from .openai_async import CompletionUnavailable, extract_message_content, post_json
from .profile_store import GuestProfile, InMemoryProfileStore, ProfileStore
from .prompts import build_system_prompt, fallback_response
from .settings import settings

logger = logging.getLogger(__name__)

HISTORY_LIMIT = 20
COMPLETIONS_PATH = "/chat/completions"

# Sampling tuned for a chatty, less repetitive persona.
PRESENCE_PENALTY = 0.2
FREQUENCY_PENALTY = 0.3
TOP_P = 0.9


@dataclass(slots=True)
class AssistantReply:
    text: str
    intent: Intent
    requires_action: bool
    timestamp: str
    fallback: bool = False


def _local_now() -> datetime:
    return datetime.now().astimezone()


class ConciergeAssistant:
    """
    Conversational concierge for a single guest.

    Holds the rolling completion history, the UI language and the guest
    profile (mirrored to `profile_store` on every update). One instance must
    only be driven by one turn at a time.
    """

    def __init__(
        self,
        profile_store: ProfileStore | None = None,
        *,
        hotel: HotelProfile = HOTEL,
        language: str | None = None,
        clock: Callable[[], datetime] = _local_now,
    ) -> None:
        self.profile_store = profile_store or InMemoryProfileStore()
        self.hotel = hotel
        self.clock = clock
        self.language = language or settings.DEFAULT_LANGUAGE
        self.guest_profile: GuestProfile = self.profile_store.load()
        self._history: list[dict[str, str]] = []

    @property
    def history(self) -> list[dict[str, str]]:
        return list(self._history)

    def clear_history(self) -> None:
        self._history = []

    def set_language(self, language: str) -> None:
        normalized = (language or "").strip().lower()
        if normalized not in settings.supported_languages:
            raise ValueError(f"Unsupported language: {language!r}")
        self.language = normalized

    def update_guest_profile(self, fields: Mapping[str, Any]) -> GuestProfile:
        self.guest_profile = {**self.guest_profile, **fields}
        self.profile_store.save(self.guest_profile)
        return dict(self.guest_profile)

    def system_prompt(self) -> str:
        return build_system_prompt(self.guest_profile, self.hotel, self.clock(), self.language)

    def _build_messages(self, user_message: str) -> list[dict[str, str]]:
        return [
            {"role": "system", "content": self.system_prompt()},
            *self._history,
            {"role": "user", "content": user_message},
        ]

    def _remember(self, user_message: str, reply: str) -> None:
        self._history.extend(
            [
                {"role": "user", "content": user_message},
                {"role": "assistant", "content": reply},
            ]
        )
        if len(self._history) > HISTORY_LIMIT:
            self._history = self._history[-HISTORY_LIMIT:]

    def _reply(self, text: str, intent: Intent, *, fallback: bool) -> AssistantReply:
        source = "fallback" if fallback else "completion"
        assistant_replies_total.labels(intent=intent.value, source=source).inc()
        return AssistantReply(
            text=text,
            intent=intent,
            requires_action=requires_live_data(intent),
            timestamp=datetime.now(UTC).isoformat(),
            fallback=fallback,
        )

    def fallback_reply(self, intent: Intent) -> AssistantReply:
        text = fallback_response(intent, self.guest_profile, self.hotel, self.clock())
        return self._reply(text, intent, fallback=True)

    async def send_message(self, user_message: str, intent: Intent | None = None) -> AssistantReply:
        if intent is None:
            intent = detect_intent(user_message)

        if not settings.openai_configured:
            return self.fallback_reply(intent)

        payload = {
            "model": settings.OPENAI_MODEL,
            "messages": self._build_messages(user_message),
            "max_tokens": settings.OPENAI_MAX_TOKENS,
            "temperature": settings.OPENAI_TEMPERATURE,
            "presence_penalty": PRESENCE_PENALTY,
            "frequency_penalty": FREQUENCY_PENALTY,
            "top_p": TOP_P,
        }
        try:
            data = await post_json(COMPLETIONS_PATH, payload)
            text = extract_message_content(data)
        except CompletionUnavailable as exc:
            logger.warning("Completion unavailable, using fallback (intent=%s): %s", intent, exc)
            return self.fallback_reply(intent)

        self._remember(user_message, text)
        return self._reply(text, intent, fallback=False)


__all__ = ["AssistantReply", "ConciergeAssistant", "HISTORY_LIMIT"]
