from __future__ import annotations

import asyncio
import logging
import re
from collections import OrderedDict
from collections.abc import Callable
from dataclasses import dataclass, field
from pathlib import Path

from .assistant import AssistantReply, ConciergeAssistant
from .intents import Intent
from .maps import Directions, MapsService, Place
from .metrics import active_sessions
from .profile_store import GuestProfile, JsonFileProfileStore, ProfileStore, profile_path_for_session
from .settings import settings
from .weather import WeatherService, WeatherSnapshot

logger = logging.getLogger(__name__)

# "how to get to India Gate?" -> "India Gate"
_DESTINATION_SPLIT_RE = re.compile(r"\b(?:to|towards|till)\b", re.IGNORECASE)
_TRAILING_PUNCT = " \t?.!,"


@dataclass(slots=True)
class ConciergeTurn:
    reply: AssistantReply
    weather: WeatherSnapshot | None = None
    directions: Directions | None = None
    places: list[Place] = field(default_factory=list)


@dataclass
class _Session:
    assistant: ConciergeAssistant
    lock: asyncio.Lock = field(default_factory=asyncio.Lock)


def extract_destination(message: str) -> str | None:
    """Text after the last "to"/"towards"/"till" in a message, if any."""
    parts = _DESTINATION_SPLIT_RE.split(message or "")
    if len(parts) < 2:
        return None
    candidate = parts[-1].strip(_TRAILING_PUNCT)
    return candidate or None


def _file_store_factory(base_dir: Path | None) -> Callable[[str], ProfileStore]:
    def factory(session_id: str) -> ProfileStore:
        return JsonFileProfileStore(profile_path_for_session(session_id, base_dir))

    return factory


class ConciergeService:
    """
    Owns one assistant per guest session and runs guest turns.

    Turns for the same session are serialized on the session lock so history
    is appended in arrival order. Live lookups run after the reply, one after
    another.

    At most `max_sessions` assistants are kept in memory. Opening one more
    evicts the least recently used idle session; its profile stays on disk.
    """

    def __init__(
        self,
        *,
        weather: WeatherService | None = None,
        maps: MapsService | None = None,
        store_factory: Callable[[str], ProfileStore] | None = None,
        profiles_dir: Path | None = None,
        max_sessions: int | None = None,
    ) -> None:
        self.weather = weather or WeatherService()
        self.maps = maps or MapsService()
        self.max_sessions = max(1, max_sessions or settings.CONCIERGE_MAX_SESSIONS)
        self._store_factory = store_factory or _file_store_factory(profiles_dir)
        self._sessions: OrderedDict[str, _Session] = OrderedDict()

    def _session(self, session_id: str) -> _Session:
        session = self._sessions.get(session_id)
        if session is not None:
            self._sessions.move_to_end(session_id)
            return session
        self._evict_idle()
        session = _Session(assistant=ConciergeAssistant(self._store_factory(session_id)))
        self._sessions[session_id] = session
        active_sessions.set(len(self._sessions))
        logger.info("Opened concierge session %s", session_id)
        return session

    def _evict_idle(self) -> None:
        # Sessions mid-turn are skipped; the map may briefly exceed the cap.
        while len(self._sessions) >= self.max_sessions:
            idle = next((sid for sid, s in self._sessions.items() if not s.lock.locked()), None)
            if idle is None:
                return
            del self._sessions[idle]
            logger.info("Evicted concierge session %s", idle)

    def assistant(self, session_id: str) -> ConciergeAssistant:
        return self._session(session_id).assistant

    def find(self, session_id: str) -> ConciergeAssistant | None:
        """Live assistant for a session, without opening one."""
        session = self._sessions.get(session_id)
        return session.assistant if session is not None else None

    def history(self, session_id: str) -> list[dict[str, str]]:
        assistant = self.find(session_id)
        return assistant.history if assistant is not None else []

    def clear_history(self, session_id: str) -> None:
        assistant = self.find(session_id)
        if assistant is not None:
            assistant.clear_history()

    def guest_profile(self, session_id: str) -> GuestProfile:
        assistant = self.find(session_id)
        if assistant is not None:
            return dict(assistant.guest_profile)
        return self._store_factory(session_id).load()

    def session_count(self) -> int:
        return len(self._sessions)

    def drop_session(self, session_id: str) -> bool:
        removed = self._sessions.pop(session_id, None) is not None
        active_sessions.set(len(self._sessions))
        return removed

    async def handle_message(self, session_id: str, message: str) -> ConciergeTurn:
        session = self._session(session_id)
        async with session.lock:
            reply = await session.assistant.send_message(message)
            turn = ConciergeTurn(reply=reply)
            if reply.requires_action:
                await self._attach_live_data(turn, message)
            return turn

    async def _attach_live_data(self, turn: ConciergeTurn, message: str) -> None:
        intent = turn.reply.intent
        if intent is Intent.WEATHER:
            turn.weather = await self.weather.get_current_weather()
        elif intent is Intent.RESTAURANT:
            self.maps.initialize()
            turn.places = await self.maps.search_nearby_places(message, "restaurant")
        elif intent in (Intent.DIRECTIONS, Intent.TRANSPORTATION):
            destination = extract_destination(message)
            if destination is None:
                logger.info("No destination found in %s request", intent)
                return
            self.maps.initialize()
            turn.directions = await self.maps.get_directions(destination)

    async def aclose(self) -> None:
        await self.weather.aclose()
        await self.maps.aclose()


concierge_service = ConciergeService()


__all__ = ["ConciergeService", "ConciergeTurn", "concierge_service", "extract_destination"]
