from __future__ import annotations

from typing import Annotated, Any

from fastapi import APIRouter, Depends, HTTPException

from ...concierge_service import ConciergeService
from ...hotel import HOTEL, VOICE_LANGUAGES, voice_locale
from ...logging_config import get_logger
from ...schemas import (
    AssistantReplyOut,
    ChatRequest,
    ChatResponse,
    GuestProfileUpdate,
    HistoryResponse,
    HotelResponse,
    LanguageResponse,
    LanguageUpdate,
)
from ...settings import settings
from ..types import SessionId
from ..utils import get_concierge_service, to_payload

router = APIRouter(tags=["concierge"])
logger = get_logger(__name__)

Service = Annotated[ConciergeService, Depends(get_concierge_service)]


@router.post("/concierge/sessions/{session_id}/messages", response_model=ChatResponse)
async def send_message(session_id: SessionId, payload: ChatRequest, service: Service) -> ChatResponse:
    turn = await service.handle_message(session_id, payload.message)
    logger.info(
        "guest_turn",
        session_id=session_id,
        intent=turn.reply.intent.value,
        fallback=turn.reply.fallback,
    )
    return ChatResponse(
        reply=AssistantReplyOut(**to_payload(turn.reply)),
        weather=to_payload(turn.weather),
        directions=to_payload(turn.directions),
        places=to_payload(turn.places),
    )


@router.get("/concierge/sessions/{session_id}/history", response_model=HistoryResponse)
async def get_history(session_id: SessionId, service: Service) -> HistoryResponse:
    return HistoryResponse(session_id=session_id, messages=service.history(session_id))


@router.delete("/concierge/sessions/{session_id}/history", status_code=204)
async def clear_history(session_id: SessionId, service: Service) -> None:
    service.clear_history(session_id)


@router.delete("/concierge/sessions/{session_id}", status_code=204)
async def end_session(session_id: SessionId, service: Service) -> None:
    if service.drop_session(session_id):
        logger.info("session_closed", session_id=session_id)


# Profile file I/O blocks on FileLock; keep these off the event loop.
@router.get("/concierge/sessions/{session_id}/profile")
def get_profile(session_id: SessionId, service: Service) -> dict[str, Any]:
    return service.guest_profile(session_id)


@router.patch("/concierge/sessions/{session_id}/profile")
def update_profile(session_id: SessionId, payload: GuestProfileUpdate, service: Service) -> dict[str, Any]:
    return service.assistant(session_id).update_guest_profile(payload.model_dump(exclude_unset=True))


@router.put("/concierge/sessions/{session_id}/language", response_model=LanguageResponse)
async def set_language(
    session_id: SessionId, payload: LanguageUpdate, service: Service
) -> LanguageResponse:
    assistant = service.assistant(session_id)
    try:
        assistant.set_language(payload.language)
    except ValueError as exc:
        raise HTTPException(status_code=422, detail=str(exc)) from exc
    return LanguageResponse(language=assistant.language, voice_locale=voice_locale(assistant.language))


@router.get("/hotel", response_model=HotelResponse)
async def hotel_profile() -> HotelResponse:
    return HotelResponse(
        name=HOTEL.name,
        latitude=HOTEL.latitude,
        longitude=HOTEL.longitude,
        address=HOTEL.address,
        check_in=HOTEL.check_in,
        check_out=HOTEL.check_out,
        phone=HOTEL.phone,
        email=HOTEL.email,
        services=list(HOTEL.services),
        amenities=list(HOTEL.amenities),
        default_language=settings.DEFAULT_LANGUAGE,
        supported_languages=settings.supported_languages,
        voice_languages=dict(VOICE_LANGUAGES),
    )


__all__ = ["router"]
