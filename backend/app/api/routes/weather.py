from __future__ import annotations

from typing import Annotated, Any

from fastapi import APIRouter, Depends

from ...concierge_service import ConciergeService
from ..types import Latitude, Longitude
from ..utils import get_concierge_service, to_payload

router = APIRouter(prefix="/weather", tags=["weather"])

Service = Annotated[ConciergeService, Depends(get_concierge_service)]


@router.get("")
async def current_weather(
    service: Service, lat: Latitude = None, lon: Longitude = None
) -> dict[str, Any]:
    return to_payload(await service.weather.get_current_weather(lat, lon))


@router.get("/forecast")
async def weather_forecast(
    service: Service, lat: Latitude = None, lon: Longitude = None
) -> dict[str, Any]:
    return to_payload(await service.weather.get_weather_forecast(lat, lon))


__all__ = ["router"]
