from __future__ import annotations

from typing import Annotated, Any, Literal

from fastapi import APIRouter, Depends, HTTPException, Query

from ...concierge_service import ConciergeService
from ..types import SearchQuery
from ..utils import get_concierge_service, to_payload

router = APIRouter(prefix="/maps", tags=["maps"])

Service = Annotated[ConciergeService, Depends(get_concierge_service)]


@router.get("/directions")
async def directions(
    service: Service,
    destination: str = Query(..., min_length=1, max_length=200),
    mode: Literal["DRIVING", "WALKING", "BICYCLING", "TRANSIT"] = "DRIVING",
) -> dict[str, Any]:
    """Route from the hotel; a mock route is returned when the provider is unavailable."""
    service.maps.initialize()
    return to_payload(await service.maps.get_directions(destination, mode))


@router.get("/places")
async def places(
    service: Service,
    query: SearchQuery,
    type: str = Query("restaurant", min_length=1, max_length=40),  # noqa: A002
    radius: int = Query(5000, ge=1, le=50000),
) -> list[dict[str, Any]]:
    service.maps.initialize()
    return to_payload(await service.maps.search_nearby_places(query, type, radius))


@router.get("/geocode")
async def geocode(
    service: Service,
    address: str = Query(..., min_length=1, max_length=200),
) -> dict[str, Any]:
    service.maps.initialize()
    result = await service.maps.geocode_address(address)
    if result is None:
        raise HTTPException(status_code=404, detail="Address could not be geocoded")
    return to_payload(result)


__all__ = ["router"]
