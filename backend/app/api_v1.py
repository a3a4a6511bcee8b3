"""API v1 router - Versioned API endpoints."""

from __future__ import annotations

from fastapi import APIRouter

from .api.routes import concierge as concierge_routes
from .api.routes import maps as maps_routes
from .api.routes import weather as weather_routes

v1_router = APIRouter(prefix="/v1", tags=["v1"])
v1_router.include_router(concierge_routes.router)
v1_router.include_router(weather_routes.router)
v1_router.include_router(maps_routes.router)

__all__ = ["v1_router"]
