"""HTTP middleware shared by the concierge API: CORS, response hardening, request ids."""

from __future__ import annotations

from contextvars import ContextVar
from uuid import uuid4

from fastapi import Request
from fastapi.middleware.cors import CORSMiddleware
from starlette.middleware.base import BaseHTTPMiddleware

from .settings import settings

REQUEST_ID_HEADER = "X-Request-ID"

# Set per request by RequestIDMiddleware and read by the structlog processors.
request_id_ctx: ContextVar[str] = ContextVar("request_id", default="")

_HARDENING_HEADERS = {
    "X-Frame-Options": "DENY",
    "X-Content-Type-Options": "nosniff",
    "Referrer-Policy": "no-referrer",
}


def add_cors(app):
    # No middleware unless CORS_ALLOW_ORIGINS is set.
    if origins := settings.allow_origins:
        app.add_middleware(
            CORSMiddleware,
            allow_origins=origins,
            allow_methods=["GET", "POST", "PUT", "PATCH", "DELETE"],
            allow_headers=["Content-Type", REQUEST_ID_HEADER],
            expose_headers=[REQUEST_ID_HEADER],
        )


class SecurityHeadersMiddleware(BaseHTTPMiddleware):
    async def dispatch(self, request: Request, call_next):  # type: ignore[override]
        response = await call_next(request)
        for key, value in _HARDENING_HEADERS.items():
            response.headers.setdefault(key, value)
        return response


def add_security_headers(app):
    app.add_middleware(SecurityHeadersMiddleware)


class RequestIDMiddleware(BaseHTTPMiddleware):
    """Reuse the caller's X-Request-ID or mint one, and echo it on the response."""

    async def dispatch(self, request: Request, call_next):  # type: ignore[override]
        request_id = request.headers.get(REQUEST_ID_HEADER) or str(uuid4())
        token = request_id_ctx.set(request_id)
        try:
            response = await call_next(request)
        finally:
            request_id_ctx.reset(token)
        response.headers[REQUEST_ID_HEADER] = request_id
        return response


def add_request_id_tracing(app):
    app.add_middleware(RequestIDMiddleware)


def get_request_id() -> str:
    return request_id_ctx.get("")


__all__ = [
    "REQUEST_ID_HEADER",
    "add_cors",
    "add_request_id_tracing",
    "add_security_headers",
    "get_request_id",
    "request_id_ctx",
]
