from __future__ import annotations

import asyncio
from typing import Any

import httpx

from .settings import settings

_client: httpx.AsyncClient | None = None
_client_lock = asyncio.Lock()


class CompletionUnavailable(RuntimeError):
    pass


def _headers() -> dict[str, str]:
    if not settings.openai_configured:
        raise CompletionUnavailable("OPENAI_API_KEY not configured")
    return {
        "Authorization": f"Bearer {settings.OPENAI_API_KEY}",
        "Content-Type": "application/json",
    }


async def _get_client() -> httpx.AsyncClient:
    global _client
    if _client is None:
        async with _client_lock:
            if _client is None:
                timeout = httpx.Timeout(
                    settings.OPENAI_TIMEOUT_SECONDS,
                    connect=settings.OPENAI_CONNECT_TIMEOUT_SECONDS,
                )
                base_url = settings.OPENAI_API_BASE.rstrip("/") or "https://api.openai.com/v1"
                _client = httpx.AsyncClient(base_url=base_url, timeout=timeout)
    return _client


async def post_json(
    path: str, payload: dict[str, Any], *, timeout: float | None = None
) -> dict[str, Any]:
    headers = _headers()
    client = await _get_client()
    try:
        response = await client.post(path, json=payload, headers=headers, timeout=timeout)
    except httpx.HTTPError as exc:
        raise CompletionUnavailable(f"Request failed: {exc}") from exc
    if response.status_code >= 400:
        raise CompletionUnavailable(
            f"Completion error {response.status_code}: {response.text[:200]}"
        )
    try:
        return response.json()
    except ValueError as exc:
        raise CompletionUnavailable("Invalid JSON from completion endpoint") from exc


def extract_message_content(data: dict[str, Any]) -> str:
    """Return `choices[0].message.content` or raise when the body has another shape."""
    try:
        content = data["choices"][0]["message"]["content"]
    except (KeyError, IndexError, TypeError) as exc:
        raise CompletionUnavailable("Completion response missing choices[0].message") from exc
    if not isinstance(content, str) or not content.strip():
        raise CompletionUnavailable("Completion response content is empty")
    return content.strip()


async def close_async_client() -> None:
    global _client
    if _client is not None:
        await _client.aclose()
        _client = None
