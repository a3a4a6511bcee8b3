"""Health check module with dependency verification."""

from __future__ import annotations

import time
from typing import Any

from .settings import key_configured, settings

HEALTHY_STATES = {"ok", "disabled", "fallback"}


def _is_configured(value: str | None) -> bool:
    """Return True when a config string is non-empty after trimming."""
    if value is None:
        return False
    return bool(value.strip())


def _provider_check(key: str | None, env_name: str) -> dict[str, Any]:
    if key_configured(key):
        return {"status": "ok"}
    return {"status": "fallback", "reason": f"{env_name} not configured; serving mock data"}


class HealthChecker:
    """Health checker for the profile store and upstream providers."""

    async def check_all(self) -> dict[str, Any]:
        """
        Check health of all dependencies.

        Providers without a key report "fallback": the service still answers
        with canned or mock data, so that state counts as healthy.
        """
        checks = {
            "profile_storage": self._check_profile_storage(),
            "completion": _provider_check(settings.OPENAI_API_KEY, "OPENAI_API_KEY"),
            "weather": _provider_check(settings.OPENWEATHER_API_KEY, "OPENWEATHER_API_KEY"),
            "maps": _provider_check(settings.GOOGLE_MAPS_API_KEY, "GOOGLE_MAPS_API_KEY"),
            "sentry": self._check_sentry(),
        }
        all_ok = all(check.get("status") in HEALTHY_STATES for check in checks.values())
        return {
            "status": "healthy" if all_ok else "degraded",
            "timestamp": time.time(),
            "checks": checks,
        }

    def _check_profile_storage(self) -> dict[str, Any]:
        """Check that the guest-profile directory exists and is writable."""
        try:
            directory = settings.profiles_dir
            marker = directory / ".health"
            marker.write_text("ok", encoding="utf-8")
            marker.unlink()
            return {"status": "ok", "storage_path": str(directory)}
        except OSError as exc:
            return {
                "status": "error",
                "error": str(exc),
                "error_type": type(exc).__name__,
            }

    def _check_sentry(self) -> dict[str, Any]:
        """Check if Sentry is configured (doesn't actually test connectivity)."""
        if not _is_configured(settings.SENTRY_DSN):
            return {"status": "disabled", "reason": "SENTRY_DSN not configured"}
        dsn = settings.SENTRY_DSN or ""
        if "@" in dsn and "//" in dsn:
            return {
                "status": "ok",
                "environment": settings.SENTRY_ENVIRONMENT,
                "release": settings.SENTRY_RELEASE or "unset",
            }
        return {"status": "error", "error": "Invalid SENTRY_DSN format"}


health_checker = HealthChecker()


__all__ = ["health_checker", "HealthChecker"]
