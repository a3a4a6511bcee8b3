"""Guest profile persistence behind a small load/save interface."""

from __future__ import annotations

import json
import logging
import os
import re
from pathlib import Path
from typing import Any, Protocol

from .file_lock import FileLock
from .settings import settings

logger = logging.getLogger(__name__)

GuestProfile = dict[str, Any]

PROFILE_KEY = "guestProfile"
_SAFE_SESSION_RE = re.compile(r"[^A-Za-z0-9_.-]")


class ProfileStore(Protocol):
    def load(self) -> GuestProfile: ...

    def save(self, profile: GuestProfile) -> None: ...


class InMemoryProfileStore:
    def __init__(self, initial: GuestProfile | None = None) -> None:
        self._profile: GuestProfile = dict(initial or {})

    def load(self) -> GuestProfile:
        return dict(self._profile)

    def save(self, profile: GuestProfile) -> None:
        self._profile = dict(profile)


class JsonFileProfileStore:
    """
    One flat profile record stored as `{"guestProfile": {...}}` in a JSON file.

    Every save overwrites the whole record. An unreadable or corrupt file loads
    as an empty profile.
    """

    def __init__(self, path: Path | str, *, lock_timeout: float = 5.0) -> None:
        self.path = Path(path)
        self.lock_timeout = lock_timeout

    def load(self) -> GuestProfile:
        if not self.path.exists():
            return {}
        try:
            payload = json.loads(self.path.read_text(encoding="utf-8"))
        except (OSError, json.JSONDecodeError):
            logger.warning("Unreadable guest profile file: %s", self.path)
            return {}
        profile = payload.get(PROFILE_KEY) if isinstance(payload, dict) else None
        if not isinstance(profile, dict):
            return {}
        return profile

    def save(self, profile: GuestProfile) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        tmp_path = self.path.with_suffix(self.path.suffix + ".tmp")
        body = json.dumps({PROFILE_KEY: profile}, ensure_ascii=False, indent=2)
        with FileLock(self.path, timeout=self.lock_timeout):
            tmp_path.write_text(body, encoding="utf-8")
            os.replace(tmp_path, self.path)


def profile_path_for_session(session_id: str, base_dir: Path | None = None) -> Path:
    safe = _SAFE_SESSION_RE.sub("_", session_id.strip()) or "default"
    return (base_dir or settings.profiles_dir) / f"{safe}.json"


__all__ = [
    "GuestProfile",
    "InMemoryProfileStore",
    "JsonFileProfileStore",
    "PROFILE_KEY",
    "ProfileStore",
    "profile_path_for_session",
]
