from __future__ import annotations

import os
from pathlib import Path

from pydantic_settings import BaseSettings, SettingsConfigDict

REPO_ROOT = Path(__file__).resolve().parents[2]
ENV_FILE = REPO_ROOT / ".env"

# Values shipped in the sample configuration; treated the same as "unset".
PLACEHOLDER_KEYS = {
    "your_openai_api_key",
    "your_openweather_api_key",
    "your_google_maps_api_key",
}


def key_configured(value: str | None) -> bool:
    """Return True when an API key is set and is not a sample placeholder."""
    if value is None:
        return False
    trimmed = value.strip()
    return bool(trimmed) and trimmed not in PLACEHOLDER_KEYS


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_file=str(ENV_FILE), env_file_encoding="utf-8", extra="ignore"
    )

    DEBUG: bool = False

    # persistence directory for guest profiles (defaults to ~/.grand-palace-concierge)
    DATA_DIR: Path | None = None

    # CORS allow origins (comma-separated). Default empty (no cross-origin).
    CORS_ALLOW_ORIGINS: str = ""

    # API keys
    OPENAI_API_KEY: str | None = None
    OPENWEATHER_API_KEY: str | None = None
    GOOGLE_MAPS_API_KEY: str | None = None

    # Completion endpoint
    OPENAI_API_BASE: str = "https://api.openai.com/v1"
    OPENAI_MODEL: str = "gpt-3.5-turbo"
    OPENAI_MAX_TOKENS: int = 500
    OPENAI_TEMPERATURE: float = 0.8
    OPENAI_TIMEOUT_SECONDS: float = 30.0
    OPENAI_CONNECT_TIMEOUT_SECONDS: float = 5.0

    # Weather provider
    WEATHER_API_BASE: str = "https://api.openweathermap.org/data/2.5"
    WEATHER_UNITS: str = "metric"
    WEATHER_TIMEOUT_SECONDS: float = 10.0

    # Maps provider
    MAPS_API_BASE: str = "https://maps.googleapis.com/maps/api"
    MAPS_TIMEOUT_SECONDS: float = 10.0

    # Hotel facts
    HOTEL_NAME: str = "Grand Palace Hotel"
    HOTEL_LATITUDE: float = 28.6139
    HOTEL_LONGITUDE: float = 77.2090
    HOTEL_ADDRESS: str = "123 Main Street, New Delhi, India"
    HOTEL_CITY: str = "New Delhi"
    HOTEL_CHECK_IN: str = "14:00"
    HOTEL_CHECK_OUT: str = "12:00"
    HOTEL_PHONE: str = "+91 11 1234 5678"
    HOTEL_EMAIL: str = "concierge@grandpalacehotel.com"

    # UI defaults
    DEFAULT_LANGUAGE: str = "en"
    SUPPORTED_LANGUAGES: str = "en,hi"

    # Sessions
    CONCIERGE_MAX_SESSIONS: int = 1000

    # Observability
    SENTRY_DSN: str | None = None
    SENTRY_ENVIRONMENT: str = "development"
    SENTRY_RELEASE: str | None = None
    SENTRY_TRACES_SAMPLE_RATE: float = 0.2

    @property
    def allow_origins(self) -> list[str]:
        s = (self.CORS_ALLOW_ORIGINS or "").strip()
        if s == "*":
            return ["*"]
        if s == "":
            return []
        return [part.strip() for part in s.split(",") if part.strip()]

    @property
    def supported_languages(self) -> list[str]:
        return [
            part.strip().lower() for part in self.SUPPORTED_LANGUAGES.split(",") if part.strip()
        ]

    @property
    def openai_configured(self) -> bool:
        return key_configured(self.OPENAI_API_KEY)

    @property
    def weather_configured(self) -> bool:
        return key_configured(self.OPENWEATHER_API_KEY)

    @property
    def maps_configured(self) -> bool:
        return key_configured(self.GOOGLE_MAPS_API_KEY)

    @property
    def data_dir(self) -> Path:
        # A blank DATA_DIR in `.env` would otherwise resolve to the repository root.
        def _materialize(path: Path) -> Path:
            path.mkdir(parents=True, exist_ok=True)
            return path

        raw_env = os.getenv("DATA_DIR")
        if raw_env is not None:
            trimmed = raw_env.strip()
            if trimmed:
                return _materialize(Path(trimmed).expanduser().resolve())
            return _materialize(Path.home() / ".grand-palace-concierge")

        if self.DATA_DIR is not None:
            candidate = Path(self.DATA_DIR).expanduser()
            candidate_str = str(candidate).strip()
            if candidate_str and candidate_str not in {".", "./", ".\\"}:
                return _materialize(candidate.resolve())
        return _materialize(Path.home() / ".grand-palace-concierge")

    @property
    def profiles_dir(self) -> Path:
        path = self.data_dir / "profiles"
        path.mkdir(parents=True, exist_ok=True)
        return path


settings = Settings()
