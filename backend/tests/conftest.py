import os
import sys
from pathlib import Path

import pytest
import sentry_sdk
from fastapi.testclient import TestClient

ROOT = Path(__file__).resolve().parents[2]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

# Disable outbound Sentry calls during tests
sentry_sdk.init = lambda *args, **kwargs: None  # type: ignore[assignment]
os.environ["SENTRY_DSN"] = ""
test_data_dir = ROOT / "artifacts" / "test-data"
test_data_dir.mkdir(parents=True, exist_ok=True)
os.environ["DATA_DIR"] = str(test_data_dir)
for key in ("OPENAI_API_KEY", "OPENWEATHER_API_KEY", "GOOGLE_MAPS_API_KEY"):
    os.environ.pop(key, None)

from backend.app.concierge_service import concierge_service  # noqa: E402
from backend.app.main import app  # noqa: E402
from backend.app.settings import settings  # noqa: E402


def _purge_profiles() -> None:
    for path in settings.profiles_dir.glob("*.json"):
        path.unlink(missing_ok=True)


@pytest.fixture(scope="session")
def client() -> TestClient:
    return TestClient(app, base_url="http://api.testserver")


@pytest.fixture(autouse=True)
def clean_sessions() -> None:
    settings.OPENAI_API_KEY = None
    settings.OPENWEATHER_API_KEY = None
    settings.GOOGLE_MAPS_API_KEY = None
    settings.SENTRY_DSN = None
    settings.DEFAULT_LANGUAGE = "en"
    concierge_service._sessions.clear()
    _purge_profiles()
    yield
    concierge_service._sessions.clear()
    _purge_profiles()
