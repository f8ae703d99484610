from __future__ import annotations

import os
from pathlib import Path
from typing import Iterable

import httpx
import pytest
from dotenv import load_dotenv

TEST_ROOT = Path(__file__).resolve().parent
# Load test/.env first, then fallback to test/.env.example for defaults
load_dotenv(TEST_ROOT / ".env", override=False)
load_dotenv(TEST_ROOT / ".env.example", override=False)

# The application settings are read once at import time, so the test
# environment has to be in place before any immopro module is imported.
os.environ["DATABASE_URL"] = "sqlite+aiosqlite:///:memory:"
os.environ.setdefault("ENABLE_FILE_LOGGING", "false")
os.environ.setdefault("PLAN_LIMITS_ENABLED", "false")
os.environ.setdefault("GEOCODING_ENABLED", "false")
os.environ.setdefault("LOGFIRE_ENABLED", "false")
os.environ.setdefault("JWT_SECRET", "test-secret")
for name in ("STRIPE_SECRET_KEY", "STRIPE_WEBHOOK_SECRET", "RESEND_API_KEY", "VAPID_PUBLIC_KEY", "VAPID_PRIVATE_KEY"):
    os.environ.pop(name, None)


ALLOWED_URL_PREFIXES: Iterable[str] = (
    "http://mock",
    "https://mock",
    "http://localhost",
    "http://127.0.0.1",
    "http://test",
    "/",  # Relative paths of the ASGI test client
)
OFFLINE_TRANSPORTS = (httpx.MockTransport, httpx.ASGITransport)


def _is_offline(client, url) -> bool:
    """Requests served in process or aimed at a local host never leave the machine."""
    if isinstance(getattr(client, "_transport", None), OFFLINE_TRANSPORTS):
        return True
    return any(str(url).startswith(prefix) for prefix in ALLOWED_URL_PREFIXES)


@pytest.fixture(autouse=True)
def _global_offline_http_guard(monkeypatch: pytest.MonkeyPatch):
    """Fail any test that would reach Stripe, Resend, Nominatim or another real host."""
    orig_sync = httpx.Client.request
    orig_async = httpx.AsyncClient.request

    def offline_sync(self, method, url, *args, **kwargs):
        if not _is_offline(self, url):
            raise RuntimeError(f"External HTTP blocked by global offline guard: {url}")
        return orig_sync(self, method, url, *args, **kwargs)

    async def offline_async(self, method, url, *args, **kwargs):
        if not _is_offline(self, url):
            raise RuntimeError(f"External HTTP blocked by global offline guard (async): {url}")
        return await orig_async(self, method, url, *args, **kwargs)

    monkeypatch.setattr(httpx.Client, "request", offline_sync, raising=True)
    monkeypatch.setattr(httpx.AsyncClient, "request", offline_async, raising=True)
