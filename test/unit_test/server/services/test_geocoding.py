"""Unit tests for Nominatim geocoding."""

import httpx
import pytest

from immopro.server.core.config import settings
from immopro.server.services.geocoding import geocode_address

ASYNC_CLIENT = "immopro.server.services.geocoding.httpx.AsyncClient"


@pytest.fixture
def nominatim(monkeypatch):
    """Route the geocoder's HTTP client to an in-memory handler."""
    state = {"requests": [], "response": httpx.Response(200, json=[{"lat": "48.8566", "lon": "2.3522"}])}
    real_client = httpx.AsyncClient

    def handler(request: httpx.Request) -> httpx.Response:
        state["requests"].append(request)
        response = state["response"]
        if isinstance(response, Exception):
            raise response
        return response

    def client_factory(**kwargs):
        return real_client(transport=httpx.MockTransport(handler), **kwargs)

    monkeypatch.setattr(settings, "GEOCODING_ENABLED", True)
    monkeypatch.setattr(ASYNC_CLIENT, client_factory)
    return state


async def test_address_is_resolved(nominatim):
    assert await geocode_address("10 rue de la Paix", "Paris", "75002") == (48.8566, 2.3522)

    request = nominatim["requests"][0]
    assert request.url.params["q"] == "10 rue de la Paix, 75002, Paris"
    assert request.url.params["limit"] == "1"
    assert request.headers["User-Agent"] == settings.geocoding.user_agent


async def test_missing_parts_are_skipped(nominatim):
    await geocode_address("10 rue de la Paix")

    assert nominatim["requests"][0].url.params["q"] == "10 rue de la Paix"


async def test_disabled(nominatim, monkeypatch):
    monkeypatch.setattr(settings, "GEOCODING_ENABLED", False)

    assert await geocode_address("10 rue de la Paix", "Paris") is None
    assert nominatim["requests"] == []


@pytest.mark.parametrize(
    "response",
    [
        httpx.Response(200, json=[]),
        httpx.Response(503, text="busy"),
        httpx.Response(200, text="<html>"),
        httpx.Response(200, json=[{"display_name": "Paris"}]),
        httpx.ConnectError("unreachable"),
    ],
)
async def test_failures_return_none(nominatim, response):
    nominatim["response"] = response

    assert await geocode_address("nowhere") is None
