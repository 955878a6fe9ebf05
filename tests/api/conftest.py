"""Shared fixtures for API tests."""

from __future__ import annotations

import httpx
import pytest

from airfacts.api.app import app
from airfacts.persistence.repositories.airport_cache_repo import AirportCacheRepository
from airfacts.services.airport_cache import AirportCacheService
from airfacts.services.airport_service import AirportService
from airfacts.services.airportdb.client import AirportDBClient
from airfacts.services.airportdb.fallback_dataset import FallbackDataset
from tests.persistence.fake_firestore import FakeFirestoreClient
from tests.services.airportdb.samples import gatwick, minimal

KNOWN_AIRPORTS = {a["ident"]: a for a in (gatwick(), minimal("LFXX"))}


def upstream(request: httpx.Request) -> httpx.Response:
    """Fake AirportDB answering for the known airports only."""
    path = request.url.path
    if path.endswith("/airport/search"):
        return httpx.Response(200, json={"airports": list(KNOWN_AIRPORTS.values())})
    if path.endswith("/airport/batch"):
        codes = request.url.params["icao_codes"].split(",")
        return httpx.Response(
            200,
            json={
                "airports": [KNOWN_AIRPORTS[c] for c in codes if c in KNOWN_AIRPORTS],
                "errors": [{"icao": c, "error": "Airport not found"} for c in codes if c not in KNOWN_AIRPORTS],
            },
        )
    ident = path.rsplit("/", 1)[-1]
    if ident in KNOWN_AIRPORTS:
        return httpx.Response(200, json=KNOWN_AIRPORTS[ident])
    return httpx.Response(404)


async def _no_sleep(delay: float) -> None:
    return None


@pytest.fixture
def fake_client():
    """In-memory Firestore fake shared by the cache in a single test."""
    return FakeFirestoreClient()


@pytest.fixture
def airport_service(fake_client):
    http = httpx.AsyncClient(transport=httpx.MockTransport(upstream))
    client = AirportDBClient(
        "test-key", http, fallback=FallbackDataset(synthesize=False), sleep=_no_sleep
    )
    return AirportService(client, AirportCacheService(AirportCacheRepository(fake_client)))


@pytest.fixture
def test_app(airport_service):
    """FastAPI app with the service placed on app.state (lifespan is not run)."""
    app.state.airport_service = airport_service
    yield app
    del app.state.airport_service


@pytest.fixture
async def client(test_app):
    """httpx AsyncClient wired to the test app."""
    transport = httpx.ASGITransport(app=test_app)
    async with httpx.AsyncClient(transport=transport, base_url="http://test") as c:
        yield c
