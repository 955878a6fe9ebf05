"""Tests for the cache-first airport service."""

from __future__ import annotations

import asyncio
import logging

import httpx
import pytest

from airfacts.config import Settings
from airfacts.contracts.airportdb import RawAirport
from airfacts.contracts.enums import DataSource
from airfacts.contracts.rate_limit import RateLimitConfig
from airfacts.persistence.repositories.airport_cache_repo import AirportCacheRepository
from airfacts.persistence.repositories.rate_limit_repo import RateLimitRepository
from airfacts.services.airport_cache import AirportCacheService
from airfacts.services.airport_service import AirportService, ServiceOptions, create_airport_service
from airfacts.services.airportdb.client import AirportDBClient
from airfacts.services.airportdb.errors import InvalidRequestError
from airfacts.services.airportdb.fallback_dataset import FallbackDataset
from airfacts.services.rate_limiter import RateLimitService
from tests.persistence.fake_firestore import BrokenFirestoreClient, FakeFirestoreClient
from tests.services.airportdb.samples import gatwick, minimal


async def _no_sleep(delay: float) -> None:
    return None


class Upstream:
    """Fake AirportDB: serves the airports it knows, 404 for the rest."""

    def __init__(self, *airports: dict, status: int | None = None):
        self.airports = {a["ident"]: a for a in airports}
        self.status = status
        self.paths: list[str] = []

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.paths.append(request.url.path)
        if self.status is not None:
            return httpx.Response(self.status)
        path = request.url.path
        if path.endswith("/airport/batch"):
            codes = request.url.params["icao_codes"].split(",")
            return httpx.Response(
                200,
                json={
                    "airports": [self.airports[c] for c in codes if c in self.airports],
                    "errors": [{"icao": c, "error": "Airport not found"} for c in codes if c not in self.airports],
                },
            )
        if path.endswith("/airport/search"):
            return httpx.Response(200, json={"airports": list(self.airports.values())})
        ident = path.rsplit("/", 1)[-1]
        if ident in self.airports:
            return httpx.Response(200, json=self.airports[ident])
        return httpx.Response(404, json={"message": f"{ident} not found"})


def _service(
    handler,
    *,
    db=None,
    fallback: FallbackDataset | None = None,
    limiter: RateLimitService | None = None,
    options: ServiceOptions | None = None,
) -> AirportService:
    http = httpx.AsyncClient(transport=httpx.MockTransport(handler))
    client = AirportDBClient("test-key", http, fallback=fallback, rate_limiter=limiter, sleep=_no_sleep)
    cache = AirportCacheService(AirportCacheRepository(db if db is not None else FakeFirestoreClient()))
    return AirportService(client, cache, options)


class TestGet:
    async def test_cache_hit_skips_provider(self):
        upstream = Upstream()
        service = _service(upstream)
        await service._cache.set("EGKK", RawAirport.model_validate(gatwick()))

        result = await service.get("EGKK")

        assert result.source == DataSource.CACHE
        assert result.cached is True
        assert result.data.icao == "EGKK"
        assert upstream.paths == []

    async def test_provider_result_written_through(self):
        db = FakeFirestoreClient()
        upstream = Upstream(gatwick())
        service = _service(upstream, db=db)

        first = await service.get("egkk")
        second = await service.get("EGKK")

        assert first.source == DataSource.API and not first.cached
        assert first.data.runways.count == 2
        assert "airport_cache/EGKK" in db.store
        assert second.source == DataSource.CACHE
        assert len(upstream.paths) == 1

    async def test_invalid_identifier(self):
        upstream = Upstream()
        result = await _service(upstream).get("12")

        assert result.data is None
        assert result.error.code == "invalid_request"
        assert upstream.paths == []

    async def test_not_found(self):
        result = await _service(Upstream()).get("ZZZZ")

        assert result.data is None
        assert result.source == DataSource.API
        assert result.error.code == "not_found"

    async def test_fallback_record_served_but_not_cached(self):
        db = FakeFirestoreClient()
        service = _service(Upstream(), db=db, fallback=FallbackDataset())

        result = await service.get("KJFK")

        assert result.source == DataSource.FALLBACK
        assert result.data.data_quality.source == "fallback"
        assert db.store == {}

    async def test_processing_error_reported(self):
        nameless = minimal("LFXX")
        nameless["name"] = ""
        result = await _service(Upstream(nameless)).get("LFXX")

        assert result.data is None
        assert result.error.code == "missing-name"

    async def test_cache_disabled(self):
        db = FakeFirestoreClient()
        upstream = Upstream(gatwick())
        service = _service(upstream, db=db, options=ServiceOptions(use_cache=False))

        await service.get("EGKK")
        result = await service.get("EGKK")

        assert result.source == DataSource.API
        assert db.store == {}
        assert len(upstream.paths) == 2

    async def test_timeout(self):
        async def slow(request: httpx.Request) -> httpx.Response:
            await asyncio.sleep(5)
            return httpx.Response(200, json=gatwick())

        with pytest.raises(TimeoutError):
            await _service(slow).get("EGKK", timeout=0.01)

    async def test_refresh_bypasses_cache(self):
        upstream = Upstream(gatwick())
        service = _service(upstream)
        await service.get("EGKK")

        result = await service.refresh("EGKK")

        assert result.source == DataSource.API
        assert len(upstream.paths) == 2


class TestRateLimited:
    async def test_upstream_limit_served_from_cache(self):
        db = FakeFirestoreClient()
        other_worker = AirportCacheService(AirportCacheRepository(db))

        async def limited(request: httpx.Request) -> httpx.Response:
            # Another worker caches the airport while this request is in flight.
            await other_worker.set("EGKK", RawAirport.model_validate(gatwick()))
            return httpx.Response(429, headers={"Retry-After": "30"})

        result = await _service(limited, db=db).get("EGKK")

        assert result.source == DataSource.CACHE
        assert result.rate_limited is True
        assert result.data.icao == "EGKK"

    async def test_local_limit_uses_fallback_dataset(self):
        limiter = RateLimitService(
            RateLimitConfig(service_name="airportdb", requests_per_window=1, window_seconds=3600),
            RateLimitRepository(FakeFirestoreClient()),
        )
        upstream = Upstream(gatwick())
        service = _service(upstream, fallback=FallbackDataset(), limiter=limiter)

        await service.get("EGKK")
        result = await service.get("KJFK")

        assert result.source == DataSource.FALLBACK
        assert result.rate_limited is True
        assert len(upstream.paths) == 1

    async def test_limit_without_any_fallback(self):
        result = await _service(Upstream(status=429)).get("EGKK")

        assert result.data is None
        assert result.rate_limited is True
        assert result.error.code == "rate_limited"
        assert result.error.details == {"retry_after": 60}


class TestBatch:
    async def test_mixed_sources_and_partial_failure(self):
        upstream = Upstream(minimal("LFXX"))
        service = _service(upstream, fallback=FallbackDataset(synthesize=False))
        await service._cache.set("EGKK", RawAirport.model_validate(gatwick()))

        result = await service.get_batch(["EGKK", "LFXX", "QQQQ"])

        assert [a.icao for a in result.airports] == ["EGKK", "LFXX"]
        assert result.sources == {"EGKK": DataSource.CACHE, "LFXX": DataSource.API}
        assert [(e.icao, e.code) for e in result.errors] == [("QQQQ", "not_found")]
        assert (result.from_cache, result.from_api, result.from_fallback) == (1, 1, 0)

    async def test_fallback_entries_counted(self):
        service = _service(Upstream(), fallback=FallbackDataset())

        result = await service.get_batch(["KJFK", "EGLL"])

        assert result.from_fallback == 2
        assert result.errors == []

    async def test_silently_dropped_identifier_reported(self):
        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(200, json={"airports": [minimal("LFXX"), minimal("LFYY")], "errors": []})

        result = await _service(handler, fallback=FallbackDataset(synthesize=False)).get_batch(
            ["LFXX", "LFYY", "LFZZ"]
        )

        assert [a.icao for a in result.airports] == ["LFXX", "LFYY"]
        assert [(e.icao, e.code) for e in result.errors] == [("LFZZ", "not_found")]

    async def test_invalid_identifiers_reported(self):
        upstream = Upstream(minimal("LFXX"))
        result = await _service(upstream).get_batch(["LFXX", "bad!"])

        assert [a.icao for a in result.airports] == ["LFXX"]
        assert [(e.icao, e.code) for e in result.errors] == [("bad!", "invalid_request")]

    async def test_results_cached_for_next_call(self):
        upstream = Upstream(minimal("LFXX"), minimal("LFYY"))
        service = _service(upstream)

        await service.get_batch(["LFXX", "LFYY"])
        result = await service.get_batch(["LFXX", "LFYY"])

        assert result.from_cache == 2
        assert len(upstream.paths) == 1


class TestSearch:
    async def test_results_processed_and_cached(self):
        upstream = Upstream(gatwick(), minimal("LFXX"))
        service = _service(upstream)

        results = await service.search("gatwick")
        cached = await service.get("EGKK")

        assert [a.icao for a in results] == ["EGKK", "LFXX"]
        assert cached.source == DataSource.CACHE

    async def test_local_code_result_skipped(self, caplog):
        upstream = Upstream(gatwick(), minimal("00AK"))
        service = _service(upstream)

        with caplog.at_level(logging.WARNING):
            results = await service.search("lowell")

        assert [a.icao for a in results] == ["EGKK"]
        assert "00AK" in caplog.text

    async def test_local_code_result_skipped_without_cache(self):
        upstream = Upstream(minimal("00AK"), minimal("LFXX"))
        service = _service(upstream, options=ServiceOptions(use_cache=False))

        results = await service.search("lowell")

        assert [a.icao for a in results] == ["LFXX"]

    async def test_empty_query(self):
        with pytest.raises(InvalidRequestError):
            await _service(Upstream()).search(" ")

    async def test_provider_outage_uses_fallback(self):
        service = _service(Upstream(status=503), fallback=FallbackDataset())
        results = await service.search("paris")
        assert sorted(a.icao for a in results) == ["LFPG", "LFPO"]


class TestHealthAndStats:
    async def test_healthy(self):
        limiter = RateLimitService(
            RateLimitConfig(service_name="airportdb", requests_per_window=10, window_seconds=60),
            RateLimitRepository(FakeFirestoreClient()),
        )
        health = await _service(Upstream(gatwick()), limiter=limiter).health_check()
        assert health.cache and health.api and health.rate_limit and health.overall

    async def test_memory_cache_reported_unhealthy(self, caplog):
        with caplog.at_level(logging.WARNING):
            health = await _service(Upstream(), db=BrokenFirestoreClient()).health_check()
        assert health.cache is False
        assert health.api is True
        assert health.overall is False

    async def test_stats(self):
        service = _service(Upstream(gatwick()))
        await service.get("EGKK")

        stats = await service.cache_stats()

        assert stats.total_airports == 1
        assert await service.rate_limit_stats() is None

    async def test_invalidate_and_cleanup(self):
        db = FakeFirestoreClient()
        service = _service(Upstream(gatwick()), db=db)
        await service.get("EGKK")

        await service.invalidate("EGKK")

        assert db.store == {}
        assert await service.cleanup_cache() == 0


class TestFactory:
    async def test_wires_components(self):
        settings = Settings(api_key="k", rate_limit_profile="airportdb_conservative")
        http = httpx.AsyncClient(transport=httpx.MockTransport(Upstream(gatwick())))

        service = create_airport_service(settings, firestore_client=FakeFirestoreClient(), http_client=http)
        result = await service.get("EGKK")

        assert result.source == DataSource.API
        usage = await service.rate_limit_stats()
        assert usage.limit == 100
        assert usage.current_usage == 1
        await service.aclose()

    def test_requires_api_key(self):
        with pytest.raises(ValueError):
            create_airport_service(Settings(), firestore_client=FakeFirestoreClient())
