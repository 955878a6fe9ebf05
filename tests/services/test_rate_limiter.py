"""Tests for window-based rate limiting over the Firestore fake."""

from __future__ import annotations

import logging
from datetime import datetime, timedelta, timezone

import pytest

from airfacts.contracts.rate_limit import RateLimitConfig
from airfacts.persistence.repositories.rate_limit_repo import RateLimitRepository
from airfacts.services.airportdb.errors import RateLimitedError
from airfacts.services.rate_limiter import RATE_LIMIT_PROFILES, RateLimitService
from tests.persistence.fake_firestore import BrokenFirestoreClient, FakeFirestoreClient

START = datetime(2025, 6, 15, 12, 0, tzinfo=timezone.utc)


class FakeClock:
    def __init__(self, now: datetime = START):
        self.now = now

    def __call__(self) -> datetime:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += timedelta(seconds=seconds)


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def repo() -> RateLimitRepository:
    return RateLimitRepository(FakeFirestoreClient())


@pytest.fixture
def limiter(repo, clock) -> RateLimitService:
    config = RateLimitConfig(service_name="airportdb", requests_per_window=3, window_seconds=60)
    return RateLimitService(config, repo, clock)


class TestConfig:
    def test_burst_defaults_to_ten_percent(self):
        config = RateLimitConfig(service_name="x", requests_per_window=50, window_seconds=60)
        assert config.burst_allowance == 5

    def test_profiles(self):
        assert RATE_LIMIT_PROFILES["airportdb"].requests_per_window == 1000
        assert RATE_LIMIT_PROFILES["airportdb_conservative"].burst_allowance == 10

    def test_unknown_profile(self, repo):
        with pytest.raises(ValueError):
            RateLimitService.from_profile("nope", repo)

    def test_rejects_empty_window(self):
        with pytest.raises(ValueError):
            RateLimitConfig(service_name="x", requests_per_window=0, window_seconds=60)


class TestAdmission:
    async def test_fresh_service_allowed(self, limiter):
        result = await limiter.check_rate_limit()
        assert result.allowed
        assert result.remaining == 3

    async def test_check_does_not_count(self, limiter):
        await limiter.check_rate_limit()
        await limiter.check_rate_limit()
        assert (await limiter.check_rate_limit()).remaining == 3

    async def test_denied_after_limit(self, limiter, repo):
        for _ in range(3):
            await limiter.acquire()

        result = await limiter.check_rate_limit()
        assert not result.allowed
        assert result.remaining == 0
        with pytest.raises(RateLimitedError) as exc_info:
            await limiter.acquire()
        assert exc_info.value.retry_after == 60
        assert "Try again in 60 seconds" in str(exc_info.value)

        windows = await repo.windows_for("airportdb")
        assert len(windows) == 1
        assert windows[0].request_count == 3

    async def test_new_window_after_expiry(self, limiter, clock, repo):
        for _ in range(3):
            await limiter.acquire()
        clock.advance(61)

        result = await limiter.acquire()

        assert result.allowed
        assert len(await repo.windows_for("airportdb")) == 2

    async def test_window_still_active_at_its_end(self, limiter, clock):
        for _ in range(3):
            await limiter.acquire()
        clock.advance(60)
        assert not (await limiter.check_rate_limit()).allowed


class TestReporting:
    async def test_usage(self, repo, clock):
        config = RateLimitConfig(service_name="airportdb", requests_per_window=4, window_seconds=60)
        limiter = RateLimitService(config, repo, clock)
        await limiter.acquire()
        await limiter.acquire()

        usage = await limiter.get_usage_stats()

        assert usage.current_usage == 2
        assert usage.remaining == 2
        assert usage.utilization_percent == 50.0
        assert await limiter.is_approaching_limit(50)
        assert not await limiter.is_approaching_limit()

    async def test_time_until_reset(self, limiter, clock):
        assert await limiter.time_until_reset() == 0.0
        await limiter.acquire()
        clock.advance(15)
        assert await limiter.time_until_reset() == 45.0

    async def test_reset_window(self, limiter, repo):
        for _ in range(3):
            await limiter.acquire()
        await limiter.reset_window()
        assert await repo.windows_for("airportdb") == []
        assert (await limiter.check_rate_limit()).allowed

    async def test_cleanup_expired(self, limiter, clock, repo):
        await limiter.acquire()
        clock.advance(120)
        await limiter.acquire()

        assert await limiter.cleanup_expired_windows() == 1
        assert len(await repo.windows_for("airportdb")) == 1

    async def test_services_are_isolated(self, repo, clock, limiter):
        other = RateLimitService(
            RateLimitConfig(service_name="other", requests_per_window=1, window_seconds=60), repo, clock
        )
        await other.acquire()
        assert (await limiter.check_rate_limit()).remaining == 3


class TestFailOpen:
    async def test_unreachable_store_allows(self, clock, caplog):
        config = RateLimitConfig(service_name="airportdb", requests_per_window=1, window_seconds=60)
        limiter = RateLimitService(config, RateLimitRepository(BrokenFirestoreClient()), clock)

        with caplog.at_level(logging.ERROR):
            for _ in range(3):
                result = await limiter.acquire()
                assert result.allowed

        assert "allowing request" in caplog.text
        assert not await limiter.is_healthy()

    async def test_healthy_store(self, limiter):
        assert await limiter.is_healthy()
