"""Window-based admission control for upstream providers.

A window opens on the first recorded request and lasts ``window_seconds``.
``check_rate_limit`` is read-only; ``record_request`` counts. When the
backing store is unreachable the limiter fails open: availability of the
pipeline takes priority over strict quota enforcement.
"""

from __future__ import annotations

import logging
import math
from datetime import datetime, timedelta, timezone
from typing import Callable

from airfacts.contracts.rate_limit import (
    RateLimitConfig,
    RateLimitResult,
    RateLimitUsage,
    RateLimitWindow,
)
from airfacts.persistence.repositories.rate_limit_repo import RateLimitRepository
from airfacts.services.airportdb.errors import RateLimitedError

logger = logging.getLogger(__name__)

RATE_LIMIT_PROFILES: dict[str, RateLimitConfig] = {
    "airportdb": RateLimitConfig(
        service_name="airportdb",
        requests_per_window=1000,
        window_seconds=3600,
        burst_allowance=100,
    ),
    "airportdb_conservative": RateLimitConfig(
        service_name="airportdb",
        requests_per_window=100,
        window_seconds=3600,
        burst_allowance=10,
    ),
}

Clock = Callable[[], datetime]


def utcnow() -> datetime:
    return datetime.now(tz=timezone.utc)


class RateLimitService:
    """Rate limiter for one named upstream service."""

    def __init__(
        self,
        config: RateLimitConfig,
        repository: RateLimitRepository,
        clock: Clock = utcnow,
    ):
        self.config = config
        self._repo = repository
        self._clock = clock

    @classmethod
    def from_profile(
        cls, profile: str, repository: RateLimitRepository, clock: Clock = utcnow
    ) -> "RateLimitService":
        try:
            config = RATE_LIMIT_PROFILES[profile]
        except KeyError:
            raise ValueError(f"Unknown rate limit profile: {profile}") from None
        return cls(config, repository, clock)

    @property
    def service_name(self) -> str:
        return self.config.service_name

    def _window_length(self) -> timedelta:
        return timedelta(seconds=self.config.window_seconds)

    # ------------------------------------------------------------------
    # Admission
    # ------------------------------------------------------------------

    async def check_rate_limit(self) -> RateLimitResult:
        """Report whether one more request fits. Never mutates state."""
        now = self._clock()
        limit = self.config.requests_per_window
        try:
            window = await self._repo.active_window(self.service_name, now)
        except Exception:
            logger.exception("Rate limit check failed for %s, allowing request", self.service_name)
            return RateLimitResult(allowed=True, remaining=limit, reset_time=now + self._window_length())

        if window is None:
            return RateLimitResult(allowed=True, remaining=limit, reset_time=now + self._window_length())

        return RateLimitResult(
            allowed=window.request_count < limit,
            remaining=max(0, limit - window.request_count),
            reset_time=window.window_end,
            window_start=window.window_start,
            window_end=window.window_end,
        )

    async def record_request(self) -> None:
        """Count one request against the active window, opening one if needed.

        Store failures are logged and swallowed.
        """
        now = self._clock()
        try:
            window = await self._repo.active_window(self.service_name, now)
            if window is not None and window.id:
                await self._repo.increment(window.id)
                return
            await self._repo.open_window(
                RateLimitWindow(
                    service_name=self.service_name,
                    window_start=now,
                    window_end=now + self._window_length(),
                    request_count=1,
                    limit_per_window=self.config.requests_per_window,
                )
            )
        except Exception:
            logger.exception("Failed to record request for %s", self.service_name)

    async def acquire(self) -> RateLimitResult:
        """Check and, when allowed, record one request.

        Raises:
            RateLimitedError: the active window is exhausted.
        """
        result = await self.check_rate_limit()
        if not result.allowed:
            retry_after = max(1, math.ceil((result.reset_time - self._clock()).total_seconds()))
            raise RateLimitedError(
                f"Rate limit exceeded. Try again in {retry_after} seconds",
                retry_after=retry_after,
            )
        await self.record_request()
        return result

    # ------------------------------------------------------------------
    # Reporting and maintenance
    # ------------------------------------------------------------------

    async def get_usage_stats(self) -> RateLimitUsage:
        result = await self.check_rate_limit()
        limit = self.config.requests_per_window
        used = limit - result.remaining
        return RateLimitUsage(
            service_name=self.service_name,
            current_usage=used,
            limit=limit,
            remaining=result.remaining,
            reset_time=result.reset_time,
            utilization_percent=round(used / limit * 100, 2),
        )

    async def is_approaching_limit(self, threshold_percent: float = 80) -> bool:
        stats = await self.get_usage_stats()
        return stats.utilization_percent >= threshold_percent

    async def time_until_reset(self) -> float:
        """Seconds until the active window ends (0 when none is active)."""
        now = self._clock()
        try:
            window = await self._repo.active_window(self.service_name, now)
        except Exception:
            logger.exception("Failed to read rate limit window for %s", self.service_name)
            return 0.0
        if window is None:
            return 0.0
        return max(0.0, (window.window_end - now).total_seconds())

    async def reset_window(self) -> None:
        """Drop every window for this service (admin use)."""
        removed = await self._repo.delete_for_service(self.service_name)
        logger.info("Reset %d rate limit windows for %s", removed, self.service_name)

    async def cleanup_expired_windows(self) -> int:
        removed = await self._repo.delete_for_service(self.service_name, before=self._clock())
        if removed:
            logger.info("Removed %d expired rate limit windows for %s", removed, self.service_name)
        return removed

    async def is_healthy(self) -> bool:
        """True when the backing store answers."""
        try:
            await self._repo.active_window(self.service_name, self._clock())
        except Exception:
            logger.exception("Rate limit store unreachable")
            return False
        return True
