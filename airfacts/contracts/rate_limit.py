"""Rate-limit window documents and limiter reports."""

from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, Field

from airfacts.contracts.common import FirestoreModel


class RateLimitConfig(BaseModel):
    service_name: str
    requests_per_window: int = Field(..., gt=0)
    window_seconds: float = Field(..., gt=0)
    burst_allowance: int | None = None

    def model_post_init(self, __context) -> None:
        if self.burst_allowance is None:
            self.burst_allowance = int(self.requests_per_window * 0.1)


class RateLimitWindow(FirestoreModel):
    """One counting window, stored at ``api_rate_limits/{id}``."""

    id: str | None = None
    service_name: str
    window_start: datetime
    window_end: datetime
    request_count: int = 0
    limit_per_window: int


class RateLimitResult(BaseModel):
    allowed: bool
    remaining: int
    reset_time: datetime
    window_start: datetime | None = None
    window_end: datetime | None = None


class RateLimitUsage(BaseModel):
    service_name: str
    current_usage: int = 0
    limit: int
    remaining: int
    reset_time: datetime
    utilization_percent: float = 0
