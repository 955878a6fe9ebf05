"""Results returned by ``AirportService`` to the rest of the application."""

from __future__ import annotations

from datetime import datetime, timezone

from pydantic import BaseModel, Field

from airfacts.contracts.airport import ProcessedAirport
from airfacts.contracts.enums import DataSource
from airfacts.contracts.result import ServiceError


def _now() -> datetime:
    return datetime.now(tz=timezone.utc)


class AirportLookupResult(BaseModel):
    """Outcome of a single lookup.

    A failed lookup is not an exception: ``data`` is ``None`` and
    ``source`` names the last source attempted.
    """

    icao: str
    data: ProcessedAirport | None = None
    source: DataSource
    cached: bool = False
    rate_limited: bool = False
    timestamp: datetime = Field(default_factory=_now)
    error: ServiceError | None = None


class BatchItemFailure(BaseModel):
    icao: str
    code: str
    error: str


class BatchLookupResult(BaseModel):
    airports: list[ProcessedAirport] = Field(default_factory=list)
    sources: dict[str, DataSource] = Field(default_factory=dict)
    errors: list[BatchItemFailure] = Field(default_factory=list)
    rate_limited: bool = False
    from_cache: int = 0
    from_api: int = 0
    from_fallback: int = 0


class HealthStatus(BaseModel):
    cache: bool
    api: bool
    rate_limit: bool
    overall: bool
    timestamp: datetime = Field(default_factory=_now)
