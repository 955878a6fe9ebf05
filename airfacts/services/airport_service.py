"""Cache-first airport lookup service.

Lookup order: cache, then the rate-limited provider (which itself falls
back to the static dataset), then the cache once more. Successful provider
records are written through to the cache. Static fallback records are
served but never cached, so that real data replaces them later.

Build one instance per process with ``create_airport_service`` and pass it
to callers; nothing here is a module-level singleton.
"""

from __future__ import annotations

import asyncio
import logging
from contextlib import nullcontext
from dataclasses import dataclass
from typing import Any

import httpx

from airfacts.config import Settings
from airfacts.contracts.airport import ProcessedAirport
from airfacts.contracts.airportdb import BatchItemError, RawAirport, RawBatchResponse
from airfacts.contracts.cache import CacheStats, CacheValidation
from airfacts.contracts.enums import (
    CacheBackend,
    DataSource,
    ErrorCode,
    RecordOrigin,
    SearchType,
)
from airfacts.contracts.lookup import (
    AirportLookupResult,
    BatchItemFailure,
    BatchLookupResult,
    HealthStatus,
)
from airfacts.contracts.rate_limit import RateLimitUsage
from airfacts.contracts.result import ServiceError, attempt
from airfacts.persistence.firestore_client import get_firestore_client
from airfacts.persistence.repositories.airport_cache_repo import AirportCacheRepository
from airfacts.persistence.repositories.rate_limit_repo import RateLimitRepository
from airfacts.services.airport_cache import AirportCacheService
from airfacts.services.airportdb.client import AirportDBClient, validate_icao
from airfacts.services.airportdb.data_processor import AirportDataProcessor
from airfacts.services.airportdb.errors import DataProcessingError, InvalidRequestError
from airfacts.services.airportdb.fallback_dataset import FallbackDataset
from airfacts.services.rate_limiter import RateLimitService

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ServiceOptions:
    use_cache: bool = True
    fallback_to_cache: bool = True


def _is_fallback(raw: RawAirport) -> bool:
    return RecordOrigin(raw.origin) == RecordOrigin.FALLBACK


def _deadline(timeout: float | None):
    return asyncio.timeout(timeout) if timeout is not None else nullcontext()


class AirportService:
    """Façade over cache, provider client, rate limiter and fallback dataset."""

    def __init__(
        self,
        client: AirportDBClient,
        cache: AirportCacheService,
        options: ServiceOptions | None = None,
    ):
        self._client = client
        self._cache = cache
        self._processor: AirportDataProcessor = cache.processor
        self.options = options or ServiceOptions()

    @property
    def rate_limiter(self) -> RateLimitService | None:
        return self._client.rate_limiter

    # ============ Single lookup ============

    async def get(self, icao: str, *, timeout: float | None = None) -> AirportLookupResult:
        """Look up one airport.

        Never raises for lookup failures: the result carries ``data=None``,
        the last source attempted and the error. A *timeout* (seconds)
        bounds the whole chain and raises ``TimeoutError`` when exceeded.
        """
        async with _deadline(timeout):
            return await self._get(icao)

    async def _get(self, icao: str) -> AirportLookupResult:
        try:
            ident = validate_icao(icao)
        except InvalidRequestError as exc:
            return AirportLookupResult(
                icao=str(icao),
                source=DataSource.API,
                error=ServiceError(code=exc.code.value, message=str(exc)),
            )

        if self.options.use_cache:
            cached = await self._cache.get(ident)
            if cached is not None:
                return AirportLookupResult(icao=ident, data=cached, source=DataSource.CACHE, cached=True)

        fetched = await attempt(lambda: self._client.get_by_identifier(ident), label=f"fetch {ident}")
        if not fetched.success:
            return await self._recover(ident, fetched.error)

        raw: RawAirport = fetched.data
        stored = await attempt(lambda: self._store(ident, raw), label=f"process {ident}")
        if not stored.success:
            return await self._recover(ident, stored.error)

        source = DataSource.FALLBACK if _is_fallback(raw) else DataSource.API
        return AirportLookupResult(icao=ident, data=stored.data, source=source)

    async def _store(self, ident: str, raw: RawAirport) -> ProcessedAirport:
        if self.options.use_cache and not _is_fallback(raw):
            return await self._cache.set(ident, raw)
        return self._processor.process(raw)

    async def _recover(self, ident: str, error: ServiceError) -> AirportLookupResult:
        """Last-resort chain after the provider path failed."""
        rate_limited = error.code == ErrorCode.RATE_LIMITED.value

        if self.options.use_cache and self.options.fallback_to_cache:
            cached = await self._cache.get(ident)
            if cached is not None:
                return AirportLookupResult(
                    icao=ident, data=cached, source=DataSource.CACHE, cached=True, rate_limited=rate_limited
                )

        # A rate-limited call never reached the client's own fallback.
        fallback = self._client.fallback
        if rate_limited and fallback is not None:
            raw = fallback.get(ident)
            if raw is not None:
                try:
                    airport = self._processor.process(raw)
                except DataProcessingError as exc:
                    logger.warning("Fallback record for %s unusable: %s", ident, exc)
                else:
                    return AirportLookupResult(
                        icao=ident, data=airport, source=DataSource.FALLBACK, rate_limited=True
                    )

        return AirportLookupResult(icao=ident, source=DataSource.API, rate_limited=rate_limited, error=error)

    # ============ Batch lookup ============

    async def get_batch(self, icaos: list[str], *, timeout: float | None = None) -> BatchLookupResult:
        """Look up many airports; failures are reported per identifier."""
        async with _deadline(timeout):
            return await self._get_batch(icaos)

    async def _get_batch(self, icaos: list[str]) -> BatchLookupResult:
        result = BatchLookupResult()
        found: dict[str, tuple[ProcessedAirport, DataSource]] = {}
        valid: list[str] = []
        for icao in icaos:
            try:
                ident = validate_icao(icao)
            except InvalidRequestError as exc:
                result.errors.append(BatchItemFailure(icao=str(icao), code=exc.code.value, error=str(exc)))
                continue
            if ident not in valid:
                valid.append(ident)

        missing = valid
        if self.options.use_cache and valid:
            cached = await self._cache.get_batch(valid)
            for ident, airport in cached.airports.items():
                found[ident] = (airport, DataSource.CACHE)
            missing = cached.missing

        failures: list[BatchItemError] = []
        if missing:
            fetched = await attempt(lambda: self._client.get_batch(missing), label=f"batch fetch {len(missing)}")
            if fetched.success:
                response: RawBatchResponse = fetched.data
            else:
                response = RawBatchResponse(
                    errors=[
                        BatchItemError(icao=i, error=fetched.error.message, code=fetched.error.code)
                        for i in missing
                    ],
                    rate_limited=fetched.error.code == ErrorCode.RATE_LIMITED.value,
                )
            result.rate_limited = response.rate_limited
            failures.extend(response.errors)
            failures.extend(await self._process_batch(response.airports, found))

        for failure in failures:
            ident = failure.icao.strip().upper()
            if ident in found:
                continue
            if self.options.use_cache and self.options.fallback_to_cache:
                cached_airport = await self._cache.get(ident)
                if cached_airport is not None:
                    found[ident] = (cached_airport, DataSource.CACHE)
                    continue
            result.errors.append(BatchItemFailure(icao=failure.icao, code=failure.code, error=failure.error))

        reported = {e.icao.strip().upper() for e in result.errors}
        for ident in valid:
            if ident not in found and ident not in reported:
                result.errors.append(
                    BatchItemFailure(icao=ident, code=ErrorCode.NOT_FOUND.value, error=f"No data returned for {ident}")
                )

        for ident in valid:
            if ident not in found:
                continue
            airport, source = found[ident]
            result.airports.append(airport)
            result.sources[ident] = source
        result.from_cache = sum(1 for s in result.sources.values() if s == DataSource.CACHE)
        result.from_api = sum(1 for s in result.sources.values() if s == DataSource.API)
        result.from_fallback = sum(1 for s in result.sources.values() if s == DataSource.FALLBACK)
        return result

    async def _process_batch(
        self,
        raws: list[RawAirport],
        found: dict[str, tuple[ProcessedAirport, DataSource]],
    ) -> list[BatchItemError]:
        """Process provider records into *found*; return processing failures."""
        failures: list[BatchItemError] = []
        if self.options.use_cache:
            to_cache = [r for r in raws if not _is_fallback(r)]
            direct = [r for r in raws if _is_fallback(r)]
        else:
            to_cache, direct = [], raws

        if to_cache:
            written = await self._cache.set_batch(to_cache)
            for ident, airport in written.stored.items():
                found[ident] = (airport, DataSource.API)
            for ident, exc in written.errors.items():
                failures.append(BatchItemError(icao=ident, error=str(exc), code=exc.code.value))

        for raw in direct:
            try:
                airport = self._processor.process(raw)
            except DataProcessingError as exc:
                failures.append(BatchItemError(icao=raw.identifier or "UNKNOWN", error=str(exc), code=exc.code.value))
                continue
            source = DataSource.FALLBACK if _is_fallback(raw) else DataSource.API
            found[airport.icao] = (airport, source)
        return failures

    # ============ Search ============

    async def search(
        self,
        query: str,
        limit: int = 10,
        search_type: SearchType | str = SearchType.ALL,
    ) -> list[ProcessedAirport]:
        """Free-text search. Results are never served from cache but are
        written into it for later direct lookups.

        Raises:
            InvalidRequestError: empty query or unknown search type.
        """
        try:
            raws = await self._client.search(query, limit=limit, search_type=search_type)
        except InvalidRequestError:
            raise
        except Exception:
            logger.exception("Airport search for %r failed", query)
            return []

        stored: dict[str, ProcessedAirport] = {}
        provider = [r for r in raws if not _is_fallback(r)]
        if self.options.use_cache and provider:
            written = await attempt(lambda: self._cache.set_batch(provider), label="cache search results")
            if written.success:
                stored = written.data.stored

        results: list[ProcessedAirport] = []
        for raw in raws:
            airport = stored.get(raw.identifier or "")
            if airport is None:
                try:
                    airport = self._processor.process(raw)
                except DataProcessingError as exc:
                    logger.warning("Skipping unprocessable search result: %s", exc)
                    continue
            results.append(airport)
        return results

    # ============ Maintenance and reporting ============

    async def validate(self, icao: str) -> CacheValidation:
        return await self._cache.validate(icao)

    async def refresh(self, icao: str) -> AirportLookupResult:
        """Drop the cached entry and fetch again."""
        ident = validate_icao(icao)
        await self._cache.invalidate(ident)
        return await self.get(ident)

    async def invalidate(self, icao: str) -> None:
        await self._cache.invalidate(validate_icao(icao))

    async def cleanup_cache(self) -> int:
        return await self._cache.cleanup()

    async def cache_stats(self) -> CacheStats:
        return await self._cache.stats()

    async def rate_limit_stats(self) -> RateLimitUsage | None:
        if self.rate_limiter is None:
            return None
        return await self.rate_limiter.get_usage_stats()

    async def health_check(self) -> HealthStatus:
        stats = await attempt(self._cache.stats, label="cache health")
        cache_ok = stats.success and stats.data.backend == CacheBackend.FIRESTORE
        api_ok = await self._client.check_health()
        rate_ok = await self.rate_limiter.is_healthy() if self.rate_limiter else True
        return HealthStatus(
            cache=cache_ok,
            api=api_ok,
            rate_limit=rate_ok,
            overall=cache_ok and api_ok and rate_ok,
        )

    async def aclose(self) -> None:
        await self._client.aclose()


def create_airport_service(
    settings: Settings,
    *,
    firestore_client: Any = None,
    http_client: httpx.AsyncClient | None = None,
    fallback: FallbackDataset | None = None,
) -> AirportService:
    """Wire the full service graph once, at process start."""
    fallback = fallback or FallbackDataset(synthesize=settings.fallback_synthesis)
    if firestore_client is None and settings.firestore_project:
        firestore_client = get_firestore_client(settings.firestore_project)
    rate_limiter = None
    if settings.enable_rate_limit:
        rate_limiter = RateLimitService.from_profile(
            settings.rate_limit_profile,
            RateLimitRepository(firestore_client, settings.rate_limit_collection),
        )
    client = AirportDBClient(
        settings.api_key,
        http_client,
        base_url=settings.base_url,
        timeout=settings.timeout,
        retry_attempts=settings.retry_attempts,
        retry_delay=settings.retry_delay,
        fallback=fallback,
        rate_limiter=rate_limiter,
    )
    cache = AirportCacheService(AirportCacheRepository(firestore_client, settings.cache_collection))
    return AirportService(
        client,
        cache,
        ServiceOptions(use_cache=settings.use_cache, fallback_to_cache=settings.fallback_to_cache),
    )
