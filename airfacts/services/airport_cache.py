"""Permanent airport cache backed by Firestore, with in-memory degradation.

Entries never expire. They hold the processed representation split into
sub-documents, the raw provider snapshot, and the completeness score of
the write that produced them. The first backing-store failure switches the
instance to its in-memory map for the rest of the process lifetime; the
switch is logged once. The map only holds entries written after the switch.
"""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Callable

from pydantic import ValidationError

from airfacts.contracts.airport import ProcessedAirport
from airfacts.contracts.airportdb import RawAirport
from airfacts.contracts.cache import (
    PROCESSING_VERSION,
    CacheEntry,
    CacheStats,
    CacheValidation,
)
from airfacts.contracts.enums import CacheBackend
from airfacts.persistence.errors import CacheBackendError
from airfacts.persistence.repositories.airport_cache_repo import AirportCacheRepository
from airfacts.services.airportdb.data_processor import AirportDataProcessor
from airfacts.services.airportdb.errors import DataProcessingError
from airfacts.services.airportdb.numeric_parser import normalize_identifier

logger = logging.getLogger(__name__)

MAX_BATCH_SIZE = 50
CORRUPT_COMPLETENESS_THRESHOLD = 10
LOW_COMPLETENESS_WARNING = 50
ENTRY_SIZE_MB = 0.05

_CORE_FIELDS = {
    "icao", "iata", "name", "coordinates", "location", "classification",
    "external_links", "weather", "data_quality",
}


def utcnow() -> datetime:
    return datetime.now(tz=timezone.utc)


def serialize_airport(
    airport: ProcessedAirport,
    raw: RawAirport,
    *,
    now: datetime,
    created_at: datetime | None = None,
) -> CacheEntry:
    return CacheEntry(
        icao_code=airport.icao,
        iata_code=airport.iata,
        core_data=airport.model_dump(mode="json", include=_CORE_FIELDS, exclude_none=True),
        runway_data=airport.runways.model_dump(mode="json", exclude_none=True),
        communication_data=airport.communications.model_dump(mode="json", exclude_none=True),
        navigation_data=airport.navigation.model_dump(mode="json", exclude_none=True),
        capability_data=airport.capabilities.model_dump(mode="json", exclude_none=True),
        raw_api_response=raw.to_wire(),
        data_completeness=airport.data_quality.completeness_score,
        processing_version=PROCESSING_VERSION,
        created_at=created_at or now,
        updated_at=now,
        last_verified_at=now,
    )


def deserialize_entry(entry: CacheEntry) -> ProcessedAirport:
    """Rebuild the processed record. Raises ``ValidationError`` if corrupt."""
    return ProcessedAirport.model_validate(
        {
            **entry.core_data,
            "runways": entry.runway_data,
            "communications": entry.communication_data,
            "navigation": entry.navigation_data,
            "capabilities": entry.capability_data,
        }
    )


@dataclass
class CacheBatchResult:
    airports: dict[str, ProcessedAirport] = field(default_factory=dict)
    missing: list[str] = field(default_factory=list)


@dataclass
class CacheWriteResult:
    stored: dict[str, ProcessedAirport] = field(default_factory=dict)
    errors: dict[str, DataProcessingError] = field(default_factory=dict)


class AirportCacheService:
    """Cache-first store for processed airports."""

    def __init__(
        self,
        repository: AirportCacheRepository,
        processor: AirportDataProcessor | None = None,
        *,
        clock: Callable[[], datetime] = utcnow,
        max_batch_size: int = MAX_BATCH_SIZE,
    ):
        self._repo = repository
        self._processor = processor or AirportDataProcessor()
        self._clock = clock
        self._max_batch_size = max_batch_size
        self._memory: dict[str, CacheEntry] = {}
        self._lock = asyncio.Lock()
        self._memory_only = False

    @property
    def backend(self) -> CacheBackend:
        return CacheBackend.MEMORY if self._memory_only else CacheBackend.FIRESTORE

    @property
    def processor(self) -> AirportDataProcessor:
        return self._processor

    # ------------------------------------------------------------------
    # Degradation and memory map
    # ------------------------------------------------------------------

    async def _enable_memory_fallback(self, operation: str, exc: Exception) -> None:
        async with self._lock:
            if self._memory_only:
                return
            self._memory_only = True
        error = CacheBackendError(operation, exc)
        logger.warning("Airport cache store unavailable (%s), serving from memory from now on", error)

    async def _remember(self, entry: CacheEntry) -> None:
        async with self._lock:
            self._memory[entry.icao_code] = entry

    async def _recall(self, icao: str) -> CacheEntry | None:
        async with self._lock:
            return self._memory.get(icao)

    async def _forget(self, icao: str) -> None:
        async with self._lock:
            self._memory.pop(icao, None)

    def _to_airport(self, entry: CacheEntry) -> ProcessedAirport | None:
        try:
            return deserialize_entry(entry)
        except ValidationError as exc:
            logger.warning("Corrupt cache entry for %s ignored: %s", entry.icao_code, exc)
            return None

    # ------------------------------------------------------------------
    # Read
    # ------------------------------------------------------------------

    async def get(self, icao: str) -> ProcessedAirport | None:
        ident = normalize_identifier(icao)
        if not ident:
            return None

        if not self._memory_only:
            try:
                entry = await self._repo.get(ident)
            except ValidationError as exc:
                logger.warning("Corrupt cache document for %s ignored: %s", ident, exc)
                return None
            except Exception as exc:
                await self._enable_memory_fallback("get", exc)
            else:
                return self._to_airport(entry) if entry else None

        entry = await self._recall(ident)
        return self._to_airport(entry) if entry else None

    async def get_batch(self, icaos: list[str]) -> CacheBatchResult:
        idents = list(dict.fromkeys(i for i in (normalize_identifier(x) for x in icaos) if i))
        result = CacheBatchResult()

        for start in range(0, len(idents), self._max_batch_size):
            chunk = idents[start:start + self._max_batch_size]
            entries: dict[str, CacheEntry] = {}
            if not self._memory_only:
                try:
                    entries = await self._repo.get_many(chunk)
                except ValidationError:
                    # One corrupt document spoils the batch read; go one by one.
                    for ident in chunk:
                        airport = await self.get(ident)
                        if airport is not None:
                            result.airports[ident] = airport
                    continue
                except Exception as exc:
                    await self._enable_memory_fallback("get_batch", exc)

            if self._memory_only:
                for ident in chunk:
                    entry = await self._recall(ident)
                    if entry is not None:
                        entries[ident] = entry

            for ident, entry in entries.items():
                airport = self._to_airport(entry)
                if airport is not None:
                    result.airports[ident] = airport

        result.missing = [i for i in idents if i not in result.airports]
        return result

    # ------------------------------------------------------------------
    # Write
    # ------------------------------------------------------------------

    async def set(self, icao: str, raw: RawAirport) -> ProcessedAirport:
        """Process *raw* and store the result under its ICAO identifier.

        Raises:
            DataProcessingError: the record cannot be processed.
        """
        airport = self._processor.process(raw)
        ident = normalize_identifier(icao)
        if ident and ident != airport.icao:
            logger.warning("Cache key %s differs from record identifier %s, using the latter", ident, airport.icao)

        created = await self._created_at([airport.icao])
        entry = serialize_airport(airport, raw, now=self._clock(), created_at=created.get(airport.icao))
        if not self._memory_only:
            try:
                await self._repo.upsert(airport.icao, entry)
            except Exception as exc:
                await self._enable_memory_fallback("set", exc)
        if self._memory_only:
            await self._remember(entry)
        return airport

    async def set_batch(self, raws: list[RawAirport]) -> CacheWriteResult:
        """Process and store several records; processing failures are per item."""
        result = CacheWriteResult()
        pending: dict[str, tuple[ProcessedAirport, RawAirport]] = {}
        for raw in raws:
            try:
                airport = self._processor.process(raw)
            except DataProcessingError as exc:
                key = raw.identifier or "UNKNOWN"
                logger.warning("Not caching %s: %s", key, exc)
                result.errors[key] = exc
                continue
            result.stored[airport.icao] = airport
            pending[airport.icao] = (airport, raw)

        items = list(pending.items())
        for start in range(0, len(items), self._max_batch_size):
            chunk = dict(items[start:start + self._max_batch_size])
            created = await self._created_at(list(chunk))
            now = self._clock()
            entries = {
                icao: serialize_airport(airport, raw, now=now, created_at=created.get(icao))
                for icao, (airport, raw) in chunk.items()
            }
            if not self._memory_only:
                try:
                    await self._repo.upsert_many(entries)
                except Exception as exc:
                    await self._enable_memory_fallback("set_batch", exc)
            if self._memory_only:
                for entry in entries.values():
                    await self._remember(entry)
        return result

    async def _created_at(self, idents: list[str]) -> dict[str, datetime]:
        """Creation time of entries already stored, so rewrites keep it."""
        if not self._memory_only:
            try:
                stored = await self._repo.created_at_many(idents)
            except Exception as exc:
                await self._enable_memory_fallback("read created_at", exc)
            else:
                return {i: t for i, t in ((i, _parse_time(v)) for i, v in stored.items()) if t is not None}
        async with self._lock:
            return {i: self._memory[i].created_at for i in idents if i in self._memory}

    async def invalidate(self, icao: str) -> None:
        ident = normalize_identifier(icao)
        if not ident:
            return
        if not self._memory_only:
            try:
                await self._repo.delete(ident)
            except Exception as exc:
                await self._enable_memory_fallback("invalidate", exc)
        await self._forget(ident)
        logger.info("Invalidated cache entry for %s", ident)

    # ------------------------------------------------------------------
    # Maintenance
    # ------------------------------------------------------------------

    async def cleanup(self) -> int:
        """Remove entries whose completeness is below 10. Returns the count."""
        removed = 0
        if not self._memory_only:
            try:
                removed = await self._repo.delete_below_completeness(CORRUPT_COMPLETENESS_THRESHOLD)
            except Exception as exc:
                await self._enable_memory_fallback("cleanup", exc)

        async with self._lock:
            stale = [
                icao for icao, entry in self._memory.items()
                if entry.data_completeness < CORRUPT_COMPLETENESS_THRESHOLD
            ]
            for icao in stale:
                del self._memory[icao]
        if self._memory_only:
            removed = len(stale)
        if removed:
            logger.info("Removed %d unusable cache entries", removed)
        return removed

    async def stats(self) -> CacheStats:
        rows: list[tuple[int, datetime | None]] = []
        if not self._memory_only:
            try:
                async for _, data in self._repo.stream_raw():
                    rows.append((int(data.get("data_completeness") or 0), _parse_time(data.get("updated_at"))))
            except Exception as exc:
                await self._enable_memory_fallback("stats", exc)
                rows = []

        if self._memory_only:
            async with self._lock:
                rows = [(e.data_completeness, e.updated_at) for e in self._memory.values()]

        if not rows:
            return CacheStats(backend=self.backend)
        timestamps = [t for _, t in rows if t is not None]
        return CacheStats(
            total_airports=len(rows),
            avg_completeness=round(sum(c for c, _ in rows) / len(rows), 2),
            last_updated=max(timestamps) if timestamps else None,
            storage_size_mb=round(len(rows) * ENTRY_SIZE_MB, 2),
            backend=self.backend,
        )

    async def validate(self, icao: str) -> CacheValidation:
        ident = normalize_identifier(icao) or ""
        airport = await self.get(ident)
        if airport is None:
            return CacheValidation(icao=ident, is_valid=False, errors=["Airport not found in cache"])

        errors: list[str] = []
        warnings: list[str] = []
        if not airport.icao:
            errors.append("Missing ICAO code")
        if not airport.name:
            errors.append("Missing airport name")
        if airport.coordinates is None:
            errors.append("Missing coordinates")
        if airport.runways.count == 0:
            warnings.append("No runway data")
        if not airport.communications.frequencies_by_type:
            warnings.append("No frequency data")
        if airport.navigation.navaids_count == 0:
            warnings.append("No navaid data")
        score = airport.data_quality.completeness_score
        if score < LOW_COMPLETENESS_WARNING:
            warnings.append(f"Low data completeness: {score}%")
        return CacheValidation(
            icao=ident,
            is_valid=not errors,
            errors=errors,
            warnings=warnings,
            completeness=score,
        )


def _parse_time(value) -> datetime | None:
    if isinstance(value, datetime):
        return value
    if isinstance(value, str):
        try:
            return datetime.fromisoformat(value.replace("Z", "+00:00"))
        except ValueError:
            return None
    return None
