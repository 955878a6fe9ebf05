"""airfacts data contracts: Pydantic v2 models for airport acquisition.

Data authority
--------------

**AirportDB.io** (upstream, untyped wire format):
- ``RawAirport`` and its runway, frequency and navaid sub-records
- ``RawBatchResponse`` for ``/airport/batch``

**Firestore** (permanent cache and quota bookkeeping):
- ``CacheEntry``: ``/airport_cache/{ICAO}``
- ``RateLimitWindow``: ``/api_rate_limits/{service}_{start_ms}``

Calculated (persisted only inside ``CacheEntry``)
-------------------------------------------------
- ``ProcessedAirport``: runway suitability, communications, navigation
  and capability facts derived from a ``RawAirport``
- ``AirportLookupResult`` / ``BatchLookupResult`` / ``HealthStatus``: service responses
"""

from airfacts.contracts.enums import (
    AircraftTier,
    AirportType,
    ApproachCapability,
    CacheBackend,
    DataSource,
    ErrorCode,
    FrequencyType,
    NavaidType,
    ProcessingErrorCode,
    RecordOrigin,
    SearchType,
    SizeCategory,
)
from airfacts.contracts.common import FirestoreModel, FrozenModel
from airfacts.contracts.result import ServiceError, ServiceResult, attempt
from airfacts.contracts.airportdb import (
    BatchItemError,
    RawAirport,
    RawBatchResponse,
    RawCountry,
    RawFrequency,
    RawIls,
    RawNavaid,
    RawRegion,
    RawRunway,
    RawStation,
)
from airfacts.contracts.airport import (
    AircraftSuitability,
    Capabilities,
    Classification,
    Communications,
    Coordinates,
    DataQuality,
    ExternalLinks,
    FrequencyRecord,
    IlsApproach,
    Location,
    NavaidRecord,
    Navigation,
    PrimaryFrequencies,
    ProcessedAirport,
    RunwayDetail,
    RunwayEnd,
    RunwaySummary,
    WeatherStation,
)
from airfacts.contracts.cache import CacheEntry, CacheStats, CacheValidation
from airfacts.contracts.rate_limit import (
    RateLimitConfig,
    RateLimitResult,
    RateLimitUsage,
    RateLimitWindow,
)
from airfacts.contracts.lookup import (
    AirportLookupResult,
    BatchItemFailure,
    BatchLookupResult,
    HealthStatus,
)

__all__ = [
    # Enums
    "AircraftTier",
    "AirportType",
    "ApproachCapability",
    "CacheBackend",
    "DataSource",
    "ErrorCode",
    "FrequencyType",
    "NavaidType",
    "ProcessingErrorCode",
    "RecordOrigin",
    "SearchType",
    "SizeCategory",
    # Common
    "FirestoreModel",
    "FrozenModel",
    # Result
    "ServiceError",
    "ServiceResult",
    "attempt",
    # Wire
    "BatchItemError",
    "RawAirport",
    "RawBatchResponse",
    "RawCountry",
    "RawFrequency",
    "RawIls",
    "RawNavaid",
    "RawRegion",
    "RawRunway",
    "RawStation",
    # Processed
    "AircraftSuitability",
    "Capabilities",
    "Classification",
    "Communications",
    "Coordinates",
    "DataQuality",
    "ExternalLinks",
    "FrequencyRecord",
    "IlsApproach",
    "Location",
    "NavaidRecord",
    "Navigation",
    "PrimaryFrequencies",
    "ProcessedAirport",
    "RunwayDetail",
    "RunwayEnd",
    "RunwaySummary",
    "WeatherStation",
    # Cache and quota
    "CacheEntry",
    "CacheStats",
    "CacheValidation",
    "RateLimitConfig",
    "RateLimitResult",
    "RateLimitUsage",
    "RateLimitWindow",
    # Service responses
    "AirportLookupResult",
    "BatchItemFailure",
    "BatchLookupResult",
    "HealthStatus",
]
