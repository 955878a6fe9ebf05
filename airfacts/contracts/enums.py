"""Enumerations shared across all airfacts contracts."""

from enum import Enum


class AirportType(str, Enum):
    """Facility classification derived from the provider ``type`` field."""
    LARGE = "large"
    MEDIUM = "medium"
    SMALL = "small"
    HELIPORT = "heliport"


class SizeCategory(str, Enum):
    MAJOR = "major"
    REGIONAL = "regional"
    LOCAL = "local"
    PRIVATE = "private"


class AircraftTier(str, Enum):
    """Aircraft tiers used for runway suitability, lightest first."""
    LIGHT_AIRCRAFT = "light_aircraft"
    BUSINESS_JETS = "business_jets"
    REGIONAL_AIRCRAFT = "regional_aircraft"
    NARROW_BODY = "narrow_body"
    WIDE_BODY = "wide_body"


class FrequencyType(str, Enum):
    TOWER = "TWR"
    GROUND = "GND"
    APPROACH = "APP"
    ATIS = "ATIS"
    CLEARANCE = "CLD"


class NavaidType(str, Enum):
    VOR = "VOR"
    NDB = "NDB"
    ILS = "ILS"
    DME = "DME"


class ApproachCapability(str, Enum):
    PRECISION = "precision"
    NON_PRECISION = "non-precision"
    VISUAL = "visual"
    NONE = "none"


class DataSource(str, Enum):
    """Where a lookup result was served from."""
    CACHE = "cache"
    API = "api"
    FALLBACK = "fallback"


class RecordOrigin(str, Enum):
    """Where a raw airport record was produced."""
    AIRPORTDB = "airportdb"
    FALLBACK = "fallback"


class ErrorCode(str, Enum):
    """Upstream error taxonomy."""
    INVALID_REQUEST = "invalid_request"
    NOT_FOUND = "not_found"
    RATE_LIMITED = "rate_limited"
    NETWORK_ERROR = "network_error"
    API_ERROR = "api_error"
    INTERNAL_ERROR = "internal_error"


class ProcessingErrorCode(str, Enum):
    MISSING_IDENTIFIER = "missing-identifier"
    MISSING_NAME = "missing-name"
    MISSING_COORDINATES = "missing-coordinates"
    INVALID_COORDINATES = "invalid-coordinates"
    INVALID_IDENTIFIER = "invalid-identifier"


class SearchType(str, Enum):
    ICAO = "icao"
    IATA = "iata"
    NAME = "name"
    ALL = "all"


class CacheBackend(str, Enum):
    FIRESTORE = "firestore"
    MEMORY = "memory"
