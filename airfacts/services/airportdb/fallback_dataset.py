"""Static fallback dataset used when both the provider and the cache fail.

Records come from a bundled seed of major airports. Unknown identifiers can
be synthesized from their ICAO prefix (country and a rough centroid), which
is a pure function of the identifier.
"""

from __future__ import annotations

import json
import logging
from datetime import datetime, timezone
from pathlib import Path
from typing import NamedTuple

from pydantic import BaseModel

from airfacts.contracts.airportdb import (
    BatchItemError,
    RawAirport,
    RawBatchResponse,
    RawCountry,
    RawRegion,
    RawStation,
)
from airfacts.contracts.enums import RecordOrigin
from airfacts.services.airportdb.numeric_parser import normalize_identifier

logger = logging.getLogger(__name__)

SEED_PATH = Path(__file__).parent / "data" / "airports_seed.json"


class SeedRecord(BaseModel):
    icao: str
    iata: str | None = None
    name: str
    city: str | None = None
    state: str | None = None
    country: str | None = None
    latitude: float | None = None
    longitude: float | None = None
    elevation_ft: float | None = None
    type: str | None = None
    continent: str | None = None
    scheduled_service: bool | None = None


class CountryInfo(NamedTuple):
    code: str
    continent: str


class PrefixRegion(NamedTuple):
    country: str
    continent: str
    latitude: float
    longitude: float


COUNTRY_CODES: dict[str, CountryInfo] = {
    "United States": CountryInfo("US", "NA"),
    "Canada": CountryInfo("CA", "NA"),
    "Mexico": CountryInfo("MX", "NA"),
    "United Kingdom": CountryInfo("GB", "EU"),
    "Ireland": CountryInfo("IE", "EU"),
    "France": CountryInfo("FR", "EU"),
    "Germany": CountryInfo("DE", "EU"),
    "Spain": CountryInfo("ES", "EU"),
    "Italy": CountryInfo("IT", "EU"),
    "Netherlands": CountryInfo("NL", "EU"),
    "Belgium": CountryInfo("BE", "EU"),
    "Switzerland": CountryInfo("CH", "EU"),
    "Portugal": CountryInfo("PT", "EU"),
    "Australia": CountryInfo("AU", "OC"),
    "New Zealand": CountryInfo("NZ", "OC"),
    "Brazil": CountryInfo("BR", "SA"),
    "Japan": CountryInfo("JP", "AS"),
    "South Korea": CountryInfo("KR", "AS"),
    "China": CountryInfo("CN", "AS"),
    "India": CountryInfo("IN", "AS"),
    "Singapore": CountryInfo("SG", "AS"),
    "United Arab Emirates": CountryInfo("AE", "AS"),
    "South Africa": CountryInfo("ZA", "AF"),
}

US_STATE_CODES: dict[str, str] = {
    "Alabama": "AL", "Alaska": "AK", "Arizona": "AZ", "Arkansas": "AR",
    "California": "CA", "Colorado": "CO", "Connecticut": "CT", "Delaware": "DE",
    "Florida": "FL", "Georgia": "GA", "Hawaii": "HI", "Idaho": "ID",
    "Illinois": "IL", "Indiana": "IN", "Iowa": "IA", "Kansas": "KS",
    "Kentucky": "KY", "Louisiana": "LA", "Maine": "ME", "Maryland": "MD",
    "Massachusetts": "MA", "Michigan": "MI", "Minnesota": "MN", "Mississippi": "MS",
    "Missouri": "MO", "Montana": "MT", "Nebraska": "NE", "Nevada": "NV",
    "New Hampshire": "NH", "New Jersey": "NJ", "New Mexico": "NM", "New York": "NY",
    "North Carolina": "NC", "North Dakota": "ND", "Ohio": "OH", "Oklahoma": "OK",
    "Oregon": "OR", "Pennsylvania": "PA", "Rhode Island": "RI", "South Carolina": "SC",
    "South Dakota": "SD", "Tennessee": "TN", "Texas": "TX", "Utah": "UT",
    "Vermont": "VT", "Virginia": "VA", "Washington": "WA", "West Virginia": "WV",
    "Wisconsin": "WI", "Wyoming": "WY", "District of Columbia": "DC",
}

# Two-letter prefixes are checked before one-letter ones.
PREFIX_REGIONS: dict[str, PrefixRegion] = {
    "EG": PrefixRegion("United Kingdom", "EU", 54.0, -2.0),
    "EI": PrefixRegion("Ireland", "EU", 53.4, -8.0),
    "LF": PrefixRegion("France", "EU", 46.5, 2.5),
    "ED": PrefixRegion("Germany", "EU", 51.0, 10.0),
    "ET": PrefixRegion("Germany", "EU", 51.0, 10.0),
    "LE": PrefixRegion("Spain", "EU", 40.0, -4.0),
    "LI": PrefixRegion("Italy", "EU", 42.5, 12.5),
    "EH": PrefixRegion("Netherlands", "EU", 52.2, 5.5),
    "EB": PrefixRegion("Belgium", "EU", 50.6, 4.6),
    "LS": PrefixRegion("Switzerland", "EU", 46.8, 8.2),
    "LP": PrefixRegion("Portugal", "EU", 39.5, -8.0),
    "RJ": PrefixRegion("Japan", "AS", 36.0, 138.0),
    "RK": PrefixRegion("South Korea", "AS", 36.5, 127.8),
    "VA": PrefixRegion("India", "AS", 21.0, 78.0),
    "VE": PrefixRegion("India", "AS", 21.0, 78.0),
    "VI": PrefixRegion("India", "AS", 21.0, 78.0),
    "VO": PrefixRegion("India", "AS", 21.0, 78.0),
    "WS": PrefixRegion("Singapore", "AS", 1.35, 103.8),
    "OM": PrefixRegion("United Arab Emirates", "AS", 24.0, 54.0),
    "NZ": PrefixRegion("New Zealand", "OC", -41.0, 174.0),
    "SB": PrefixRegion("Brazil", "SA", -14.0, -51.0),
    "SD": PrefixRegion("Brazil", "SA", -14.0, -51.0),
    "MM": PrefixRegion("Mexico", "NA", 23.0, -102.0),
    "FA": PrefixRegion("South Africa", "AF", -29.0, 24.0),
    "PA": PrefixRegion("United States", "NA", 64.0, -150.0),
    "PH": PrefixRegion("United States", "OC", 20.8, -156.3),
    "K": PrefixRegion("United States", "NA", 39.8, -98.6),
    "C": PrefixRegion("Canada", "NA", 56.0, -106.0),
    "Y": PrefixRegion("Australia", "OC", -25.0, 134.0),
    "Z": PrefixRegion("China", "AS", 35.0, 103.0),
}
UNKNOWN_REGION = PrefixRegion("Unknown", "UN", 0.0, 0.0)


def load_seed(path: Path = SEED_PATH) -> list[SeedRecord]:
    with open(path, encoding="utf-8") as f:
        rows = json.load(f)
    return [SeedRecord.model_validate(row) for row in rows if row.get("icao")]


def region_for_prefix(icao: str) -> PrefixRegion:
    return PREFIX_REGIONS.get(icao[:2]) or PREFIX_REGIONS.get(icao[:1]) or UNKNOWN_REGION


def synthesize_record(icao: str) -> SeedRecord:
    """Minimal placeholder record for an identifier absent from the seed."""
    region = region_for_prefix(icao)
    return SeedRecord(
        icao=icao,
        name=f"{icao} Fallback Airport",
        country=region.country,
        latitude=region.latitude,
        longitude=region.longitude,
        type="small_airport",
        continent=region.continent,
        scheduled_service=False,
    )


def resolve_country(name: str | None) -> tuple[str, str, str]:
    """Return ``(code, continent, name)`` for a country name."""
    if not name:
        return "ZZ", "UN", "Unknown"
    name = name.strip()
    info = COUNTRY_CODES.get(name)
    if info:
        return info.code, info.continent, name
    return name[:2].upper(), "UN", name


def to_raw_airport(record: SeedRecord) -> RawAirport:
    """Express a seed record in the provider's wire format."""
    country_code, continent, country_name = resolve_country(record.country)
    state = (record.state or "").strip()
    state_code = US_STATE_CODES.get(state, state.upper()) if state else "UNK"
    region_code = f"{country_code}-{state_code}"

    return RawAirport(
        ident=record.icao,
        icao_code=record.icao,
        iata_code=record.iata,
        gps_code=record.icao,
        local_code=record.iata or record.icao,
        type=record.type or "medium_airport",
        name=record.name,
        latitude_deg=record.latitude if record.latitude is not None else 0.0,
        longitude_deg=record.longitude if record.longitude is not None else 0.0,
        elevation_ft=str(int(record.elevation_ft)) if record.elevation_ft is not None else None,
        continent=record.continent or continent,
        iso_country=country_code,
        iso_region=region_code,
        municipality=record.city or record.name,
        scheduled_service="yes" if record.scheduled_service else "no",
        runways=[],
        freqs=[],
        navaids=[],
        country=RawCountry(id=country_code, code=country_code, name=country_name, continent=continent),
        region=RawRegion(
            id=region_code,
            code=region_code,
            local_code=state_code,
            name=state or "Unknown",
            continent=continent,
            iso_country=country_code,
        ),
        station=RawStation(icao_code=record.icao, distance=0),
        updatedAt=datetime.now(timezone.utc).isoformat(),
        origin=RecordOrigin.FALLBACK,
    )


class FallbackDataset:
    """Seed lookup with optional prefix-based synthesis."""

    def __init__(self, records: list[SeedRecord] | None = None, synthesize: bool = True):
        records = load_seed() if records is None else records
        self._records = records
        self._by_icao = {r.icao.upper(): r for r in records}
        self.synthesize = synthesize

    def __len__(self) -> int:
        return len(self._records)

    def __contains__(self, icao: str) -> bool:
        return (normalize_identifier(icao) or "") in self._by_icao

    def get(self, icao: str) -> RawAirport | None:
        ident = normalize_identifier(icao)
        if not ident:
            return None
        record = self._by_icao.get(ident)
        if record is None:
            if not self.synthesize:
                return None
            logger.info("Synthesizing fallback record for %s", ident)
            record = synthesize_record(ident)
        return to_raw_airport(record)

    def get_batch(self, icaos: list[str]) -> RawBatchResponse:
        airports: list[RawAirport] = []
        errors: list[BatchItemError] = []
        for icao in icaos:
            raw = self.get(icao)
            if raw is None:
                errors.append(BatchItemError(icao=icao, error="Airport not found in fallback dataset"))
            else:
                airports.append(raw)
        return RawBatchResponse(airports=airports, errors=errors)

    def search(self, query: str, limit: int = 10) -> list[RawAirport]:
        """Case-insensitive substring search over identity and place names."""
        needle = query.strip().lower()
        if not needle or limit <= 0:
            return []

        matches: list[SeedRecord] = []
        direct = self._by_icao.get(needle.upper())
        if direct is not None:
            matches.append(direct)
        for record in self._records:
            if len(matches) >= limit:
                break
            if record is direct:
                continue
            haystack = " ".join(
                part for part in (record.icao, record.iata, record.name, record.city, record.state, record.country)
                if part
            ).lower()
            if needle in haystack:
                matches.append(record)
        return [to_raw_airport(r) for r in matches[:limit]]
