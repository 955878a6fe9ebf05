"""Turns a raw provider record into a ``ProcessedAirport``.

Pipeline: identity and coordinates, runway analysis, frequency grouping,
navaid categorization, capability roll-up, completeness score. Only a
missing identifier, name or position aborts processing.
"""

from __future__ import annotations

import logging
from datetime import datetime, timezone

from airfacts.contracts.airport import (
    Capabilities,
    Classification,
    Coordinates,
    DataQuality,
    ExternalLinks,
    Location,
    ProcessedAirport,
    RunwaySummary,
    WeatherStation,
)
from airfacts.contracts.airportdb import RawAirport
from airfacts.contracts.enums import AirportType, ProcessingErrorCode, RecordOrigin, SizeCategory
from airfacts.services.airportdb.errors import DataProcessingError
from airfacts.services.airportdb.frequency_organizer import organize_frequencies
from airfacts.services.airportdb.navaid_categorizer import (
    categorize_navaids,
    is_all_weather_capable,
)
from airfacts.services.airportdb.numeric_parser import (
    is_valid_icao,
    normalize_identifier,
    normalize_text,
    parse_boolean,
    parse_coordinate,
    parse_distance,
    parse_elevation,
)
from airfacts.services.airportdb.runway_analyzer import RunwayAnalysis, RunwayAnalyzer

logger = logging.getLogger(__name__)

# Completeness allocation: identity+coordinates 40, basic 20, operational 30, auxiliary 10.
_IDENTITY_POINTS = {"ident": 10, "name": 10, "latitude_deg": 10, "longitude_deg": 10}
_BASIC_POINTS = {"iata_code": 5, "type": 5, "municipality": 5, "iso_country": 5}
_OPERATIONAL_POINTS = {"runways": 15, "freqs": 10, "navaids": 5}
_AUXILIARY_POINTS = {"elevation_ft": 2, "scheduled_service": 2, "home_link": 2, "station": 2, "country": 2}


def classify_type(value) -> AirportType:
    text = normalize_text(value).lower()
    for airport_type in (AirportType.LARGE, AirportType.MEDIUM, AirportType.SMALL, AirportType.HELIPORT):
        if airport_type.value in text:
            return airport_type
    return AirportType.SMALL


def size_category(airport_type: AirportType, longest_ft: float) -> SizeCategory:
    if airport_type == AirportType.LARGE or longest_ft >= 8000:
        return SizeCategory.MAJOR
    if airport_type == AirportType.MEDIUM or longest_ft >= 4000:
        return SizeCategory.REGIONAL
    if longest_ft >= 2000:
        return SizeCategory.LOCAL
    return SizeCategory.PRIVATE


def completeness_score(raw: RawAirport) -> int:
    """Deterministic 0-100 score of how much of the record is populated."""
    score = 0.0
    for points in (_IDENTITY_POINTS, _BASIC_POINTS, _OPERATIONAL_POINTS, _AUXILIARY_POINTS):
        for name, value in points.items():
            if _has_value(raw, name):
                score += value
    return max(0, min(100, round(score)))


def _has_value(raw: RawAirport, name: str) -> bool:
    if name == "ident":
        return raw.identifier is not None
    value = getattr(raw, name)
    if isinstance(value, list):
        return len(value) > 0
    if isinstance(value, str):
        return bool(value.strip())
    return value is not None


class AirportDataProcessor:
    """Stateless apart from its runway analyzer configuration."""

    def __init__(self, runway_analyzer: RunwayAnalyzer | None = None):
        self._runways = runway_analyzer or RunwayAnalyzer()

    def process(self, raw: RawAirport) -> ProcessedAirport:
        """Build the processed record.

        Raises:
            DataProcessingError: identifier, name or coordinates are missing, or
                the identifier is not an ICAO code.
            InvalidCoordinateError: coordinates outside the WGS84 domain.
        """
        icao = raw.identifier
        if not icao:
            raise DataProcessingError(ProcessingErrorCode.MISSING_IDENTIFIER, "Airport record has no ICAO identifier")
        if not is_valid_icao(icao):
            # Local codes such as "00AK" sometimes sit in ident with the ICAO code beside them.
            if not is_valid_icao(raw.icao_code):
                raise DataProcessingError(
                    ProcessingErrorCode.INVALID_IDENTIFIER,
                    f"Airport identifier {icao!r} is not an ICAO code",
                )
            icao = normalize_identifier(raw.icao_code)
        name = normalize_text(raw.name)
        if not name:
            raise DataProcessingError(ProcessingErrorCode.MISSING_NAME, f"Airport {icao} has no name")
        latitude = parse_coordinate(raw.latitude_deg, "latitude")
        longitude = parse_coordinate(raw.longitude_deg, "longitude")
        if latitude is None or longitude is None:
            raise DataProcessingError(
                ProcessingErrorCode.MISSING_COORDINATES,
                f"Airport {icao} is missing valid coordinates",
            )

        runway_analysis = self._runways.analyze(raw.runways)
        communications = organize_frequencies(raw.freqs)
        navigation = categorize_navaids(raw.navaids)
        airport_type = classify_type(raw.type)

        return ProcessedAirport(
            icao=icao,
            iata=normalize_identifier(raw.iata_code),
            name=name,
            coordinates=Coordinates(
                latitude=latitude,
                longitude=longitude,
                elevation_ft=parse_elevation(raw.elevation_ft),
            ),
            location=_location(raw),
            classification=Classification(
                type=airport_type,
                scheduled_service=parse_boolean(raw.scheduled_service),
                size_category=size_category(airport_type, runway_analysis.longest_ft),
            ),
            runways=_runway_summary(runway_analysis),
            communications=communications,
            navigation=navigation,
            capabilities=Capabilities(
                max_aircraft_category=runway_analysis.max_aircraft_category,
                night_operations=runway_analysis.capabilities.night_operations,
                all_weather_operations=(
                    runway_analysis.capabilities.all_weather_operations
                    or is_all_weather_capable(navigation)
                ),
                international_capable=runway_analysis.capabilities.international_capable,
                commercial_service=runway_analysis.capabilities.commercial_operations,
                emergency_suitable=runway_analysis.capabilities.emergency_suitable,
            ),
            external_links=_external_links(raw),
            weather=_weather_station(raw),
            data_quality=DataQuality(
                completeness_score=completeness_score(raw),
                last_updated=normalize_text(raw.updated_at) or datetime.now(timezone.utc).isoformat(),
                source=RecordOrigin(raw.origin).value,
            ),
        )


def _location(raw: RawAirport) -> Location:
    region = normalize_text(raw.region.name) if raw.region else ""
    country = normalize_text(raw.country.name) if raw.country else ""
    return Location(
        municipality=normalize_text(raw.municipality),
        region=region or normalize_text(raw.iso_region),
        country=country or normalize_text(raw.iso_country),
        continent=normalize_text(raw.continent),
    )


def _runway_summary(analysis: RunwayAnalysis) -> RunwaySummary:
    return RunwaySummary(
        count=analysis.total_runways,
        longest_ft=analysis.longest_ft,
        shortest_ft=analysis.shortest_ft,
        surface_types=analysis.surface.surface_types,
        lighted=analysis.lighted_runways > 0,
        all_lighted=analysis.total_runways > 0 and analysis.lighted_runways == analysis.total_runways,
        ils_equipped=analysis.ils_runways > 0,
        details=analysis.runways,
    )


def _external_links(raw: RawAirport) -> ExternalLinks | None:
    home = normalize_text(raw.home_link) or None
    wikipedia = normalize_text(raw.wikipedia_link) or None
    if not home and not wikipedia:
        return None
    return ExternalLinks(home=home, wikipedia=wikipedia)


def _weather_station(raw: RawAirport) -> WeatherStation | None:
    if raw.station is None:
        return None
    station = normalize_identifier(raw.station.icao_code)
    if not station:
        return None
    return WeatherStation(station_icao=station, distance_nm=parse_distance(raw.station.distance))
