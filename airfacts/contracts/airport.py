"""Processed airport: the canonical internal representation.

A ``ProcessedAirport`` is produced only by ``AirportDataProcessor`` from a
``RawAirport`` and is immutable once returned. Cache writes store a new
value keyed by ``icao`` rather than mutating an existing one.
"""

from __future__ import annotations

from pydantic import Field

from airfacts.contracts.common import FrozenModel
from airfacts.contracts.enums import AirportType, SizeCategory


class Coordinates(FrozenModel):
    latitude: float = Field(..., ge=-90, le=90)
    longitude: float = Field(..., ge=-180, le=180)
    elevation_ft: float | None = None


class Location(FrozenModel):
    municipality: str = ""
    region: str = ""
    country: str = ""
    continent: str = ""


class Classification(FrozenModel):
    type: AirportType
    scheduled_service: bool = False
    size_category: SizeCategory


class AircraftSuitability(FrozenModel):
    light_aircraft: bool = False
    business_jets: bool = False
    regional_aircraft: bool = False
    narrow_body: bool = False
    wide_body: bool = False


class IlsApproach(FrozenModel):
    """An ILS whose course was verified against its runway-end heading."""

    runway_end: str
    frequency_mhz: float | None = None
    course_deg: float


class RunwayEnd(FrozenModel):
    ident: str = ""
    heading_deg: float | None = None
    displaced_threshold_ft: float = 0
    latitude: float | None = None
    longitude: float | None = None
    elevation_ft: float | None = None


class RunwayDetail(FrozenModel):
    id: str = ""
    designation: str
    length_ft: float
    width_ft: float
    surface: str
    lighted: bool
    is_paved: bool
    le: RunwayEnd
    he: RunwayEnd
    effective_takeoff_le_ft: float
    effective_takeoff_he_ft: float
    effective_landing_le_ft: float
    effective_landing_he_ft: float
    min_effective_length_ft: float
    ils_approaches: list[IlsApproach] = Field(default_factory=list)
    suitable_for: AircraftSuitability


class RunwaySummary(FrozenModel):
    count: int = 0
    longest_ft: float = 0
    shortest_ft: float = 0
    surface_types: list[str] = Field(default_factory=list)
    lighted: bool = False
    all_lighted: bool = False
    ils_equipped: bool = False
    details: list[RunwayDetail] = Field(default_factory=list)


class FrequencyRecord(FrozenModel):
    type: str
    description: str = ""
    frequency_mhz: float


class PrimaryFrequencies(FrozenModel):
    """First frequency per service after grouping.

    Selection trusts the provider's ordering; treat it as best-effort.
    """

    tower: float | None = None
    ground: float | None = None
    approach: float | None = None
    atis: float | None = None
    clearance: float | None = None


class Communications(FrozenModel):
    has_tower: bool = False
    has_ground: bool = False
    has_approach: bool = False
    has_atis: bool = False
    has_clearance: bool = False
    primary_frequencies: PrimaryFrequencies = Field(default_factory=PrimaryFrequencies)
    frequencies_by_type: dict[str, list[FrequencyRecord]] = Field(default_factory=dict)
    complexity_score: int = Field(default=0, ge=0, le=100)


class NavaidRecord(FrozenModel):
    ident: str
    name: str
    type: str
    frequency_khz: float | None = None
    latitude: float | None = None
    longitude: float | None = None
    elevation_ft: float | None = None
    magnetic_variation_deg: float | None = None
    usage_type: str | None = None
    power: str | None = None


class Navigation(FrozenModel):
    navaids_count: int = 0
    has_ils: bool = False
    has_vor: bool = False
    has_ndb: bool = False
    has_dme: bool = False
    approach_types: list[str] = Field(default_factory=list)
    approach_capability: str = "none"
    primary_navigation: str = "Visual"
    complexity_score: int = Field(default=0, ge=0, le=100)
    navaids_by_type: dict[str, list[NavaidRecord]] = Field(default_factory=dict)


class Capabilities(FrozenModel):
    max_aircraft_category: str = "A"
    night_operations: bool = False
    all_weather_operations: bool = False
    international_capable: bool = False
    commercial_service: bool = False
    emergency_suitable: bool = False


class ExternalLinks(FrozenModel):
    home: str | None = None
    wikipedia: str | None = None


class WeatherStation(FrozenModel):
    station_icao: str
    distance_nm: float = 0
    metar_available: bool = True


class DataQuality(FrozenModel):
    completeness_score: int = Field(..., ge=0, le=100)
    last_updated: str
    source: str


class ProcessedAirport(FrozenModel):
    icao: str = Field(..., pattern=r"^[A-Z][A-Z0-9]{3}$")
    iata: str | None = None
    name: str
    coordinates: Coordinates
    location: Location = Field(default_factory=Location)
    classification: Classification
    runways: RunwaySummary = Field(default_factory=RunwaySummary)
    communications: Communications = Field(default_factory=Communications)
    navigation: Navigation = Field(default_factory=Navigation)
    capabilities: Capabilities = Field(default_factory=Capabilities)
    external_links: ExternalLinks | None = None
    weather: WeatherStation | None = None
    data_quality: DataQuality

    def without_timestamps(self) -> dict:
        """Dump for comparisons that must ignore bookkeeping timestamps."""
        data = self.model_dump(mode="json")
        data["data_quality"].pop("last_updated", None)
        return data
