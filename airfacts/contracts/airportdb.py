"""Wire-format models for the AirportDB upstream provider.

The provider is not contractually typed: numerics arrive as strings, numbers
or nulls, and identifiers are not consistently cased. These models validate
the *shape* of a response at the ingress boundary and keep scalar values as
received. Conversion to typed values belongs to the numeric parser.

Unknown keys are preserved (``extra="allow"``) so that the raw snapshot
stored in the cache is faithful to what the provider sent.
"""

from __future__ import annotations

from typing import Any, Union

from pydantic import BaseModel, ConfigDict, Field

from airfacts.contracts.enums import RecordOrigin

WireValue = Union[str, int, float, bool, None]


class WireModel(BaseModel):
    model_config = ConfigDict(
        populate_by_name=True,
        extra="allow",
        use_enum_values=True,
    )

    def to_wire(self) -> dict[str, Any]:
        """Dump back to the provider's JSON shape."""
        return self.model_dump(mode="json", by_alias=True, exclude_none=True)


class RawIls(WireModel):
    freq: WireValue = None
    course: WireValue = None


class RawRunway(WireModel):
    id: WireValue = None
    airport_ref: WireValue = None
    airport_ident: WireValue = None
    length_ft: WireValue = None
    width_ft: WireValue = None
    surface: WireValue = None
    lighted: WireValue = None
    closed: WireValue = None

    le_ident: WireValue = None
    le_latitude_deg: WireValue = None
    le_longitude_deg: WireValue = None
    le_elevation_ft: WireValue = None
    le_heading_degT: WireValue = None
    le_displaced_threshold_ft: WireValue = None
    le_ils: RawIls | None = None

    he_ident: WireValue = None
    he_latitude_deg: WireValue = None
    he_longitude_deg: WireValue = None
    he_elevation_ft: WireValue = None
    he_heading_degT: WireValue = None
    he_displaced_threshold_ft: WireValue = None
    he_ils: RawIls | None = None


class RawFrequency(WireModel):
    id: WireValue = None
    airport_ref: WireValue = None
    airport_ident: WireValue = None
    type: WireValue = None
    description: WireValue = None
    frequency_mhz: WireValue = None


class RawNavaid(WireModel):
    id: WireValue = None
    filename: WireValue = None
    ident: WireValue = None
    name: WireValue = None
    type: WireValue = None
    frequency_khz: WireValue = None
    latitude_deg: WireValue = None
    longitude_deg: WireValue = None
    elevation_ft: WireValue = None
    iso_country: WireValue = None
    dme_frequency_khz: WireValue = None
    dme_channel: WireValue = None
    magnetic_variation_deg: WireValue = None
    usageType: WireValue = None
    power: WireValue = None
    associated_airport: WireValue = None


class RawCountry(WireModel):
    id: WireValue = None
    code: WireValue = None
    name: WireValue = None
    continent: WireValue = None


class RawRegion(WireModel):
    id: WireValue = None
    code: WireValue = None
    local_code: WireValue = None
    name: WireValue = None
    continent: WireValue = None
    iso_country: WireValue = None


class RawStation(WireModel):
    icao_code: WireValue = None
    distance: WireValue = None


class RawAirport(WireModel):
    """One airport as returned by ``GET /airport/{icao}``."""

    ident: WireValue = None
    icao_code: WireValue = None
    iata_code: WireValue = None
    gps_code: WireValue = None
    local_code: WireValue = None

    type: WireValue = None
    name: WireValue = None

    latitude_deg: WireValue = None
    longitude_deg: WireValue = None
    elevation_ft: WireValue = None

    continent: WireValue = None
    iso_country: WireValue = None
    iso_region: WireValue = None
    municipality: WireValue = None
    scheduled_service: WireValue = None

    home_link: WireValue = None
    wikipedia_link: WireValue = None
    keywords: WireValue = None

    runways: list[RawRunway] | None = None
    freqs: list[RawFrequency] | None = None
    navaids: list[RawNavaid] | None = None

    country: RawCountry | None = None
    region: RawRegion | None = None
    station: RawStation | None = None

    updated_at: WireValue = Field(default=None, alias="updatedAt")

    # Set locally, never sent by the provider.
    origin: RecordOrigin = RecordOrigin.AIRPORTDB

    @property
    def identifier(self) -> str | None:
        """Upper-cased ICAO identifier (``ident`` first, then ``icao_code``)."""
        for value in (self.ident, self.icao_code):
            if value is not None and str(value).strip():
                return str(value).strip().upper()
        return None


class BatchItemError(BaseModel):
    icao: str
    error: str
    code: str = "not_found"


class RawBatchResponse(WireModel):
    """Response of ``GET /airport/batch``."""

    airports: list[RawAirport] = Field(default_factory=list)
    errors: list[BatchItemError] = Field(default_factory=list)
    rate_limited: bool = False
