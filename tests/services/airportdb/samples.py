"""AirportDB payloads used across the test suite.

Values are strings where the provider sends strings.
"""

from __future__ import annotations

import copy

_GATWICK = {
    "ident": "EGKK",
    "icao_code": "EGKK",
    "iata_code": "LGW",
    "gps_code": "EGKK",
    "type": "large_airport",
    "name": "London Gatwick Airport",
    "latitude_deg": 51.148102,
    "longitude_deg": -0.190278,
    "elevation_ft": "202",
    "continent": "EU",
    "iso_country": "GB",
    "iso_region": "GB-ENG",
    "municipality": "London",
    "scheduled_service": "yes",
    "home_link": "https://www.gatwickairport.com/",
    "wikipedia_link": "https://en.wikipedia.org/wiki/Gatwick_Airport",
    "runways": [
        {
            "id": "232274",
            "length_ft": "10879",
            "width_ft": "147",
            "surface": "ASP",
            "lighted": "1",
            "closed": "0",
            "le_ident": "08R",
            "le_heading_degT": "77.9",
            "le_displaced_threshold_ft": "",
            "le_ils": {"freq": 110.9, "course": 78},
            "he_ident": "26L",
            "he_heading_degT": "257.9",
            "he_displaced_threshold_ft": "1017",
            "he_ils": {"freq": 110.9, "course": 258},
        },
        {
            "id": "232275",
            "length_ft": "8415",
            "width_ft": "148",
            "surface": "ASP",
            "lighted": "1",
            "closed": "0",
            "le_ident": "08L",
            "le_heading_degT": "77.9",
            "he_ident": "26R",
            "he_heading_degT": "257.9",
        },
        {
            # Same physical runway as 232274, listed the other way round.
            "id": "232299",
            "length_ft": "10879",
            "width_ft": "147",
            "surface": "ASP",
            "lighted": "1",
            "closed": "0",
            "le_ident": "26L",
            "he_ident": "08R",
        },
    ],
    "freqs": [
        {"id": "1", "type": "TWR", "description": "GATWICK TWR", "frequency_mhz": "124.225"},
        {"id": "2", "type": "TWR", "description": "GATWICK TWR", "frequency_mhz": "134.225"},
        {"id": "3", "type": "GND", "description": "GATWICK GND", "frequency_mhz": "121.805"},
        {"id": "4", "type": "APP", "description": "GATWICK DIRECTOR", "frequency_mhz": "126.825"},
        {"id": "5", "type": "ATIS", "description": "ATIS", "frequency_mhz": "136.525"},
        {"id": "6", "type": "CLD", "description": "CLNC DEL", "frequency_mhz": "121.955"},
    ],
    "navaids": [
        {
            "id": "85167",
            "ident": "GY",
            "name": "Gatwick",
            "type": "NDB",
            "frequency_khz": "365",
            "latitude_deg": "51.1955",
            "longitude_deg": "-0.2051",
            "magnetic_variation_deg": "-2.126",
        },
        {
            "id": "85166",
            "ident": "GE",
            "name": "Gatwick",
            "type": "NDB",
            "frequency_khz": "338",
            "latitude_deg": "51.1327",
            "longitude_deg": "-0.1167",
        },
    ],
    "country": {"id": "302791", "code": "GB", "name": "United Kingdom", "continent": "EU"},
    "region": {"id": "303987", "code": "GB-ENG", "local_code": "ENG", "name": "England"},
    "station": {"icao_code": "EGKK", "distance": 0},
    "updatedAt": "2024-01-02T03:04:05Z",
}

_GRASS_STRIP = {
    "ident": "EGXX",
    "type": "small_airport",
    "name": "Test Grass Strip",
    "latitude_deg": "52.1",
    "longitude_deg": "-1.5",
    "municipality": "Nowhere",
    "iso_country": "GB",
    "scheduled_service": "no",
    "runways": [
        {
            "id": "1",
            "length_ft": "1800",
            "width_ft": "60",
            "surface": "GRS",
            "lighted": "0",
            "closed": "0",
            "le_ident": "09",
            "he_ident": "27",
        }
    ],
    "freqs": [],
    "navaids": [],
}


def gatwick() -> dict:
    return copy.deepcopy(_GATWICK)


def grass_strip() -> dict:
    return copy.deepcopy(_GRASS_STRIP)


def minimal(icao: str, name: str | None = None) -> dict:
    return {
        "ident": icao,
        "type": "medium_airport",
        "name": name or f"{icao} Test Airport",
        "latitude_deg": "45.0",
        "longitude_deg": "5.0",
        "iso_country": "FR",
        "runways": [],
        "freqs": [],
        "navaids": [],
    }
