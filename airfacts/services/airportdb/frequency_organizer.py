"""Groups airport radio frequencies by service and scores communication coverage."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field

from airfacts.contracts.airport import Communications, FrequencyRecord, PrimaryFrequencies
from airfacts.contracts.airportdb import RawFrequency
from airfacts.contracts.enums import FrequencyType
from airfacts.services.airportdb.numeric_parser import normalize_text, parse_frequency

logger = logging.getLogger(__name__)

VHF_AIRBAND_MHZ = (108.0, 137.0)

# Substring heuristics applied when the type is not an exact code.
_TYPE_KEYWORDS: tuple[tuple[tuple[str, ...], FrequencyType], ...] = (
    (("TOWER",), FrequencyType.TOWER),
    (("GROUND",), FrequencyType.GROUND),
    (("APPROACH",), FrequencyType.APPROACH),
    (("ATIS",), FrequencyType.ATIS),
    (("CLEARANCE", "CLNC"), FrequencyType.CLEARANCE),
)

COMPLEXITY_WEIGHTS: dict[FrequencyType, int] = {
    FrequencyType.TOWER: 25,
    FrequencyType.GROUND: 15,
    FrequencyType.APPROACH: 20,
    FrequencyType.ATIS: 10,
}
PRESENCE_BASELINE = 10

_PRIMARY_FIELDS: dict[FrequencyType, str] = {
    FrequencyType.TOWER: "tower",
    FrequencyType.GROUND: "ground",
    FrequencyType.APPROACH: "approach",
    FrequencyType.ATIS: "atis",
    FrequencyType.CLEARANCE: "clearance",
}


@dataclass
class FrequencyAnalysis:
    total_frequencies: int = 0
    controlled_airport: bool = False
    tower_controlled: bool = False
    approach_controlled: bool = False
    full_service: bool = False
    complexity_score: int = 0
    unusual: list[FrequencyRecord] = field(default_factory=list)


def normalize_frequency_type(value) -> str:
    text = normalize_text(value).upper()
    codes = {t.value for t in FrequencyType}
    if text in codes:
        return text
    for keywords, freq_type in _TYPE_KEYWORDS:
        if any(keyword in text for keyword in keywords):
            return freq_type.value
    return text


def is_valid_aviation_frequency(mhz: float) -> bool:
    low, high = VHF_AIRBAND_MHZ
    return low <= mhz <= high


def format_frequency(mhz: float) -> str:
    return f"{mhz:.3f}"


def complexity_rating(score: int) -> str:
    if score >= 80:
        return "Very High"
    if score >= 60:
        return "High"
    if score >= 40:
        return "Medium"
    if score >= 20:
        return "Low"
    return "Very Low"


def organize_frequencies(freqs: list[RawFrequency] | None) -> Communications:
    """Group frequencies by normalized type and pick a primary per service.

    The primary frequency is the first one of its type in provider order.
    """
    records: list[FrequencyRecord] = []
    for raw in freqs or []:
        mhz = parse_frequency(raw.frequency_mhz, "MHz")
        if mhz is None:
            logger.debug("Dropping frequency without a usable value: %r", raw.frequency_mhz)
            continue
        records.append(
            FrequencyRecord(
                type=normalize_frequency_type(raw.type),
                description=normalize_text(raw.description),
                frequency_mhz=mhz,
            )
        )

    grouped: dict[str, list[FrequencyRecord]] = {}
    for record in records:
        grouped.setdefault(record.type, []).append(record)

    present = {t for t in FrequencyType if t.value in grouped}
    primaries = {
        _PRIMARY_FIELDS[t]: grouped[t.value][0].frequency_mhz for t in present
    }

    return Communications(
        has_tower=FrequencyType.TOWER in present,
        has_ground=FrequencyType.GROUND in present,
        has_approach=FrequencyType.APPROACH in present,
        has_atis=FrequencyType.ATIS in present,
        has_clearance=FrequencyType.CLEARANCE in present,
        primary_frequencies=PrimaryFrequencies(**primaries),
        frequencies_by_type=grouped,
        complexity_score=communication_complexity(len(records), present),
    )


def communication_complexity(total: int, present: set[FrequencyType]) -> int:
    score = PRESENCE_BASELINE if total > 0 else 0
    score += sum(weight for t, weight in COMPLEXITY_WEIGHTS.items() if t in present)
    return min(100, score)


def analyze_frequencies(communications: Communications) -> FrequencyAnalysis:
    records = [r for group in communications.frequencies_by_type.values() for r in group]
    return FrequencyAnalysis(
        total_frequencies=len(records),
        controlled_airport=communications.has_tower or communications.has_approach,
        tower_controlled=communications.has_tower,
        approach_controlled=communications.has_approach,
        full_service=communications.has_tower and communications.has_ground and communications.has_atis,
        complexity_score=communications.complexity_score,
        unusual=[r for r in records if not is_valid_aviation_frequency(r.frequency_mhz)],
    )
