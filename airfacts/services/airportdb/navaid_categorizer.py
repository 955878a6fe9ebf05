"""Navigation aid categorization and approach capability."""

from __future__ import annotations

import logging
from dataclasses import dataclass

from airfacts.contracts.airport import NavaidRecord, Navigation
from airfacts.contracts.airportdb import RawNavaid
from airfacts.contracts.enums import ApproachCapability, NavaidType
from airfacts.services.airportdb.errors import InvalidCoordinateError
from airfacts.services.airportdb.numeric_parser import (
    normalize_identifier,
    normalize_text,
    parse_coordinate,
    parse_elevation,
    parse_frequency,
    parse_magnetic_variation,
)

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ApproachDefinition:
    name: str
    precision: bool
    required: frozenset[NavaidType]


APPROACH_TYPES: tuple[ApproachDefinition, ...] = (
    ApproachDefinition("ILS", precision=True, required=frozenset({NavaidType.ILS})),
    ApproachDefinition("VOR", precision=False, required=frozenset({NavaidType.VOR})),
    ApproachDefinition("NDB", precision=False, required=frozenset({NavaidType.NDB})),
)

COMPLEXITY_WEIGHTS: dict[NavaidType, int] = {
    NavaidType.NDB: 15,
    NavaidType.VOR: 25,
    NavaidType.DME: 10,
    NavaidType.ILS: 30,
}
PRESENCE_BASELINE = 10
REDUNDANCY_BONUS = 10

_PRIMARY_ORDER = (NavaidType.ILS, NavaidType.VOR, NavaidType.NDB)


def normalize_navaid_type(value) -> str:
    """``VOR-DME`` and ``VORTAC`` count as VOR, ``NDB-DME`` as NDB."""
    text = normalize_text(value).upper()
    for navaid_type in (NavaidType.VOR, NavaidType.NDB, NavaidType.DME, NavaidType.ILS):
        if navaid_type.value in text:
            return navaid_type.value
    return text


def _to_record(raw: RawNavaid) -> NavaidRecord | None:
    ident = normalize_identifier(raw.ident)
    name = normalize_text(raw.name)
    navaid_type = normalize_navaid_type(raw.type)
    if not ident or not name or not navaid_type:
        logger.warning("Excluding navaid missing ident, name or type: %r", raw.ident or raw.name)
        return None

    try:
        latitude = parse_coordinate(raw.latitude_deg, "latitude")
        longitude = parse_coordinate(raw.longitude_deg, "longitude")
    except InvalidCoordinateError as exc:
        # A navaid position is auxiliary; keep the navaid without it.
        logger.warning("Navaid %s has invalid coordinates: %s", ident, exc)
        latitude = longitude = None

    return NavaidRecord(
        ident=ident,
        name=name,
        type=navaid_type,
        frequency_khz=parse_frequency(raw.frequency_khz, "kHz"),
        latitude=latitude,
        longitude=longitude,
        elevation_ft=parse_elevation(raw.elevation_ft),
        magnetic_variation_deg=parse_magnetic_variation(raw.magnetic_variation_deg),
        usage_type=normalize_text(raw.usageType) or None,
        power=normalize_text(raw.power) or None,
    )


def categorize_navaids(navaids: list[RawNavaid] | None) -> Navigation:
    records = [r for r in (_to_record(raw) for raw in navaids or []) if r is not None]

    grouped: dict[str, list[NavaidRecord]] = {}
    for record in records:
        grouped.setdefault(record.type, []).append(record)

    present = {t for t in NavaidType if t.value in grouped}
    approaches = [a for a in APPROACH_TYPES if a.required <= present]
    redundancy = any(len(group) > 1 for group in grouped.values())

    return Navigation(
        navaids_count=len(records),
        has_ils=NavaidType.ILS in present,
        has_vor=NavaidType.VOR in present,
        has_ndb=NavaidType.NDB in present,
        has_dme=NavaidType.DME in present,
        approach_types=[a.name for a in approaches],
        approach_capability=_approach_capability(approaches, bool(records)).value,
        primary_navigation=next((t.value for t in _PRIMARY_ORDER if t in present), "Visual"),
        complexity_score=navigation_complexity(bool(records), present, redundancy),
        navaids_by_type=grouped,
    )


def has_precision_approach(navigation: Navigation) -> bool:
    return navigation.approach_capability == ApproachCapability.PRECISION.value


def is_all_weather_capable(navigation: Navigation) -> bool:
    return has_precision_approach(navigation)


def navigation_complexity(any_navaids: bool, present: set[NavaidType], redundancy: bool) -> int:
    if not any_navaids:
        return 0
    score = PRESENCE_BASELINE
    score += sum(weight for t, weight in COMPLEXITY_WEIGHTS.items() if t in present)
    if redundancy:
        score += REDUNDANCY_BONUS
    return min(100, score)


def _approach_capability(approaches: list[ApproachDefinition], any_navaids: bool) -> ApproachCapability:
    if any(a.precision for a in approaches):
        return ApproachCapability.PRECISION
    if approaches:
        return ApproachCapability.NON_PRECISION
    if any_navaids:
        return ApproachCapability.VISUAL
    return ApproachCapability.NONE
