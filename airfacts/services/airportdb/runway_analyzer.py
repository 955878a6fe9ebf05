"""Runway analysis: suitability, effective lengths and operational capability.

Pure functions of the runway list. Closed runways are dropped before any
aggregate is computed, and two records describing the same physical runway
(``09/27`` and ``27/09``) collapse into one.
"""

from __future__ import annotations

import logging
from collections import Counter
from dataclasses import dataclass, field

from airfacts.contracts.airport import (
    AircraftSuitability,
    IlsApproach,
    RunwayDetail,
    RunwayEnd,
)
from airfacts.contracts.airportdb import RawIls, RawRunway
from airfacts.contracts.enums import AircraftTier
from airfacts.services.airportdb.numeric_parser import (
    normalize_identifier,
    normalize_text,
    parse_boolean,
    parse_displaced_threshold,
    parse_elevation,
    parse_frequency,
    parse_heading,
    parse_optional_number,
    parse_runway_length,
    parse_runway_width,
)

logger = logging.getLogger(__name__)

ILS_COURSE_TOLERANCE_DEG = 20.0
COMMERCIAL_MIN_LENGTH_FT = 4000.0
INTERNATIONAL_MIN_LENGTH_FT = 6000.0
EMERGENCY_MIN_LENGTH_FT = 3000.0
PAVED_SURFACES = frozenset({"CON", "ASP"})


@dataclass(frozen=True)
class AircraftRequirement:
    min_length_ft: float
    min_width_ft: float
    paved: bool
    lighting: bool
    ils: bool = False


AIRCRAFT_REQUIREMENTS: dict[AircraftTier, AircraftRequirement] = {
    AircraftTier.LIGHT_AIRCRAFT: AircraftRequirement(1500, 30, paved=False, lighting=False),
    AircraftTier.BUSINESS_JETS: AircraftRequirement(3000, 75, paved=True, lighting=True),
    AircraftTier.REGIONAL_AIRCRAFT: AircraftRequirement(4000, 100, paved=True, lighting=True),
    AircraftTier.NARROW_BODY: AircraftRequirement(6000, 145, paved=True, lighting=True),
    AircraftTier.WIDE_BODY: AircraftRequirement(7000, 145, paved=True, lighting=True),
}


@dataclass(frozen=True)
class SurfaceQuality:
    score: int
    all_weather: bool
    commercial_suitable: bool


SURFACE_QUALITY: dict[str, SurfaceQuality] = {
    "CON": SurfaceQuality(100, True, True),
    "ASP": SurfaceQuality(95, True, True),
    "GRS": SurfaceQuality(60, False, False),
    "GRV": SurfaceQuality(40, False, False),
    "DIRT": SurfaceQuality(30, False, False),
    "SAND": SurfaceQuality(20, False, False),
    "WATER": SurfaceQuality(50, False, False),
}
UNKNOWN_SURFACE_SCORE = 50

# Checked in order; first matching prefix wins.
_SURFACE_PREFIXES: tuple[tuple[str, str], ...] = (
    ("CON", "CON"),
    ("CEM", "CON"),
    ("PEM", "CON"),
    ("ASP", "ASP"),
    ("BIT", "ASP"),
    ("TAR", "ASP"),
    ("PAV", "ASP"),
    ("GRS", "GRS"),
    ("GRASS", "GRS"),
    ("TURF", "GRS"),
    ("GRV", "GRV"),
    ("GRAV", "GRV"),
    ("DIRT", "DIRT"),
    ("SOIL", "DIRT"),
    ("CLA", "DIRT"),
    ("SAN", "SAND"),
    ("WAT", "WATER"),
)

_CATEGORY_BY_TIER: tuple[tuple[AircraftTier, str], ...] = (
    (AircraftTier.WIDE_BODY, "F"),
    (AircraftTier.NARROW_BODY, "D"),
    (AircraftTier.REGIONAL_AIRCRAFT, "C"),
    (AircraftTier.BUSINESS_JETS, "B"),
)


def normalize_surface(value) -> str:
    """Map a free-text surface (``"ASPH-G"``, ``"Turf"``) to a catalogue code."""
    text = normalize_text(value).upper()
    if not text:
        return "UNKNOWN"
    for prefix, code in _SURFACE_PREFIXES:
        if text.startswith(prefix):
            return code
    return text


def surface_quality(surface: str) -> SurfaceQuality | None:
    return SURFACE_QUALITY.get(surface)


def is_commercial_surface(surface: str) -> bool:
    # Unknown surfaces are assessed like grass.
    quality = SURFACE_QUALITY.get(surface, SURFACE_QUALITY["GRS"])
    return quality.commercial_suitable


def shortest_arc(a: float, b: float) -> float:
    diff = abs(a - b) % 360
    return min(diff, 360 - diff)


# ============ Results ============


@dataclass
class SurfaceAnalysis:
    surface_types: list[str] = field(default_factory=list)
    primary_surface: str = "UNKNOWN"
    quality_score: int = 0
    all_weather_capable: bool = False
    commercial_suitable: bool = False


@dataclass
class ApproachAnalysis:
    precision_approaches: int = 0
    ils_approaches: list[IlsApproach] = field(default_factory=list)
    approach_runways: list[str] = field(default_factory=list)


@dataclass
class OperationalCapabilities:
    night_operations: bool = False
    all_weather_operations: bool = False
    commercial_operations: bool = False
    international_capable: bool = False
    emergency_suitable: bool = False


@dataclass
class RunwayAnalysis:
    runways: list[RunwayDetail] = field(default_factory=list)
    total_runways: int = 0
    longest_ft: float = 0
    shortest_ft: float = 0
    average_ft: float = 0
    paved_runways: int = 0
    lighted_runways: int = 0
    ils_runways: int = 0
    surface: SurfaceAnalysis = field(default_factory=SurfaceAnalysis)
    approaches: ApproachAnalysis = field(default_factory=ApproachAnalysis)
    capabilities: OperationalCapabilities = field(default_factory=OperationalCapabilities)
    max_aircraft_category: str = "A"


# ============ Analyzer ============


def runway_key(runway: RawRunway) -> str:
    """Order-independent identity of a physical runway."""
    ends = [normalize_identifier(runway.le_ident), normalize_identifier(runway.he_ident)]
    present = sorted(end for end in ends if end)
    if present:
        return "-".join(present)
    return f"id:{normalize_text(runway.id)}"


def deduplicate_runways(runways: list[RawRunway]) -> list[RawRunway]:
    """Drop closed runways and keep the first record per physical runway."""
    seen: set[str] = set()
    unique: list[RawRunway] = []
    for runway in runways:
        if parse_boolean(runway.closed):
            continue
        key = runway_key(runway)
        if key in seen:
            logger.debug("Duplicate runway %s dropped", key)
            continue
        seen.add(key)
        unique.append(runway)
    return unique


class RunwayAnalyzer:
    """Derives runway facts. ``requirements`` may override the tier table,
    for instance to demand an ILS for the airliner tiers."""

    def __init__(
        self,
        requirements: dict[AircraftTier, AircraftRequirement] | None = None,
    ):
        self._requirements = requirements or AIRCRAFT_REQUIREMENTS

    def analyze(self, runways: list[RawRunway] | None) -> RunwayAnalysis:
        active = deduplicate_runways(runways or [])
        if not active:
            return RunwayAnalysis()

        details = [self.analyze_runway(runway) for runway in active]
        lengths = [d.length_ft for d in details if d.length_ft > 0]
        surface = self._surface_analysis(details)
        approaches = self._approach_analysis(details)
        longest = max(lengths, default=0.0)

        analysis = RunwayAnalysis(
            runways=details,
            total_runways=len(details),
            longest_ft=longest,
            shortest_ft=min(lengths, default=0.0),
            average_ft=round(sum(lengths) / len(lengths)) if lengths else 0,
            paved_runways=sum(1 for d in details if d.is_paved),
            lighted_runways=sum(1 for d in details if d.lighted),
            ils_runways=sum(1 for d in details if d.ils_approaches),
            surface=surface,
            approaches=approaches,
        )
        analysis.capabilities = self._capabilities(details, surface, approaches, longest)
        analysis.max_aircraft_category = self._max_category(details)
        return analysis

    def analyze_runway(self, runway: RawRunway) -> RunwayDetail:
        length = parse_runway_length(runway.length_ft)
        width = parse_runway_width(runway.width_ft)
        surface = normalize_surface(runway.surface)
        lighted = parse_boolean(runway.lighted)

        le = _runway_end(runway, "le")
        he = _runway_end(runway, "he")

        takeoff_le = max(0.0, length - le.displaced_threshold_ft)
        takeoff_he = max(0.0, length - he.displaced_threshold_ft)
        landing_le = max(0.0, length - he.displaced_threshold_ft)
        landing_he = max(0.0, length - le.displaced_threshold_ft)
        min_effective = min(takeoff_le, takeoff_he, landing_le, landing_he)

        ils: list[IlsApproach] = []
        for end, raw_ils in ((le, runway.le_ils), (he, runway.he_ils)):
            approach = _validated_ils(end, raw_ils)
            if approach is not None:
                ils.append(approach)

        designation = "/".join(part for part in (le.ident, he.ident) if part) or normalize_text(runway.id)
        paved = is_commercial_surface(surface)

        return RunwayDetail(
            id=normalize_text(runway.id),
            designation=designation,
            length_ft=length,
            width_ft=width,
            surface=surface,
            lighted=lighted,
            is_paved=paved,
            le=le,
            he=he,
            effective_takeoff_le_ft=takeoff_le,
            effective_takeoff_he_ft=takeoff_he,
            effective_landing_le_ft=landing_le,
            effective_landing_he_ft=landing_he,
            min_effective_length_ft=min_effective,
            ils_approaches=ils,
            suitable_for=self._suitability(min_effective, width, paved, lighted, bool(ils)),
        )

    def _suitability(
        self,
        effective_length: float,
        width: float,
        paved: bool,
        lighted: bool,
        has_ils: bool,
    ) -> AircraftSuitability:
        flags: dict[str, bool] = {}
        for tier, req in self._requirements.items():
            tier_name = tier.value if isinstance(tier, AircraftTier) else str(tier)
            flags[tier_name] = (
                effective_length >= req.min_length_ft
                and width >= req.min_width_ft
                and (paved or not req.paved)
                and (lighted or not req.lighting)
                and (has_ils or not req.ils)
            )
        return AircraftSuitability(**flags)

    def _surface_analysis(self, details: list[RunwayDetail]) -> SurfaceAnalysis:
        surfaces = [d.surface for d in details]
        counts = Counter(surfaces)
        total_length = sum(d.length_ft for d in details)
        if total_length > 0:
            weighted = sum(
                _surface_score(d.surface) * d.length_ft for d in details
            ) / total_length
        else:
            weighted = sum(_surface_score(s) for s in surfaces) / len(surfaces)
        return SurfaceAnalysis(
            surface_types=sorted(counts),
            primary_surface=counts.most_common(1)[0][0],
            quality_score=round(weighted),
            all_weather_capable=any(
                (q := surface_quality(s)) is not None and q.all_weather for s in surfaces
            ),
            commercial_suitable=any(
                d.is_paved and d.length_ft >= COMMERCIAL_MIN_LENGTH_FT for d in details
            ),
        )

    @staticmethod
    def _approach_analysis(details: list[RunwayDetail]) -> ApproachAnalysis:
        approaches = [ils for d in details for ils in d.ils_approaches]
        runways_with_ils = [d for d in details if d.ils_approaches]
        return ApproachAnalysis(
            precision_approaches=len(approaches),
            ils_approaches=approaches,
            approach_runways=[d.designation for d in runways_with_ils],
        )

    @staticmethod
    def _capabilities(
        details: list[RunwayDetail],
        surface: SurfaceAnalysis,
        approaches: ApproachAnalysis,
        longest: float,
    ) -> OperationalCapabilities:
        lighted = any(d.lighted for d in details)
        paved = any(d.surface in PAVED_SURFACES for d in details)
        return OperationalCapabilities(
            night_operations=lighted,
            all_weather_operations=approaches.precision_approaches > 0 and paved and lighted,
            commercial_operations=surface.commercial_suitable and longest >= COMMERCIAL_MIN_LENGTH_FT,
            international_capable=longest >= INTERNATIONAL_MIN_LENGTH_FT and paved and lighted,
            emergency_suitable=longest >= EMERGENCY_MIN_LENGTH_FT and paved,
        )

    @staticmethod
    def _max_category(details: list[RunwayDetail]) -> str:
        for tier, category in _CATEGORY_BY_TIER:
            if any(getattr(d.suitable_for, tier.value) for d in details):
                return category
        return "A"


def runway_utilization_score(analysis: RunwayAnalysis) -> int:
    """0-100 score of how much traffic the runway system can support."""
    if analysis.total_runways == 0:
        return 0
    score = 20.0
    longest = analysis.longest_ft
    for threshold, points in ((8000, 30), (6000, 25), (4000, 20), (2000, 15), (1000, 10)):
        if longest >= threshold:
            score += points
            break
    score += analysis.surface.quality_score * 0.2
    caps = analysis.capabilities
    if caps.night_operations:
        score += 10
    if analysis.approaches.precision_approaches:
        score += 10
    if caps.all_weather_operations:
        score += 10
    return min(100, round(score))


# ============ Helpers ============


def _surface_score(surface: str) -> int:
    quality = surface_quality(surface)
    return quality.score if quality else UNKNOWN_SURFACE_SCORE


def _runway_end(runway: RawRunway, prefix: str) -> RunwayEnd:
    get = lambda name: getattr(runway, f"{prefix}_{name}")  # noqa: E731
    return RunwayEnd(
        ident=normalize_identifier(get("ident")) or "",
        heading_deg=parse_heading(get("heading_degT")),
        displaced_threshold_ft=parse_displaced_threshold(get("displaced_threshold_ft")),
        latitude=parse_optional_number(get("latitude_deg")),
        longitude=parse_optional_number(get("longitude_deg")),
        elevation_ft=parse_elevation(get("elevation_ft")),
    )


def _validated_ils(end: RunwayEnd, ils: RawIls | None) -> IlsApproach | None:
    """Accept an ILS only when its course matches the runway-end heading."""
    if ils is None:
        return None
    course = parse_heading(ils.course)
    if course is None:
        logger.warning("ILS on runway %s has no course, discarded", end.ident)
        return None
    if end.heading_deg is None:
        logger.warning("Runway %s has no heading, cannot verify ILS course %s", end.ident, course)
        return None
    error = shortest_arc(course, end.heading_deg)
    if error > ILS_COURSE_TOLERANCE_DEG:
        logger.warning(
            "ILS course %s does not match runway %s heading %s (off by %.1f deg), discarded",
            course, end.ident, end.heading_deg, error,
        )
        return None
    return IlsApproach(
        runway_end=end.ident,
        frequency_mhz=parse_frequency(ils.freq, "MHz"),
        course_deg=course,
    )
