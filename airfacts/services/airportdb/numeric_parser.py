"""Tolerant parsing of provider field values.

Every parser accepts ``str | int | float | bool | None`` and returns a typed
value or an explicit absent result. Only out-of-domain coordinates raise;
other out-of-typical-range values are accepted and logged as warnings.
"""

from __future__ import annotations

import logging
import math
import re
from typing import Any

from airfacts.services.airportdb.errors import InvalidCoordinateError

logger = logging.getLogger(__name__)

_LEADING_NUMBER = re.compile(r"^[+-]?(\d+(\.\d*)?|\.\d+)([eE][+-]?\d+)?")
_ICAO_PATTERN = re.compile(r"^[A-Z][A-Z0-9]{3}$")

TRUE_VALUES = frozenset({"1", "true", "yes", "y", "on", "enabled"})
FALSE_VALUES = frozenset({"0", "false", "no", "n", "off", "disabled", ""})

ELEVATION_RANGE_FT = (-1000.0, 30000.0)
FREQUENCY_RANGE_MHZ = (100.0, 400.0)
FREQUENCY_RANGE_KHZ = (100.0, 2000.0)
RUNWAY_LENGTH_RANGE_FT = (100.0, 20000.0)
RUNWAY_WIDTH_RANGE_FT = (10.0, 500.0)


# ============ Scalars ============


def parse_optional_number(value: Any) -> float | None:
    """Parse *value* to a finite float, or ``None`` when absent/unparsable.

    Strings are read up to the first non-numeric character, so
    ``"124.30 MHz"`` yields ``124.3``.
    """
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        number = float(value)
    elif isinstance(value, str):
        match = _LEADING_NUMBER.match(value.strip())
        if not match:
            return None
        number = float(match.group(0))
    else:
        return None
    if math.isnan(number) or math.isinf(number):
        return None
    return number


def parse_number(value: Any, fallback: float = 0.0) -> float:
    number = parse_optional_number(value)
    return fallback if number is None else number


def parse_integer(value: Any, fallback: int = 0) -> int:
    number = parse_optional_number(value)
    return fallback if number is None else int(number)


def parse_boolean(value: Any, fallback: bool = False) -> bool:
    """Parse provider booleans such as ``"1"``, ``"yes"`` or ``1``."""
    if isinstance(value, bool):
        return value
    if value is None:
        return fallback
    if isinstance(value, (int, float)):
        return value != 0 and not math.isnan(value)
    text = str(value).strip().lower()
    if text in TRUE_VALUES:
        return True
    if text in FALSE_VALUES:
        return False
    number = parse_optional_number(text)
    if number is not None:
        return number != 0
    return fallback


def normalize_identifier(value: Any) -> str | None:
    """Trim and upper-case an identifier; ``None`` when empty."""
    if value is None or isinstance(value, bool):
        return None
    text = str(value).strip().upper()
    return text or None


def is_valid_icao(value: Any) -> bool:
    ident = normalize_identifier(value)
    return ident is not None and bool(_ICAO_PATTERN.match(ident))


def normalize_text(value: Any) -> str:
    if value is None or isinstance(value, bool):
        return ""
    return str(value).strip()


# ============ Geography ============


def parse_coordinate(value: Any, kind: str) -> float | None:
    """Parse a latitude (``kind="latitude"``) or longitude.

    Returns ``None`` when absent. Raises ``InvalidCoordinateError`` when
    the value lies outside the WGS84 domain.
    """
    number = parse_optional_number(value)
    if number is None:
        return None
    limit = 90.0 if kind == "latitude" else 180.0
    if not -limit <= number <= limit:
        raise InvalidCoordinateError(f"{kind} {number} outside [-{limit:g}, {limit:g}]")
    return number


def parse_elevation(value: Any) -> float | None:
    number = parse_optional_number(value)
    if number is None:
        return None
    low, high = ELEVATION_RANGE_FT
    if not low <= number <= high:
        logger.warning("Unusual elevation: %s ft", number)
    return number


def parse_magnetic_variation(value: Any) -> float | None:
    number = parse_optional_number(value)
    if number is None:
        return None
    if not -180 <= number <= 180:
        logger.warning("Magnetic variation out of range: %s deg", number)
    return number


def parse_distance(value: Any) -> float:
    number = parse_number(value)
    if number < 0:
        logger.warning("Negative distance %s, using absolute value", number)
        return abs(number)
    return number


# ============ Radio ============


def parse_frequency(value: Any, unit: str = "MHz") -> float | None:
    """Parse a radio frequency expressed in *unit* (``"MHz"`` or ``"kHz"``).

    Airport frequencies occasionally arrive in kHz while labelled MHz
    (``"118300"``); values above 1000 in MHz mode are converted.
    """
    number = parse_optional_number(value)
    if number is None or number <= 0:
        return None
    if unit == "MHz":
        if number > 1000:
            logger.warning("Frequency %s looks like kHz, converting to MHz", number)
            number = number / 1000
        low, high = FREQUENCY_RANGE_MHZ
    else:
        low, high = FREQUENCY_RANGE_KHZ
    if not low <= number <= high:
        logger.warning("Unusual frequency: %s %s", number, unit)
    return number


# ============ Runways ============


def parse_runway_length(value: Any) -> float:
    number = parse_number(value)
    low, high = RUNWAY_LENGTH_RANGE_FT
    if number > 0 and not low <= number <= high:
        logger.warning("Unusual runway length: %s ft", number)
    return max(0.0, number)


def parse_runway_width(value: Any) -> float:
    number = parse_number(value)
    low, high = RUNWAY_WIDTH_RANGE_FT
    if number > 0 and not low <= number <= high:
        logger.warning("Unusual runway width: %s ft", number)
    return max(0.0, number)


def parse_heading(value: Any) -> float | None:
    """Normalize a heading into ``[0, 360)``; ``None`` when absent."""
    number = parse_optional_number(value)
    if number is None:
        return None
    return number % 360


def parse_displaced_threshold(value: Any) -> float:
    return max(0.0, parse_number(value))
