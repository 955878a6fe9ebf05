"""Base classes and shared types for airfacts contracts.

Unit conventions (all contracts and API responses):
- **Lengths and elevations**: feet, suffix ``_ft``
- **Radio frequencies**: MHz for airport frequencies (``_mhz``), kHz for navaids (``_khz``)
- **Headings/angles**: degrees, suffix ``_deg``
- **Distances**: nautical miles, suffix ``_nm``
- **Datetimes**: always UTC, ISO 8601 in serialized form
- **Coordinates**: WGS84 decimal degrees

The upstream provider sends most numerics as strings. Wire models keep them
as received; only the processing layer converts them to these units.
"""

from typing import Any

from pydantic import BaseModel, ConfigDict


class FirestoreModel(BaseModel):
    """Base model with Firestore-friendly serialization.

    - Enums serialize as string values (Firestore stores strings).
    - ``to_firestore()`` produces a JSON-safe dict (datetimes as ISO 8601).
    - ``from_firestore()`` hydrates from a Firestore document dict.
    """

    model_config = ConfigDict(
        populate_by_name=True,
        use_enum_values=True,
    )

    def to_firestore(self) -> dict[str, Any]:
        """Dump to Firestore-compatible dict."""
        return self.model_dump(mode="json", by_alias=True, exclude_none=True)

    @classmethod
    def from_firestore(cls, data: dict[str, Any]) -> "FirestoreModel":
        """Create model instance from Firestore document dict."""
        return cls.model_validate(data)


class FrozenModel(FirestoreModel):
    """Immutable variant used for processed, derived records."""

    model_config = ConfigDict(
        populate_by_name=True,
        use_enum_values=True,
        frozen=True,
    )
