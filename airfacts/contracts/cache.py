"""Cache entry stored in ``airport_cache/{ICAO}``.

The document holds the processed record split into JSON sub-documents
plus the raw provider snapshot and the completeness score computed on
the write that produced it.
"""

from __future__ import annotations

from datetime import datetime
from typing import Any

from pydantic import BaseModel, Field

from airfacts.contracts.common import FirestoreModel
from airfacts.contracts.enums import CacheBackend

PROCESSING_VERSION = "1.0"


class CacheEntry(FirestoreModel):
    icao_code: str = Field(..., pattern=r"^[A-Z][A-Z0-9]{3}$")
    iata_code: str | None = None
    core_data: dict[str, Any]
    runway_data: dict[str, Any] = Field(default_factory=dict)
    communication_data: dict[str, Any] = Field(default_factory=dict)
    navigation_data: dict[str, Any] = Field(default_factory=dict)
    capability_data: dict[str, Any] = Field(default_factory=dict)
    raw_api_response: dict[str, Any] = Field(default_factory=dict)
    data_completeness: int = Field(default=0, ge=0, le=100)
    processing_version: str = PROCESSING_VERSION
    created_at: datetime
    updated_at: datetime
    last_verified_at: datetime


class CacheStats(BaseModel):
    total_airports: int = 0
    avg_completeness: float = 0
    last_updated: datetime | None = None
    storage_size_mb: float = 0
    backend: CacheBackend = CacheBackend.FIRESTORE


class CacheValidation(BaseModel):
    icao: str
    is_valid: bool
    errors: list[str] = Field(default_factory=list)
    warnings: list[str] = Field(default_factory=list)
    completeness: int | None = None
