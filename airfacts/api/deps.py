"""FastAPI dependency injection wiring."""

from __future__ import annotations

from fastapi import Request

from airfacts.services.airport_service import AirportService


# ------------------------------------------------------------------
# Airport service (singleton from app.state)
# ------------------------------------------------------------------


def get_airport_service(request: Request) -> AirportService:
    return request.app.state.airport_service
