"""Airport lookup endpoints."""

from __future__ import annotations

import logging

from fastapi import APIRouter, Depends, HTTPException, Query, Response
from pydantic import BaseModel, Field

from airfacts.api.deps import get_airport_service
from airfacts.contracts.enums import ErrorCode, SearchType
from airfacts.services.airport_service import AirportService
from airfacts.services.airportdb.errors import InvalidRequestError

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/airports", tags=["airports"])


class BatchRequest(BaseModel):
    icao_codes: list[str] = Field(..., min_length=1, max_length=200)


@router.get("/search")
async def search_airports(
    q: str,
    limit: int = Query(10, ge=1, le=100),
    type: SearchType = SearchType.ALL,
    svc: AirportService = Depends(get_airport_service),
) -> list[dict]:
    try:
        results = await svc.search(q, limit=limit, search_type=type)
    except InvalidRequestError as exc:
        raise HTTPException(status_code=400, detail=str(exc))
    return [airport.to_firestore() for airport in results]


@router.post("/batch")
async def get_airports_batch(
    body: BatchRequest,
    svc: AirportService = Depends(get_airport_service),
) -> dict:
    result = await svc.get_batch(body.icao_codes)
    return result.model_dump(mode="json")


@router.get("/cache/stats")
async def cache_stats(svc: AirportService = Depends(get_airport_service)) -> dict:
    stats = await svc.cache_stats()
    return stats.model_dump(mode="json")


@router.post("/cache/cleanup")
async def cache_cleanup(svc: AirportService = Depends(get_airport_service)) -> dict:
    removed = await svc.cleanup_cache()
    return {"removed": removed}


@router.get("/rate-limit")
async def rate_limit_stats(svc: AirportService = Depends(get_airport_service)) -> dict:
    usage = await svc.rate_limit_stats()
    if usage is None:
        return {"enabled": False}
    return {"enabled": True, **usage.model_dump(mode="json")}


@router.get("/{icao}")
async def get_airport(
    icao: str,
    svc: AirportService = Depends(get_airport_service),
) -> dict:
    result = await svc.get(icao)
    if result.error is not None and result.error.code == ErrorCode.INVALID_REQUEST.value:
        raise HTTPException(status_code=400, detail=result.error.message)
    return result.model_dump(mode="json")


@router.get("/{icao}/validation")
async def validate_airport(
    icao: str,
    svc: AirportService = Depends(get_airport_service),
) -> dict:
    report = await svc.validate(icao)
    return report.model_dump(mode="json")


@router.post("/{icao}/refresh")
async def refresh_airport(
    icao: str,
    svc: AirportService = Depends(get_airport_service),
) -> dict:
    try:
        result = await svc.refresh(icao)
    except InvalidRequestError as exc:
        raise HTTPException(status_code=400, detail=str(exc))
    return result.model_dump(mode="json")


@router.delete("/{icao}/cache", status_code=204)
async def invalidate_airport(
    icao: str,
    svc: AirportService = Depends(get_airport_service),
) -> Response:
    try:
        await svc.invalidate(icao)
    except InvalidRequestError as exc:
        raise HTTPException(status_code=400, detail=str(exc))
    return Response(status_code=204)
