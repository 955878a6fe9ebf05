"""FastAPI application factory."""

from __future__ import annotations

import logging
import os
from contextlib import asynccontextmanager

from dotenv import load_dotenv
from fastapi import FastAPI, Request

# Load .env file from project root (must be before other imports)
load_dotenv()
from fastapi.middleware.cors import CORSMiddleware  # noqa: E402

from airfacts.api.routes import airports  # noqa: E402
from airfacts.config import Settings  # noqa: E402
from airfacts.services.airport_service import create_airport_service  # noqa: E402

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Build the airport service once and close it on shutdown."""
    settings = Settings.from_env()
    service = create_airport_service(settings)
    logger.info(
        "Airport service ready (rate limit profile %s, cache %s)",
        settings.rate_limit_profile,
        "on" if settings.use_cache else "off",
    )
    app.state.airport_service = service
    yield
    await service.aclose()


app = FastAPI(
    title="airfacts API",
    description="Cache-first airport facts from AirportDB",
    version="0.1.0",
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=os.environ.get("CORS_ORIGINS", "http://localhost:5173").split(","),
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(airports.router, prefix="/api")


@app.get("/api/health")
async def health(request: Request):
    service = request.app.state.airport_service
    status = await service.health_check()
    return {"status": "ok" if status.overall else "degraded", **status.model_dump(mode="json")}
