"""Runtime configuration from environment variables.

``load_dotenv()`` is called by the entry points (API app, CLI) before
``Settings.from_env()`` so that a local ``.env`` file is honoured.
"""

from __future__ import annotations

import os
from dataclasses import dataclass

from airfacts.services.airportdb.client import (
    BASE_URL,
    DEFAULT_RETRY_ATTEMPTS,
    DEFAULT_RETRY_DELAY,
    DEFAULT_TIMEOUT,
)


def _env_bool(name: str, default: bool) -> bool:
    value = os.getenv(name)
    if value is None:
        return default
    return value.strip().lower() in {"1", "true", "yes", "on"}


@dataclass(frozen=True)
class Settings:
    api_key: str = ""
    base_url: str = BASE_URL
    timeout: float = DEFAULT_TIMEOUT
    retry_attempts: int = DEFAULT_RETRY_ATTEMPTS
    retry_delay: float = DEFAULT_RETRY_DELAY
    rate_limit_profile: str = "airportdb"
    enable_rate_limit: bool = True
    use_cache: bool = True
    fallback_to_cache: bool = True
    fallback_synthesis: bool = True
    cache_collection: str = "airport_cache"
    rate_limit_collection: str = "api_rate_limits"
    firestore_project: str | None = None

    @classmethod
    def from_env(cls) -> "Settings":
        return cls(
            api_key=os.getenv("AIRPORTDB_API_KEY", ""),
            base_url=os.getenv("AIRPORTDB_BASE_URL", BASE_URL),
            timeout=float(os.getenv("AIRPORTDB_TIMEOUT", DEFAULT_TIMEOUT)),
            retry_attempts=int(os.getenv("AIRPORTDB_RETRY_ATTEMPTS", DEFAULT_RETRY_ATTEMPTS)),
            retry_delay=float(os.getenv("AIRPORTDB_RETRY_DELAY", DEFAULT_RETRY_DELAY)),
            rate_limit_profile=os.getenv("AIRPORTDB_RATE_LIMIT_PROFILE", "airportdb"),
            enable_rate_limit=_env_bool("AIRPORTDB_RATE_LIMIT_ENABLED", True),
            use_cache=_env_bool("AIRPORT_CACHE_ENABLED", True),
            fallback_to_cache=_env_bool("AIRPORT_FALLBACK_TO_CACHE", True),
            fallback_synthesis=_env_bool("AIRPORT_FALLBACK_SYNTHESIS", True),
            cache_collection=os.getenv("AIRPORT_CACHE_COLLECTION", "airport_cache"),
            rate_limit_collection=os.getenv("RATE_LIMIT_COLLECTION", "api_rate_limits"),
            firestore_project=os.getenv("GOOGLE_CLOUD_PROJECT") or None,
        )
