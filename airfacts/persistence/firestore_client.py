"""Firestore async client singleton."""

from __future__ import annotations

import logging
from typing import Any

from google.cloud.firestore import AsyncClient

logger = logging.getLogger(__name__)

_client: Any = None


def get_firestore_client(project: str | None = None) -> Any:
    """Return a lazy-initialized Firestore AsyncClient.

    Uses Application Default Credentials (ADC). Components that need a
    different store (tests, local runs) receive one explicitly instead.
    """
    global _client
    if _client is not None:
        return _client

    _client = AsyncClient(project=project) if project else AsyncClient()
    logger.info("Using Google Cloud Firestore")
    return _client


def _reset_client() -> None:
    """Reset the singleton (for testing only)."""
    global _client
    _client = None
