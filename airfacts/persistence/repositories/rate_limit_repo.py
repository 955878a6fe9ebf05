"""Repository for rate-limit counting windows."""

from __future__ import annotations

from datetime import datetime
from typing import Any

from google.cloud.firestore import Increment

from airfacts.contracts.rate_limit import RateLimitWindow
from airfacts.persistence.repositories.base import BaseRepository

COLLECTION = "api_rate_limits"


def window_id(service_name: str, window_start: datetime) -> str:
    return f"{service_name}_{int(window_start.timestamp() * 1000)}"


class RateLimitRepository(BaseRepository[RateLimitWindow]):
    """``/api_rate_limits/{service}_{start_ms}``: one document per window.

    Counters are bumped with Firestore's ``Increment`` transform so that
    concurrent writers never lose an update.
    """

    def __init__(self, client: Any = None, collection_name: str = COLLECTION):
        super().__init__(RateLimitWindow, collection_name, client)

    def _hydrate(self, doc) -> RateLimitWindow:
        data = doc.to_dict()
        data["id"] = doc.id
        return RateLimitWindow.from_firestore(data)

    async def windows_for(self, service_name: str) -> list[RateLimitWindow]:
        query = self._collection_ref().where("service_name", "==", service_name)
        return [self._hydrate(doc) async for doc in query.stream()]

    async def active_window(self, service_name: str, now: datetime) -> RateLimitWindow | None:
        """The most recently opened window that has not yet ended."""
        active = [w for w in await self.windows_for(service_name) if w.window_end >= now]
        if not active:
            return None
        return max(active, key=lambda w: w.window_start)

    async def open_window(self, window: RateLimitWindow) -> str:
        doc_id = window.id or window_id(window.service_name, window.window_start)
        await self.upsert(doc_id, window)
        return doc_id

    async def increment(self, doc_id: str, amount: int = 1) -> None:
        await self._collection_ref().document(doc_id).update(
            {"request_count": Increment(amount)}
        )

    async def delete_for_service(self, service_name: str, *, before: datetime | None = None) -> int:
        """Delete a service's windows, optionally only those ended before *before*."""
        removed = 0
        for window in await self.windows_for(service_name):
            if before is not None and window.window_end >= before:
                continue
            await self.delete(window.id)
            removed += 1
        return removed
