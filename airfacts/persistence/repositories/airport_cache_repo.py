"""Repository for processed airport cache entries."""

from __future__ import annotations

from typing import Any

from airfacts.contracts.cache import CacheEntry
from airfacts.persistence.repositories.base import BaseRepository

COLLECTION = "airport_cache"


class AirportCacheRepository(BaseRepository[CacheEntry]):
    """``/airport_cache/{ICAO}``: one processed airport per document."""

    def __init__(self, client: Any = None, collection_name: str = COLLECTION):
        super().__init__(CacheEntry, collection_name, client)

    async def ids_below_completeness(self, threshold: int) -> list[str]:
        query = self._collection_ref().where("data_completeness", "<", threshold)
        return [doc.id async for doc in query.stream()]

    async def delete_below_completeness(self, threshold: int) -> int:
        """Remove entries scoring under *threshold*. Returns the count removed."""
        doc_ids = await self.ids_below_completeness(threshold)
        for doc_id in doc_ids:
            await self.delete(doc_id)
        return len(doc_ids)

    async def created_at_many(self, doc_ids: list[str]) -> dict[str, Any]:
        """``created_at`` of the existing documents, read without validation."""
        refs = [self._collection_ref().document(doc_id) for doc_id in doc_ids]
        found: dict[str, Any] = {}
        async for doc in self._db().get_all(refs):
            if doc.exists:
                value = doc.to_dict().get("created_at")
                if value is not None:
                    found[doc.id] = value
        return found
