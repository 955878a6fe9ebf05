"""Generic async Firestore repository for top-level collections."""

from __future__ import annotations

from typing import Any, Generic, Type, TypeVar

from airfacts.contracts.common import FirestoreModel
from airfacts.persistence.firestore_client import get_firestore_client

T = TypeVar("T", bound=FirestoreModel)


class BaseRepository(Generic[T]):
    """CRUD for a Firestore collection keyed by a natural document ID.

    Serialization relies entirely on the contract's ``to_firestore()``
    and ``from_firestore()`` methods, no extra mapping layer. The client
    is resolved lazily so that a repository can be built before
    credentials are available.
    """

    def __init__(self, model_class: Type[T], collection_name: str, client: Any = None):
        self._model_class = model_class
        self._collection_name = collection_name
        self._client = client

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    @property
    def collection_name(self) -> str:
        return self._collection_name

    def _db(self) -> Any:
        if self._client is None:
            self._client = get_firestore_client()
        return self._client

    def _collection_ref(self):
        return self._db().collection(self._collection_name)

    def _hydrate(self, doc) -> T:
        data = doc.to_dict()
        return self._model_class.from_firestore(data)

    # ------------------------------------------------------------------
    # Read
    # ------------------------------------------------------------------

    async def get(self, doc_id: str) -> T | None:
        """Fetch a single document by ID. Returns *None* if missing."""
        doc = await self._collection_ref().document(doc_id).get()
        if not doc.exists:
            return None
        return self._hydrate(doc)

    async def get_many(self, doc_ids: list[str]) -> dict[str, T]:
        """Fetch several documents in one round trip, keyed by ID."""
        refs = [self._collection_ref().document(doc_id) for doc_id in doc_ids]
        found: dict[str, T] = {}
        async for doc in self._db().get_all(refs):
            if doc.exists:
                found[doc.id] = self._hydrate(doc)
        return found

    async def list_all(self) -> list[T]:
        """Stream every document in the collection."""
        results: list[T] = []
        async for doc in self._collection_ref().stream():
            results.append(self._hydrate(doc))
        return results

    async def stream_raw(self):
        """Yield ``(doc_id, dict)`` pairs without model validation."""
        async for doc in self._collection_ref().stream():
            yield doc.id, doc.to_dict()

    # ------------------------------------------------------------------
    # Write
    # ------------------------------------------------------------------

    async def upsert(self, doc_id: str, entity: T) -> None:
        """Create or fully replace a document."""
        data = entity.to_firestore()
        data.pop("id", None)
        await self._collection_ref().document(doc_id).set(data)

    async def upsert_many(self, entities: dict[str, T]) -> None:
        """Write several documents atomically in one batch."""
        batch = self._db().batch()
        for doc_id, entity in entities.items():
            data = entity.to_firestore()
            data.pop("id", None)
            batch.set(self._collection_ref().document(doc_id), data)
        await batch.commit()

    async def delete(self, doc_id: str) -> None:
        """Delete a document."""
        await self._collection_ref().document(doc_id).delete()
