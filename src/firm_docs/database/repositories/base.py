"""Generic typed repository over a ``RecordStore`` collection."""

from __future__ import annotations

from typing import Any, ClassVar, Generic, TypeVar

from firm_docs.database.store import ETAG_FIELD, Record, RecordStore
from firm_docs.models.base import DocumentBase, utcnow

T = TypeVar("T", bound=DocumentBase)


class BaseRepository(Generic[T]):
    """CRUD for one collection; subclasses set ``container_name`` and ``model_class``."""

    container_name: ClassVar[str]
    model_class: type[T]

    def __init__(self, store: RecordStore) -> None:
        self._store = store

    def _to_model(self, record: Record) -> T:
        item = self.model_class.model_validate(record)
        item.etag = record.get(ETAG_FIELD)
        return item

    @staticmethod
    def _to_record(item: DocumentBase) -> Record:
        return item.model_dump(mode="json")

    async def get(self, item_id: str) -> T | None:
        """Fetch a live (not soft-deleted) item by id."""
        record = await self._store.find_by_id(self.container_name, item_id)
        if record is None or record.get("deleted_at") is not None:
            return None
        return self._to_model(record)

    async def query(self, filters: dict[str, Any] | None = None) -> list[T]:
        """Fetch live items whose top-level fields equal ``filters``."""
        records = await self._store.find_many(self.container_name, filters)
        return [
            self._to_model(record)
            for record in records
            if record.get("deleted_at") is None
        ]

    async def create(self, item: T) -> T:
        record = await self._store.insert(self.container_name, self._to_record(item))
        return self._to_model(record)

    async def update(self, item: T) -> T:
        """Replace the stored item, failing on a concurrent write when it has an etag."""
        item.updated_at = utcnow()
        record = await self._store.replace(
            self.container_name, self._to_record(item), expected_etag=item.etag
        )
        return self._to_model(record)

    async def delete(self, item_id: str) -> None:
        await self._store.delete(self.container_name, item_id)
