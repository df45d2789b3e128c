"""Keyed record store protocol and the in-memory implementation.

Records are plain JSON-like dicts keyed by ``id``. Every write assigns a fresh
``_etag``; ``replace`` with ``expected_etag`` is a compare-and-swap.
"""

from __future__ import annotations

import asyncio
import logging
from copy import deepcopy
from typing import Any, Protocol
from uuid import uuid4

from firm_docs.errors import ConcurrencyConflictError, NotFoundError

logger = logging.getLogger(__name__)

Record = dict[str, Any]

ETAG_FIELD = "_etag"


class RecordStore(Protocol):
    """Storage seam used by the repositories."""

    async def find_by_id(self, collection: str, record_id: str) -> Record | None: ...

    async def find_many(
        self, collection: str, filters: dict[str, Any] | None = None
    ) -> list[Record]: ...

    async def insert(self, collection: str, record: Record) -> Record: ...

    async def replace(
        self, collection: str, record: Record, *, expected_etag: str | None = None
    ) -> Record: ...

    async def delete(self, collection: str, record_id: str) -> None: ...

    async def ping(self) -> bool: ...


def matches(record: Record, filters: dict[str, Any] | None) -> bool:
    """Equality match on top-level fields; ``None`` means "absent or null"."""
    if not filters:
        return True
    return all(record.get(key) == value for key, value in filters.items())


class InMemoryRecordStore:
    """Process-local store used in development and tests."""

    def __init__(self) -> None:
        self._collections: dict[str, dict[str, Record]] = {}
        self._lock = asyncio.Lock()

    def _collection(self, name: str) -> dict[str, Record]:
        return self._collections.setdefault(name, {})

    async def find_by_id(self, collection: str, record_id: str) -> Record | None:
        record = self._collection(collection).get(record_id)
        return deepcopy(record) if record is not None else None

    async def find_many(
        self, collection: str, filters: dict[str, Any] | None = None
    ) -> list[Record]:
        return [
            deepcopy(record)
            for record in self._collection(collection).values()
            if matches(record, filters)
        ]

    async def insert(self, collection: str, record: Record) -> Record:
        async with self._lock:
            records = self._collection(collection)
            record_id = record["id"]
            if record_id in records:
                raise ConcurrencyConflictError(
                    f"record {record_id} already exists in {collection}"
                )
            stored = {**deepcopy(record), ETAG_FIELD: uuid4().hex}
            records[record_id] = stored
            return deepcopy(stored)

    async def replace(
        self, collection: str, record: Record, *, expected_etag: str | None = None
    ) -> Record:
        async with self._lock:
            records = self._collection(collection)
            record_id = record["id"]
            current = records.get(record_id)
            if current is None:
                raise NotFoundError(f"record {record_id} not found in {collection}")
            if expected_etag is not None and current[ETAG_FIELD] != expected_etag:
                logger.debug(
                    "Etag mismatch — collection=%s id=%s", collection, record_id
                )
                raise ConcurrencyConflictError(
                    f"record {record_id} was modified concurrently"
                )
            stored = {**deepcopy(record), ETAG_FIELD: uuid4().hex}
            records[record_id] = stored
            return deepcopy(stored)

    async def delete(self, collection: str, record_id: str) -> None:
        async with self._lock:
            if self._collection(collection).pop(record_id, None) is None:
                raise NotFoundError(f"record {record_id} not found in {collection}")

    async def ping(self) -> bool:
        return True
