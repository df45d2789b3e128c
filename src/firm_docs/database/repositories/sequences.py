"""Repository for persisted sequence counters."""

from __future__ import annotations

import logging

from firm_docs.database.repositories.base import BaseRepository
from firm_docs.errors import ConcurrencyConflictError
from firm_docs.models.sequence import SequenceCounter

logger = logging.getLogger(__name__)

_MAX_ATTEMPTS = 5


class SequenceRepository(BaseRepository[SequenceCounter]):
    container_name = "sequences"
    model_class = SequenceCounter

    async def next_value(self, key: str) -> int:
        """Increment and return the counter for ``key``; values are never reissued."""
        for attempt in range(1, _MAX_ATTEMPTS + 1):
            counter = await self.get(key)
            try:
                if counter is None:
                    counter = await self.create(SequenceCounter(id=key, value=1))
                else:
                    counter.value += 1
                    counter = await self.update(counter)
            except ConcurrencyConflictError:
                logger.debug("Sequence contention — key=%s attempt=%d", key, attempt)
                continue
            return counter.value
        raise ConcurrencyConflictError(f"could not allocate a value for sequence {key}")
