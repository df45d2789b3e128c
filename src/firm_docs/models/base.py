"""Base model shared by every persisted record."""

from __future__ import annotations

from datetime import UTC, datetime
from uuid import uuid4

from pydantic import BaseModel, Field


def utcnow() -> datetime:
    return datetime.now(UTC)


class DocumentBase(BaseModel):
    """Common fields for records stored in the record store.

    ``etag`` is assigned by the store on every write and is used for
    compare-and-swap replaces; it is never serialized into the record body.
    """

    id: str = Field(default_factory=lambda: uuid4().hex)
    created_at: datetime = Field(default_factory=utcnow)
    updated_at: datetime = Field(default_factory=utcnow)
    deleted_at: datetime | None = None
    etag: str | None = Field(default=None, exclude=True)
