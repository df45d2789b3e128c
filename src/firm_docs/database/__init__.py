"""Persistence: record stores and typed repositories."""

from firm_docs.database.client import CosmosClient, CosmosRecordStore
from firm_docs.database.store import InMemoryRecordStore, RecordStore

__all__ = ["CosmosClient", "CosmosRecordStore", "InMemoryRecordStore", "RecordStore"]
