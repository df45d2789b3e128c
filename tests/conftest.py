"""Shared fixtures: in-memory store, version store and a lifecycle engine."""

from __future__ import annotations

from unittest.mock import AsyncMock

import pytest

from firm_docs.auth.middleware import Identity
from firm_docs.auth.policy import AccessPolicy
from firm_docs.database.repositories import DocumentRepository, SequenceRepository
from firm_docs.database.store import InMemoryRecordStore
from firm_docs.lifecycle.engine import DocumentLifecycleEngine
from firm_docs.lifecycle.versions import VersionStore
from firm_docs.providers.registry import ProviderRegistry

GENERATED_TEXT = "# Audit Opinion\nUnqualified.\n\n## Basis\nWe audited the statements.\n"


@pytest.fixture
def store() -> InMemoryRecordStore:
    return InMemoryRecordStore()


@pytest.fixture
def documents(store: InMemoryRecordStore) -> DocumentRepository:
    return DocumentRepository(store)


@pytest.fixture
def versions(store: InMemoryRecordStore, documents: DocumentRepository) -> VersionStore:
    return VersionStore(documents, SequenceRepository(store))


@pytest.fixture
def adapter() -> AsyncMock:
    return AsyncMock(return_value=GENERATED_TEXT)


@pytest.fixture
def registry(adapter: AsyncMock) -> ProviderRegistry:
    return ProviderRegistry({"fake": adapter}, timeout_seconds=5, unconfigured=["ernie"])


@pytest.fixture
def engine(
    documents: DocumentRepository, versions: VersionStore, registry: ProviderRegistry
) -> DocumentLifecycleEngine:
    return DocumentLifecycleEngine(
        documents=documents,
        versions=versions,
        providers=registry,
        policy=AccessPolicy(),
        default_regulations=["Accounting Standards"],
    )


@pytest.fixture
def author() -> Identity:
    return Identity(user_id="u-author", role="staff")


@pytest.fixture
def manager() -> Identity:
    return Identity(user_id="u-manager", role="manager")


@pytest.fixture
def partner() -> Identity:
    return Identity(user_id="u-partner", role="partner")


@pytest.fixture
def outsider() -> Identity:
    return Identity(user_id="u-outsider", role="staff")
