"""Async Cosmos DB client and the Cosmos-backed record store."""

from __future__ import annotations

import logging
from typing import Any, cast

from azure.core import MatchConditions
from azure.cosmos import PartitionKey
from azure.cosmos.aio import ContainerProxy, DatabaseProxy
from azure.cosmos.aio import CosmosClient as AzureCosmosClient
from azure.cosmos.exceptions import (
    CosmosHttpResponseError,
    CosmosResourceExistsError,
    CosmosResourceNotFoundError,
)

from firm_docs.config import CosmosConfig
from firm_docs.database.store import Record
from firm_docs.errors import ConcurrencyConflictError, NotFoundError

logger = logging.getLogger(__name__)

_HTTP_PRECONDITION_FAILED = 412


class CosmosClient:
    """Manages the async Cosmos DB client and database reference."""

    def __init__(self, config: CosmosConfig) -> None:
        self._config = config
        self._client: AzureCosmosClient | None = None
        self._database: DatabaseProxy | None = None

    async def initialize(self) -> None:
        """Create the client and ensure the database exists."""
        self._client = AzureCosmosClient(self._config.endpoint, credential=self._config.key)
        self._database = await self._client.create_database_if_not_exists(
            self._config.database
        )
        logger.info("Cosmos DB ready — database=%s", self._config.database)

    async def close(self) -> None:
        """Close the underlying client."""
        if self._client:
            await self._client.close()
            self._client = None
            self._database = None

    @property
    def database(self) -> DatabaseProxy:
        if self._database is None:
            raise RuntimeError("CosmosClient not initialized, call initialize() first")
        return self._database


def _body(record: Record) -> Record:
    """Strip Cosmos system properties (``_rid``, ``_etag``...) before a write."""
    return {key: value for key, value in record.items() if not key.startswith("_")}


class CosmosRecordStore:
    """``RecordStore`` over Cosmos containers partitioned by ``/id``."""

    def __init__(self, client: CosmosClient) -> None:
        self._client = client
        self._containers: dict[str, ContainerProxy] = {}

    async def _container(self, collection: str) -> ContainerProxy:
        container = self._containers.get(collection)
        if container is None:
            container = await self._client.database.create_container_if_not_exists(
                id=collection, partition_key=PartitionKey(path="/id")
            )
            self._containers[collection] = container
        return container

    async def find_by_id(self, collection: str, record_id: str) -> Record | None:
        container = await self._container(collection)
        try:
            return cast(
                "Record",
                await container.read_item(item=record_id, partition_key=record_id),
            )
        except CosmosResourceNotFoundError:
            return None

    async def find_many(
        self, collection: str, filters: dict[str, Any] | None = None
    ) -> list[Record]:
        container = await self._container(collection)
        clauses: list[str] = []
        parameters: list[dict[str, Any]] = []
        for index, (key, value) in enumerate((filters or {}).items()):
            name = f"@p{index}"
            if value is None:
                clauses.append(f"(NOT IS_DEFINED(c.{key}) OR IS_NULL(c.{key}))")
            else:
                clauses.append(f"c.{key} = {name}")
                parameters.append({"name": name, "value": value})
        query = "SELECT * FROM c"
        if clauses:
            query += " WHERE " + " AND ".join(clauses)
        return [
            cast("Record", item)
            async for item in container.query_items(query, parameters=parameters)
        ]

    async def insert(self, collection: str, record: Record) -> Record:
        container = await self._container(collection)
        try:
            return cast("Record", await container.create_item(body=_body(record)))
        except CosmosResourceExistsError:
            raise ConcurrencyConflictError(
                f"record {record['id']} already exists in {collection}"
            ) from None

    async def replace(
        self, collection: str, record: Record, *, expected_etag: str | None = None
    ) -> Record:
        container = await self._container(collection)
        record_id = record["id"]
        kwargs: dict[str, Any] = {}
        if expected_etag is not None:
            kwargs = {
                "etag": expected_etag,
                "match_condition": MatchConditions.IfNotModified,
            }
        try:
            return cast(
                "Record",
                await container.replace_item(item=record_id, body=_body(record), **kwargs),
            )
        except CosmosResourceNotFoundError:
            raise NotFoundError(f"record {record_id} not found in {collection}") from None
        except CosmosHttpResponseError as exc:
            if exc.status_code == _HTTP_PRECONDITION_FAILED:
                logger.debug("Etag mismatch — collection=%s id=%s", collection, record_id)
                raise ConcurrencyConflictError(
                    f"record {record_id} was modified concurrently"
                ) from None
            raise

    async def delete(self, collection: str, record_id: str) -> None:
        container = await self._container(collection)
        try:
            await container.delete_item(item=record_id, partition_key=record_id)
        except CosmosResourceNotFoundError:
            raise NotFoundError(f"record {record_id} not found in {collection}") from None

    async def ping(self) -> bool:
        try:
            await self._client.database.read()
        except CosmosHttpResponseError:
            logger.warning("Cosmos DB health probe failed", exc_info=True)
            return False
        return True
