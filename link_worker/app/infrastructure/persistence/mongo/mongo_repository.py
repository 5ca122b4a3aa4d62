"""MongoDB implementation of MetadataRepository."""
from __future__ import annotations

from datetime import datetime, timezone
from typing import Any

from motor.motor_asyncio import AsyncIOMotorCollection

from link_worker.app.domain.models import LinkMetadata
from link_worker.app.infrastructure.persistence.mongo.connection import close_mongo_client


class MongoMetadataRepository:
    """One document per link id; each save replaces the stored metadata wholesale."""

    def __init__(self, collection: AsyncIOMotorCollection, *, client: Any | None = None) -> None:
        self._collection = collection
        self._client = client

    async def ensure_indexes(self) -> None:
        """Infrastructure bootstrap: create indexes. Not part of the port."""
        await self._collection.create_index("link_id", unique=True, name="uq_link_metadata_link_id")
        await self._collection.create_index("updated_at", name="idx_link_metadata_updated_at")

    async def save(self, link_id: str, metadata: LinkMetadata) -> None:
        now = datetime.now(timezone.utc)
        await self._collection.update_one(
            {"link_id": link_id},
            {
                "$setOnInsert": {
                    "link_id": link_id,
                    "created_at": now,
                },
                "$set": {
                    "metadata": metadata.to_dict(),
                    "updated_at": now,
                },
            },
            upsert=True,
        )

    async def get_by_link_id(self, link_id: str) -> dict[str, Any] | None:
        return await self._collection.find_one({"link_id": link_id})

    async def close(self) -> None:
        """Close underlying Mongo client when owned by this adapter."""
        if self._client is not None:
            await close_mongo_client(self._client)
