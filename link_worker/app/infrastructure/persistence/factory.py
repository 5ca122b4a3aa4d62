"""Repository factory: selects and assembles persistence adapters."""
from __future__ import annotations

from link_worker.app.config.settings import Settings
from link_worker.app.infrastructure.persistence.inmemory.in_memory_repository import InMemoryMetadataRepository
from link_worker.app.infrastructure.persistence.mongo.connection import create_mongo_client
from link_worker.app.infrastructure.persistence.mongo.mongo_repository import MongoMetadataRepository
from link_worker.app.ports.metadata_repository import MetadataRepository


async def create_metadata_repository(settings: Settings) -> MetadataRepository:
    """Select repository adapter from configuration and return port type."""
    backend = settings.repository_backend.strip().lower()

    if backend == "mongo":
        mongo_client = await create_mongo_client(settings)
        repo = MongoMetadataRepository(
            mongo_client[settings.database_name][settings.database_collection],
            client=mongo_client,
        )
        await repo.ensure_indexes()
        return repo

    if backend == "inmemory":
        return InMemoryMetadataRepository()

    raise ValueError(f"Unsupported repository backend: {backend}")
