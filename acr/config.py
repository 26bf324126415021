"""Runtime configuration read from ``ACR_*`` environment variables."""

from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path

from acr.registry.store import RecordStore

STORE_BACKENDS = ("file", "memory", "mongo")


@dataclass
class RegistrySettings:
    """Where the registry keeps its records and how loudly it logs."""

    store: str = "file"
    registry_dir: str = ".acr_registry"
    mongo_url: str = "mongodb://localhost:27017"
    mongo_db: str = "agent-registry"
    mongo_collection: str = "agents"
    log_level: str = "WARNING"

    @classmethod
    def from_env(cls) -> RegistrySettings:
        defaults = cls()
        return cls(
            store=os.environ.get("ACR_STORE", defaults.store).strip().lower(),
            registry_dir=os.environ.get("ACR_REGISTRY_DIR", defaults.registry_dir),
            mongo_url=os.environ.get("ACR_MONGO_URL", defaults.mongo_url),
            mongo_db=os.environ.get("ACR_MONGO_DB", defaults.mongo_db),
            mongo_collection=os.environ.get("ACR_MONGO_COLLECTION", defaults.mongo_collection),
            log_level=os.environ.get("ACR_LOG_LEVEL", defaults.log_level).upper(),
        )


def open_store(settings: RegistrySettings) -> RecordStore:
    """Build the record store selected by ``settings.store``."""
    if settings.store == "file":
        from acr.registry.file_store import FileRecordStore

        return FileRecordStore(Path(settings.registry_dir))

    if settings.store == "memory":
        from acr.registry.memory_store import MemoryRecordStore

        return MemoryRecordStore()

    if settings.store == "mongo":
        from acr.registry.mongo_store import MongoRecordStore

        return MongoRecordStore.connect(
            settings.mongo_url,
            database_name=settings.mongo_db,
            collection_name=settings.mongo_collection,
        )

    raise ValueError(
        f"Unknown store backend '{settings.store}'. Must be one of: {', '.join(STORE_BACKENDS)}"
    )
