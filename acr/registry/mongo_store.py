"""MongoDB-backed record store.

Race safety comes from the unique ``(card.name, card.version)`` index:
of two concurrent inserts for the same key, MongoDB lets exactly one win
and reports a duplicate-key error to the other.
"""

from __future__ import annotations

import logging
from typing import Any

from pymongo import ASCENDING, DESCENDING, MongoClient
from pymongo.collection import Collection
from pymongo.errors import DuplicateKeyError

from acr.registry.models import StoredAgentRecord
from acr.registry.pagination import Page
from acr.registry.store import DuplicateIdentity, RecordQuery, RecordStore

logger = logging.getLogger(__name__)

SORT_ORDER = [("card.name", ASCENDING), ("versionKey", DESCENDING)]


class MongoRecordStore(RecordStore):
    """Record store over a single MongoDB collection."""

    def __init__(
        self,
        collection: Collection,
        client: MongoClient | None = None,
    ) -> None:
        """Wrap an existing collection.

        Args:
            collection: Collection holding the agent records
            client: Client to close in ``close()``, when the store owns it

        """
        self.collection = collection
        self._client = client

    @classmethod
    def connect(
        cls,
        url: str,
        database_name: str = "agent-registry",
        collection_name: str = "agents",
        ensure_indexes: bool = True,
    ) -> MongoRecordStore:
        """Open a client, select the collection and (by default) create indexes."""
        logger.info("Connecting MongoDB record store: %s.%s", database_name, collection_name)
        client: MongoClient[dict[str, Any]] = MongoClient(url, tz_aware=True)
        store = cls(client[database_name][collection_name], client=client)
        if ensure_indexes:
            store.ensure_indexes()
        return store

    def ensure_indexes(self) -> None:
        self.collection.create_index(
            [("card.name", ASCENDING), ("card.version", ASCENDING)],
            unique=True,
            name="uniq_name_version",
        )
        self.collection.create_index([("card.skills.id", ASCENDING)], name="skills_id")
        self.collection.create_index(SORT_ORDER, name="name_version_order")
        self.collection.create_index([("owner", ASCENDING)], name="owner")
        self.collection.create_index([("status", ASCENDING)], name="status")
        logger.info("MongoDB record store indexes ensured on %s", self.collection.name)

    def insert(self, record: StoredAgentRecord) -> StoredAgentRecord:
        doc = record.to_document()
        try:
            result = self.collection.insert_one(doc)
        except DuplicateKeyError as exc:
            raise DuplicateIdentity(record.key) from exc
        doc.setdefault("_id", result.inserted_id)
        return StoredAgentRecord.from_document(doc)

    def find_one(self, name: str, version: str) -> StoredAgentRecord | None:
        doc = self.collection.find_one({"card.name": name, "card.version": version})
        if not doc:
            logger.debug("Record not found: %s@%s", name, version)
            return None
        return StoredAgentRecord.from_document(doc)

    def query(self, query: RecordQuery, page: Page) -> list[StoredAgentRecord]:
        cursor = (
            self.collection.find(_to_filter(query))
            .sort(SORT_ORDER)
            .skip(page.offset)
            .limit(page.limit)
        )
        return [StoredAgentRecord.from_document(doc) for doc in cursor]

    def close(self) -> None:
        if self._client is not None:
            self._client.close()
            self._client = None


def _to_filter(query: RecordQuery) -> dict[str, Any]:
    flt: dict[str, Any] = {}
    if query.name is not None:
        flt["card.name"] = query.name
    if query.skill_id is not None:
        flt["card.skills.id"] = query.skill_id
    if query.owner is not None:
        flt["owner"] = query.owner
    if query.status is not None:
        flt["status"] = query.status.value
    return flt
