"""In-memory record store.

Keeps records in a dict keyed by identity plus a skill-id index. Inserts
are serialized by a lock, which gives the same "one winner" guarantee a
unique database index does. Records are copied on the way in and out so
callers can never mutate stored content.
"""

from __future__ import annotations

import copy
import logging
import threading
import uuid
from collections import defaultdict

from acr.registry.models import IdentityKey, StoredAgentRecord
from acr.registry.pagination import Page
from acr.registry.store import DuplicateIdentity, RecordQuery, RecordStore

logger = logging.getLogger(__name__)


class MemoryRecordStore(RecordStore):
    """Process-local store, used for tests and as the base of the file store."""

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._records: dict[IdentityKey, dict] = {}
        self._skill_index: dict[str, set[IdentityKey]] = defaultdict(set)

    def ensure_indexes(self) -> None:
        # Both indexes are maintained on every insert.
        logger.debug("Memory store indexes are always present")

    def insert(self, record: StoredAgentRecord) -> StoredAgentRecord:
        doc = record.to_document()
        doc["card"] = copy.deepcopy(record.card)
        doc["_id"] = uuid.uuid4().hex
        key = record.key

        with self._lock:
            if key in self._records:
                raise DuplicateIdentity(key)
            self._index(key, doc)
            try:
                self._persist()
            except Exception:
                self._unindex(key)
                raise

        logger.debug("Inserted %s", key)
        return StoredAgentRecord.from_document(copy.deepcopy(doc))

    def find_one(self, name: str, version: str) -> StoredAgentRecord | None:
        with self._lock:
            doc = self._records.get(IdentityKey(name, version))
            if doc is None:
                return None
            return StoredAgentRecord.from_document(copy.deepcopy(doc))

    def query(self, query: RecordQuery, page: Page) -> list[StoredAgentRecord]:
        with self._lock:
            if query.skill_id is not None:
                keys = self._skill_index.get(query.skill_id, set())
                docs = [self._records[k] for k in keys]
            else:
                docs = list(self._records.values())

            docs = [d for d in docs if _matches(d, query)]
            # Two stable sorts: version descending within name ascending.
            docs.sort(key=lambda d: d["versionKey"], reverse=True)
            docs.sort(key=lambda d: d["card"]["name"])

            return [StoredAgentRecord.from_document(copy.deepcopy(d)) for d in page.apply(docs)]

    def count(self) -> int:
        with self._lock:
            return len(self._records)

    # ------------------------------------------------------------------
    # Internal helpers (callers hold the lock)
    # ------------------------------------------------------------------

    def _index(self, key: IdentityKey, doc: dict) -> None:
        self._records[key] = doc
        for skill_id in _skill_ids(doc):
            self._skill_index[skill_id].add(key)

    def _unindex(self, key: IdentityKey) -> None:
        doc = self._records.pop(key)
        for skill_id in _skill_ids(doc):
            self._skill_index[skill_id].discard(key)

    def _persist(self) -> None:
        """Hook for subclasses that mirror the records somewhere durable."""


def _skill_ids(doc: dict) -> list[str]:
    skills = doc["card"].get("skills") or []
    return [s["id"] for s in skills if isinstance(s, dict) and isinstance(s.get("id"), str)]


def _matches(doc: dict, query: RecordQuery) -> bool:
    if query.name is not None and doc["card"]["name"] != query.name:
        return False
    if query.owner is not None and doc["owner"] != query.owner:
        return False
    if query.status is not None and doc["status"] != query.status.value:
        return False
    if query.skill_id is not None and query.skill_id not in _skill_ids(doc):
        return False
    return True
