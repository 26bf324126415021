"""Local file-based record store.

A simple, file-system-backed store for development use. Records are
mirrored to ``index.json`` in the registry directory. Several processes
may open the same directory: every insert holds an exclusive lock on
``index.lock`` while it re-reads the index, checks the identity key and
writes the merged result, and every read starts from the current file.
"""

from __future__ import annotations

import json
import logging
import os
import tempfile
from datetime import datetime
from pathlib import Path

from filelock import FileLock

from acr.registry.memory_store import MemoryRecordStore
from acr.registry.models import IdentityKey, StoredAgentRecord
from acr.registry.pagination import Page
from acr.registry.store import RecordQuery

logger = logging.getLogger(__name__)


class FileRecordStore(MemoryRecordStore):
    """Memory store persisted to a JSON index file shared across processes."""

    INDEX_FILE = "index.json"
    LOCK_FILE = "index.lock"

    def __init__(self, registry_dir: str | Path, lock_timeout: float = 30.0):
        super().__init__()
        self.registry_dir = Path(registry_dir)
        self.registry_dir.mkdir(parents=True, exist_ok=True)
        self.index_path = self.registry_dir / self.INDEX_FILE
        self._file_lock = FileLock(str(self.registry_dir / self.LOCK_FILE), timeout=lock_timeout)
        self._refresh()
        logger.debug("Loaded %d record(s) from %s", len(self._records), self.index_path)

    def insert(self, record: StoredAgentRecord) -> StoredAgentRecord:
        with self._file_lock:
            self._refresh()
            return super().insert(record)

    def find_one(self, name: str, version: str) -> StoredAgentRecord | None:
        self._refresh()
        return super().find_one(name, version)

    def query(self, query: RecordQuery, page: Page) -> list[StoredAgentRecord]:
        self._refresh()
        return super().query(query, page)

    def _refresh(self) -> None:
        """Replace the in-memory records with the current contents of the index."""
        docs = self._load_index()
        with self._lock:
            self._records.clear()
            self._skill_index.clear()
            for doc in docs:
                self._index(IdentityKey(doc["card"]["name"], doc["card"]["version"]), doc)

    def _persist(self) -> None:
        self._save_index()

    def _load_index(self) -> list[dict]:
        if not self.index_path.exists():
            return []
        with open(self.index_path, encoding="utf-8") as f:
            return [_doc_from_json(d) for d in json.load(f)]

    def _save_index(self) -> None:
        data = [_doc_to_json(d) for d in self._records.values()]
        # Write to a sibling temp file and rename, so readers never see a torn index.
        fd, tmp_path = tempfile.mkstemp(dir=self.registry_dir, prefix=".index-", suffix=".json")
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                json.dump(data, f, indent=2, ensure_ascii=False)
            os.replace(tmp_path, self.index_path)
        except BaseException:
            Path(tmp_path).unlink(missing_ok=True)
            raise


def _doc_to_json(doc: dict) -> dict:
    return {**doc, "publishedAt": doc["publishedAt"].isoformat()}


def _doc_from_json(data: dict) -> dict:
    return {**data, "publishedAt": datetime.fromisoformat(data["publishedAt"])}
