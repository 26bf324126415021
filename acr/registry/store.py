"""Record store interface shared by every registry backend.

A store must offer two things the registry relies on for correctness:
an atomic insert that refuses a second record for the same
``(card.name, card.version)``, and a consistent read right after it.
Every call is a single self-contained request; no store call spans
several records in a transaction.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass

from acr.registry.models import AgentStatus, IdentityKey, StoredAgentRecord
from acr.registry.pagination import Page


class DuplicateIdentity(Exception):
    """Raised by ``RecordStore.insert`` when the identity key is taken."""

    def __init__(self, key: IdentityKey):
        self.key = key
        super().__init__(f"A record for {key} already exists")


@dataclass(frozen=True)
class RecordQuery:
    """Filters for ``RecordStore.query``; ``None`` means no filter."""

    name: str | None = None
    skill_id: str | None = None
    owner: str | None = None
    status: AgentStatus | None = None


class RecordStore(ABC):
    """Persistence for StoredAgentRecords.

    ``query`` results are always ordered by card name ascending, then by
    version precedence descending, and the page window is applied after
    filtering and sorting.
    """

    @abstractmethod
    def ensure_indexes(self) -> None:
        """Create the unique identity index and the skill index."""

    @abstractmethod
    def insert(self, record: StoredAgentRecord) -> StoredAgentRecord:
        """Insert a new record and return it with its store id.

        Raises:
            DuplicateIdentity: a record with the same identity key exists.
        """

    @abstractmethod
    def find_one(self, name: str, version: str) -> StoredAgentRecord | None:
        """Return the record for ``name@version``, or None."""

    @abstractmethod
    def query(self, query: RecordQuery, page: Page) -> list[StoredAgentRecord]:
        """Return one page of matching records."""

    def close(self) -> None:
        """Release any connection held by the store."""
