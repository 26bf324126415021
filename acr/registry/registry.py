"""AgentRegistry — publish, look up, list and search AgentCards.

Each ``name@version`` moves from absent to published exactly once and
its content never changes afterwards. Publishing the same content again
returns the existing record; publishing different content under a taken
key raises ``ImmutableConflictError``.
"""

from __future__ import annotations

import copy
import logging
from typing import Any

from acr.errors import CardRejectedError, ErrorKind, ImmutableConflictError
from acr.registry.models import AgentStatus, StoredAgentRecord, utc_now
from acr.registry.pagination import Page
from acr.registry.store import DuplicateIdentity, RecordQuery, RecordStore
from acr.spec.fingerprint import fingerprint
from acr.spec.schema_validator import validate_card
from acr.spec.transport_policy import check_transport_consistency

logger = logging.getLogger(__name__)


class AgentRegistry:
    """Content-addressed registry of AgentCards over a RecordStore."""

    def __init__(self, store: RecordStore):
        self.store = store

    def ensure_indexes(self) -> None:
        self.store.ensure_indexes()

    # ------------------------------------------------------------------
    # Write path
    # ------------------------------------------------------------------

    def submit(self, candidate: Any, owner: str) -> StoredAgentRecord:
        """Validate, policy-check and publish a candidate card.

        Raises:
            CardRejectedError: the candidate failed the schema or the
                transport policy; nothing was persisted.
            ImmutableConflictError: see ``publish``.
        """
        validation = validate_card(candidate)
        if not validation.ok:
            kind = ErrorKind.MALFORMED if validation.malformed else ErrorKind.STRUCTURAL
            raise CardRejectedError(kind, validation.errors)

        policy_errors = check_transport_consistency(candidate)
        if policy_errors:
            raise CardRejectedError(ErrorKind.POLICY, policy_errors)

        return self.publish(candidate, owner)

    def publish(self, card: dict, owner: str) -> StoredAgentRecord:
        """Bind ``card`` to its ``name@version`` unless it is already bound.

        The card is expected to have passed ``validate_card`` and the
        transport policy already; ``submit`` runs the whole pipeline.

        Returns:
            The new record with ``created`` set, or the existing one when
            the same content was published before.

        Raises:
            ImmutableConflictError: the key is bound to different content.
        """
        candidate_fp = fingerprint(card)
        record = StoredAgentRecord(
            card=copy.deepcopy(card),
            owner=owner,
            published_at=utc_now(),
            status=AgentStatus.PUBLISHED,
            fingerprint=candidate_fp,
        )

        try:
            stored = self.store.insert(record)
        except DuplicateIdentity:
            existing = self.store.find_one(record.name, record.version)
            if existing is None:
                raise
            if existing.fingerprint != candidate_fp:
                logger.warning(
                    "Rejected %s from %s: content differs from fingerprint %s",
                    record.key,
                    owner,
                    existing.fingerprint,
                )
                raise ImmutableConflictError(
                    key=record.key,
                    existing_fingerprint=existing.fingerprint,
                    candidate_fingerprint=candidate_fp,
                ) from None
            logger.info("Republished %s with identical content; no change", record.key)
            return existing

        stored.created = True
        logger.info("Published %s for %s (fingerprint %s)", stored.key, owner, candidate_fp)
        return stored

    # ------------------------------------------------------------------
    # Read path
    # ------------------------------------------------------------------

    def find_by_identity(self, name: str, version: str) -> StoredAgentRecord | None:
        """Return the record for ``name@version``, or None."""
        return self.store.find_one(name, version)

    def find_latest(self, name: str) -> StoredAgentRecord | None:
        """Return the highest published version of ``name``, or None."""
        records = self.store.query(RecordQuery(name=name), Page.of(limit=1))
        return records[0] if records else None

    def find_by_name(
        self, name: str, limit: Any = None, offset: Any = None
    ) -> list[StoredAgentRecord]:
        """All versions of ``name``, newest version first."""
        page = Page.of(limit, offset)
        logger.debug("find_by_name %s (limit=%d, offset=%d)", name, page.limit, page.offset)
        return self.store.query(RecordQuery(name=name), page)

    def list_all(
        self,
        limit: Any = None,
        offset: Any = None,
        owner: str | None = None,
        status: AgentStatus | str | None = None,
    ) -> list[StoredAgentRecord]:
        """Every record, by name ascending then version descending."""
        page = Page.of(limit, offset)
        query = RecordQuery(owner=owner, status=_as_status(status))
        logger.debug("list_all %s (limit=%d, offset=%d)", query, page.limit, page.offset)
        return self.store.query(query, page)

    def search_by_skill(
        self,
        skill_id: str,
        limit: Any = None,
        offset: Any = None,
        owner: str | None = None,
        status: AgentStatus | str | None = None,
    ) -> list[StoredAgentRecord]:
        """Records whose card declares a skill with id ``skill_id``, by name."""
        page = Page.of(limit, offset)
        query = RecordQuery(skill_id=skill_id, owner=owner, status=_as_status(status))
        logger.debug("search_by_skill %s (limit=%d, offset=%d)", query, page.limit, page.offset)
        return self.store.query(query, page)

    def close(self) -> None:
        self.store.close()


def _as_status(status: AgentStatus | str | None) -> AgentStatus | None:
    if status is None or isinstance(status, AgentStatus):
        return status
    return AgentStatus(status)

