"""Registry data models — stored records, identity keys and status."""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Any, NamedTuple

from acr.spec.schema import SEMVER_PATTERN

_SEMVER = re.compile(SEMVER_PATTERN)


class AgentStatus(Enum):
    """Lifecycle status of a stored record."""

    DRAFT = "draft"
    PUBLISHED = "published"
    DEPRECATED = "deprecated"


class IdentityKey(NamedTuple):
    """The (name, version) pair that identifies a record."""

    name: str
    version: str

    def __str__(self) -> str:
        return f"{self.name}@{self.version}"

    @classmethod
    def of(cls, card: dict) -> IdentityKey:
        return cls(name=card["name"], version=card["version"])


def version_sort_key(version: str) -> str:
    """Return a string whose lexical order follows semantic-version precedence.

    ``1.10.0`` sorts above ``1.9.0`` and a release sorts above its
    pre-releases. Build metadata is ignored. Strings that are not semantic
    versions are returned unchanged.
    """
    match = _SEMVER.match(version)
    if not match:
        return version

    major, minor, patch, prerelease, _build = match.groups()
    core = ".".join(_numeric_key(part) for part in (major, minor, patch))
    if prerelease is None:
        return core + "~"  # "~" sorts after "-"

    # "!" separates identifiers and sorts below every identifier character;
    # numeric identifiers ("#") sort below alphanumeric ones ("$").
    identifiers = [
        "#" + _numeric_key(part) if part.isdigit() else "$" + part
        for part in prerelease.split(".")
    ]
    return core + "-" + "!".join(identifiers)


def _numeric_key(digits: str) -> str:
    """Length-prefixed digits, so that any two numbers compare numerically."""
    digits = str(int(digits))
    return f"{len(digits):03d}{digits}"


def utc_now() -> datetime:
    """Current UTC time truncated to milliseconds, the precision stores keep."""
    now = datetime.now(timezone.utc)
    return now.replace(microsecond=now.microsecond // 1000 * 1000)


@dataclass
class StoredAgentRecord:
    """A published AgentCard together with its registry metadata.

    ``card`` and ``fingerprint`` never change once the record exists.
    """

    card: dict
    owner: str
    published_at: datetime
    status: AgentStatus = AgentStatus.PUBLISHED
    fingerprint: str = ""
    id: str = ""  # Assigned by the store
    # True only on the record returned by the publish that inserted it; never persisted.
    created: bool = field(default=False, compare=False)

    @property
    def name(self) -> str:
        return self.card["name"]

    @property
    def version(self) -> str:
        return self.card["version"]

    @property
    def key(self) -> IdentityKey:
        return IdentityKey.of(self.card)

    @property
    def qualified_id(self) -> str:
        return str(self.key)

    @property
    def skill_ids(self) -> list[str]:
        skills = self.card.get("skills") or []
        return [s["id"] for s in skills if isinstance(s, dict) and isinstance(s.get("id"), str)]

    def to_document(self) -> dict[str, Any]:
        """Persisted shape of the record (the store adds its own id)."""
        return {
            "card": self.card,
            "owner": self.owner,
            "publishedAt": self.published_at,
            "status": self.status.value,
            "fingerprint": self.fingerprint,
            "versionKey": version_sort_key(self.version),
        }

    @classmethod
    def from_document(cls, doc: dict[str, Any]) -> StoredAgentRecord:
        published_at = doc["publishedAt"]
        if isinstance(published_at, str):
            published_at = datetime.fromisoformat(published_at)
        if published_at.tzinfo is None:
            published_at = published_at.replace(tzinfo=timezone.utc)
        return cls(
            card=doc["card"],
            owner=doc["owner"],
            published_at=published_at,
            status=AgentStatus(doc.get("status", AgentStatus.PUBLISHED.value)),
            fingerprint=doc["fingerprint"],
            id=str(doc.get("_id", "")),
        )

    def to_dict(self) -> dict[str, Any]:
        """JSON-friendly view for output."""
        return {
            "id": self.id,
            "card": self.card,
            "owner": self.owner,
            "publishedAt": self.published_at.isoformat(),
            "status": self.status.value,
            "fingerprint": self.fingerprint,
        }
