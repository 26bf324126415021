"""Error kinds raised by the registry core.

Callers map these to their own responses (exit codes, HTTP statuses);
the core only distinguishes the kind of failure.
"""

from __future__ import annotations

from enum import Enum
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from acr.registry.models import IdentityKey
    from acr.spec.schema_validator import ValidationError


class ErrorKind(Enum):
    MALFORMED = "malformed"  # candidate is not a JSON object
    STRUCTURAL = "structural"  # schema contract violations
    POLICY = "policy"  # transport/URL scheme mismatch
    IMMUTABLE_CONFLICT = "immutable_conflict"  # same name@version, different content


class RegistryError(Exception):
    """Base class for failures reported by the registry core."""

    kind: ErrorKind


class CardRejectedError(RegistryError):
    """A candidate card failed validation; nothing was persisted."""

    def __init__(self, kind: ErrorKind, errors: list[ValidationError]):
        self.kind = kind
        self.errors = list(errors)
        first = self.errors[0].message if self.errors else "AgentCard payload is invalid."
        super().__init__(first)

    def to_dict(self) -> dict:
        return {
            "kind": self.kind.value,
            "message": str(self),
            "details": [e.to_dict() for e in self.errors],
        }


class ImmutableConflictError(RegistryError):
    """An identity key is already bound to different content.

    Not retryable: the stored card for this ``name@version`` never changes.
    """

    kind = ErrorKind.IMMUTABLE_CONFLICT

    def __init__(
        self,
        key: IdentityKey,
        existing_fingerprint: str,
        candidate_fingerprint: str,
    ):
        self.key = key
        self.existing_fingerprint = existing_fingerprint
        self.candidate_fingerprint = candidate_fingerprint
        super().__init__(
            f"AgentCard {key} already exists with different content (immutable)"
        )

    def to_dict(self) -> dict:
        return {
            "kind": self.kind.value,
            "message": str(self),
            "name": self.key.name,
            "version": self.key.version,
            "existingFingerprint": self.existing_fingerprint,
            "candidateFingerprint": self.candidate_fingerprint,
        }
