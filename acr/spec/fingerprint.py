"""Canonical form and content fingerprint of an AgentCard.

Two cards that are structurally equal always get the same fingerprint, no
matter in which order their keys were written. List order is significant.
"""

from __future__ import annotations

import hashlib
import json
from collections.abc import Mapping
from typing import Any

FINGERPRINT_LENGTH = 64  # hex digits of a SHA-256 digest


def canonicalize(document: Any) -> Any:
    """Rewrite a document tree with every mapping's keys in sorted order.

    Lists keep their order and are canonicalized element-wise; scalars are
    returned unchanged.
    """
    if isinstance(document, Mapping):
        return {key: canonicalize(document[key]) for key in sorted(document)}
    if isinstance(document, (list, tuple)):
        return [canonicalize(item) for item in document]
    return document


def canonical_bytes(document: Any) -> bytes:
    """Serialize the canonical form as compact UTF-8 JSON."""
    text = json.dumps(
        canonicalize(document),
        ensure_ascii=False,
        separators=(",", ":"),
        allow_nan=False,
    )
    return text.encode("utf-8")


def fingerprint(card: Any) -> str:
    """Return the SHA-256 hex digest of a card's canonical bytes."""
    return hashlib.sha256(canonical_bytes(card)).hexdigest()
