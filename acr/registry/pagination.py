"""Uniform limit/offset handling for every list and search operation."""

from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Any

DEFAULT_LIMIT = 20
MAX_LIMIT = 100


def _as_int(value: Any) -> int | None:
    if isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value
    if isinstance(value, float):
        return int(value) if math.isfinite(value) else None
    if isinstance(value, str):
        try:
            return int(value.strip())
        except ValueError:
            return None
    return None


def normalize_limit(limit: Any) -> int:
    """Clamp ``limit`` to [1, 100]; missing, zero or non-numeric means 20."""
    value = _as_int(limit)
    if not value:
        return DEFAULT_LIMIT
    return min(max(value, 1), MAX_LIMIT)


def normalize_offset(offset: Any) -> int:
    """Clamp ``offset`` to [0, inf); missing or non-numeric means 0."""
    value = _as_int(offset)
    if value is None or value < 0:
        return 0
    return value


@dataclass(frozen=True)
class Page:
    """A normalized page window. Build it with ``Page.of``."""

    limit: int = DEFAULT_LIMIT
    offset: int = 0

    @classmethod
    def of(cls, limit: Any = None, offset: Any = None) -> Page:
        return cls(limit=normalize_limit(limit), offset=normalize_offset(offset))

    def apply(self, items: list) -> list:
        return items[self.offset : self.offset + self.limit]
