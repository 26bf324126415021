"""Shared card builders and registry fixtures."""

from __future__ import annotations

import copy

import pytest

from acr.registry.memory_store import MemoryRecordStore
from acr.registry.registry import AgentRegistry
from acr.spec import PROTOCOL_VERSION

BASE_SKILL = {
    "id": "skill.search",
    "name": "Search",
    "version": "1.0.0",
    "description": "Full-text search over the document index.",
    "inputs": {
        "type": "object",
        "properties": {"query": {"type": "string"}},
        "required": ["query"],
    },
    "outputs": {
        "type": "object",
        "properties": {"hits": {"type": "array", "items": {"type": "string"}}},
    },
    "runtime": {"type": "http", "entryPoint": "/skills/search", "timeoutMs": 5000},
    "examples": [
        {
            "name": "simple query",
            "input": {"query": "agent cards"},
            "output": {"hits": ["doc-1"]},
        }
    ],
}

BASE_CARD = {
    "protocolVersion": PROTOCOL_VERSION,
    "name": "atlas",
    "version": "1.0.0",
    "description": "Atlas answers questions over the document index.",
    "tags": ["search", "docs"],
    "maintainers": [{"name": "Search Team", "email": "search@example.com"}],
    "security": {"authentication": "api-key", "encryption": "required"},
    "preferredTransport": "https",
    "transportUrl": "https://atlas.example.com/a2a",
    "additionalInterfaces": [
        {"name": "stream", "transport": "websocket", "url": "wss://atlas.example.com/ws"}
    ],
    "skills": [BASE_SKILL],
}


def build_skill(**overrides) -> dict:
    skill = copy.deepcopy(BASE_SKILL)
    skill.update(overrides)
    return skill


def build_card(**overrides) -> dict:
    card = copy.deepcopy(BASE_CARD)
    card.update(overrides)
    return card


@pytest.fixture
def make_card():
    """Factory for a valid AgentCard; keyword arguments replace top-level fields."""
    return build_card


@pytest.fixture
def make_skill():
    """Factory for a valid AgentSkill; keyword arguments replace fields."""
    return build_skill


@pytest.fixture
def store():
    return MemoryRecordStore()


@pytest.fixture
def registry(store):
    return AgentRegistry(store)
