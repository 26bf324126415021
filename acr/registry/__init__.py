"""Registry — content-addressed, immutable storage for AgentCards.

The registry provides:
- Publishing: bind a card to its name@version exactly once
- Lookup: by identity, or the latest version of a name
- Discovery: paginated listing and search by skill id
- Backends: in-memory, local JSON file, and MongoDB record stores
"""
