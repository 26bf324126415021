"""Executable contract for AgentCards.

This package provides the gates a card passes before it is published:
1. Schema — JSON Schema for structural validation
2. Transport policy — cross-field checks the schema cannot express
3. Fingerprint — canonical content identity of an accepted card
"""

PROTOCOL_VERSION = "a2a/1.0"
