"""Tests for registry data models."""

from datetime import datetime, timezone

from acr.registry.models import (
    AgentStatus,
    IdentityKey,
    StoredAgentRecord,
    utc_now,
    version_sort_key,
)


def _sorted_desc(versions: list[str]) -> list[str]:
    return sorted(versions, key=version_sort_key, reverse=True)


def test_numeric_precedence():
    assert _sorted_desc(["1.9.0", "1.10.0", "0.9.12", "10.0.0"]) == [
        "10.0.0",
        "1.10.0",
        "1.9.0",
        "0.9.12",
    ]


def test_release_outranks_prerelease():
    assert _sorted_desc(["2.0.0-rc.1", "2.0.0", "2.0.0-alpha", "2.0.0-rc.10", "1.99.0"]) == [
        "2.0.0",
        "2.0.0-rc.10",
        "2.0.0-rc.1",
        "2.0.0-alpha",
        "1.99.0",
    ]


def test_build_metadata_is_ignored():
    assert version_sort_key("1.2.3+build.7") == version_sort_key("1.2.3")


def test_non_semver_sorts_as_text():
    assert version_sort_key("latest") == "latest"


def test_identity_key():
    key = IdentityKey.of({"name": "atlas", "version": "1.2.0"})
    assert key == ("atlas", "1.2.0")
    assert str(key) == "atlas@1.2.0"


def test_utc_now_has_millisecond_precision():
    now = utc_now()
    assert now.tzinfo is timezone.utc
    assert now.microsecond % 1000 == 0


def test_record_document_roundtrip():
    published = datetime(2025, 3, 1, 12, 30, tzinfo=timezone.utc)
    record = StoredAgentRecord(
        card={"name": "atlas", "version": "1.0.0", "skills": [{"id": "skill.search"}, {}]},
        owner="team-search",
        published_at=published,
        fingerprint="ab" * 32,
    )
    doc = record.to_document()
    assert doc["status"] == "published"
    assert doc["versionKey"] == version_sort_key("1.0.0")
    assert "_id" not in doc

    doc["_id"] = "rec-1"
    restored = StoredAgentRecord.from_document(doc)
    assert restored == StoredAgentRecord(
        card=record.card,
        owner="team-search",
        published_at=published,
        status=AgentStatus.PUBLISHED,
        fingerprint="ab" * 32,
        id="rec-1",
    )
    assert restored.qualified_id == "atlas@1.0.0"
    assert restored.skill_ids == ["skill.search"]


def test_naive_timestamps_are_read_as_utc():
    doc = {
        "card": {"name": "atlas", "version": "1.0.0"},
        "owner": "o",
        "publishedAt": "2025-03-01T12:30:00",
        "fingerprint": "f",
    }
    record = StoredAgentRecord.from_document(doc)
    assert record.published_at == datetime(2025, 3, 1, 12, 30, tzinfo=timezone.utc)
    assert record.to_dict()["publishedAt"] == "2025-03-01T12:30:00+00:00"


def test_prerelease_precedence_follows_semver_rules():
    # Ordering example from the Semantic Versioning 2.0.0 text.
    ordered = [
        "1.0.0-alpha",
        "1.0.0-alpha.1",
        "1.0.0-alpha.beta",
        "1.0.0-beta",
        "1.0.0-beta.2",
        "1.0.0-beta.11",
        "1.0.0-rc.1",
        "1.0.0",
    ]
    assert sorted(reversed(ordered), key=version_sort_key) == ordered


def test_hyphenated_identifier_sorts_after_shorter_identifier():
    assert version_sort_key("1.0.0-alpha.1") < version_sort_key("1.0.0-alpha-x")
    assert version_sort_key("1.0.0-alpha") < version_sort_key("1.0.0-alpha-x")


def test_numeric_identifiers_sort_below_alphanumeric():
    assert version_sort_key("1.0.0-999") < version_sort_key("1.0.0-0a")


def test_long_numeric_fields():
    assert version_sort_key("9999999999.0.0") < version_sort_key("10000000000.0.0")
    assert version_sort_key("1.0.0-rc.9999999999") < version_sort_key("1.0.0-rc.10000000000")
    assert _sorted_desc(["2.0.0", "123456789012.0.0"]) == ["123456789012.0.0", "2.0.0"]
