"""
tests/test_models.py

Tests for security/models.py — severity ordering, metadata access and the
JSON wire format.
"""

from __future__ import annotations

import json

import pytest
from pydantic import ValidationError

from tourguard.backend.security.models import EntryMetadata, SecurityLogEntry, Severity


def make_entry(**overrides) -> SecurityLogEntry:
    fields = dict(
        timestamp=1_700_000_000_000,
        severity=Severity.WARNING,
        event_type="auth.login.failure",
        message="bad password",
        metadata=EntryMetadata(user_id="u1", ip="10.0.0.1", tags=["auth"]),
        entry_id="abc123",
    )
    fields.update(overrides)
    return SecurityLogEntry(**fields)


class TestSeverity:

    def test_rank_is_escalating(self):
        ranks = [s.rank for s in (Severity.INFO, Severity.WARNING, Severity.ERROR, Severity.CRITICAL)]
        assert ranks == sorted(ranks)
        assert len(set(ranks)) == 4

    def test_value_is_upper_case_string(self):
        assert Severity("CRITICAL") is Severity.CRITICAL
        assert Severity.INFO.value == "INFO"


class TestEntryMetadata:

    def test_camel_case_input(self):
        md = EntryMetadata.model_validate({"userId": "u1", "userAgent": "curl"})
        assert md.user_id == "u1"
        assert md.user_agent == "curl"

    def test_extra_keys_are_kept(self):
        md = EntryMetadata.model_validate({"ip": "1.2.3.4", "amount": 500})
        assert md.extra == {"amount": 500}
        assert md.get("amount") == 500

    def test_get_known_field_by_either_name(self):
        md = EntryMetadata(user_id="u9")
        assert md.get("userId") == "u9"
        assert md.get("user_id") == "u9"

    def test_get_default_for_missing(self):
        md = EntryMetadata()
        assert md.get("ip", "none") == "none"
        assert md.get("amount", 0) == 0

    def test_wire_omits_unset_fields(self):
        md = EntryMetadata(ip="1.2.3.4")
        assert md.to_wire() == {"ip": "1.2.3.4"}

    def test_is_frozen(self):
        md = EntryMetadata(ip="1.2.3.4")
        with pytest.raises(ValidationError):
            md.ip = "5.6.7.8"


class TestWireFormat:

    def test_keys_are_camel_case(self):
        wire = json.loads(make_entry().to_json())
        assert set(wire) == {"timestamp", "severity", "eventType", "message", "metadata", "entryId"}
        assert wire["metadata"] == {"userId": "u1", "ip": "10.0.0.1", "tags": ["auth"]}

    def test_round_trip_preserves_every_field(self):
        entry = make_entry(
            metadata=EntryMetadata.model_validate(
                {"userId": "u1", "ip": "10.0.0.1", "correlationId": "req-1",
                 "tags": ["a", "b"], "amount": 25000, "nested": {"k": [1, 2]}}
            )
        )
        restored = SecurityLogEntry.from_json(entry.to_json())
        assert restored == entry
        assert restored.to_wire() == entry.to_wire()

    def test_parses_entries_without_entry_id(self):
        raw = json.dumps({
            "timestamp": 1, "severity": "INFO", "eventType": "auth.logout",
            "message": "bye", "metadata": {},
        })
        entry = SecurityLogEntry.from_json(raw)
        assert entry.entry_id is None
        assert "entryId" not in entry.to_wire()

    def test_rejects_unknown_severity(self):
        raw = json.dumps({
            "timestamp": 1, "severity": "LOUD", "eventType": "x",
            "message": "", "metadata": {},
        })
        with pytest.raises(ValidationError):
            SecurityLogEntry.from_json(raw)
