"""
security/models.py

Wire-level models for the security event log.

Severity          — 4-level escalation enum
EntryMetadata     — well-known contextual fields + open side-map of extras
SecurityLogEntry  — the atomic, immutable log record

Wire format (one JSON object per sorted-set member):

    {"timestamp": 1700000000000, "severity": "WARNING",
     "eventType": "auth.login.failure", "message": "...",
     "metadata": {"userId": "u1", "ip": "10.0.0.1", "tags": [...], ...},
     "entryId": "3f2c..."}
"""

from __future__ import annotations

import json
from enum import Enum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


# ---------------------------------------------------------------------------
# Severity
# ---------------------------------------------------------------------------

class Severity(str, Enum):
    INFO     = "INFO"
    WARNING  = "WARNING"
    ERROR    = "ERROR"
    CRITICAL = "CRITICAL"

    @property
    def rank(self) -> int:
        """Escalation order: INFO=0 < WARNING < ERROR < CRITICAL=3."""
        return _SEVERITY_RANK[self]


_SEVERITY_RANK: dict[Severity, int] = {
    Severity.INFO: 0,
    Severity.WARNING: 1,
    Severity.ERROR: 2,
    Severity.CRITICAL: 3,
}


# ---------------------------------------------------------------------------
# Metadata
# ---------------------------------------------------------------------------

class EntryMetadata(BaseModel):
    """
    Contextual fields attached to a log entry.

    Known keys are typed attributes; anything else lands in model_extra and
    is reachable through get(). Only keys that were actually supplied are
    written back on the wire, so a read reproduces exactly what was written.
    Numeric ids in the known string fields are stored as strings, since other
    writers sharing the log may not quote them.
    """

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        extra="allow",
        coerce_numbers_to_str=True,
        frozen=True,
    )

    user_id: str | None = None
    ip: str | None = None
    user_agent: str | None = None
    correlation_id: str | None = None
    tags: list[str] | None = None

    @property
    def extra(self) -> dict[str, Any]:
        return dict(self.model_extra or {})

    def get(self, key: str, default: Any = None) -> Any:
        """Look up a known field (snake or camel name) or an extra key."""
        field = _KNOWN_BY_ALIAS.get(key, key)
        if field in type(self).model_fields:
            value = getattr(self, field)
            return default if value is None else value
        return (self.model_extra or {}).get(key, default)

    def to_wire(self) -> dict[str, Any]:
        return self.model_dump(by_alias=True, exclude_unset=True)


_KNOWN_BY_ALIAS: dict[str, str] = {
    "userId": "user_id",
    "userAgent": "user_agent",
    "correlationId": "correlation_id",
}


# ---------------------------------------------------------------------------
# Log entry
# ---------------------------------------------------------------------------

class SecurityLogEntry(BaseModel):
    """Immutable security log record. The timestamp (ms) is also the sort key."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        frozen=True,
    )

    timestamp: int
    severity: Severity
    event_type: str
    message: str
    metadata: EntryMetadata = Field(default_factory=EntryMetadata)
    entry_id: str | None = None
    """Random id so byte-identical entries stay distinct in a set-backed store."""

    def to_wire(self) -> dict[str, Any]:
        wire: dict[str, Any] = {
            "timestamp": self.timestamp,
            "severity": self.severity.value,
            "eventType": self.event_type,
            "message": self.message,
            "metadata": self.metadata.to_wire(),
        }
        if self.entry_id is not None:
            wire["entryId"] = self.entry_id
        return wire

    def to_json(self) -> str:
        return json.dumps(self.to_wire(), separators=(",", ":"), default=str)

    @classmethod
    def from_json(cls, raw: str | bytes) -> "SecurityLogEntry":
        return cls.model_validate_json(raw)

    def __repr__(self) -> str:
        return (
            f"SecurityLogEntry({self.event_type!r} {self.severity.value} "
            f"ts={self.timestamp})"
        )
