"""
api/serializers.py

Response models for the read-only security API. Field names follow the
log's camelCase wire format so dashboards can consume entries unchanged.
"""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel

from ..engine.models import DetectionResult, DetectorThresholds
from ..security.models import SecurityLogEntry


class LogEntryResponse(BaseModel):
    timestamp: int
    severity: str
    eventType: str
    message: str
    metadata: dict[str, Any]
    entryId: str | None = None

    @classmethod
    def from_entry(cls, entry: SecurityLogEntry) -> "LogEntryResponse":
        return cls(**entry.to_wire())


class DetectionResultResponse(BaseModel):
    type: str
    description: str
    severity: str
    timestamp: int
    metadata: dict[str, Any]
    relatedEventCount: int

    @classmethod
    def from_result(cls, result: DetectionResult) -> "DetectionResultResponse":
        return cls(
            type=result.type,
            description=result.description,
            severity=result.severity.value,
            timestamp=result.timestamp,
            metadata=result.metadata,
            relatedEventCount=len(result.related_events),
        )


class DetectionsResponse(BaseModel):
    window_hours: int
    total_findings: int
    detectors: dict[str, list[DetectionResultResponse]]


class ConfigResponse(BaseModel):
    environment: str
    retention_days: int
    critical_events_max: int
    login_failures_per_ip: int
    login_failures_per_user: int
    login_distinct_ips_per_user: int
    payments_per_user: int
    suspicious_transactions_min: int
    rate_limit_violations_per_ip: int

    @classmethod
    def build(
        cls, environment: str, retention_days: int, critical_events_max: int,
        thresholds: DetectorThresholds,
    ) -> "ConfigResponse":
        return cls(
            environment=environment,
            retention_days=retention_days,
            critical_events_max=critical_events_max,
            login_failures_per_ip=thresholds.login_failures_per_ip,
            login_failures_per_user=thresholds.login_failures_per_user,
            login_distinct_ips_per_user=thresholds.login_distinct_ips_per_user,
            payments_per_user=thresholds.payments_per_user,
            suspicious_transactions_min=thresholds.suspicious_transactions_min,
            rate_limit_violations_per_ip=thresholds.rate_limit_violations_per_ip,
        )
