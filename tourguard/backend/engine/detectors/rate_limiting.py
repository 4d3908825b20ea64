"""
engine/detectors/rate_limiting.py

Repeated rate-limit violations from one IP.
"""

from __future__ import annotations

from collections.abc import Sequence

from ...security.event_types import SecurityEventTypes
from ...security.models import SecurityLogEntry, Severity
from ..models import DetectionResult, DetectorThresholds
from .base import BaseDetector


class RateLimitingDetector(BaseDetector):
    name = "rate_limiting"
    enabled = True

    def detect(
        self,
        entries: Sequence[SecurityLogEntry],
        thresholds: DetectorThresholds,
        now: int,
    ) -> list[DetectionResult]:
        by_ip: dict[str, list[SecurityLogEntry]] = {}
        for entry in entries:
            if entry.event_type != SecurityEventTypes.RATE_LIMIT_EXCEEDED:
                continue
            if entry.metadata.ip:
                by_ip.setdefault(entry.metadata.ip, []).append(entry)

        return [
            DetectionResult(
                type="repeated_rate_limit_violations",
                description=f"Repeated rate limit violations from IP: {ip}",
                severity=Severity.ERROR,
                timestamp=now,
                related_events=events,
                metadata={"ip": ip, "exceededCount": len(events)},
            )
            for ip, events in by_ip.items()
            if len(events) >= thresholds.rate_limit_violations_per_ip
        ]
