"""
engine/detectors/login_attempts.py

Excessive failed-login detection.

Two groupings over auth.login.failure entries:
    per IP   — one address hammering any number of accounts
    per user — one account attacked from several addresses
               (credential stuffing spread across IPs)

A user only fires when the failures come from at least
login_distinct_ips_per_user different IPs, so a single IP retrying one
account is left to the per-IP grouping.
"""

from __future__ import annotations

from collections.abc import Sequence

from ...security.event_types import SecurityEventTypes
from ...security.models import SecurityLogEntry, Severity
from ..models import DetectionResult, DetectorThresholds
from .base import BaseDetector


class LoginAttemptsDetector(BaseDetector):
    name = "login_attempts"
    enabled = True

    def detect(
        self,
        entries: Sequence[SecurityLogEntry],
        thresholds: DetectorThresholds,
        now: int,
    ) -> list[DetectionResult]:
        by_ip: dict[str, list[SecurityLogEntry]] = {}
        by_user: dict[str, list[SecurityLogEntry]] = {}

        for entry in entries:
            if entry.event_type != SecurityEventTypes.LOGIN_FAILURE:
                continue
            ip = entry.metadata.ip
            user_id = entry.metadata.user_id
            if ip:
                by_ip.setdefault(ip, []).append(entry)
            if user_id:
                by_user.setdefault(user_id, []).append(entry)

        results: list[DetectionResult] = []

        for ip, attempts in by_ip.items():
            if len(attempts) < thresholds.login_failures_per_ip:
                continue
            results.append(DetectionResult(
                type="excessive_login_attempts_ip",
                description=f"Multiple failed login attempts from IP: {ip}",
                severity=Severity.WARNING,
                timestamp=now,
                related_events=attempts,
                metadata={"ip": ip, "attemptCount": len(attempts)},
            ))

        for user_id, attempts in by_user.items():
            if len(attempts) < thresholds.login_failures_per_user:
                continue
            distinct_ips = {a.metadata.ip for a in attempts if a.metadata.ip}
            if len(distinct_ips) < thresholds.login_distinct_ips_per_user:
                continue
            results.append(DetectionResult(
                type="excessive_login_attempts_user",
                description=f"Multiple failed login attempts for user: {user_id}",
                severity=Severity.WARNING,
                timestamp=now,
                related_events=attempts,
                metadata={
                    "userId": user_id,
                    "attemptCount": len(attempts),
                    "distinctIps": len(distinct_ips),
                },
            ))

        return results
