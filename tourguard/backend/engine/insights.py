"""
engine/insights.py

Aggregate security insights over a window of log entries.

Single pass over the entries feeds every histogram; risk scores are then
derived from the collected counts.

Risk factors (each 0–100):
    Failed Authentication    failed logins / all logins
    Suspicious Transactions  flagged transactions / all payment activity
    Rate Limiting            10 points per rate.limit.exceeded, capped
    Access Control           15 points per access.denied, capped
    Critical Events          CRITICAL entries / all entries
"""

from __future__ import annotations

from collections import Counter
from collections.abc import Sequence
from datetime import datetime, timezone
from typing import NamedTuple

from ..security.event_types import SecurityEventTypes
from ..security.models import SecurityLogEntry, Severity
from .models import DetectorThresholds, RiskFactor, SecurityInsights, TimePatterns


class _RiskLabel(NamedTuple):
    factor: str
    flag: str


AUTH_FAILURE   = _RiskLabel("Failed Authentication", "High failed authentication rate")
TRANSACTIONS   = _RiskLabel("Suspicious Transactions", "High suspicious transaction rate")
RATE_LIMITING  = _RiskLabel("Rate Limiting", "Repeated rate limit violations")
ACCESS_CONTROL = _RiskLabel("Access Control", "Repeated access control denials")
CRITICAL_RATE  = _RiskLabel("Critical Events", "High critical event rate")

_POINTS_PER_RATE_LIMIT = 10
_POINTS_PER_ACCESS_DENIED = 15


def _ratio(part: int, whole: int) -> float:
    return 0.0 if whole == 0 else part / whole * 100


def _top(counts: Counter, key: str, limit: int) -> list[dict]:
    return [{key: k, "count": c} for k, c in counts.most_common(limit)]


def _peak(distribution: list[int]) -> int | None:
    if not any(distribution):
        return None
    return distribution.index(max(distribution))


def compute_insights(
    entries: Sequence[SecurityLogEntry],
    thresholds: DetectorThresholds,
    window_start: int = 0,
    window_end: int = 0,
) -> SecurityInsights:
    insights = SecurityInsights(window_start=window_start, window_end=window_end)
    patterns = insights.time_patterns

    event_types: Counter = Counter()
    ips: Counter = Counter()
    users: Counter = Counter()
    payment_activity = 0

    for entry in entries:
        insights.total_events += 1
        insights.severity_distribution[entry.severity.value] += 1
        event_types[entry.event_type] += 1
        if entry.metadata.ip:
            ips[entry.metadata.ip] += 1
        if entry.metadata.user_id:
            users[entry.metadata.user_id] += 1
        if entry.event_type.startswith("payment."):
            payment_activity += 1

        when = datetime.fromtimestamp(entry.timestamp / 1000, tz=timezone.utc)
        patterns.hourly_distribution[when.hour] += 1
        patterns.day_of_week_distribution[(when.weekday() + 1) % 7] += 1

    patterns.peak_hour = _peak(patterns.hourly_distribution)
    patterns.peak_day = _peak(patterns.day_of_week_distribution)

    insights.top_event_types = _top(event_types, "type", thresholds.top_n)
    insights.top_ips = _top(ips, "ip", thresholds.top_n)
    insights.top_users = _top(users, "userId", thresholds.top_n)

    login_failures = event_types[SecurityEventTypes.LOGIN_FAILURE]
    logins = login_failures + event_types[SecurityEventTypes.LOGIN_SUCCESS]
    suspicious = event_types[SecurityEventTypes.SUSPICIOUS_TRANSACTION]
    critical = insights.severity_distribution[Severity.CRITICAL.value]

    scored = [
        (AUTH_FAILURE, _ratio(login_failures, logins)),
        (TRANSACTIONS, _ratio(suspicious, suspicious + payment_activity)),
        (RATE_LIMITING, min(
            event_types[SecurityEventTypes.RATE_LIMIT_EXCEEDED] * _POINTS_PER_RATE_LIMIT, 100
        )),
        (ACCESS_CONTROL, min(
            event_types[SecurityEventTypes.ACCESS_DENIED] * _POINTS_PER_ACCESS_DENIED, 100
        )),
        (CRITICAL_RATE, _ratio(critical, insights.total_events)),
    ]
    scored.sort(key=lambda pair: pair[1], reverse=True)

    insights.risk_factors = [RiskFactor(label.factor, float(score)) for label, score in scored]
    insights.risk_flags = [
        label.flag for label, score in scored
        if score > 0 and score >= thresholds.risk_flag_score
    ]
    return insights
