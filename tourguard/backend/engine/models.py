"""
engine/models.py

Data models for the log analyzer. Nothing here is persisted; every object
is rebuilt from the current window on each analysis call.

DetectorThresholds — tunable trigger levels for every detector
DetectionResult    — one finding emitted by a detector
RiskFactor         — named 0–100 risk score
TimePatterns       — hour-of-day / day-of-week histograms
SecurityInsights   — aggregate report over a window
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any

from ..security.models import SecurityLogEntry, Severity

if TYPE_CHECKING:
    from ..config import Settings


# ---------------------------------------------------------------------------
# Thresholds
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class DetectorThresholds:
    login_failures_per_ip: int = 5
    login_failures_per_user: int = 3
    login_distinct_ips_per_user: int = 2
    payments_per_user: int = 3
    suspicious_transactions_min: int = 2
    rate_limit_violations_per_ip: int = 3
    top_n: int = 10
    risk_flag_score: float = 50.0

    @classmethod
    def from_settings(cls, settings: "Settings") -> "DetectorThresholds":
        return cls(
            login_failures_per_ip=settings.LOGIN_FAILURES_PER_IP,
            login_failures_per_user=settings.LOGIN_FAILURES_PER_USER,
            login_distinct_ips_per_user=settings.LOGIN_DISTINCT_IPS_PER_USER,
            payments_per_user=settings.PAYMENTS_PER_USER,
            suspicious_transactions_min=settings.SUSPICIOUS_TRANSACTIONS_MIN,
            rate_limit_violations_per_ip=settings.RATE_LIMIT_VIOLATIONS_PER_IP,
            top_n=settings.INSIGHTS_TOP_N,
            risk_flag_score=settings.RISK_FLAG_SCORE,
        )


# ---------------------------------------------------------------------------
# DetectionResult
# ---------------------------------------------------------------------------

@dataclass
class DetectionResult:
    """
    A single finding.

    metadata holds the detector-specific aggregates (counts, totals, the
    offending ip/userId) and must stay JSON-serializable.
    """

    type: str
    metadata: dict[str, Any]
    description: str = ""
    severity: Severity = Severity.WARNING
    timestamp: int = 0
    related_events: list[SecurityLogEntry] = field(default_factory=list)

    def as_dict(self) -> dict[str, Any]:
        return {
            "type": self.type,
            "description": self.description,
            "severity": self.severity.value,
            "timestamp": self.timestamp,
            "metadata": dict(self.metadata),
            "relatedEvents": [e.to_wire() for e in self.related_events],
        }

    def __repr__(self) -> str:
        return f"DetectionResult({self.type!r} {self.severity.value} {self.metadata!r})"


# ---------------------------------------------------------------------------
# Insights
# ---------------------------------------------------------------------------

@dataclass(slots=True)
class RiskFactor:
    factor: str
    score: float
    """0.0 … 100.0"""

    def as_dict(self) -> dict[str, Any]:
        return {"factor": self.factor, "score": round(self.score, 2)}


@dataclass
class TimePatterns:
    hourly_distribution: list[int] = field(default_factory=lambda: [0] * 24)
    """UTC hour 0–23 → count."""

    day_of_week_distribution: list[int] = field(default_factory=lambda: [0] * 7)
    """UTC weekday, Sunday = 0 … Saturday = 6 → count."""

    peak_hour: int | None = None
    peak_day: int | None = None

    def as_dict(self) -> dict[str, Any]:
        return {
            "hourlyDistribution": list(self.hourly_distribution),
            "dayOfWeekDistribution": list(self.day_of_week_distribution),
            "peakHour": self.peak_hour,
            "peakDay": self.peak_day,
        }


@dataclass
class SecurityInsights:
    total_events: int = 0
    severity_distribution: dict[str, int] = field(
        default_factory=lambda: {s.value: 0 for s in Severity}
    )
    top_event_types: list[dict[str, Any]] = field(default_factory=list)
    """[{"type": ..., "count": ...}] by count, descending."""

    top_ips: list[dict[str, Any]] = field(default_factory=list)
    top_users: list[dict[str, Any]] = field(default_factory=list)
    risk_factors: list[RiskFactor] = field(default_factory=list)
    risk_flags: list[str] = field(default_factory=list)
    """Human-readable warnings for factors at or above the flag score."""

    time_patterns: TimePatterns = field(default_factory=TimePatterns)
    window_start: int = 0
    window_end: int = 0

    def as_dict(self) -> dict[str, Any]:
        return {
            "totalEvents": self.total_events,
            "severityDistribution": dict(self.severity_distribution),
            "topEventTypes": list(self.top_event_types),
            "topIPs": list(self.top_ips),
            "topUsers": list(self.top_users),
            "riskFactors": [r.as_dict() for r in self.risk_factors],
            "riskFlags": list(self.risk_flags),
            "timeBasedPatterns": self.time_patterns.as_dict(),
            "windowStart": self.window_start,
            "windowEnd": self.window_end,
        }
