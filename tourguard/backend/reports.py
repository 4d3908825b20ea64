"""
backend/reports.py

Operational security reports built on the logger + analyzer.

daily_security_check   — last-24h critical events, detector findings,
                         insights and recommended follow-up actions
weekly_security_report — 7-day summary written to a dated JSON file
"""

from __future__ import annotations

import asyncio
import json
import logging
import os
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any

from .engine.analyzer import DAY_MS, LogAnalyzer
from .engine.models import DetectionResult, SecurityInsights
from .security.logger import SecurityLogger
from .security.models import SecurityLogEntry

logger = logging.getLogger(__name__)

DAILY_CRITICAL_LIMIT = 50
WEEKLY_CRITICAL_LIMIT = 1000


def _iso(ts_ms: int) -> str:
    return datetime.fromtimestamp(ts_ms / 1000, tz=timezone.utc).isoformat()


# ---------------------------------------------------------------------------
# Daily check
# ---------------------------------------------------------------------------

@dataclass
class DailyCheckReport:
    generated_at: int
    critical_events: list[SecurityLogEntry] = field(default_factory=list)
    rate_limit_findings: list[DetectionResult] = field(default_factory=list)
    payment_findings: list[DetectionResult] = field(default_factory=list)
    login_findings: list[DetectionResult] = field(default_factory=list)
    insights: SecurityInsights = field(default_factory=SecurityInsights)

    @property
    def total_issues(self) -> int:
        return (
            len(self.critical_events)
            + len(self.rate_limit_findings)
            + len(self.payment_findings)
            + len(self.login_findings)
        )

    @property
    def recommended_actions(self) -> list[str]:
        actions: list[str] = []
        if self.critical_events:
            actions.append(
                f"Investigate {len(self.critical_events)} critical events immediately"
            )
        if self.rate_limit_findings:
            actions.append("Review and potentially block IPs with rate limit violations")
        if self.payment_findings:
            actions.append("Review suspicious payment patterns for fraud")
        if self.login_findings:
            actions.append("Consider blocking IPs with excessive login failures")
        return actions

    def as_dict(self) -> dict[str, Any]:
        return {
            "generatedAt": _iso(self.generated_at),
            "totalIssues": self.total_issues,
            "criticalEvents": [e.to_wire() for e in self.critical_events],
            "rateLimits": [r.as_dict() for r in self.rate_limit_findings],
            "payments": [r.as_dict() for r in self.payment_findings],
            "logins": [r.as_dict() for r in self.login_findings],
            "insights": self.insights.as_dict(),
            "recommendedActions": self.recommended_actions,
        }

    def render_text(self) -> str:
        lines = [f"Daily security check — {_iso(self.generated_at)}", ""]

        lines.append(f"Critical events: {len(self.critical_events)}")
        for e in self.critical_events[:10]:
            lines.append(f"  [{_iso(e.timestamp)}] {e.event_type}: {e.message}")
        if len(self.critical_events) > 10:
            lines.append(f"  ... and {len(self.critical_events) - 10} more events")

        for title, findings in (
            ("Rate limit violations", self.rate_limit_findings),
            ("Suspicious payment patterns", self.payment_findings),
            ("Suspicious login patterns", self.login_findings),
        ):
            lines.append(f"{title}: {len(findings)}")
            for r in findings:
                lines.append(f"  {r.description} {r.metadata}")

        lines.append(f"Total events: {self.insights.total_events}")
        lines.append(f"Severity distribution: {self.insights.severity_distribution}")
        for rf in self.insights.risk_factors:
            lines.append(f"  {rf.factor}: {rf.score:.1f}%")

        lines.append("")
        if self.total_issues == 0:
            lines.append("All systems appear normal — no immediate action required")
        else:
            lines.append(f"Found {self.total_issues} security issues requiring attention")
            lines.extend(f"  • {a}" for a in self.recommended_actions)
        return "\n".join(lines)


async def daily_security_check(
    security_logger: SecurityLogger,
    analyzer: LogAnalyzer,
    window_ms: int = DAY_MS,
) -> DailyCheckReport:
    now = analyzer.now()
    critical = await security_logger.get_critical_events(DAILY_CRITICAL_LIMIT)
    report = DailyCheckReport(
        generated_at=now,
        critical_events=[e for e in critical if e.timestamp >= now - window_ms],
        rate_limit_findings=await analyzer.analyze_rate_limiting(window_ms),
        payment_findings=await analyzer.analyze_payment_patterns(window_ms),
        login_findings=await analyzer.analyze_login_attempts(window_ms),
        insights=await analyzer.get_security_insights(window_ms),
    )
    logger.info("Daily security check complete — %d issue(s)", report.total_issues)
    return report


# ---------------------------------------------------------------------------
# Weekly report
# ---------------------------------------------------------------------------

@dataclass
class WeeklyReport:
    period_start: int
    period_end: int
    insights: SecurityInsights
    critical_events: list[SecurityLogEntry] = field(default_factory=list)
    login_findings: list[DetectionResult] = field(default_factory=list)
    payment_findings: list[DetectionResult] = field(default_factory=list)
    rate_limit_findings: list[DetectionResult] = field(default_factory=list)

    @property
    def summary(self) -> dict[str, int]:
        return {
            "totalEvents": self.insights.total_events,
            "criticalEvents": len(self.critical_events),
            "suspiciousLogins": len(self.login_findings),
            "suspiciousPayments": len(self.payment_findings),
            "rateLimitViolations": len(self.rate_limit_findings),
        }

    @property
    def filename(self) -> str:
        day = datetime.fromtimestamp(self.period_end / 1000, tz=timezone.utc).date()
        return f"security-weekly-{day.isoformat()}.json"

    def as_dict(self) -> dict[str, Any]:
        return {
            "generatedAt": _iso(self.period_end),
            "period": {"start": _iso(self.period_start), "end": _iso(self.period_end)},
            "summary": self.summary,
            "insights": self.insights.as_dict(),
            "criticalEvents": [e.to_wire() for e in self.critical_events],
            "analysis": {
                "logins": [r.as_dict() for r in self.login_findings],
                "payments": [r.as_dict() for r in self.payment_findings],
                "rateLimits": [r.as_dict() for r in self.rate_limit_findings],
            },
        }


async def weekly_security_report(
    security_logger: SecurityLogger,
    analyzer: LogAnalyzer,
) -> WeeklyReport:
    now = analyzer.now()
    week_ms = 7 * DAY_MS
    week_ago = now - week_ms

    critical, insights, logins, payments, rate_limits = await asyncio.gather(
        security_logger.get_critical_events(WEEKLY_CRITICAL_LIMIT),
        analyzer.get_security_insights(week_ms),
        analyzer.analyze_login_attempts(week_ms),
        analyzer.analyze_payment_patterns(week_ms),
        analyzer.analyze_rate_limiting(week_ms),
    )
    return WeeklyReport(
        period_start=week_ago,
        period_end=now,
        insights=insights,
        critical_events=[e for e in critical if e.timestamp >= week_ago],
        login_findings=logins,
        payment_findings=payments,
        rate_limit_findings=rate_limits,
    )


def write_report(report: WeeklyReport, directory: str = "reports") -> str:
    """Save *report* as JSON under *directory*; returns the file path."""
    os.makedirs(directory, exist_ok=True)
    path = os.path.join(directory, report.filename)
    with open(path, "w", encoding="utf-8") as fh:
        json.dump(report.as_dict(), fh, indent=2)
    logger.info("Weekly security report written — path=%r", path)
    return path
