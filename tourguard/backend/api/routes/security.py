"""
api/routes/security.py

GET /api/security/insights                   — aggregate insights over a window
GET /api/security/detections                 — every detector over a window
GET /api/security/critical                   — newest critical events
GET /api/security/logs                       — raw entries in [start, end] (ms)
GET /api/security/logs/severity/{severity}   — first N entries of one severity
"""

from __future__ import annotations

from typing import Annotated, Any

from fastapi import APIRouter, Depends, HTTPException, Query, Request

from ...engine.analyzer import HOUR_MS, LogAnalyzer
from ...security.logger import SecurityLogger
from ...security.models import Severity
from ..serializers import DetectionResultResponse, DetectionsResponse, LogEntryResponse

router = APIRouter(prefix="/security", tags=["security"])

_MAX_WINDOW_HOURS = 24 * 90


def _get_analyzer(request: Request) -> LogAnalyzer:
    """FastAPI dependency — replaced in tests via app.dependency_overrides."""
    return request.app.state.analyzer


def _get_logger(request: Request) -> SecurityLogger:
    return request.app.state.context.get_security_logger()


@router.get("/insights")
async def get_insights(
    window_hours: Annotated[int | None, Query(ge=1, le=_MAX_WINDOW_HOURS)] = None,
    analyzer: LogAnalyzer = Depends(_get_analyzer),
) -> dict[str, Any]:
    window_ms = window_hours * HOUR_MS if window_hours else None
    insights = await analyzer.get_security_insights(window_ms)
    return insights.as_dict()


@router.get("/detections", response_model=DetectionsResponse)
async def get_detections(
    window_hours: Annotated[int, Query(ge=1, le=_MAX_WINDOW_HOURS)] = 24,
    analyzer: LogAnalyzer = Depends(_get_analyzer),
) -> DetectionsResponse:
    """Run every loaded detector over one read of the window."""
    by_detector = await analyzer.run_all(window_hours * HOUR_MS)
    detectors = {
        name: [DetectionResultResponse.from_result(r) for r in results]
        for name, results in by_detector.items()
    }
    return DetectionsResponse(
        window_hours=window_hours,
        total_findings=sum(len(r) for r in detectors.values()),
        detectors=detectors,
    )


@router.get("/critical", response_model=list[LogEntryResponse])
async def get_critical(
    limit: Annotated[int, Query(ge=1, le=1000)] = 100,
    sec_log: SecurityLogger = Depends(_get_logger),
) -> list[LogEntryResponse]:
    """Newest-first critical events."""
    entries = await sec_log.get_critical_events(limit)
    return [LogEntryResponse.from_entry(e) for e in entries]


@router.get("/logs", response_model=list[LogEntryResponse])
async def get_logs(
    start: Annotated[int, Query(ge=0)],
    end:   Annotated[int, Query(ge=0)],
    sec_log: SecurityLogger = Depends(_get_logger),
) -> list[LogEntryResponse]:
    if start > end:
        raise HTTPException(status_code=400, detail="start must not be after end")
    entries = await sec_log.get_logs_by_time_range(start, end)
    return [LogEntryResponse.from_entry(e) for e in entries]


@router.get("/logs/severity/{severity}", response_model=list[LogEntryResponse])
async def get_logs_by_severity(
    severity: Severity,
    limit: Annotated[int, Query(ge=1, le=1000)] = 100,
    sec_log: SecurityLogger = Depends(_get_logger),
) -> list[LogEntryResponse]:
    entries = await sec_log.get_logs_by_severity(severity, limit)
    return [LogEntryResponse.from_entry(e) for e in entries]
