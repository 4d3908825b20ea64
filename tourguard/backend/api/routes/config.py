"""
api/routes/config.py

GET /api/config — active retention and detector thresholds (read-only)
"""

from __future__ import annotations

from fastapi import APIRouter, Request

from ..serializers import ConfigResponse

router = APIRouter(prefix="/config", tags=["config"])


@router.get("", response_model=ConfigResponse)
async def get_config(request: Request) -> ConfigResponse:
    context = request.app.state.context
    sec_log = context.get_security_logger()
    return ConfigResponse.build(
        environment=context.environment,
        retention_days=sec_log.retention_days,
        critical_events_max=sec_log.critical_events_max,
        thresholds=request.app.state.analyzer.thresholds,
    )
