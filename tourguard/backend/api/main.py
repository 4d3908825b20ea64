"""
api/main.py

Read-only HTTP surface for the admin dashboard. The event context and the
analyzer are injected at construction and kept on app.state; nothing here
writes to the log.
"""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from ..engine.analyzer import LogAnalyzer
from ..metrics import METRICS
from ..security.errors import NotInitializedFailure, QueryFailure
from ..security.events import SecurityEventContext
from .routes import config as config_router
from .routes import security as security_router

logger = logging.getLogger(__name__)


def create_app(context: SecurityEventContext, analyzer: LogAnalyzer) -> FastAPI:
    @asynccontextmanager
    async def lifespan(app: FastAPI):
        logger.info("FastAPI startup")
        yield
        logger.info("FastAPI shutdown")
        if context.store is not None:
            await context.store.close()

    app = FastAPI(
        title="TourGuard — Security Event Log",
        version="1.0.0",
        description="Security event log queries, detections and insights",
        lifespan=lifespan,
    )
    app.state.context = context
    app.state.analyzer = analyzer

    app.add_middleware(
        CORSMiddleware,
        allow_origins=[
            "http://localhost:3000",
            "http://localhost:5173",
            "http://127.0.0.1:3000",
            "http://127.0.0.1:5173",
        ],
        allow_credentials=True,
        allow_methods=["GET"],
        allow_headers=["*"],
    )

    @app.exception_handler(QueryFailure)
    async def query_failure_handler(request: Request, exc: QueryFailure) -> JSONResponse:
        return JSONResponse(status_code=503, content={"detail": str(exc)})

    @app.exception_handler(NotInitializedFailure)
    async def not_initialized_handler(request: Request, exc: NotInitializedFailure) -> JSONResponse:
        return JSONResponse(status_code=503, content={"detail": str(exc)})

    app.include_router(security_router.router, prefix="/api")
    app.include_router(config_router.router, prefix="/api")

    @app.get("/health")
    async def health() -> dict:
        return {
            "status": "ok" if context.is_initialized else "uninitialized",
            "environment": context.environment,
            "metrics": METRICS.as_dict(),
        }

    return app
