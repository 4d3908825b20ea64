"""
engine/analyzer.py

LogAnalyzer — batch pattern detection over a time window of the security log.

Reads only through SecurityLogger.get_logs_by_time_range; never writes.
A failed read propagates as QueryFailure no matter which analysis asked for
it. Detectors are discovered from engine/detectors the same way as any
plugin: every enabled BaseDetector subclass defined in a module there.
"""

from __future__ import annotations

import importlib
import inspect
import logging
import pkgutil
import time
from typing import Callable

from ..security.logger import SecurityLogger, now_ms
from ..security.models import SecurityLogEntry
from .detectors.base import BaseDetector
from .insights import compute_insights
from .models import DetectionResult, DetectorThresholds, SecurityInsights

logger = logging.getLogger(__name__)

HOUR_MS = 60 * 60 * 1000
DAY_MS = 24 * HOUR_MS

DEFAULT_DETECTION_WINDOW_MS = DAY_MS
DEFAULT_INSIGHTS_WINDOW_MS = 7 * DAY_MS

_DETECTOR_SLOW_MS = 50.0


class LogAnalyzer:
    def __init__(
        self,
        security_logger: SecurityLogger,
        thresholds: DetectorThresholds | None = None,
        *,
        detection_window_ms: int = DEFAULT_DETECTION_WINDOW_MS,
        insights_window_ms: int = DEFAULT_INSIGHTS_WINDOW_MS,
        clock: Callable[[], int] | None = None,
    ) -> None:
        self.security_logger = security_logger
        self.thresholds = thresholds or DetectorThresholds()
        self.detection_window_ms = detection_window_ms
        self.insights_window_ms = insights_window_ms
        self._clock = clock or now_ms
        self.detectors: dict[str, BaseDetector] = {
            d.name: d for d in self._load_detectors()
        }
        logger.info(
            "LogAnalyzer loaded %d detector(s): %s",
            len(self.detectors), sorted(self.detectors),
        )

    def now(self) -> int:
        """Current time in ms, from the analyzer's clock."""
        return self._clock()

    # ==================================================================
    # Detectors
    # ==================================================================

    async def analyze_login_attempts(self, window_ms: int | None = None) -> list[DetectionResult]:
        return await self._run_one("login_attempts", window_ms)

    async def analyze_payment_patterns(self, window_ms: int | None = None) -> list[DetectionResult]:
        return await self._run_one("payment_patterns", window_ms)

    async def analyze_rate_limiting(self, window_ms: int | None = None) -> list[DetectionResult]:
        return await self._run_one("rate_limiting", window_ms)

    async def run_all(self, window_ms: int | None = None) -> dict[str, list[DetectionResult]]:
        """
        One read, every loaded detector. A detector that raises is logged
        and reported with no findings; the others still run.
        """
        if window_ms is None:
            window_ms = self.detection_window_ms
        now, entries = await self._window(window_ms)
        return {
            name: self._safe_detect(detector, entries, now)
            for name, detector in self.detectors.items()
        }

    # ==================================================================
    # Insights
    # ==================================================================

    async def get_security_insights(self, window_ms: int | None = None) -> SecurityInsights:
        if window_ms is None:
            window_ms = self.insights_window_ms
        now, entries = await self._window(window_ms)
        return compute_insights(entries, self.thresholds, now - window_ms, now)

    # ==================================================================
    # Internal helpers
    # ==================================================================

    async def _window(self, window_ms: int) -> tuple[int, list[SecurityLogEntry]]:
        now = self._clock()
        entries = await self.security_logger.get_logs_by_time_range(now - window_ms, now)
        return now, entries

    async def _run_one(self, name: str, window_ms: int | None) -> list[DetectionResult]:
        detector = self.detectors[name]
        if window_ms is None:
            window_ms = self.detection_window_ms
        now, entries = await self._window(window_ms)
        results = detector.detect(entries, self.thresholds, now)
        if results:
            logger.warning(
                "Detector %r produced %d finding(s) over %d entr(ies)",
                name, len(results), len(entries),
            )
        return results

    def _safe_detect(
        self, detector: BaseDetector, entries: list[SecurityLogEntry], now: int
    ) -> list[DetectionResult]:
        t0 = time.monotonic()
        try:
            results = detector.detect(entries, self.thresholds, now)
        except Exception as exc:
            logger.exception("Detector %r raised an unhandled exception: %s", detector.name, exc)
            results = []
        elapsed_ms = (time.monotonic() - t0) * 1000
        if elapsed_ms > _DETECTOR_SLOW_MS:
            logger.warning("Detector %r took %.1fms over %d entries",
                           detector.name, elapsed_ms, len(entries))
        return results

    def _load_detectors(self) -> list[BaseDetector]:
        import tourguard.backend.engine.detectors as detectors_pkg
        detectors: list[BaseDetector] = []
        for _, module_name, _ in pkgutil.iter_modules(detectors_pkg.__path__):
            if module_name == "base":
                continue
            try:
                module = importlib.import_module(
                    f"tourguard.backend.engine.detectors.{module_name}"
                )
            except Exception as exc:
                logger.error("Failed to import detector module %r: %s", module_name, exc)
                continue
            for _, obj in inspect.getmembers(module, inspect.isclass):
                if (
                    issubclass(obj, BaseDetector)
                    and obj is not BaseDetector
                    and obj.__module__ == module.__name__
                ):
                    try:
                        instance: BaseDetector = obj()
                        if instance.enabled:
                            detectors.append(instance)
                    except Exception as exc:
                        logger.error("Failed to instantiate detector %r: %s", obj, exc)
        return detectors
