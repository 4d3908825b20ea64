"""
engine/detectors/base.py

Abstract base class that all log detectors must implement.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from collections.abc import Sequence

from ...security.models import SecurityLogEntry
from ..models import DetectionResult, DetectorThresholds


class BaseDetector(ABC):
    """
    Contract that every detector must satisfy.

    Class-level attributes:
        name    — unique snake_case identifier, used by LogAnalyzer lookups
        enabled — False for detectors that should not be auto-loaded

    detect() is a pure function of its inputs: no store access, no clock.
    It runs in a single pass over *entries* (already bounded to a window).
    """

    name: str = ""
    enabled: bool = True

    @abstractmethod
    def detect(
        self,
        entries: Sequence[SecurityLogEntry],
        thresholds: DetectorThresholds,
        now: int,
    ) -> list[DetectionResult]:
        ...

    def __repr__(self) -> str:
        return f"<Detector:{self.name} enabled={self.enabled}>"
