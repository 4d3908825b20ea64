"""engine/__init__.py"""
from .analyzer import LogAnalyzer
from .models import (
    DetectionResult,
    DetectorThresholds,
    RiskFactor,
    SecurityInsights,
    TimePatterns,
)

__all__ = [
    "LogAnalyzer",
    "DetectionResult",
    "DetectorThresholds",
    "RiskFactor",
    "SecurityInsights",
    "TimePatterns",
]
