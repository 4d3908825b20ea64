"""
security/__init__.py

Public API for the security event log.
"""

from .errors import (
    ConfigurationFailure,
    LoggingFailure,
    NotInitializedFailure,
    QueryFailure,
    SecurityLogError,
)
from .event_types import SecurityEventTypes, all_event_types, domain_of, severity_for_event
from .events import SecurityEventContext
from .logger import CorrelatedSecurityLogger, SecurityLogger
from .models import EntryMetadata, SecurityLogEntry, Severity

__all__ = [
    "ConfigurationFailure",
    "CorrelatedSecurityLogger",
    "EntryMetadata",
    "LoggingFailure",
    "NotInitializedFailure",
    "QueryFailure",
    "SecurityEventContext",
    "SecurityEventTypes",
    "SecurityLogEntry",
    "SecurityLogError",
    "SecurityLogger",
    "Severity",
    "all_event_types",
    "domain_of",
    "severity_for_event",
]
