"""
security/errors.py

Failure vocabulary of the security log. Callers pattern-match on these
instead of store-specific exception types; the store error is chained as
__cause__.
"""

from __future__ import annotations


class SecurityLogError(Exception):
    """Base class for every failure raised by the security log core."""


class LoggingFailure(SecurityLogError):
    """The write path failed."""


class QueryFailure(SecurityLogError):
    """The read path failed."""


class NotInitializedFailure(SecurityLogError):
    """The event context was used before initialize()."""


class ConfigurationFailure(SecurityLogError):
    """Invalid construction, e.g. no store handle supplied."""
