"""
security/events.py

Event emission context: one SecurityLogger per application, created once at
startup and handed to request handlers, plus the "log this named event"
convenience that resolves severity from the taxonomy.

There is no module-level instance. Build a
SecurityEventContext at startup (see main.build_context) and inject it;
tests construct their own.
"""

from __future__ import annotations

import json
import logging
from typing import TYPE_CHECKING, Any, Mapping

from ..config import ENVIRONMENTS
from ..storage.store import EventStore
from .errors import ConfigurationFailure, LoggingFailure, NotInitializedFailure
from .event_types import severity_for_event
from .logger import SecurityLogger
from .models import SecurityLogEntry

if TYPE_CHECKING:
    from ..config import Settings

logger = logging.getLogger(__name__)

_LOGGER_OPTIONS = frozenset({
    "log_key", "critical_events_key", "retention_days", "critical_events_max", "clock",
})


class SecurityEventContext:
    """Holds at most one SecurityLogger, bound to one store and environment."""

    def __init__(self) -> None:
        self._logger: SecurityLogger | None = None
        self._store: EventStore | None = None
        self._environment: str | None = None

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    def initialize(
        self,
        store: EventStore | None,
        environment: str,
        config: Mapping[str, Any] | None = None,
    ) -> SecurityLogger:
        """
        Create the logger, or return the existing one.

        Calling again with the same store and environment is a no-op that
        returns the same instance. Any other combination raises
        ConfigurationFailure rather than silently keeping the old binding.
        """
        if environment not in ENVIRONMENTS:
            raise ConfigurationFailure(
                f"Unknown environment {environment!r}; expected one of {', '.join(ENVIRONMENTS)}"
            )

        if self._logger is not None:
            if store is self._store and environment == self._environment:
                return self._logger
            raise ConfigurationFailure(
                "Security logger already initialized with a different store or environment"
            )

        options = dict(config or {})
        unknown = set(options) - _LOGGER_OPTIONS
        if unknown:
            raise ConfigurationFailure(f"Unknown logger option(s): {', '.join(sorted(unknown))}")

        self._logger = SecurityLogger(store, **options)
        self._store = store
        self._environment = environment
        logger.info("Security event context initialized — environment=%s", environment)
        return self._logger

    def initialize_from_settings(self, store: EventStore | None, settings: "Settings") -> SecurityLogger:
        return self.initialize(
            store,
            settings.ENVIRONMENT,
            {
                "log_key": settings.SECURITY_LOG_KEY,
                "critical_events_key": settings.CRITICAL_EVENTS_KEY,
                "retention_days": settings.RETENTION_DAYS,
                "critical_events_max": settings.CRITICAL_EVENTS_MAX,
            },
        )

    def reset(self) -> None:
        self._logger = None
        self._store = None
        self._environment = None

    @property
    def is_initialized(self) -> bool:
        return self._logger is not None

    @property
    def environment(self) -> str | None:
        return self._environment

    @property
    def store(self) -> EventStore | None:
        return self._store

    def get_security_logger(self) -> SecurityLogger:
        if self._logger is None:
            raise NotInitializedFailure(
                "Security logger not initialized. Call initialize() first."
            )
        return self._logger

    # ------------------------------------------------------------------
    # Emission
    # ------------------------------------------------------------------

    async def log_security_event(
        self,
        event_type: str,
        details: Mapping[str, Any],
        *,
        tags: list[str] | None = None,
        user_id: str | None = None,
        ip: str | None = None,
        user_agent: str | None = None,
        correlation_id: str | None = None,
    ) -> SecurityLogEntry:
        """
        Log *event_type* with severity resolved from the taxonomy.

        The message is the JSON of *details*; the metadata is the options
        overlaid with *details*, with *event_type* appended to the tags.
        """
        sec_log = self.get_security_logger()
        severity = severity_for_event(event_type)

        merged_tags = list(tags or [])
        if event_type not in merged_tags:
            merged_tags.append(event_type)

        metadata: dict[str, Any] = {}
        if user_id is not None:
            metadata["userId"] = user_id
        if ip is not None:
            metadata["ip"] = ip
        if user_agent is not None:
            metadata["userAgent"] = user_agent
        metadata.update(details)
        metadata["tags"] = merged_tags

        return await sec_log.log(
            severity,
            event_type,
            json.dumps(dict(details), default=str),
            metadata,
            correlation_id=correlation_id,
        )

    async def safe_log_security_event(
        self, event_type: str, details: Mapping[str, Any], **options: Any
    ) -> SecurityLogEntry | None:
        """
        log_security_event for call sites where auditing must never block the
        business operation: a LoggingFailure is logged and None is returned.
        """
        try:
            return await self.log_security_event(event_type, details, **options)
        except LoggingFailure as exc:
            logger.warning("Security event %r not recorded: %s", event_type, exc)
            return None

    def __repr__(self) -> str:
        state = self._environment if self._logger else "uninitialized"
        return f"<SecurityEventContext {state}>"
