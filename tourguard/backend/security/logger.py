"""
security/logger.py

Append-only security event log over an EventStore.

Layout in the store:
  - <log_key>              sorted set, score = entry timestamp (ms),
                           member = entry JSON
  - <critical_events_key>  list of CRITICAL entry JSON, newest first,
                           trimmed to critical_events_max

Retention is enforced on every successful write by a blind range delete of
the main log. The critical list is bounded by size only, never by age.

Known race: the retention delete is not transactional with concurrent
writers. A write from another process landing just inside the deletion
boundary can be removed by this process' cleanup. Accepted as lossy.

Correlation ids are never stored on the shared logger. Pass correlation_id
per call, or bind one with with_correlation_id() to get an immutable view.
"""

from __future__ import annotations

import logging
import time
import uuid
from typing import TYPE_CHECKING, Any, Callable, Mapping

from ..metrics import METRICS
from ..storage.store import EventStore
from .errors import ConfigurationFailure, LoggingFailure, QueryFailure
from .models import EntryMetadata, SecurityLogEntry, Severity

if TYPE_CHECKING:
    from ..config import Settings

logger = logging.getLogger(__name__)

MS_PER_DAY = 24 * 60 * 60 * 1000

DEFAULT_LOG_KEY = "security_logs"
DEFAULT_CRITICAL_EVENTS_KEY = "critical_security_events"
DEFAULT_RETENTION_DAYS = 90
DEFAULT_CRITICAL_EVENTS_MAX = 1000

MetadataLike = Mapping[str, Any] | EntryMetadata | None


def now_ms() -> int:
    return int(time.time() * 1000)


class _SeverityShortcuts:
    """info/warning/error/critical on top of a log() implementation."""

    async def log(self, severity, event_type, message, metadata=None, *, correlation_id=None):
        raise NotImplementedError

    async def info(self, event_type: str, message: str, metadata: MetadataLike = None,
                   *, correlation_id: str | None = None) -> SecurityLogEntry:
        return await self.log(Severity.INFO, event_type, message, metadata,
                              correlation_id=correlation_id)

    async def warning(self, event_type: str, message: str, metadata: MetadataLike = None,
                      *, correlation_id: str | None = None) -> SecurityLogEntry:
        return await self.log(Severity.WARNING, event_type, message, metadata,
                              correlation_id=correlation_id)

    async def error(self, event_type: str, message: str, metadata: MetadataLike = None,
                    *, correlation_id: str | None = None) -> SecurityLogEntry:
        return await self.log(Severity.ERROR, event_type, message, metadata,
                              correlation_id=correlation_id)

    async def critical(self, event_type: str, message: str, metadata: MetadataLike = None,
                       *, correlation_id: str | None = None) -> SecurityLogEntry:
        return await self.log(Severity.CRITICAL, event_type, message, metadata,
                              correlation_id=correlation_id)


class SecurityLogger(_SeverityShortcuts):
    """
    Owns write access to the security log and the critical side-list.

    Usage:
        sec_log = SecurityLogger(store, retention_days=30)
        await sec_log.warning("auth.login.failure", "bad password",
                              {"ip": "10.0.0.1", "userId": "u1"})
        entries = await sec_log.get_logs_by_time_range(start_ms, end_ms)
    """

    def __init__(
        self,
        store: EventStore | None,
        *,
        log_key: str = DEFAULT_LOG_KEY,
        critical_events_key: str = DEFAULT_CRITICAL_EVENTS_KEY,
        retention_days: int = DEFAULT_RETENTION_DAYS,
        critical_events_max: int = DEFAULT_CRITICAL_EVENTS_MAX,
        clock: Callable[[], int] | None = None,
    ) -> None:
        if store is None:
            raise ConfigurationFailure("An event store is required")
        if retention_days <= 0:
            raise ConfigurationFailure("retention_days must be positive")
        if critical_events_max <= 0:
            raise ConfigurationFailure("critical_events_max must be positive")

        self.store = store
        self.log_key = log_key
        self.critical_events_key = critical_events_key
        self.retention_days = retention_days
        self.critical_events_max = critical_events_max
        self._clock = clock or now_ms

        logger.info(
            "SecurityLogger ready — log_key=%r critical_key=%r retention=%dd",
            log_key, critical_events_key, retention_days,
        )

    @classmethod
    def from_settings(
        cls,
        store: EventStore | None,
        settings: "Settings",
        clock: Callable[[], int] | None = None,
    ) -> "SecurityLogger":
        return cls(
            store,
            log_key=settings.SECURITY_LOG_KEY,
            critical_events_key=settings.CRITICAL_EVENTS_KEY,
            retention_days=settings.RETENTION_DAYS,
            critical_events_max=settings.CRITICAL_EVENTS_MAX,
            clock=clock,
        )

    @property
    def retention_ms(self) -> int:
        return self.retention_days * MS_PER_DAY

    def with_correlation_id(self, correlation_id: str) -> "CorrelatedSecurityLogger":
        """Return an immutable view that stamps *correlation_id* on every write."""
        return CorrelatedSecurityLogger(self, correlation_id)

    # ==================================================================
    # Write path
    # ==================================================================

    async def log(
        self,
        severity: Severity,
        event_type: str,
        message: str,
        metadata: MetadataLike = None,
        *,
        correlation_id: str | None = None,
    ) -> SecurityLogEntry:
        """
        Append one entry, then trim the log to the retention horizon.

        Raises LoggingFailure if the entry could not be written. A failing
        retention cleanup is logged and counted but does not fail the call.
        """
        try:
            entry = SecurityLogEntry(
                timestamp=self._clock(),
                severity=Severity(severity),
                event_type=event_type,
                message=message,
                metadata=_build_metadata(metadata, correlation_id),
                entry_id=uuid.uuid4().hex,
            )
            member = entry.to_json()
            await self.store.sorted_set_insert(self.log_key, entry.timestamp, member)
        except Exception as exc:
            METRICS.log_failures.inc()
            logger.error("Failed to log security event %r: %s", event_type, exc)
            raise LoggingFailure("Failed to log security event") from exc

        METRICS.events_logged.inc()
        await self._enforce_retention()

        if entry.severity is Severity.CRITICAL:
            try:
                await self.store.list_push_front(self.critical_events_key, member)
                await self.store.list_trim(
                    self.critical_events_key, 0, self.critical_events_max - 1
                )
            except Exception as exc:
                METRICS.log_failures.inc()
                logger.error("Failed to record critical event %r: %s", event_type, exc)
                raise LoggingFailure("Failed to log security event") from exc
            METRICS.critical_events_logged.inc()
            logger.warning("CRITICAL security event %r: %s", event_type, message)

        return entry

    async def _enforce_retention(self) -> None:
        # Entries exactly at the cutoff are kept.
        cutoff = self._clock() - self.retention_ms
        try:
            removed = await self.store.sorted_set_delete_range_by_score(
                self.log_key, 0, cutoff - 1
            )
        except Exception as exc:
            METRICS.retention_failures.inc()
            logger.warning("Retention cleanup on %r failed: %s", self.log_key, exc)
            return
        if removed:
            logger.debug("Retention removed %d entr(ies) older than %d", removed, cutoff)

    # ==================================================================
    # Read path
    # ==================================================================

    async def get_logs_by_time_range(self, start: float, end: float) -> list[SecurityLogEntry]:
        """Entries with start <= timestamp <= end, ascending."""
        try:
            members = await self.store.sorted_set_range_by_score(self.log_key, start, end)
            return [SecurityLogEntry.from_json(m) for m in members]
        except Exception as exc:
            METRICS.query_failures.inc()
            logger.error("Failed to retrieve logs by time range: %s", exc)
            raise QueryFailure("Failed to retrieve logs by time range") from exc

    async def get_logs_by_severity(
        self, severity: Severity, limit: int = 100
    ) -> list[SecurityLogEntry]:
        """
        First *limit* entries of *severity* in log order.

        Scans the entire log; prefer get_logs_by_time_range with a narrow
        window when cost matters.
        """
        severity = Severity(severity)
        try:
            members = await self.store.sorted_set_range_by_score(
                self.log_key, float("-inf"), float("inf")
            )
            matched: list[SecurityLogEntry] = []
            for member in members:
                if len(matched) >= limit:
                    break
                entry = SecurityLogEntry.from_json(member)
                if entry.severity is severity:
                    matched.append(entry)
            return matched
        except Exception as exc:
            METRICS.query_failures.inc()
            logger.error("Failed to retrieve logs by severity: %s", exc)
            raise QueryFailure("Failed to retrieve logs by severity") from exc

    async def get_critical_events(self, limit: int = 100) -> list[SecurityLogEntry]:
        """Newest-first head of the critical side-list."""
        if limit <= 0:
            return []
        try:
            members = await self.store.list_range(self.critical_events_key, 0, limit - 1)
            return [SecurityLogEntry.from_json(m) for m in members]
        except Exception as exc:
            METRICS.query_failures.inc()
            logger.error("Failed to retrieve critical events: %s", exc)
            raise QueryFailure("Failed to retrieve critical events") from exc

    def __repr__(self) -> str:
        return f"<SecurityLogger key={self.log_key!r} store={self.store!r}>"


class CorrelatedSecurityLogger(_SeverityShortcuts):
    """
    Per-request view over a shared SecurityLogger with a fixed correlation id.

    Immutable: binding a different id returns a new view. Reads are not
    proxied; use .base for queries.
    """

    def __init__(self, base: SecurityLogger, correlation_id: str) -> None:
        self._base = base
        self._correlation_id = correlation_id

    @property
    def base(self) -> SecurityLogger:
        return self._base

    @property
    def correlation_id(self) -> str:
        return self._correlation_id

    def with_correlation_id(self, correlation_id: str) -> "CorrelatedSecurityLogger":
        return CorrelatedSecurityLogger(self._base, correlation_id)

    async def log(
        self,
        severity: Severity,
        event_type: str,
        message: str,
        metadata: MetadataLike = None,
        *,
        correlation_id: str | None = None,
    ) -> SecurityLogEntry:
        return await self._base.log(
            severity, event_type, message, metadata,
            correlation_id=correlation_id or self._correlation_id,
        )

    def __repr__(self) -> str:
        return f"<CorrelatedSecurityLogger id={self._correlation_id!r}>"


def _build_metadata(metadata: MetadataLike, correlation_id: str | None) -> EntryMetadata:
    if isinstance(metadata, EntryMetadata):
        fields = metadata.to_wire()
    else:
        fields = dict(metadata or {})
    if correlation_id is not None:
        fields.pop("correlation_id", None)
        fields["correlationId"] = correlation_id
    return EntryMetadata.model_validate(fields)
