"""
tests/test_analyzer.py

Tests for the LogAnalyzer orchestrator and the three built-in detectors.
Entries are written through a real SecurityLogger over the in-memory store;
a FakeClock places them inside or outside the analysis window.
"""

from __future__ import annotations

import json
from unittest.mock import AsyncMock, patch

import pytest

from tourguard.backend.engine.analyzer import DAY_MS, HOUR_MS, LogAnalyzer
from tourguard.backend.engine.detectors.base import BaseDetector
from tourguard.backend.engine.models import DetectionResult, DetectorThresholds
from tourguard.backend.security.errors import QueryFailure
from tourguard.backend.security.event_types import SecurityEventTypes as T
from tourguard.backend.security.logger import SecurityLogger
from tourguard.backend.security.models import Severity
from tourguard.backend.storage import InMemoryEventStore

T0 = 1_760_000_000_000


class FakeClock:
    def __init__(self, now: int = T0) -> None:
        self.now = now

    def __call__(self) -> int:
        return self.now


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def sec_log(clock):
    return SecurityLogger(InMemoryEventStore(), clock=clock)


@pytest.fixture
def analyzer(sec_log, clock):
    return LogAnalyzer(sec_log, clock=clock)


async def failed_logins(sec_log, count, *, ip=None, user_id=None, ips=None):
    for i in range(count):
        md = {}
        if ip or ips:
            md["ip"] = ips[i % len(ips)] if ips else ip
        if user_id:
            md["userId"] = user_id
        await sec_log.warning(T.LOGIN_FAILURE, "bad password", md)


# ---------------------------------------------------------------------------
# Loading
# ---------------------------------------------------------------------------

class TestDetectorLoading:

    def test_builtin_detectors_discovered(self, analyzer):
        assert set(analyzer.detectors) == {"login_attempts", "payment_patterns", "rate_limiting"}
        assert all(isinstance(d, BaseDetector) for d in analyzer.detectors.values())

    def test_default_thresholds(self, analyzer):
        assert analyzer.thresholds == DetectorThresholds()

    def test_now_uses_clock(self, analyzer, clock):
        clock.now = T0 + 5
        assert analyzer.now() == T0 + 5


# ---------------------------------------------------------------------------
# Login attempts
# ---------------------------------------------------------------------------

class TestLoginAttempts:

    @pytest.mark.asyncio
    async def test_five_failures_from_one_ip(self, sec_log, analyzer):
        for i in range(5):
            await sec_log.warning(T.LOGIN_FAILURE, "bad password",
                                  {"ip": "1.1.1.1", "userId": f"u{i}"})
        results = await analyzer.analyze_login_attempts()
        assert len(results) == 1
        r = results[0]
        assert r.type == "excessive_login_attempts_ip"
        assert r.metadata == {"ip": "1.1.1.1", "attemptCount": 5}
        assert r.severity is Severity.WARNING
        assert r.timestamp == T0
        assert len(r.related_events) == 5

    @pytest.mark.asyncio
    async def test_four_failures_is_quiet(self, sec_log, analyzer):
        await failed_logins(sec_log, 4, ip="1.1.1.1")
        assert await analyzer.analyze_login_attempts() == []

    @pytest.mark.asyncio
    async def test_success_does_not_count(self, sec_log, analyzer):
        await failed_logins(sec_log, 4, ip="1.1.1.1")
        await sec_log.info(T.LOGIN_SUCCESS, "ok", {"ip": "1.1.1.1"})
        assert await analyzer.analyze_login_attempts() == []

    @pytest.mark.asyncio
    async def test_user_across_several_ips(self, sec_log, analyzer):
        await failed_logins(sec_log, 3, user_id="u1", ips=["1.1.1.1", "2.2.2.2"])
        results = await analyzer.analyze_login_attempts()
        assert [r.type for r in results] == ["excessive_login_attempts_user"]
        assert results[0].metadata == {"userId": "u1", "attemptCount": 3, "distinctIps": 2}

    @pytest.mark.asyncio
    async def test_user_from_single_ip_is_left_to_ip_grouping(self, sec_log, analyzer):
        await failed_logins(sec_log, 3, user_id="u1", ip="1.1.1.1")
        assert await analyzer.analyze_login_attempts() == []

    @pytest.mark.asyncio
    async def test_ip_findings_precede_user_findings(self, sec_log, analyzer):
        await failed_logins(sec_log, 3, user_id="u1", ips=["3.3.3.3", "4.4.4.4"])
        await failed_logins(sec_log, 5, ip="9.9.9.9")
        results = await analyzer.analyze_login_attempts()
        assert [r.type for r in results] == [
            "excessive_login_attempts_ip", "excessive_login_attempts_user",
        ]

    @pytest.mark.asyncio
    async def test_entries_outside_window_ignored(self, sec_log, analyzer, clock):
        await failed_logins(sec_log, 5, ip="1.1.1.1")
        clock.now = T0 + DAY_MS + 1
        assert await analyzer.analyze_login_attempts() == []

    @pytest.mark.asyncio
    async def test_custom_window(self, sec_log, analyzer, clock):
        await failed_logins(sec_log, 5, ip="1.1.1.1")
        clock.now = T0 + 2 * HOUR_MS
        assert await analyzer.analyze_login_attempts(HOUR_MS) == []
        assert len(await analyzer.analyze_login_attempts(3 * HOUR_MS)) == 1

    @pytest.mark.asyncio
    async def test_custom_thresholds(self, sec_log, clock):
        analyzer = LogAnalyzer(
            sec_log, DetectorThresholds(login_failures_per_ip=2), clock=clock
        )
        await failed_logins(sec_log, 2, ip="1.1.1.1")
        assert len(await analyzer.analyze_login_attempts()) == 1

    @pytest.mark.asyncio
    async def test_foreign_entry_with_numeric_user_id(self, sec_log, analyzer):
        await failed_logins(sec_log, 5, ip="1.1.1.1")
        foreign = json.dumps({
            "timestamp": T0, "severity": "WARNING", "eventType": T.LOGIN_FAILURE,
            "message": "written elsewhere", "metadata": {"userId": 7, "ip": "1.1.1.1"},
        })
        await sec_log.store.sorted_set_insert(sec_log.log_key, T0, foreign)

        results = await analyzer.analyze_login_attempts()
        assert [r.metadata for r in results] == [{"ip": "1.1.1.1", "attemptCount": 6}]
        assert any(e.metadata.user_id == "7" for e in results[0].related_events)


# ---------------------------------------------------------------------------
# Windows
# ---------------------------------------------------------------------------

class TestWindows:

    @pytest.mark.asyncio
    async def test_zero_insights_window_is_honoured(self, sec_log, analyzer, clock):
        await sec_log.info(T.LOGOUT, "earlier")
        clock.now = T0 + HOUR_MS
        await sec_log.info(T.LOGOUT, "now")
        insights = await analyzer.get_security_insights(0)
        assert insights.window_start == insights.window_end == T0 + HOUR_MS
        assert insights.total_events == 1

    @pytest.mark.asyncio
    async def test_zero_detection_window_is_honoured(self, sec_log, analyzer, clock):
        await failed_logins(sec_log, 5, ip="1.1.1.1")
        clock.now = T0 + 1
        assert await analyzer.analyze_login_attempts(0) == []
        assert (await analyzer.run_all(0))["login_attempts"] == []

    @pytest.mark.asyncio
    async def test_none_uses_configured_default(self, sec_log, clock):
        analyzer = LogAnalyzer(sec_log, clock=clock, insights_window_ms=HOUR_MS)
        insights = await analyzer.get_security_insights()
        assert insights.window_start == T0 - HOUR_MS


# ---------------------------------------------------------------------------
# Payment patterns
# ---------------------------------------------------------------------------

class TestPaymentPatterns:

    @pytest.mark.asyncio
    async def test_suspicious_transactions_summed(self, sec_log, analyzer):
        await sec_log.warning(T.SUSPICIOUS_TRANSACTION, "flagged", {"amount": 10000})
        await sec_log.warning(T.SUSPICIOUS_TRANSACTION, "flagged", {"amount": 20000})
        results = await analyzer.analyze_payment_patterns()
        assert len(results) == 1
        r = results[0]
        assert r.type == "multiple_suspicious_transactions"
        assert r.metadata == {"suspiciousCount": 2, "totalAmount": 30000}
        assert r.severity is Severity.ERROR

    @pytest.mark.asyncio
    async def test_missing_amount_counts_as_zero(self, sec_log, analyzer):
        await sec_log.warning(T.SUSPICIOUS_TRANSACTION, "flagged", {"amount": 150.5})
        await sec_log.warning(T.SUSPICIOUS_TRANSACTION, "flagged", {})
        await sec_log.warning(T.SUSPICIOUS_TRANSACTION, "flagged", {"amount": "n/a"})
        results = await analyzer.analyze_payment_patterns()
        assert results[0].metadata == {"suspiciousCount": 3, "totalAmount": 150.5}

    @pytest.mark.asyncio
    async def test_single_suspicious_transaction_is_quiet(self, sec_log, analyzer):
        await sec_log.warning(T.SUSPICIOUS_TRANSACTION, "flagged", {"amount": 99999})
        assert await analyzer.analyze_payment_patterns() == []

    @pytest.mark.asyncio
    async def test_high_payment_frequency(self, sec_log, analyzer):
        for _ in range(3):
            await sec_log.info(T.PAYMENT_SUCCESS, "paid", {"userId": "u7"})
        await sec_log.info(T.PAYMENT_SUCCESS, "paid", {"userId": "u8"})
        results = await analyzer.analyze_payment_patterns()
        assert [r.metadata for r in results] == [{"userId": "u7", "paymentCount": 3}]
        assert results[0].type == "high_payment_frequency_user"

    @pytest.mark.asyncio
    async def test_failed_payments_do_not_count_as_frequency(self, sec_log, analyzer):
        for _ in range(3):
            await sec_log.warning(T.PAYMENT_FAILURE, "declined", {"userId": "u7"})
        assert await analyzer.analyze_payment_patterns() == []


# ---------------------------------------------------------------------------
# Rate limiting
# ---------------------------------------------------------------------------

class TestRateLimiting:

    @pytest.mark.asyncio
    async def test_three_violations_fire(self, sec_log, analyzer):
        for _ in range(3):
            await sec_log.info(T.RATE_LIMIT_EXCEEDED, "429", {"ip": "5.5.5.5"})
        results = await analyzer.analyze_rate_limiting()
        assert len(results) == 1
        assert results[0].type == "repeated_rate_limit_violations"
        assert results[0].metadata == {"ip": "5.5.5.5", "exceededCount": 3}
        assert results[0].severity is Severity.ERROR

    @pytest.mark.asyncio
    async def test_two_violations_quiet(self, sec_log, analyzer):
        for _ in range(2):
            await sec_log.info(T.RATE_LIMIT_EXCEEDED, "429", {"ip": "5.5.5.5"})
        assert await analyzer.analyze_rate_limiting() == []

    @pytest.mark.asyncio
    async def test_violations_without_ip_ignored(self, sec_log, analyzer):
        for _ in range(5):
            await sec_log.info(T.RATE_LIMIT_EXCEEDED, "429", {"userId": "u1"})
        assert await analyzer.analyze_rate_limiting() == []


# ---------------------------------------------------------------------------
# Orchestration
# ---------------------------------------------------------------------------

class ExplodingDetector(BaseDetector):
    name = "exploding"
    enabled = True

    def detect(self, entries, thresholds, now):
        raise RuntimeError("boom")


class TestRunAll:

    @pytest.mark.asyncio
    async def test_keys_by_detector_name(self, sec_log, analyzer):
        await failed_logins(sec_log, 5, ip="1.1.1.1")
        results = await analyzer.run_all()
        assert set(results) == {"login_attempts", "payment_patterns", "rate_limiting"}
        assert len(results["login_attempts"]) == 1
        assert results["payment_patterns"] == []

    @pytest.mark.asyncio
    async def test_broken_detector_isolated(self, sec_log, analyzer):
        analyzer.detectors["exploding"] = ExplodingDetector()
        await failed_logins(sec_log, 5, ip="1.1.1.1")
        results = await analyzer.run_all()
        assert results["exploding"] == []
        assert len(results["login_attempts"]) == 1

    @pytest.mark.asyncio
    async def test_single_read_per_run(self, sec_log, analyzer):
        with patch.object(
            sec_log, "get_logs_by_time_range", AsyncMock(return_value=[])
        ) as read:
            await analyzer.run_all()
        read.assert_awaited_once_with(T0 - DAY_MS, T0)


class TestReadFailures:

    @pytest.mark.asyncio
    @pytest.mark.parametrize("method", [
        "analyze_login_attempts",
        "analyze_payment_patterns",
        "analyze_rate_limiting",
        "get_security_insights",
        "run_all",
    ])
    async def test_query_failure_propagates(self, sec_log, analyzer, method):
        failing = AsyncMock(side_effect=ConnectionError("store down"))
        with patch.object(sec_log.store, "sorted_set_range_by_score", failing):
            with pytest.raises(QueryFailure, match="Failed to retrieve logs by time range"):
                await getattr(analyzer, method)()


class TestDetectionResult:

    def test_as_dict(self):
        r = DetectionResult(
            type="t", metadata={"ip": "1.1.1.1"}, description="d",
            severity=Severity.ERROR, timestamp=42,
        )
        assert r.as_dict() == {
            "type": "t",
            "description": "d",
            "severity": "ERROR",
            "timestamp": 42,
            "metadata": {"ip": "1.1.1.1"},
            "relatedEvents": [],
        }
