"""
tests/test_config.py

Tests for config.py — Pydantic Settings validation and defaults.
"""

from __future__ import annotations

import pytest
from pydantic import ValidationError

from tourguard.backend.config import Settings
from tourguard.backend.engine.models import DetectorThresholds


def make(**overrides) -> Settings:
    return Settings(_env_file=None, **overrides)


class TestSettingsDefaults:

    def test_default_environment(self):
        assert make().ENVIRONMENT == "development"

    def test_default_store(self):
        s = make()
        assert s.REDIS_URL == "memory://"
        assert s.SECURITY_LOG_KEY == "security_logs"
        assert s.CRITICAL_EVENTS_KEY == "critical_security_events"

    def test_default_retention(self):
        s = make()
        assert s.RETENTION_DAYS == 90
        assert s.CRITICAL_EVENTS_MAX == 1000

    def test_default_windows(self):
        s = make()
        assert s.detection_window_ms == 24 * 60 * 60 * 1000
        assert s.insights_window_ms == 7 * 24 * 60 * 60 * 1000

    def test_default_thresholds_match_detector_defaults(self):
        assert DetectorThresholds.from_settings(make()) == DetectorThresholds()


class TestSettingsValidation:

    def test_environment_is_normalised(self):
        assert make(ENVIRONMENT="  Production ").ENVIRONMENT == "production"

    def test_unknown_environment(self):
        with pytest.raises(ValidationError):
            make(ENVIRONMENT="qa")

    @pytest.mark.parametrize("field", ["RETENTION_DAYS", "CRITICAL_EVENTS_MAX"])
    def test_must_be_positive(self, field):
        with pytest.raises(ValidationError):
            make(**{field: 0})

    def test_env_override(self, monkeypatch):
        monkeypatch.setenv("RETENTION_DAYS", "30")
        monkeypatch.setenv("LOGIN_FAILURES_PER_IP", "8")
        s = make()
        assert s.RETENTION_DAYS == 30
        assert DetectorThresholds.from_settings(s).login_failures_per_ip == 8

    def test_unknown_env_keys_ignored(self, monkeypatch):
        monkeypatch.setenv("INTERFACE", "eth0")
        assert not hasattr(make(), "INTERFACE")
