"""
backend/metrics.py

Process-local counters for the security log. Exposed on /health and reset
between tests. Counters are thread-safe so synchronous callers (uvicorn
workers, CLI threads) can share the singleton.

    from tourguard.backend.metrics import METRICS
    METRICS.log_failures.inc()
"""

import threading

# name → meaning; also fixes the key order of as_dict()
COUNTERS: dict[str, str] = {
    "events_logged": "entries written to the main log",
    "critical_events_logged": "CRITICAL entries also pushed onto the side-list",
    "log_failures": "writes that raised LoggingFailure",
    "retention_failures": "retention deletes that failed after a successful write",
    "query_failures": "reads that raised QueryFailure",
}


class Counter:
    __slots__ = ("name", "_value", "_lock")

    def __init__(self, name: str) -> None:
        self.name = name
        self._value = 0
        self._lock = threading.Lock()

    def inc(self, amount: int = 1) -> None:
        with self._lock:
            self._value += amount

    def reset(self) -> None:
        with self._lock:
            self._value = 0

    @property
    def value(self) -> int:
        return self._value

    def __repr__(self) -> str:
        return f"<Counter {self.name}={self._value}>"


class Metrics:
    events_logged: Counter
    critical_events_logged: Counter
    log_failures: Counter
    retention_failures: Counter
    query_failures: Counter

    def __init__(self) -> None:
        for name in COUNTERS:
            setattr(self, name, Counter(name))

    def counters(self) -> list[Counter]:
        return [getattr(self, name) for name in COUNTERS]

    def as_dict(self) -> dict[str, int]:
        return {c.name: c.value for c in self.counters()}

    def reset_all(self) -> None:
        for c in self.counters():
            c.reset()


METRICS = Metrics()
