"""
engine/detectors/payment_patterns.py

Payment abuse detection.

    high_payment_frequency_user       — one user completing many payments
                                        inside the window
    multiple_suspicious_transactions  — the window holds several transactions
                                        already flagged as suspicious; reports
                                        the count and the summed amount
"""

from __future__ import annotations

import logging
from collections.abc import Sequence

from ...security.event_types import SecurityEventTypes
from ...security.models import SecurityLogEntry, Severity
from ..models import DetectionResult, DetectorThresholds
from .base import BaseDetector

logger = logging.getLogger(__name__)

PAYMENT_SUCCESS_TYPES: frozenset[str] = frozenset({SecurityEventTypes.PAYMENT_SUCCESS})


def _amount(entry: SecurityLogEntry) -> float:
    raw = entry.metadata.get("amount", 0)
    try:
        return float(raw or 0)
    except (TypeError, ValueError):
        logger.debug("Ignoring non-numeric amount %r on %r", raw, entry)
        return 0.0


class PaymentPatternsDetector(BaseDetector):
    name = "payment_patterns"
    enabled = True

    def detect(
        self,
        entries: Sequence[SecurityLogEntry],
        thresholds: DetectorThresholds,
        now: int,
    ) -> list[DetectionResult]:
        by_user: dict[str, list[SecurityLogEntry]] = {}
        suspicious: list[SecurityLogEntry] = []
        total_amount = 0.0

        for entry in entries:
            if entry.event_type in PAYMENT_SUCCESS_TYPES:
                user_id = entry.metadata.user_id
                if user_id:
                    by_user.setdefault(user_id, []).append(entry)
            elif entry.event_type == SecurityEventTypes.SUSPICIOUS_TRANSACTION:
                suspicious.append(entry)
                total_amount += _amount(entry)

        results: list[DetectionResult] = []

        for user_id, payments in by_user.items():
            if len(payments) < thresholds.payments_per_user:
                continue
            results.append(DetectionResult(
                type="high_payment_frequency_user",
                description=f"High payment frequency for user: {user_id}",
                severity=Severity.WARNING,
                timestamp=now,
                related_events=payments,
                metadata={"userId": user_id, "paymentCount": len(payments)},
            ))

        if len(suspicious) >= thresholds.suspicious_transactions_min:
            if total_amount.is_integer():
                total_amount = int(total_amount)
            results.append(DetectionResult(
                type="multiple_suspicious_transactions",
                description="Multiple suspicious transactions detected",
                severity=Severity.ERROR,
                timestamp=now,
                related_events=suspicious,
                metadata={
                    "suspiciousCount": len(suspicious),
                    "totalAmount": total_amount,
                },
            ))

        return results
