"""
security/event_types.py

Closed taxonomy of security event types and the convention-based severity
resolver.

Event types use a dotted namespace, "<domain>.<subject>[.<outcome>]". The
severity of an event is NOT looked up in a table: it is derived from the
string by an ordered rule list, so a new type that follows the naming
convention (e.g. "booking.payment.failure") classifies correctly without
being registered here.
"""

from __future__ import annotations

from typing import Callable, NamedTuple

from .models import Severity


class SecurityEventTypes:
    # Authentication
    LOGIN_SUCCESS          = "auth.login.success"
    LOGIN_FAILURE          = "auth.login.failure"
    LOGOUT                 = "auth.logout"
    PASSWORD_RESET_REQUEST = "auth.password.reset.request"
    PASSWORD_RESET_SUCCESS = "auth.password.reset.success"
    MFA_ENABLED            = "auth.mfa.enabled"
    MFA_DISABLED           = "auth.mfa.disabled"

    # Access control
    ACCESS_DENIED     = "access.denied"
    PERMISSION_CHANGE = "access.permission.change"
    ROLE_CHANGE       = "access.role.change"

    # Rate limiting
    RATE_LIMIT_WARNING  = "rate.limit.warning"
    RATE_LIMIT_EXCEEDED = "rate.limit.exceeded"
    IP_BLOCKED          = "rate.limit.ip.blocked"

    # Suspicious activity
    SUSPICIOUS_LOGIN_ATTEMPT = "security.suspicious.login"
    SUSPICIOUS_TRANSACTION   = "security.suspicious.transaction"
    BLACKLIST_ADDED          = "security.blacklist.added"
    BLACKLIST_REMOVED        = "security.blacklist.removed"

    # Payment
    PAYMENT_SUCCESS         = "payment.success"
    PAYMENT_FAILURE         = "payment.failure"
    PAYMENT_SUSPICIOUS      = "payment.suspicious"
    PAYMENT_BLOCKED         = "payment.blocked"
    PAYMENT_REVIEW_REQUIRED = "payment.review.required"
    PAYMENT_REFUNDED        = "payment.refunded"

    # System
    CONFIG_CHANGE = "system.config.change"
    SECURITY_SCAN = "system.security.scan"
    ERROR         = "system.error"

    # Data access
    DATA_ACCESS        = "data.access"
    DATA_EXPORT        = "data.export"
    DATA_ACCESS_DENIED = "data.access.denied"

    # User management
    USER_CREATED   = "user.created"
    USER_UPDATED   = "user.updated"
    USER_DELETED   = "user.deleted"
    USER_SUSPENDED = "user.suspended"

    # Booking
    BOOKING_CREATED   = "booking.created"
    BOOKING_MODIFIED  = "booking.modified"
    BOOKING_CANCELLED = "booking.cancelled"
    BOOKING_FAILURE   = "booking.failure"


# Namespace prefix → domain label; the first matching prefix wins.
_DOMAINS: tuple[tuple[str, str], ...] = (
    ("security.", "suspicious_activity"),
    ("payment.", "payment"),
    ("access.", "access_control"),
    ("system.", "system"),
    ("rate.", "rate_limiting"),
    ("auth.", "authentication"),
    ("data.", "data_access"),
    ("user.", "user_management"),
    ("booking.", "booking"),
)


def all_event_types() -> list[str]:
    """Every registered event-type string, in declaration order."""
    return [
        value for name, value in vars(SecurityEventTypes).items()
        if name.isupper() and isinstance(value, str)
    ]


def domain_of(event_type: str) -> str:
    for prefix, domain in _DOMAINS:
        if event_type.startswith(prefix):
            return domain
    return "unknown"


# ---------------------------------------------------------------------------
# Severity resolution
# ---------------------------------------------------------------------------

class SeverityRule(NamedTuple):
    name: str
    matches: Callable[[str], bool]
    severity: Severity


SEVERITY_RULES: tuple[SeverityRule, ...] = (
    SeverityRule(
        "system_error",
        lambda t: t.startswith("system.error"),
        Severity.ERROR,
    ),
    SeverityRule(
        "suspicious_or_review",
        lambda t: (
            t.startswith("security.suspicious")
            or t.startswith("payment.suspicious")
            or t == SecurityEventTypes.PAYMENT_REVIEW_REQUIRED
        ),
        Severity.WARNING,
    ),
    SeverityRule(
        "blocked_or_denied",
        lambda t: ".blocked" in t or ".denied" in t,
        Severity.ERROR,
    ),
    SeverityRule(
        "failure",
        lambda t: t.endswith(".failure"),
        Severity.WARNING,
    ),
)


def severity_for_event(event_type: str) -> Severity:
    """Resolve the default severity of *event_type*; first matching rule wins."""
    for rule in SEVERITY_RULES:
        if rule.matches(event_type):
            return rule.severity
    return Severity.INFO
