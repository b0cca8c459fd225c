"""One-way anonymization of client identifiers."""

from __future__ import annotations

import hashlib
from datetime import UTC, datetime

UNKNOWN = "unknown"
HASH_LENGTH = 16
USER_AGENT_PREFIX = 50


def hash_value(value: str, salt: str = "") -> str:
    """First 16 hex characters of SHA-256(value + salt)."""
    return hashlib.sha256((value + salt).encode()).hexdigest()[:HASH_LENGTH]


def daily_salt(now: datetime | None = None, secret: str = "") -> str:
    """Salt that rotates at UTC midnight."""
    now = now or datetime.now(UTC)
    return f"{secret}{now.astimezone(UTC).date().isoformat()}"


def anonymize_client_ip(
    ip: str | None,
    now: datetime | None = None,
    secret: str = "",
) -> str:
    """Hash an IP with the day's salt.

    Same IP and same day give the same key (rate-limit bucketing); the next
    day's salt breaks cross-day correlation.
    """
    if not ip or ip == UNKNOWN:
        return UNKNOWN
    return hash_value(ip, daily_salt(now, secret))


def anonymize_user_agent(user_agent: str | None) -> str:
    """Bounded prefix for coarse debugging plus an unsalted digest for grouping."""
    if not user_agent:
        return UNKNOWN
    digest = hashlib.sha256(user_agent.encode()).hexdigest()
    return f"{user_agent[:USER_AGENT_PREFIX]}...{digest}"
