"""Static attack-pattern screening over decoded request payloads."""

from __future__ import annotations

import json
import logging
from collections.abc import Iterable

from src.models import AttackCategory, AttackPattern, ScanResult

logger = logging.getLogger(__name__)

SQL_FRAGMENTS = (
    "union select",
    "drop table",
    "insert into",
    "delete from",
    "update set",
    "1=1",
    "or 1=1",
    "and 1=1",
)

SCRIPT_FRAGMENTS = (
    "<script",
    "javascript:",
    "onerror=",
    "onload=",
    "onclick=",
    "eval(",
    "alert(",
)

DEFAULT_PATTERNS: tuple[AttackPattern, ...] = (
    *(AttackPattern(category=AttackCategory.SQL_INJECTION, fragment=f) for f in SQL_FRAGMENTS),
    *(AttackPattern(category=AttackCategory.SCRIPT_INJECTION, fragment=f) for f in SCRIPT_FRAGMENTS),
)


class AttackPatternScanner:
    """Coarse defense-in-depth screen for SQL and script injection fragments.

    The payload is serialized to JSON and lower-cased before matching, so
    keys and nested values are screened alike. Matched labels are meant for
    server-side logs only.
    """

    def __init__(self, patterns: Iterable[AttackPattern] = DEFAULT_PATTERNS) -> None:
        self._patterns = tuple(patterns)
        self._needles = [(p, p.fragment.lower()) for p in self._patterns]

    @property
    def patterns(self) -> tuple[AttackPattern, ...]:
        return self._patterns

    def scan(self, payload: object) -> ScanResult:
        haystack = _serialize(payload).lower()
        matched = [p.label for p, needle in self._needles if needle in haystack]
        if matched:
            logger.debug("attack patterns matched: %s", matched)
        return ScanResult(is_safe=not matched, matched_patterns=matched)


def _serialize(payload: object) -> str:
    if isinstance(payload, str):
        return payload
    if isinstance(payload, bytes):
        return payload.decode("utf-8", errors="replace")
    # ensure_ascii=False keeps non-ASCII text matchable as typed
    return json.dumps(payload, ensure_ascii=False, default=str)
