"""Tests for the attack-pattern scanner."""

from __future__ import annotations

import pytest

from src.models import AttackCategory, AttackPattern
from src.scanner.scanner import DEFAULT_PATTERNS, AttackPatternScanner


@pytest.fixture
def scanner() -> AttackPatternScanner:
    return AttackPatternScanner()


def test_clean_payload_is_safe(scanner: AttackPatternScanner) -> None:
    result = scanner.scan({"role": "cto", "focus": "cloud"})
    assert result.is_safe is True
    assert result.matched_patterns == []


def test_detects_sql_fragments(scanner: AttackPatternScanner) -> None:
    result = scanner.scan({"query": "1=1 OR drop table users"})
    assert result.is_safe is False
    assert "sql_injection:drop table" in result.matched_patterns
    assert "sql_injection:1=1" in result.matched_patterns


def test_detects_script_fragments_case_insensitive(scanner: AttackPatternScanner) -> None:
    result = scanner.scan({"message": "<SCRIPT>Alert('x')</SCRIPT>"})
    assert result.is_safe is False
    assert "script_injection:<script" in result.matched_patterns
    assert "script_injection:alert(" in result.matched_patterns


def test_reports_every_match(scanner: AttackPatternScanner) -> None:
    result = scanner.scan({"a": "union select", "b": "eval(x)", "c": "javascript:go"})
    assert len(result.matched_patterns) == 3


def test_scans_keys_and_nested_values(scanner: AttackPatternScanner) -> None:
    assert scanner.scan({"nested": [{"onload=": "x"}]}).is_safe is False


def test_scans_plain_strings(scanner: AttackPatternScanner) -> None:
    assert scanner.scan("please DELETE FROM accounts").is_safe is False


def test_custom_pattern_set() -> None:
    scanner = AttackPatternScanner([
        AttackPattern(category=AttackCategory.SQL_INJECTION, fragment="SLEEP("),
    ])
    assert scanner.scan({"q": "sleep(5)"}).matched_patterns == ["sql_injection:SLEEP("]
    assert scanner.scan({"q": "drop table"}).is_safe is True


def test_default_patterns_cover_both_categories() -> None:
    categories = {p.category for p in DEFAULT_PATTERNS}
    assert categories == {AttackCategory.SQL_INJECTION, AttackCategory.SCRIPT_INJECTION}
