"""Deterministic pitch generation from the static rule table."""

from __future__ import annotations

import logging
import re
from collections.abc import Mapping
from itertools import product

from src.models import Focus, PitchResult, PitchRule, Role
from src.pitch.rules import PITCH_RULES

logger = logging.getLogger(__name__)

FOCUS_KEYWORDS: dict[Focus, frozenset[str]] = {
    Focus.AI: frozenset({
        "ai", "ml", "llm", "llms", "model", "models", "machine", "learning",
        "neural", "gpt", "rag", "embedding", "embeddings", "nlp", "data",
    }),
    Focus.CLOUD: frozenset({
        "cloud", "aws", "serverless", "lambda", "kubernetes", "k8s", "infrastructure",
        "scale", "scaling", "scalable", "azure", "gcp", "dynamodb", "migration",
    }),
    Focus.AUTOMATION: frozenset({
        "automation", "automate", "automated", "ci", "cd", "pipeline", "pipelines",
        "devops", "workflow", "workflows", "deploy", "deployment", "testing",
        "monitoring", "tooling",
    }),
}

_WORD_RE = re.compile(r"[a-z0-9]+")


class RuleNotFoundError(Exception):
    """Raised when the rule table has no entry for a validated (role, focus) pair."""

    def __init__(self, role: Role, focus: Focus) -> None:
        self.role = role
        self.focus = focus
        super().__init__(f"No pitch rule for role={role.value} focus={focus.value}")


def missing_rules(rules: Mapping[tuple[Role, Focus], PitchRule]) -> list[tuple[Role, Focus]]:
    """Every accepted (role, focus) pair without a table entry."""
    return [pair for pair in product(Role, Focus) if pair not in rules]


def infer_focus(query: str) -> Focus | None:
    """Pick the focus whose keywords occur most often in a free-form query.

    Ties go to the earlier focus in declaration order. Returns None when no
    keyword matches.
    """
    words = _WORD_RE.findall(query.lower())
    best: Focus | None = None
    best_hits = 0
    for focus in Focus:
        hits = sum(1 for w in words if w in FOCUS_KEYWORDS[focus])
        if hits > best_hits:
            best, best_hits = focus, hits
    return best


class ResponseRuleEngine:
    """Pure lookup of pitch text and confidence; no randomness, no I/O."""

    def __init__(self, rules: Mapping[tuple[Role, Focus], PitchRule] = PITCH_RULES) -> None:
        self._rules = dict(rules)
        gaps = missing_rules(self._rules)
        if gaps:
            logger.error(
                "pitch rule table incomplete: %s",
                ", ".join(f"{r.value}/{f.value}" for r, f in gaps),
            )

    def generate(self, role: Role, focus: Focus) -> PitchResult:
        rule = self._rules.get((role, focus))
        if rule is None:
            raise RuleNotFoundError(role, focus)
        return PitchResult(text=rule.text, confidence=rule.confidence, focus=focus)

    def generate_for_query(self, role: Role, query: str) -> PitchResult:
        """Answer the free-form variant by mapping the query onto a focus.

        Without any keyword hit the role's highest-confidence focus is used.
        """
        focus = infer_focus(query) or self._best_focus(role)
        return self.generate(role, focus)

    def _best_focus(self, role: Role) -> Focus:
        candidates = [(f, self._rules[(role, f)]) for f in Focus if (role, f) in self._rules]
        if not candidates:
            raise RuleNotFoundError(role, next(iter(Focus)))
        # max() keeps the first of equal confidences, i.e. declaration order
        return max(candidates, key=lambda c: c[1].confidence)[0]
