"""Control-flow density score — the one complexity scorer used everywhere.

score = 1 + occurrences of each indicator in the code. Word indicators match
on word boundaries (``if`` does not match ``verify``); symbolic indicators
match literally. Tiers: < 5 low, < 15 medium, otherwise high.
"""

from __future__ import annotations

import re

from semindex.db.models import Complexity

INDICATORS: tuple[str, ...] = (
    # conditionals
    "if",
    "elif",
    "else",
    "switch",
    "case",
    # loops
    "for",
    "while",
    "loop",
    # exception handling
    "catch",
    "except",
    # short-circuit / ternary
    "?",
    "&&",
    "||",
    # pattern matching
    "match",
    # escape hatches
    "unsafe",
    "unwrap",
    "expect",
)

LOW_THRESHOLD = 5
HIGH_THRESHOLD = 15

_PATTERNS: tuple[re.Pattern[str], ...] = tuple(
    re.compile(rf"\b{re.escape(ind)}\b" if ind.isalpha() else re.escape(ind))
    for ind in INDICATORS
)


def level_for(score: int) -> str:
    if score < LOW_THRESHOLD:
        return "low"
    if score < HIGH_THRESHOLD:
        return "medium"
    return "high"


def score(code: str) -> Complexity:
    """Score *code*. Deterministic: the same text always yields the same result."""
    total = 1 + sum(len(p.findall(code)) for p in _PATTERNS)
    return Complexity(score=total, level=level_for(total))
