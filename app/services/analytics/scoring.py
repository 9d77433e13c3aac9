"""
Call Outcome Scoring — heuristic 0–100 success rating for a call.

Stands in for real call-quality scoring. Keys on the provider's own
ended-reason vocabulary (e.g. "customer-ended-call"), not the canonical
EndReason enum. Rules are evaluated in order; the first match wins, so
reason-specific rules must precede the duration-only fallbacks.

The early-drop rule is inclusive at 30 s for both customer reasons: a
30-second customer-ended or customer-hung-up call scores 40. Customer-ended
calls reach the "engaged" tier from 31 s.
"""

from __future__ import annotations

from collections.abc import Callable, Sequence
from typing import NamedTuple


class ScoringRule(NamedTuple):
    """A single (predicate, score) rule."""

    name: str
    matches: Callable[[int, str | None], bool]
    score: int


DEFAULT_SCORE = 70

SCORING_RULES: tuple[ScoringRule, ...] = (
    ScoringRule(
        "customer_ended_engaged",
        lambda d, r: r == "customer-ended-call" and d > 30,
        85,
    ),
    ScoringRule(
        "assistant_ended_engaged",
        lambda d, r: r == "assistant-ended-call" and d > 60,
        90,
    ),
    ScoringRule("voicemail", lambda d, r: r == "voicemail", 95),
    # Inclusive: 30 s exactly still counts as an early drop
    ScoringRule(
        "customer_dropped_early",
        lambda d, r: r in ("customer-hung-up", "customer-ended-call") and d <= 30,
        40,
    ),
    ScoringRule(
        "system_failure",
        lambda d, r: r in ("pipeline-error", "exceeded-max-duration"),
        30,
    ),
    ScoringRule("long_call", lambda d, r: d > 120, 80),
    ScoringRule("medium_call", lambda d, r: d > 60, 75),
)


def score_call(
    duration: int,
    ended_reason: str | None,
    rules: Sequence[ScoringRule] = SCORING_RULES,
) -> int:
    """Score a call from its duration (seconds) and raw provider end reason.

    Total: unknown or missing reasons fall through to the duration tiers,
    and anything unmatched gets DEFAULT_SCORE.
    """
    for rule in rules:
        if rule.matches(duration, ended_reason):
            return rule.score
    return DEFAULT_SCORE
