"""
Tests for call outcome scoring.

Covers: each rule, rule precedence, boundaries, unknown/missing reasons.
"""

import pytest

from app.services.analytics.scoring import (
    DEFAULT_SCORE,
    SCORING_RULES,
    ScoringRule,
    score_call,
)

# ===========================================================================
# TestScoreCall
# ===========================================================================


@pytest.mark.unit
class TestScoreCall:
    """Heuristic score from duration + raw provider reason."""

    def test_customer_ended_engaged(self) -> None:
        assert score_call(31, "customer-ended-call") == 85

    def test_customer_ended_at_exactly_30(self) -> None:
        # 30 is not > 30, so it lands in the early-drop rule
        assert score_call(30, "customer-ended-call") == 40

    def test_customer_ended_short(self) -> None:
        assert score_call(5, "customer-ended-call") == 40

    def test_customer_hung_up_short(self) -> None:
        assert score_call(12, "customer-hung-up") == 40

    def test_customer_hung_up_boundary_is_inclusive(self) -> None:
        assert score_call(30, "customer-hung-up") == 40
        assert score_call(31, "customer-hung-up") == 70

    def test_customer_hung_up_long_uses_duration_tiers(self) -> None:
        assert score_call(200, "customer-hung-up") == 80
        assert score_call(90, "customer-hung-up") == 75
        assert score_call(45, "customer-hung-up") == 70

    def test_assistant_ended_engaged(self) -> None:
        assert score_call(61, "assistant-ended-call") == 90

    def test_assistant_ended_at_exactly_60(self) -> None:
        assert score_call(60, "assistant-ended-call") == 70

    def test_voicemail_any_duration(self) -> None:
        assert score_call(0, "voicemail") == 95
        assert score_call(500, "voicemail") == 95

    def test_pipeline_error(self) -> None:
        assert score_call(300, "pipeline-error") == 30

    def test_exceeded_max_duration(self) -> None:
        assert score_call(1800, "exceeded-max-duration") == 30

    def test_unknown_reason_long(self) -> None:
        assert score_call(121, "unknown-reason") == 80

    def test_unknown_reason_at_exactly_120(self) -> None:
        assert score_call(120, "unknown-reason") == 75

    def test_unknown_reason_short(self) -> None:
        assert score_call(10, "unknown-reason") == 70

    def test_missing_reason(self) -> None:
        assert score_call(0, None) == DEFAULT_SCORE
        assert score_call(61, None) == 75

    def test_silence_timeout_has_no_specific_rule(self) -> None:
        assert score_call(130, "silence-timeout") == 80


# ===========================================================================
# TestScoringRules
# ===========================================================================


@pytest.mark.unit
class TestScoringRules:
    """Rule table ordering and extensibility."""

    def test_reason_rules_precede_duration_rules(self) -> None:
        names = [rule.name for rule in SCORING_RULES]
        assert names.index("system_failure") < names.index("long_call")
        assert names.index("voicemail") < names.index("medium_call")

    def test_all_scores_in_range(self) -> None:
        for rule in SCORING_RULES:
            assert 0 <= rule.score <= 100

    def test_custom_rules(self) -> None:
        rules = (ScoringRule("anything_long", lambda d, r: d > 10, 55),)
        assert score_call(11, "voicemail", rules=rules) == 55
        assert score_call(5, "voicemail", rules=rules) == DEFAULT_SCORE

    def test_first_match_wins(self) -> None:
        rules = (
            ScoringRule("first", lambda d, r: True, 1),
            ScoringRule("second", lambda d, r: True, 2),
        )
        assert score_call(0, None, rules=rules) == 1
