"""Tests for funding potential and risk level."""

import pytest

from app.modules.fundability.criteria import get_catalog
from app.modules.fundability.engine import CategoryScore, score_responses
from app.modules.fundability.potential import (
    RiskLevel,
    annual_revenue,
    assess_funding_potential,
    risk_level,
    tier_for,
)


def _category(percentage: int, max_score: float = 10.0) -> CategoryScore:
    return CategoryScore(
        category_id=f"cat-{percentage}",
        raw_score=max_score * percentage / 100,
        max_score=max_score,
        percentage=percentage,
        completed_criteria=1,
        total_criteria=1,
        is_complete=True,
    )


class TestTiers:
    @pytest.mark.parametrize(
        "score, multiplier, days",
        [(100, 0.3, 7), (80, 0.3, 7), (79, 0.2, 14), (60, 0.2, 14), (59, 0.1, 30), (0, 0.1, 30)],
    )
    def test_boundaries(self, score, multiplier, days):
        tier = tier_for(score)
        assert float(tier.revenue_multiplier) == multiplier
        assert tier.time_to_funding_days == days

    def test_products_follow_tier(self):
        assert tier_for(85).recommended_products[0] == "SBA Loans"
        assert tier_for(65).recommended_products[0] == "Business Term Loans"
        assert tier_for(10).recommended_products[0] == "Alternative Lending"


class TestAnnualRevenue:
    @pytest.mark.parametrize("value", [None, True, "250000", -1, float("nan"), float("inf")])
    def test_unusable_values(self, value):
        assert annual_revenue({"annual-revenue": value}) is None

    def test_missing_and_empty(self):
        assert annual_revenue({}) is None
        assert annual_revenue(None) is None

    def test_float_kept_exact(self):
        assert annual_revenue({"annual-revenue": 250000.5}) * 2 == 500001


class TestRiskLevel:
    def test_low_needs_average_and_revenue(self):
        scores = [_category(90), _category(70)]
        assert risk_level(scores, 100_000) is RiskLevel.LOW
        assert risk_level(scores, 99_999) is RiskLevel.MEDIUM

    def test_medium_band(self):
        scores = [_category(60), _category(60)]
        assert risk_level(scores, 50_000) is RiskLevel.MEDIUM
        assert risk_level(scores, 49_999) is RiskLevel.HIGH

    def test_low_average_is_high_risk(self):
        assert risk_level([_category(59)], 1_000_000) is RiskLevel.HIGH

    def test_missing_revenue_is_high_risk(self):
        assert risk_level([_category(100)], None) is RiskLevel.HIGH

    def test_empty_categories_left_out(self):
        scores = [_category(90), _category(0, max_score=0.0)]
        assert risk_level(scores, 100_000) is RiskLevel.LOW

    def test_nothing_scored(self):
        assert risk_level([], 1_000_000) is RiskLevel.HIGH


class TestAssessFundingPotential:
    def test_strong_profile(self, strong_responses):
        result = score_responses(get_catalog(), strong_responses)
        potential = assess_funding_potential(
            result.overall.percentage, result.category_scores, strong_responses
        )
        assert potential.max_amount == 90000
        assert potential.revenue_multiplier == 0.3
        assert potential.time_to_funding_days == 7
        assert potential.risk_level is RiskLevel.LOW
        assert potential.to_dict()["recommended_products"] == [
            "SBA Loans",
            "Business Lines of Credit",
            "Equipment Financing",
        ]

    def test_amount_rounds_half_up(self):
        potential = assess_funding_potential(50, [_category(50)], {"annual-revenue": 12345})
        assert potential.max_amount == 1235

    def test_unanswered_revenue(self):
        result = score_responses(get_catalog(), {})
        potential = assess_funding_potential(
            result.overall.percentage, result.category_scores, {}
        )
        assert potential.max_amount is None
        assert potential.time_to_funding_days == 30
        assert potential.to_dict()["risk_level"] == "high"
