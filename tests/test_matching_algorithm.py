"""Tests for the lender matching algorithm."""

from dataclasses import replace
from decimal import Decimal

import pytest

from app.modules.fundability.criteria import get_catalog, industry_slug
from app.modules.fundability.potential import RiskLevel
from app.modules.matching.algorithm import (
    BusinessProfile,
    LenderOpportunity,
    MatchingAlgorithm,
    OpportunityKind,
    profile_from_responses,
)
from app.modules.matching.catalog import SEED_OPPORTUNITIES


def _opportunity(opp_id: str = "opp-1", **overrides) -> LenderOpportunity:
    params = dict(
        id=opp_id,
        name="Sample Lender",
        kind=OpportunityKind.FUNDING,
        min_credit_score=650,
        min_annual_revenue=Decimal("100000"),
        min_time_in_business_months=24,
    )
    params.update(overrides)
    return LenderOpportunity(**params)


STRONG_PROFILE = BusinessProfile(
    credit_score=700,
    annual_revenue=Decimal("150000"),
    years_in_business=3,
    industry="retail",
)


class TestScoreMatch:
    def test_every_rule_met(self):
        match = MatchingAlgorithm().score_match(_opportunity(), STRONG_PROFILE)
        assert match.score == 100
        assert match.prequalified is True
        assert {k: v["result"] for k, v in match.breakdown.items()} == {
            "credit": "pass",
            "revenue": "pass",
            "time_in_business": "pass",
            "industry": "unrestricted",
            "personal_guarantee": "not_required",
        }

    def test_weak_credit_and_short_history(self):
        profile = BusinessProfile(
            credit_score=600,
            annual_revenue=Decimal("150000"),
            years_in_business=1,
            industry="retail",
        )
        match = MatchingAlgorithm().score_match(_opportunity(), profile)
        assert match.score == 50
        assert match.prequalified is False
        assert match.breakdown["credit"]["result"] == "fail"
        assert match.breakdown["time_in_business"]["actual_months"] == 12

    def test_personal_guarantee_withholds_points(self):
        match = MatchingAlgorithm().score_match(
            _opportunity(requires_personal_guarantee=True), STRONG_PROFILE
        )
        assert match.score == 90
        assert match.prequalified is True

    def test_custom_prequalified_threshold(self):
        algorithm = MatchingAlgorithm(prequalified_threshold=95)
        match = algorithm.score_match(
            _opportunity(requires_personal_guarantee=True), STRONG_PROFILE
        )
        assert match.prequalified is False

    def test_thresholds_are_inclusive(self):
        profile = BusinessProfile(
            credit_score=650,
            annual_revenue=Decimal("100000"),
            years_in_business=2,
            industry="retail",
        )
        assert MatchingAlgorithm().score_match(_opportunity(), profile).score == 100

    def test_missing_values_fail_their_rules(self):
        match = MatchingAlgorithm().score_match(_opportunity(), BusinessProfile())
        assert match.score == 25
        assert match.breakdown["credit"]["result"] == "missing"
        assert match.breakdown["revenue"]["result"] == "missing"
        assert match.breakdown["time_in_business"]["result"] == "missing"

    def test_score_never_exceeds_100(self):
        lenient = _opportunity(
            min_credit_score=0, min_annual_revenue=Decimal("0"), min_time_in_business_months=0
        )
        assert MatchingAlgorithm().score_match(lenient, STRONG_PROFILE).score == 100


class TestIndustryRule:
    def test_excluded_industry(self):
        opp = _opportunity(excluded_industries=("gambling",))
        profile = replace(STRONG_PROFILE, industry="Gambling")
        match = MatchingAlgorithm().score_match(opp, profile)
        assert match.score == 85
        assert match.breakdown["industry"] == {"result": "excluded", "industry": "gambling"}

    def test_allowed_industry_normalised(self):
        opp = _opportunity(allowed_industries=("food_service",))
        profile = replace(STRONG_PROFILE, industry="Food Service")
        match = MatchingAlgorithm().score_match(opp, profile)
        assert match.breakdown["industry"]["result"] == "allowed"
        assert match.score == 100

    def test_industry_not_in_allow_list(self):
        opp = _opportunity(allowed_industries=("construction",))
        match = MatchingAlgorithm().score_match(opp, STRONG_PROFILE)
        assert match.breakdown["industry"]["result"] == "not_allowed"
        assert match.score == 85

    def test_missing_industry_passes_only_unrestricted(self):
        profile = replace(STRONG_PROFILE, industry=None)
        algorithm = MatchingAlgorithm()
        assert algorithm.score_match(_opportunity(), profile).score == 100
        restricted = _opportunity(excluded_industries=("gambling",))
        match = algorithm.score_match(restricted, profile)
        assert match.score == 85
        assert match.breakdown["industry"]["result"] == "missing"

    @pytest.mark.parametrize("option", get_catalog().criterion("industry").options)
    def test_catalog_industry_answers_match_allow_lists(self, option):
        opp = _opportunity(allowed_industries=(industry_slug(option),))
        profile = replace(
            STRONG_PROFILE, industry=profile_from_responses({"industry": option}).industry
        )
        match = MatchingAlgorithm().score_match(opp, profile)
        assert match.breakdown["industry"]["result"] == "allowed"
        assert match.score == 100

    def test_slash_in_industry_answer_hits_exclusion(self):
        opp = _opportunity(excluded_industries=("restaurant_food_service",))
        profile = replace(STRONG_PROFILE, industry="Restaurant/Food Service")
        match = MatchingAlgorithm().score_match(opp, profile)
        assert match.breakdown["industry"] == {
            "result": "excluded",
            "industry": "restaurant_food_service",
        }

    def test_punctuation_only_industry_is_missing(self):
        restricted = _opportunity(excluded_industries=("gambling",))
        match = MatchingAlgorithm().score_match(restricted, replace(STRONG_PROFILE, industry="//"))
        assert match.breakdown["industry"]["result"] == "missing"


class TestMatchNarrative:
    def test_clean_match(self):
        match = MatchingAlgorithm().score_match(_opportunity(), STRONG_PROFILE)
        assert len(match.strengths) == 5
        assert match.concerns == []
        assert match.risk_level is RiskLevel.LOW
        assert match.next_steps[0] == "Apply now: this is a strong match"

    def test_guarantee_is_a_concern(self):
        match = MatchingAlgorithm().score_match(
            _opportunity(requires_personal_guarantee=True), STRONG_PROFILE
        )
        assert match.concerns == ["Personal guarantee required"]
        assert "No personal guarantee required" not in match.strengths
        assert match.risk_level is RiskLevel.MEDIUM
        assert match.next_steps[0] == "Apply now: this is a strong match"

    def test_fair_match(self):
        profile = replace(STRONG_PROFILE, credit_score=600)
        match = MatchingAlgorithm().score_match(_opportunity(), profile)
        assert match.score == 70
        assert match.concerns == ["Credit score below the minimum requirement"]
        assert match.next_steps[0] == "Review the application requirements"

    def test_weak_match(self):
        profile = replace(STRONG_PROFILE, credit_score=600, years_in_business=1)
        match = MatchingAlgorithm().score_match(_opportunity(), profile)
        assert match.score == 50
        assert match.concerns == [
            "Credit score below the minimum requirement",
            "Business too new for this lender",
        ]
        assert match.strengths == [
            "Meets the annual revenue requirement",
            "Industry accepted by this lender",
            "No personal guarantee required",
        ]
        assert match.risk_level is RiskLevel.MEDIUM
        assert match.next_steps == [
            "Improve your fundability score",
            "Consider alternative lenders",
            "Work on your business metrics",
        ]

    def test_three_concerns_is_high_risk(self):
        match = MatchingAlgorithm().score_match(_opportunity(), BusinessProfile())
        assert match.concerns == [
            "Credit score not provided",
            "Annual revenue not provided",
            "Time in business not provided",
        ]
        assert match.risk_level is RiskLevel.HIGH

    def test_next_steps_follow_custom_threshold(self):
        match = MatchingAlgorithm(prequalified_threshold=95).score_match(
            _opportunity(requires_personal_guarantee=True), STRONG_PROFILE
        )
        assert match.next_steps[0] == "Review the application requirements"


class TestRankOpportunities:
    def test_cutoff_and_order(self):
        profile = BusinessProfile(
            credit_score=600,
            annual_revenue=Decimal("150000"),
            years_in_business=1,
            industry="retail",
        )
        strict = _opportunity("strict")
        easy = _opportunity(
            "easy", min_credit_score=500, min_annual_revenue=Decimal("0"), min_time_in_business_months=6
        )
        ranked = MatchingAlgorithm().rank_opportunities(profile, [strict, easy])
        assert [opp.id for opp, _ in ranked] == ["easy"]
        assert ranked[0][1].score == 100

    def test_ties_broken_by_id(self):
        opps = [_opportunity("c"), _opportunity("a"), _opportunity("b")]
        ranked = MatchingAlgorithm().rank_opportunities(STRONG_PROFILE, opps)
        assert [opp.id for opp, _ in ranked] == ["a", "b", "c"]

    def test_custom_cutoff(self):
        profile = BusinessProfile(credit_score=600, annual_revenue=Decimal("150000"), years_in_business=1)
        ranked = MatchingAlgorithm().rank_opportunities(profile, [_opportunity()], cutoff=50)
        assert len(ranked) == 1
        assert ranked[0][1].score == 50

    def test_empty_catalog(self):
        assert MatchingAlgorithm().rank_opportunities(STRONG_PROFILE, []) == []

    def test_seed_catalog_for_strong_profile(self):
        ranked = MatchingAlgorithm().rank_opportunities(STRONG_PROFILE, SEED_OPPORTUNITIES)
        ids = [opp.id for opp, _ in ranked]
        # tradelines carry no guarantee and outrank funding products
        assert ids[:4] == ["fleet-fuel", "grainger-supplies", "net30-accounts", "uline-supplies"]
        assert set(ids[4:]) == {"kabbage-loc", "ondeck-term", "sba-loan"}
        assert all(match.score == 90 for _, match in ranked[4:])


class TestProfileFromResponses:
    def test_derives_profile(self, strong_responses):
        profile = profile_from_responses(strong_responses, overall_score=100)
        assert profile.credit_score == 750
        assert profile.annual_revenue == Decimal("300000")
        assert profile.years_in_business == 3
        assert profile.industry == "Retail"
        assert profile.fundability_score == 100

    @pytest.mark.parametrize(
        "band, floor", [("Below 600", 0), ("600-649", 600), ("700-749", 700), ("800+", 800)]
    )
    def test_credit_band_floor(self, band, floor):
        assert profile_from_responses({"personal-credit-score": band}).credit_score == floor

    def test_malformed_values_become_missing(self):
        profile = profile_from_responses(
            {
                "personal-credit-score": 720,
                "business-age": -3,
                "annual-revenue": "lots",
                "industry": "  ",
            }
        )
        assert profile == BusinessProfile()

    def test_empty_responses(self):
        assert profile_from_responses({}) == BusinessProfile()
