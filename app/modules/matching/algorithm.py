"""Matching algorithm: pure deterministic scoring, no I/O.

Scores a business profile against a lender or tradeline's eligibility rules.
Each satisfied rule contributes a fixed share of 100; the per-rule breakdown
is returned with every score for auditability.
"""

from __future__ import annotations

import enum
import math
from collections.abc import Iterable, Mapping
from dataclasses import dataclass, field
from decimal import Decimal
from typing import Any

from app.modules.fundability.criteria import industry_slug
from app.modules.fundability.potential import RiskLevel

CREDIT_POINTS = 30
REVENUE_POINTS = 25
TIME_POINTS = 20
INDUSTRY_POINTS = 15
GUARANTEE_POINTS = 10

DEFAULT_PREQUALIFIED_THRESHOLD = 80
DEFAULT_MATCH_CUTOFF = 60

# Rule results that earn the rule's points.
_PASSING = frozenset({"pass", "allowed", "unrestricted", "not_required"})

_STRENGTHS: dict[str, str] = {
    "credit": "Meets the minimum credit score",
    "revenue": "Meets the annual revenue requirement",
    "time_in_business": "Meets the time in business requirement",
    "industry": "Industry accepted by this lender",
    "personal_guarantee": "No personal guarantee required",
}

_CONCERNS: dict[tuple[str, str], str] = {
    ("credit", "fail"): "Credit score below the minimum requirement",
    ("credit", "missing"): "Credit score not provided",
    ("revenue", "fail"): "Annual revenue below the minimum requirement",
    ("revenue", "missing"): "Annual revenue not provided",
    ("time_in_business", "fail"): "Business too new for this lender",
    ("time_in_business", "missing"): "Time in business not provided",
    ("industry", "excluded"): "Industry excluded by this lender",
    ("industry", "not_allowed"): "Industry outside this lender's focus",
    ("industry", "missing"): "Industry not provided",
    ("personal_guarantee", "required"): "Personal guarantee required",
}

_NEXT_STEPS_STRONG = (
    "Apply now: this is a strong match",
    "Prepare your financial documents",
    "Review the loan terms carefully",
)
_NEXT_STEPS_FAIR = (
    "Review the application requirements",
    "Address the listed concerns first",
    "Prepare a strong application package",
)
_NEXT_STEPS_WEAK = (
    "Improve your fundability score",
    "Consider alternative lenders",
    "Work on your business metrics",
)


class OpportunityKind(str, enum.Enum):
    FUNDING = "funding"
    TRADELINE = "tradeline"


@dataclass(frozen=True)
class LenderOpportunity:
    id: str
    name: str
    kind: OpportunityKind
    min_credit_score: int = 0
    min_annual_revenue: Decimal = Decimal("0")
    min_time_in_business_months: int = 0
    allowed_industries: tuple[str, ...] = ()  # empty = unrestricted
    excluded_industries: tuple[str, ...] = ()
    requires_personal_guarantee: bool = False
    product_type: str = ""
    min_amount: Decimal | None = None
    max_amount: Decimal | None = None
    description: str = ""
    application_url: str | None = None


@dataclass(frozen=True)
class BusinessProfile:
    credit_score: int | None = None
    annual_revenue: Decimal | None = None
    years_in_business: float | None = None
    industry: str | None = None
    fundability_score: int | None = None


@dataclass
class MatchScore:
    opportunity_id: str
    score: int
    prequalified: bool
    breakdown: dict[str, Any] = field(default_factory=dict)
    strengths: list[str] = field(default_factory=list)
    concerns: list[str] = field(default_factory=list)
    next_steps: list[str] = field(default_factory=list)
    risk_level: RiskLevel = RiskLevel.LOW


class MatchingAlgorithm:
    """
    Deterministic eligibility scoring between a BusinessProfile and a LenderOpportunity.

    Total: 100 points across 5 rules.
    """

    def __init__(self, prequalified_threshold: int = DEFAULT_PREQUALIFIED_THRESHOLD):
        self.prequalified_threshold = prequalified_threshold

    def score_match(
        self, opportunity: LenderOpportunity, profile: BusinessProfile
    ) -> MatchScore:
        credit_pts, credit_detail = self._score_credit(opportunity, profile)
        revenue_pts, revenue_detail = self._score_revenue(opportunity, profile)
        time_pts, time_detail = self._score_time(opportunity, profile)
        industry_pts, industry_detail = self._score_industry(opportunity, profile)
        guarantee_pts, guarantee_detail = self._score_guarantee(opportunity)

        total = credit_pts + revenue_pts + time_pts + industry_pts + guarantee_pts
        score = max(0, min(100, total))

        breakdown = {
            "credit": credit_detail,
            "revenue": revenue_detail,
            "time_in_business": time_detail,
            "industry": industry_detail,
            "personal_guarantee": guarantee_detail,
        }
        strengths, concerns = _summarize(breakdown)

        return MatchScore(
            opportunity_id=opportunity.id,
            score=score,
            prequalified=score >= self.prequalified_threshold,
            breakdown=breakdown,
            strengths=strengths,
            concerns=concerns,
            next_steps=list(self._next_steps(score)),
            risk_level=_risk_for(concerns),
        )

    def rank_opportunities(
        self,
        profile: BusinessProfile,
        opportunities: Iterable[LenderOpportunity],
        cutoff: int = DEFAULT_MATCH_CUTOFF,
    ) -> list[tuple[LenderOpportunity, MatchScore]]:
        """Matches scoring at or above ``cutoff``, best first, ties by id."""
        scored = [(opp, self.score_match(opp, profile)) for opp in opportunities]
        kept = [(opp, match) for opp, match in scored if match.score >= cutoff]
        kept.sort(key=lambda pair: (-pair[1].score, pair[0].id))
        return kept

    def _next_steps(self, score: int) -> tuple[str, ...]:
        if score >= self.prequalified_threshold:
            return _NEXT_STEPS_STRONG
        if score >= DEFAULT_MATCH_CUTOFF:
            return _NEXT_STEPS_FAIR
        return _NEXT_STEPS_WEAK

    # ── Rule scorers ───────────────────────────────────────────────────────

    def _score_credit(
        self, opportunity: LenderOpportunity, profile: BusinessProfile
    ) -> tuple[int, dict]:
        detail = {"required": opportunity.min_credit_score, "actual": profile.credit_score}
        if profile.credit_score is None:
            return 0, {**detail, "result": "missing"}
        if profile.credit_score >= opportunity.min_credit_score:
            return CREDIT_POINTS, {**detail, "result": "pass"}
        return 0, {**detail, "result": "fail"}

    def _score_revenue(
        self, opportunity: LenderOpportunity, profile: BusinessProfile
    ) -> tuple[int, dict]:
        detail = {
            "required": str(opportunity.min_annual_revenue),
            "actual": None if profile.annual_revenue is None else str(profile.annual_revenue),
        }
        if profile.annual_revenue is None:
            return 0, {**detail, "result": "missing"}
        if Decimal(profile.annual_revenue) >= Decimal(opportunity.min_annual_revenue):
            return REVENUE_POINTS, {**detail, "result": "pass"}
        return 0, {**detail, "result": "fail"}

    def _score_time(
        self, opportunity: LenderOpportunity, profile: BusinessProfile
    ) -> tuple[int, dict]:
        detail: dict[str, Any] = {"required_months": opportunity.min_time_in_business_months}
        if profile.years_in_business is None:
            return 0, {**detail, "actual_months": None, "result": "missing"}
        months = profile.years_in_business * 12
        detail["actual_months"] = months
        if months >= opportunity.min_time_in_business_months:
            return TIME_POINTS, {**detail, "result": "pass"}
        return 0, {**detail, "result": "fail"}

    def _score_industry(
        self, opportunity: LenderOpportunity, profile: BusinessProfile
    ) -> tuple[int, dict]:
        allowed = {industry_slug(i) for i in opportunity.allowed_industries}
        excluded = {industry_slug(i) for i in opportunity.excluded_industries}

        industry = industry_slug(profile.industry) if profile.industry else ""
        if not industry:
            if not allowed and not excluded:
                return INDUSTRY_POINTS, {"result": "unrestricted", "industry": None}
            return 0, {"result": "missing", "industry": None}

        if industry in excluded:
            return 0, {"result": "excluded", "industry": industry}
        if not allowed:
            return INDUSTRY_POINTS, {"result": "unrestricted", "industry": industry}
        if industry in allowed:
            return INDUSTRY_POINTS, {"result": "allowed", "industry": industry}
        return 0, {"result": "not_allowed", "industry": industry, "allowed": sorted(allowed)}

    def _score_guarantee(self, opportunity: LenderOpportunity) -> tuple[int, dict]:
        if opportunity.requires_personal_guarantee:
            return 0, {"result": "required"}
        return GUARANTEE_POINTS, {"result": "not_required"}


# ── Match narrative ──────────────────────────────────────────────────────────


def _summarize(breakdown: Mapping[str, dict]) -> tuple[list[str], list[str]]:
    """Strengths and concerns, one per rule, in rule order."""
    strengths: list[str] = []
    concerns: list[str] = []
    for rule, detail in breakdown.items():
        result = detail["result"]
        if result in _PASSING:
            strengths.append(_STRENGTHS[rule])
        else:
            concerns.append(_CONCERNS[(rule, result)])
    return strengths, concerns


def _risk_for(concerns: list[str]) -> RiskLevel:
    if len(concerns) >= 3:
        return RiskLevel.HIGH
    if concerns:
        return RiskLevel.MEDIUM
    return RiskLevel.LOW


# ── Profile derivation ───────────────────────────────────────────────────────


def _credit_band_floor(option: str) -> int | None:
    """"700-749" -> 700, "800+" -> 800, "Below 600" -> 0."""
    if option.lower().startswith("below"):
        return 0
    head = option.rstrip("+").split("-", 1)[0].strip()
    return int(head) if head.isdigit() else None


def _number(value: Any) -> float | None:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return None
    if not math.isfinite(value) or value < 0:
        return None
    return value


def profile_from_responses(
    responses: Mapping[str, Any], overall_score: int | None = None
) -> BusinessProfile:
    """Derive a matching profile from fundability answers."""
    band = responses.get("personal-credit-score")
    credit_score = _credit_band_floor(band) if isinstance(band, str) else None

    months = _number(responses.get("business-age"))
    revenue = _number(responses.get("annual-revenue"))
    industry = responses.get("industry")

    return BusinessProfile(
        credit_score=credit_score,
        annual_revenue=None if revenue is None else Decimal(str(revenue)),
        years_in_business=None if months is None else months / 12,
        industry=industry if isinstance(industry, str) and industry.strip() else None,
        fundability_score=overall_score,
    )
