"""Funding potential and risk level derived from a scored assessment.

Both are deterministic reads of the overall score, the category percentages
and the ``annual-revenue`` answer; nothing here changes the score itself.
"""

from __future__ import annotations

import enum
import math
from collections.abc import Mapping, Sequence
from dataclasses import dataclass, field
from fractions import Fraction
from typing import Any

from app.modules.fundability.engine import CategoryScore, round_half_up

REVENUE_CRITERION_ID = "annual-revenue"


class RiskLevel(str, enum.Enum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"


@dataclass(frozen=True)
class FundingTier:
    min_score: int
    revenue_multiplier: Fraction
    time_to_funding_days: int
    recommended_products: tuple[str, ...]


# Highest tier first; the last tier catches every score.
FUNDING_TIERS: tuple[FundingTier, ...] = (
    FundingTier(
        min_score=80,
        revenue_multiplier=Fraction(3, 10),
        time_to_funding_days=7,
        recommended_products=("SBA Loans", "Business Lines of Credit", "Equipment Financing"),
    ),
    FundingTier(
        min_score=60,
        revenue_multiplier=Fraction(2, 10),
        time_to_funding_days=14,
        recommended_products=("Business Term Loans", "Working Capital Loans", "Invoice Factoring"),
    ),
    FundingTier(
        min_score=0,
        revenue_multiplier=Fraction(1, 10),
        time_to_funding_days=30,
        recommended_products=(
            "Alternative Lending",
            "Merchant Cash Advance",
            "Revenue-Based Financing",
        ),
    ),
)

LOW_RISK_AVERAGE = 80
LOW_RISK_REVENUE = 100_000
MEDIUM_RISK_AVERAGE = 60
MEDIUM_RISK_REVENUE = 50_000


@dataclass
class FundingPotential:
    max_amount: int | None  # None when annual revenue is unanswered
    revenue_multiplier: float
    time_to_funding_days: int
    recommended_products: list[str] = field(default_factory=list)
    risk_level: RiskLevel = RiskLevel.HIGH

    def to_dict(self) -> dict[str, Any]:
        return {
            "max_amount": self.max_amount,
            "revenue_multiplier": self.revenue_multiplier,
            "time_to_funding_days": self.time_to_funding_days,
            "recommended_products": list(self.recommended_products),
            "risk_level": self.risk_level.value,
        }


def annual_revenue(responses: Mapping[str, Any] | None) -> Fraction | None:
    """The answered revenue as an exact value, or None when missing or malformed."""
    value = (responses or {}).get(REVENUE_CRITERION_ID)
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return None
    if not math.isfinite(value) or value < 0:
        return None
    return Fraction(value)


def tier_for(overall_score: int) -> FundingTier:
    for tier in FUNDING_TIERS:
        if overall_score >= tier.min_score:
            return tier
    return FUNDING_TIERS[-1]


def risk_level(
    category_scores: Sequence[CategoryScore], revenue: Fraction | None
) -> RiskLevel:
    """Average category percentage gated by revenue; unanswered revenue counts as 0.

    Categories with nothing to score are left out of the average.
    """
    scored = [s.percentage for s in category_scores if s.max_score > 0]
    if not scored:
        return RiskLevel.HIGH
    average = Fraction(sum(scored), len(scored))
    revenue = revenue or Fraction(0)
    if average >= LOW_RISK_AVERAGE and revenue >= LOW_RISK_REVENUE:
        return RiskLevel.LOW
    if average >= MEDIUM_RISK_AVERAGE and revenue >= MEDIUM_RISK_REVENUE:
        return RiskLevel.MEDIUM
    return RiskLevel.HIGH


def assess_funding_potential(
    overall_score: int,
    category_scores: Sequence[CategoryScore],
    responses: Mapping[str, Any] | None,
) -> FundingPotential:
    revenue = annual_revenue(responses)
    tier = tier_for(overall_score)
    return FundingPotential(
        max_amount=None if revenue is None else round_half_up(revenue * tier.revenue_multiplier),
        revenue_multiplier=float(tier.revenue_multiplier),
        time_to_funding_days=tier.time_to_funding_days,
        recommended_products=list(tier.recommended_products),
        risk_level=risk_level(category_scores, revenue),
    )
