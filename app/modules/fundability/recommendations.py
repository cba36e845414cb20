"""Recommendation generator: rule tables keyed by criterion, category and industry.

Consumes a scoring run's category scores plus the raw responses and emits a
deduplicated, deterministically ordered list of actionable recommendations.
"""

from __future__ import annotations

import enum
from collections.abc import Mapping, Sequence
from dataclasses import dataclass, field
from fractions import Fraction
from typing import Any

from app.modules.fundability.criteria import (
    Category,
    CriteriaCatalog,
    Criterion,
    industry_slug,
)
from app.modules.fundability.engine import (
    CategoryScore,
    criterion_points,
    normalized_weights,
    round_half_up,
)


class Priority(str, enum.Enum):
    CRITICAL = "critical"
    HIGH = "high"
    MEDIUM = "medium"
    LOW = "low"

    @property
    def rank(self) -> int:
        return _PRIORITY_RANK[self]


_PRIORITY_RANK = {
    Priority.CRITICAL: 0,
    Priority.HIGH: 1,
    Priority.MEDIUM: 2,
    Priority.LOW: 3,
}


@dataclass(frozen=True)
class Resource:
    title: str
    url: str


@dataclass(frozen=True)
class Template:
    title: str
    description: str
    action_items: tuple[str, ...]
    timeframe: str
    resources: tuple[Resource, ...] = ()
    priority: Priority = Priority.MEDIUM  # industry variants only


@dataclass
class Recommendation:
    id: str
    category_id: str | None
    criterion_id: str | None
    title: str
    description: str
    priority: Priority
    estimated_impact: float
    action_items: list[str] = field(default_factory=list)
    resources: list[dict[str, str]] = field(default_factory=list)
    timeframe: str = ""

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "category_id": self.category_id,
            "criterion_id": self.criterion_id,
            "title": self.title,
            "description": self.description,
            "priority": self.priority.value,
            "estimated_impact": self.estimated_impact,
            "action_items": list(self.action_items),
            "resources": [dict(r) for r in self.resources],
            "timeframe": self.timeframe,
        }

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> Recommendation:
        return cls(
            id=data["id"],
            category_id=data.get("category_id"),
            criterion_id=data.get("criterion_id"),
            title=data["title"],
            description=data["description"],
            priority=Priority(data["priority"]),
            estimated_impact=data["estimated_impact"],
            action_items=list(data.get("action_items", [])),
            resources=[dict(r) for r in data.get("resources", [])],
            timeframe=data.get("timeframe", ""),
        )


# ── Criterion templates ──────────────────────────────────────────────────────

CRITERION_TEMPLATES: dict[str, Template] = {
    "ein": Template(
        title="Obtain Federal EIN",
        description="An Employer Identification Number establishes your business credit identity.",
        action_items=(
            "Apply for an EIN on the IRS website (Form SS-4)",
            "Update all business documents to reference the EIN",
            "Use the EIN on every business financial account",
        ),
        timeframe="1-2 days",
        resources=(
            Resource(
                title="Apply for EIN Online",
                url="https://www.irs.gov/businesses/small-businesses-self-employed/apply-for-an-employer-identification-number-ein-online",
            ),
        ),
    ),
    "business-type": Template(
        title="Incorporate as an LLC or Corporation",
        description="Lenders prefer entities that separate business liability from the owner.",
        action_items=(
            "Compare LLC and corporation structures with an accountant",
            "File articles of organization or incorporation with your state",
            "Draft an operating agreement or bylaws",
        ),
        timeframe="2-4 weeks",
    ),
    "state-registration": Template(
        title="Register Your Business With the State",
        description="State registration makes the business verifiable to lenders and bureaus.",
        action_items=(
            "Register with your Secretary of State",
            "Keep annual reports and fees current",
        ),
        timeframe="1-2 weeks",
    ),
    "business-license": Template(
        title="Obtain a Business License",
        description="An active business license is a baseline requirement for most lenders.",
        action_items=(
            "Check city and county licensing requirements",
            "Apply for and display the required licenses",
            "Calendar renewal dates",
        ),
        timeframe="1-2 weeks",
    ),
    "business-age": Template(
        title="Build Business History",
        description="Time in business is one of the strongest approval factors for lenders.",
        action_items=(
            "Maintain consistent business operations",
            "Keep detailed business records",
            "File regular tax returns",
            "Build vendor relationships",
        ),
        timeframe="6-12 months",
    ),
    "business-credit-established": Template(
        title="Establish a Business Credit File",
        description="Without a business credit file lenders fall back on personal credit alone.",
        action_items=(
            "Open accounts with vendors that report to business bureaus",
            "Verify your listing with Experian Business and Equifax Business",
        ),
        timeframe="1-3 months",
    ),
    "credit-monitoring": Template(
        title="Monitor Business Credit Reports",
        description="Regular monitoring catches reporting errors before a lender sees them.",
        action_items=(
            "Subscribe to a business credit monitoring service",
            "Dispute inaccurate entries promptly",
        ),
        timeframe="1 week",
    ),
    "duns-number": Template(
        title="Get a D-U-N-S Number",
        description="Dun & Bradstreet's identifier is required to build a Paydex score.",
        action_items=(
            "Request a free D-U-N-S number from Dun & Bradstreet",
            "Confirm your business details in the D&B file",
        ),
        timeframe="1-4 weeks",
        resources=(
            Resource(title="Get a D-U-N-S Number", url="https://www.dnb.com/duns/get-a-duns.html"),
        ),
    ),
    "personal-credit-score": Template(
        title="Improve Personal Credit Score",
        description="Personal credit directly impacts business funding eligibility.",
        action_items=(
            "Pay down existing debt",
            "Correct any credit report errors",
            "Set up automatic payments",
            "Reduce credit utilization below 30%",
        ),
        timeframe="3-6 months",
    ),
    "trade-references": Template(
        title="Add Reporting Trade Lines",
        description="Vendor trade lines that report on-time payments build business credit.",
        action_items=(
            "Open net-30 accounts with vendors that report to bureaus",
            "Pay every invoice early or on time",
            "Aim for at least five reporting trade lines",
        ),
        timeframe="3-6 months",
    ),
    "business-bank-account": Template(
        title="Open Business Bank Account",
        description="Separate business banking is crucial for credit building.",
        action_items=(
            "Choose a business-friendly bank",
            "Gather required documentation",
            "Open checking and savings accounts",
            "Set up online banking",
        ),
        timeframe="1 week",
    ),
    "separate-finances": Template(
        title="Separate Business and Personal Finances",
        description="Commingled funds make underwriting harder and weaken liability protection.",
        action_items=(
            "Route all business income and expenses through business accounts",
            "Stop paying personal expenses from business accounts",
        ),
        timeframe="2-4 weeks",
    ),
    "accounting-system": Template(
        title="Adopt an Accounting System",
        description="Clean books let you produce the statements lenders ask for.",
        action_items=(
            "Choose bookkeeping software",
            "Reconcile accounts monthly",
        ),
        timeframe="2-4 weeks",
    ),
    "annual-revenue": Template(
        title="Grow and Document Revenue",
        description="Revenue thresholds gate most term loans and lines of credit.",
        action_items=(
            "Deposit all revenue into the business account",
            "Keep twelve months of bank statements ready",
        ),
        timeframe="6-12 months",
    ),
    "business-website": Template(
        title="Launch a Business Website",
        description="A professional website helps lenders verify that the business is real.",
        action_items=(
            "Register a domain in the business name",
            "Publish a site listing your address and phone number",
        ),
        timeframe="1-2 weeks",
    ),
    "business-email": Template(
        title="Use a Business Email Address",
        description="Free webmail addresses are a red flag on credit applications.",
        action_items=("Set up email on your business domain",),
        timeframe="1-2 days",
    ),
    "business-phone": Template(
        title="Establish Dedicated Business Phone",
        description="A dedicated business phone line improves credibility and fundability.",
        action_items=(
            "Set up a dedicated business phone line",
            "List the phone in business directories",
            "Use the business phone on all applications",
        ),
        timeframe="1 week",
    ),
    "business-insurance": Template(
        title="Carry General Liability Insurance",
        description="Insurance lowers lender risk and is required for many products.",
        action_items=(
            "Request quotes for general liability coverage",
            "Keep a current certificate of insurance on file",
        ),
        timeframe="1-2 weeks",
    ),
    "industry-licenses-compliance": Template(
        title="Complete Industry Licensing",
        description="Missing industry licenses can disqualify an application outright.",
        action_items=(
            "List the licenses and permits your industry requires",
            "Apply for any that are missing",
        ),
        timeframe="2-4 weeks",
    ),
    "financial-statements": Template(
        title="Prepare Financial Statements",
        description="Lenders expect a current profit & loss statement and balance sheet.",
        action_items=(
            "Produce a year-to-date P&L and balance sheet",
            "Have an accountant review the statements",
        ),
        timeframe="2-4 weeks",
    ),
}

# ── Category-wide templates ──────────────────────────────────────────────────

CATEGORY_TEMPLATES: dict[str, Template] = {
    "business-structure": Template(
        title="Complete Business Registration",
        description="Strengthen your business foundation with proper registration and documentation.",
        action_items=(
            "Obtain EIN if not already done",
            "Register with state if not completed",
            "Create operating agreements or bylaws",
            "Obtain necessary business licenses",
        ),
        timeframe="2-4 weeks",
    ),
    "credit-profile": Template(
        title="Improve Business Credit Profile",
        description="Build and enhance your business credit to access better funding opportunities.",
        action_items=(
            "Apply for business credit cards",
            "Establish trade lines with vendors",
            "Monitor credit reports regularly",
            "Pay all bills on time",
            "Keep credit utilization below 30%",
        ),
        timeframe="3-6 months",
    ),
    "banking-finance": Template(
        title="Strengthen Banking Relationships",
        description="A seasoned banking relationship and clean books make underwriting straightforward.",
        action_items=(
            "Keep consistent positive balances",
            "Meet your banker to discuss credit products",
            "Reconcile books monthly",
        ),
        timeframe="3-6 months",
    ),
    "digital-presence": Template(
        title="Build Your Online Presence",
        description="Lenders and bureaus cross-check the business against public listings.",
        action_items=(
            "Claim your Google Business Profile",
            "List the business in 411 and major directories",
            "Keep name, address and phone consistent everywhere",
        ),
        timeframe="2-4 weeks",
    ),
    "industry-operations": Template(
        title="Reduce Operational Risk",
        description="Ensure compliance with industry regulations and reduce risk factors.",
        action_items=(
            "Review insurance coverage annually",
            "Keep licenses and permits current",
            "Maintain up-to-date financial statements",
        ),
        timeframe="1-2 months",
    ),
}

# ── Industry variants ────────────────────────────────────────────────────────

INDUSTRY_TEMPLATES: dict[str, tuple[Template, ...]] = {
    "construction": (
        Template(
            title="Get Bonded and Insured",
            description="Surety bonds and contractor insurance are prerequisites for contract financing.",
            action_items=(
                "Obtain a contractor's license bond",
                "Add workers' compensation coverage",
            ),
            timeframe="2-4 weeks",
            priority=Priority.MEDIUM,
        ),
        Template(
            title="Explore Equipment Financing",
            description="Equipment loans are secured by the asset and are easier to qualify for.",
            action_items=("Inventory equipment needs for the next 12 months",),
            timeframe="1-2 months",
            priority=Priority.LOW,
        ),
    ),
    "restaurant_food_service": (
        Template(
            title="Keep Health Permits Current",
            description="Lapsed health permits disqualify food-service applications.",
            action_items=(
                "Calendar health inspection and permit renewals",
                "Keep inspection reports on file",
            ),
            timeframe="1-2 weeks",
            priority=Priority.MEDIUM,
        ),
        Template(
            title="Consider Revenue-Based Financing",
            description="Card-receivable financing suits businesses with steady daily sales.",
            action_items=("Gather six months of merchant processing statements",),
            timeframe="1 month",
            priority=Priority.LOW,
        ),
    ),
    "healthcare": (
        Template(
            title="Document Compliance and Credentials",
            description="Healthcare lenders review licensing, credentialing and HIPAA compliance.",
            action_items=(
                "Keep provider licenses and credentials current",
                "Document HIPAA policies",
            ),
            timeframe="2-4 weeks",
            priority=Priority.MEDIUM,
        ),
    ),
    "transportation": (
        Template(
            title="Maintain DOT Authority and Fleet Records",
            description="Lenders verify operating authority and safety records for carriers.",
            action_items=(
                "Keep USDOT and MC numbers active",
                "Maintain vehicle maintenance and safety logs",
            ),
            timeframe="2-4 weeks",
            priority=Priority.MEDIUM,
        ),
        Template(
            title="Open a Fleet Fuel Account",
            description="Fuel cards that report to bureaus build credit from routine spend.",
            action_items=("Apply for a fuel card that reports to business bureaus",),
            timeframe="1-2 weeks",
            priority=Priority.LOW,
        ),
    ),
    "retail": (
        Template(
            title="Track Inventory Turnover",
            description="Inventory lenders size credit lines from turnover and margins.",
            action_items=("Adopt point-of-sale inventory tracking",),
            timeframe="1 month",
            priority=Priority.LOW,
        ),
    ),
    "technology": (
        Template(
            title="Document Recurring Revenue",
            description="Recurring revenue metrics unlock revenue-based and venture debt options.",
            action_items=(
                "Report monthly recurring revenue and churn",
                "Keep customer contracts organised",
            ),
            timeframe="1 month",
            priority=Priority.LOW,
        ),
    ),
}


def _round_impact(value: Fraction) -> float:
    return round_half_up(value * 10) / 10


def _priority_for(percentage: int, threshold: int) -> Priority:
    if percentage < 50:
        return Priority.HIGH
    if percentage < threshold:
        return Priority.MEDIUM
    return Priority.LOW


def _generic_template(criterion: Criterion, category: Category) -> Template:
    return Template(
        title=f"Improve {category.name}: {criterion.question}",
        description=criterion.help_text
        or f"This requirement is not yet met in {category.name}.",
        action_items=(f"Address: {criterion.question}",),
        timeframe="",
    )


def _build(
    key: str,
    template: Template,
    *,
    category_id: str | None,
    criterion_id: str | None,
    priority: Priority,
    impact: float,
) -> Recommendation:
    return Recommendation(
        id=key,
        category_id=category_id,
        criterion_id=criterion_id,
        title=template.title,
        description=template.description,
        priority=priority,
        estimated_impact=impact,
        action_items=list(template.action_items),
        resources=[{"title": r.title, "url": r.url} for r in template.resources],
        timeframe=template.timeframe,
    )


def generate_recommendations(
    category_scores: Sequence[CategoryScore],
    responses: Mapping[str, Any] | None,
    *,
    catalog: CriteriaCatalog,
    industry: str | None = None,
    threshold: int = 80,
) -> list[Recommendation]:
    """Emit recommendations for unmet required criteria and weak categories.

    Ordering is by priority, then estimated impact (desc), then category
    weight (desc), then key. Industry variants are appended afterwards and
    never displace base items.
    """
    responses = responses or {}
    weights = normalized_weights(category_scores, catalog.categories)
    categories = {c.id: c for c in catalog.categories}

    candidates: dict[str, tuple[tuple, Recommendation]] = {}

    def offer(rec: Recommendation, category_weight: float) -> None:
        sort_key = (rec.priority.rank, -rec.estimated_impact, -category_weight, rec.id)
        current = candidates.get(rec.id)
        if current is None or sort_key < current[0]:
            candidates[rec.id] = (sort_key, rec)

    for score in category_scores:
        category = categories[score.category_id]
        weight = weights.get(category.id, Fraction(0))

        for criterion in category.criteria:
            if not criterion.required:
                continue
            points = (
                criterion_points(criterion, responses[criterion.id])
                if criterion.id in responses
                else None
            ) or 0.0
            if points >= criterion.weight:
                continue

            if criterion.is_critical and points == 0:
                priority = Priority.CRITICAL
            else:
                priority = _priority_for(score.percentage, threshold)

            if score.max_score > 0:
                gap = Fraction(criterion.weight) - Fraction(points)
                impact = _round_impact(gap / Fraction(score.max_score) * 100 * weight)
            else:
                impact = 0.0

            template = CRITERION_TEMPLATES.get(criterion.id) or _generic_template(
                criterion, category
            )
            offer(
                _build(
                    criterion.id,
                    template,
                    category_id=category.id,
                    criterion_id=criterion.id,
                    priority=priority,
                    impact=impact,
                ),
                category.weight,
            )

        template = CATEGORY_TEMPLATES.get(category.id)
        if template is not None and score.percentage < threshold:
            offer(
                _build(
                    category.id,
                    template,
                    category_id=category.id,
                    criterion_id=None,
                    priority=_priority_for(score.percentage, threshold),
                    impact=_round_impact((100 - score.percentage) * weight),
                ),
                category.weight,
            )

    result = [rec for _, rec in sorted(candidates.values(), key=lambda item: item[0])]

    if industry:
        slug = industry_slug(industry)
        seen = {rec.id for rec in result}
        for n, template in enumerate(INDUSTRY_TEMPLATES.get(slug, ()), start=1):
            key = f"industry-{slug.replace('_', '-')}-{n}"
            if key in seen:
                continue
            result.append(
                _build(
                    key,
                    template,
                    category_id=None,
                    criterion_id=None,
                    priority=template.priority,
                    impact=0.0,
                )
            )

    return result
