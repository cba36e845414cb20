"""Seed catalog of funding products and vendor tradelines."""

from decimal import Decimal

from app.modules.matching.algorithm import LenderOpportunity, OpportunityKind

_RESTRICTED = ("adult_entertainment", "gambling")

FUNDING_OPPORTUNITIES: tuple[LenderOpportunity, ...] = (
    LenderOpportunity(
        id="kabbage-loc",
        name="Kabbage",
        kind=OpportunityKind.FUNDING,
        product_type="line_of_credit",
        min_credit_score=560,
        min_annual_revenue=Decimal("50000"),
        min_time_in_business_months=12,
        requires_personal_guarantee=True,
        min_amount=Decimal("1000"),
        max_amount=Decimal("250000"),
        description="Fast, flexible business line of credit with competitive rates",
        application_url="https://kabbage.com/application",
    ),
    LenderOpportunity(
        id="ondeck-term",
        name="OnDeck",
        kind=OpportunityKind.FUNDING,
        product_type="term_loan",
        min_credit_score=600,
        min_annual_revenue=Decimal("100000"),
        min_time_in_business_months=12,
        excluded_industries=_RESTRICTED,
        requires_personal_guarantee=True,
        min_amount=Decimal("5000"),
        max_amount=Decimal("500000"),
        description="Term loans for established businesses with transparent pricing",
        application_url="https://ondeck.com/apply",
    ),
    LenderOpportunity(
        id="sba-loan",
        name="SBA Preferred Lender",
        kind=OpportunityKind.FUNDING,
        product_type="sba_loan",
        min_credit_score=680,
        min_annual_revenue=Decimal("150000"),
        min_time_in_business_months=24,
        excluded_industries=(*_RESTRICTED, "speculation"),
        requires_personal_guarantee=True,
        min_amount=Decimal("25000"),
        max_amount=Decimal("5000000"),
        description="SBA guaranteed loans with the best rates and terms",
        application_url="https://sba.gov/funding-programs/loans",
    ),
)

TRADELINE_OPPORTUNITIES: tuple[LenderOpportunity, ...] = (
    LenderOpportunity(
        id="uline-supplies",
        name="Uline",
        kind=OpportunityKind.TRADELINE,
        product_type="net_30",
        min_amount=Decimal("500"),
        max_amount=Decimal("50000"),
        description="Business supplies with excellent credit reporting to all bureaus",
        application_url="https://uline.com/Account/CreditApplication",
    ),
    LenderOpportunity(
        id="grainger-supplies",
        name="Grainger",
        kind=OpportunityKind.TRADELINE,
        product_type="net_30",
        min_annual_revenue=Decimal("25000"),
        min_time_in_business_months=6,
        min_amount=Decimal("1000"),
        max_amount=Decimal("100000"),
        description="Industrial supplies with strong credit reporting history",
        application_url="https://grainger.com/credit-application",
    ),
    LenderOpportunity(
        id="fleet-fuel",
        name="Fleet Fuel Cards",
        kind=OpportunityKind.TRADELINE,
        product_type="fuel_card",
        min_credit_score=550,
        min_annual_revenue=Decimal("50000"),
        min_time_in_business_months=3,
        min_amount=Decimal("2000"),
        max_amount=Decimal("25000"),
        description="Fuel cards that build credit while managing fleet expenses",
        application_url="https://fleetfuel.com/apply",
    ),
    LenderOpportunity(
        id="net30-accounts",
        name="Net 30 Vendor Network",
        kind=OpportunityKind.TRADELINE,
        product_type="net_30",
        min_amount=Decimal("250"),
        max_amount=Decimal("5000"),
        description="Starter trade lines perfect for new businesses building credit",
        application_url="https://net30vendors.com/apply",
    ),
)

SEED_OPPORTUNITIES: tuple[LenderOpportunity, ...] = (
    *FUNDING_OPPORTUNITIES,
    *TRADELINE_OPPORTUNITIES,
)
