"""Matching service: rank lender and tradeline opportunities for a profile."""

import uuid

import structlog

from app.core.config import settings
from app.modules.fundability.store import AssessmentStore
from app.modules.matching.algorithm import (
    BusinessProfile,
    LenderOpportunity,
    MatchingAlgorithm,
    OpportunityKind,
    profile_from_responses,
)
from app.modules.matching.schemas import (
    BusinessProfileRequest,
    MatchListResponse,
    MatchResponse,
    OpportunityResponse,
)

logger = structlog.get_logger()


def _opportunity_to_response(o: LenderOpportunity) -> OpportunityResponse:
    return OpportunityResponse(
        id=o.id,
        name=o.name,
        kind=o.kind.value,
        product_type=o.product_type,
        min_credit_score=o.min_credit_score,
        min_annual_revenue=str(o.min_annual_revenue),
        min_time_in_business_months=o.min_time_in_business_months,
        allowed_industries=list(o.allowed_industries),
        excluded_industries=list(o.excluded_industries),
        requires_personal_guarantee=o.requires_personal_guarantee,
        min_amount=str(o.min_amount) if o.min_amount is not None else None,
        max_amount=str(o.max_amount) if o.max_amount is not None else None,
        description=o.description,
        application_url=o.application_url,
    )


async def list_opportunities(
    store: AssessmentStore, kind: OpportunityKind | None = None
) -> list[OpportunityResponse]:
    return [_opportunity_to_response(o) for o in await store.list_opportunities(kind)]


async def _rank(
    store: AssessmentStore,
    profile: BusinessProfile,
    kind: OpportunityKind | None,
    cutoff: int | None,
) -> MatchListResponse:
    opportunities = await store.list_opportunities(kind)
    effective_cutoff = settings.MATCH_CUTOFF if cutoff is None else cutoff
    algo = MatchingAlgorithm(prequalified_threshold=settings.PREQUALIFIED_THRESHOLD)
    ranked = algo.rank_opportunities(profile, opportunities, cutoff=effective_cutoff)

    logger.info(
        "opportunities_ranked",
        evaluated=len(opportunities),
        matched=len(ranked),
        cutoff=effective_cutoff,
    )
    return MatchListResponse(
        items=[
            MatchResponse(
                opportunity=_opportunity_to_response(opp),
                score=match.score,
                prequalified=match.prequalified,
                breakdown=match.breakdown,
                strengths=match.strengths,
                concerns=match.concerns,
                next_steps=match.next_steps,
                risk_level=match.risk_level.value,
            )
            for opp, match in ranked
        ],
        total=len(ranked),
        evaluated=len(opportunities),
        cutoff=effective_cutoff,
    )


async def score_profile(
    store: AssessmentStore,
    body: BusinessProfileRequest,
    kind: OpportunityKind | None = None,
    cutoff: int | None = None,
) -> MatchListResponse:
    profile = BusinessProfile(
        credit_score=body.credit_score,
        annual_revenue=body.annual_revenue,
        years_in_business=body.years_in_business,
        industry=body.industry,
        fundability_score=body.fundability_score,
    )
    return await _rank(store, profile, kind, cutoff)


async def match_assessment(
    store: AssessmentStore,
    owner_id: uuid.UUID,
    assessment_id: uuid.UUID,
    kind: OpportunityKind | None = None,
    cutoff: int | None = None,
) -> MatchListResponse:
    """Rank opportunities for the profile implied by an assessment's answers."""
    assessment = await store.get_assessment(assessment_id, owner_id)
    profile = profile_from_responses(
        assessment.response_values(),
        assessment.overall.percentage if assessment.overall else None,
    )
    result = await _rank(store, profile, kind, cutoff)
    result.assessment_id = assessment.id
    return result
