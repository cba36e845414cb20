"""Matching API router: lender and tradeline opportunities."""

import uuid

import structlog
from fastapi import APIRouter, Depends, HTTPException, Query

from app.auth.dependencies import get_current_user
from app.modules.fundability.store import AssessmentStore, get_store
from app.modules.matching import service
from app.modules.matching.algorithm import OpportunityKind
from app.modules.matching.schemas import (
    MatchListResponse,
    OpportunityListResponse,
    ScoreMatchRequest,
)
from app.schemas.auth import CurrentUser

logger = structlog.get_logger()

router = APIRouter(prefix="/matching", tags=["matching"])


@router.get("/opportunities", response_model=OpportunityListResponse)
async def list_opportunities(
    kind: OpportunityKind | None = Query(None),
    store: AssessmentStore = Depends(get_store),
):
    """Opportunity catalog, optionally limited to funding or tradelines."""
    items = await service.list_opportunities(store, kind)
    return OpportunityListResponse(items=items, total=len(items))


@router.post("/score", response_model=MatchListResponse)
async def score_profile(
    body: ScoreMatchRequest,
    current_user: CurrentUser = Depends(get_current_user),
    store: AssessmentStore = Depends(get_store),
):
    """Rank opportunities for an explicit business profile."""
    kind = OpportunityKind(body.kind) if body.kind else None
    return await service.score_profile(store, body.profile, kind=kind, cutoff=body.cutoff)


@router.get("/assessments/{assessment_id}", response_model=MatchListResponse)
async def match_assessment(
    assessment_id: uuid.UUID,
    kind: OpportunityKind | None = Query(None),
    cutoff: int | None = Query(None, ge=0, le=100),
    current_user: CurrentUser = Depends(get_current_user),
    store: AssessmentStore = Depends(get_store),
):
    """Rank opportunities for the profile derived from an assessment."""
    try:
        return await service.match_assessment(
            store, current_user.user_id, assessment_id, kind=kind, cutoff=cutoff
        )
    except LookupError as exc:
        raise HTTPException(status_code=404, detail=str(exc))
