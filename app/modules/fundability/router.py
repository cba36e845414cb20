"""Fundability API router: catalog, stateless scoring, assessments, history."""

import uuid

import structlog
from fastapi import APIRouter, Depends, HTTPException, Query, Response, status

from app.auth.dependencies import get_current_user
from app.core.config import settings
from app.modules.fundability import service
from app.modules.fundability.assessment import AssessmentFrozenError
from app.modules.fundability.recommendations import Priority
from app.modules.fundability.schemas import (
    AssessmentCreateRequest,
    AssessmentDetailResponse,
    AssessmentListResponse,
    CalculateRequest,
    CalculateResponse,
    CatalogResponse,
    RecommendationsListResponse,
    ResponsesUpdateRequest,
    ScoreHistoryResponse,
)
from app.modules.fundability.store import AssessmentStore, get_store
from app.schemas.auth import CurrentUser

logger = structlog.get_logger()

router = APIRouter(prefix="/fundability", tags=["fundability"])


# ── Catalog & stateless scoring ──────────────────────────────────────────────


@router.get("/catalog", response_model=CatalogResponse)
async def get_catalog(
    version: str | None = Query(None, max_length=20),
    store: AssessmentStore = Depends(get_store),
):
    """Criteria catalog (current version unless ``version`` is given)."""
    try:
        catalog = await store.load_catalog(version or settings.CATALOG_VERSION)
    except LookupError as exc:
        raise HTTPException(status_code=404, detail=str(exc))
    return service.catalog_to_response(catalog)


@router.post("/calculate", response_model=CalculateResponse)
async def calculate(
    body: CalculateRequest,
    current_user: CurrentUser = Depends(get_current_user),
    store: AssessmentStore = Depends(get_store),
):
    """Score a response map without saving it."""
    try:
        return await service.calculate(
            store, body.responses, industry=body.industry, catalog_version=body.catalog_version
        )
    except LookupError as exc:
        raise HTTPException(status_code=404, detail=str(exc))


# ── Assessments (fixed paths before /{assessment_id}) ────────────────────────


@router.post(
    "/assessments",
    response_model=AssessmentDetailResponse,
    status_code=status.HTTP_201_CREATED,
)
async def create_assessment(
    body: AssessmentCreateRequest,
    current_user: CurrentUser = Depends(get_current_user),
    store: AssessmentStore = Depends(get_store),
):
    """Start a new assessment, optionally with initial answers."""
    try:
        assessment, dropped = await service.start_assessment(
            store,
            current_user.user_id,
            industry=body.industry,
            catalog_version=body.catalog_version,
            responses=body.responses,
        )
    except LookupError as exc:
        raise HTTPException(status_code=404, detail=str(exc))
    return service.assessment_to_response(assessment, dropped)


@router.get("/assessments", response_model=AssessmentListResponse)
async def list_assessments(
    current_user: CurrentUser = Depends(get_current_user),
    store: AssessmentStore = Depends(get_store),
):
    """List the caller's assessments, newest first."""
    items = await service.list_assessments(store, current_user.user_id)
    return AssessmentListResponse(
        items=[service.assessment_to_summary(a) for a in items],
        total=len(items),
    )


@router.get("/assessments/{assessment_id}", response_model=AssessmentDetailResponse)
async def get_assessment(
    assessment_id: uuid.UUID,
    current_user: CurrentUser = Depends(get_current_user),
    store: AssessmentStore = Depends(get_store),
):
    try:
        assessment = await service.get_assessment(store, current_user.user_id, assessment_id)
    except LookupError as exc:
        raise HTTPException(status_code=404, detail=str(exc))
    return service.assessment_to_response(assessment)


@router.put(
    "/assessments/{assessment_id}/responses",
    response_model=AssessmentDetailResponse,
)
async def update_responses(
    assessment_id: uuid.UUID,
    body: ResponsesUpdateRequest,
    current_user: CurrentUser = Depends(get_current_user),
    store: AssessmentStore = Depends(get_store),
):
    """Upsert answers (null clears one) and rescore."""
    try:
        assessment, dropped = await service.update_responses(
            store, current_user.user_id, assessment_id, body.responses
        )
    except LookupError as exc:
        raise HTTPException(status_code=404, detail=str(exc))
    except AssessmentFrozenError as exc:
        raise HTTPException(status_code=409, detail=str(exc))
    return service.assessment_to_response(assessment, dropped)


@router.post(
    "/assessments/{assessment_id}/complete",
    response_model=AssessmentDetailResponse,
)
async def complete_assessment(
    assessment_id: uuid.UUID,
    current_user: CurrentUser = Depends(get_current_user),
    store: AssessmentStore = Depends(get_store),
):
    """Score one final time and freeze the assessment."""
    try:
        assessment = await service.complete_assessment(
            store, current_user.user_id, assessment_id
        )
    except LookupError as exc:
        raise HTTPException(status_code=404, detail=str(exc))
    except AssessmentFrozenError as exc:
        raise HTTPException(status_code=409, detail=str(exc))
    return service.assessment_to_response(assessment)


@router.delete(
    "/assessments/{assessment_id}",
    status_code=status.HTTP_204_NO_CONTENT,
)
async def delete_assessment(
    assessment_id: uuid.UUID,
    current_user: CurrentUser = Depends(get_current_user),
    store: AssessmentStore = Depends(get_store),
):
    try:
        await service.delete_assessment(store, current_user.user_id, assessment_id)
    except LookupError as exc:
        raise HTTPException(status_code=404, detail=str(exc))
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.get(
    "/assessments/{assessment_id}/recommendations",
    response_model=RecommendationsListResponse,
)
async def get_recommendations(
    assessment_id: uuid.UUID,
    priority: Priority | None = Query(None),
    category_id: str | None = Query(None, max_length=100),
    current_user: CurrentUser = Depends(get_current_user),
    store: AssessmentStore = Depends(get_store),
):
    """Latest recommendations, optionally filtered by priority or category."""
    try:
        items = await service.get_recommendations(
            store,
            current_user.user_id,
            assessment_id,
            priority=priority,
            category_id=category_id,
        )
    except LookupError as exc:
        raise HTTPException(status_code=404, detail=str(exc))
    return RecommendationsListResponse(items=items, total=len(items))


# ── History ──────────────────────────────────────────────────────────────────


@router.get("/history", response_model=ScoreHistoryResponse)
async def get_history(
    limit: int = Query(30, ge=1, le=365),
    current_user: CurrentUser = Depends(get_current_user),
    store: AssessmentStore = Depends(get_store),
):
    """One score point per day, most recent first."""
    items = await service.get_history(store, current_user.user_id, limit=limit)
    return ScoreHistoryResponse(items=items, total=len(items))
