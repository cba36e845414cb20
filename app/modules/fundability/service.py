"""Async service layer for fundability assessments."""

import uuid
from collections.abc import Mapping
from typing import Any

import structlog

from app.core.config import settings
from app.modules.fundability.assessment import (
    Assessment,
    ScoreHistoryEntry,
)
from app.modules.fundability.criteria import CriteriaCatalog
from app.modules.fundability.engine import ScoringResult, score_responses
from app.modules.fundability.potential import assess_funding_potential
from app.modules.fundability.recommendations import (
    Priority,
    Recommendation,
    generate_recommendations,
)
from app.modules.fundability.schemas import (
    AssessmentDetailResponse,
    AssessmentSummaryResponse,
    CalculateResponse,
    CatalogResponse,
    CategoryDefinitionResponse,
    CategoryScoreResponse,
    CriterionDefinitionResponse,
    FundingPotentialResponse,
    OverallScoreResponse,
    RecommendationResponse,
    ResponseValue,
    ScoreHistoryItem,
)
from app.modules.fundability.store import AssessmentStore

logger = structlog.get_logger()


# ── Response mappers ─────────────────────────────────────────────────────────


def catalog_to_response(catalog: CriteriaCatalog) -> CatalogResponse:
    return CatalogResponse(
        version=catalog.version,
        categories=[
            CategoryDefinitionResponse(
                id=cat.id,
                name=cat.name,
                description=cat.description,
                weight=cat.weight,
                criteria=[
                    CriterionDefinitionResponse(
                        id=c.id,
                        question=c.question,
                        response_type=c.response_type.value,
                        weight=c.weight,
                        required=c.required,
                        is_critical=c.is_critical,
                        options=list(c.options),
                        scoring_table=dict(c.scoring_table),
                        help_text=c.help_text,
                    )
                    for c in cat.criteria
                ],
            )
            for cat in catalog.categories
        ],
    )


def _recommendation_to_response(rec: Recommendation) -> RecommendationResponse:
    return RecommendationResponse.model_validate(rec.to_dict())


def _funding_potential(a: Assessment) -> FundingPotentialResponse | None:
    if a.overall is None:
        return None
    potential = assess_funding_potential(
        a.overall.percentage, a.category_scores, a.response_values()
    )
    return FundingPotentialResponse.model_validate(potential.to_dict())


def assessment_to_response(
    a: Assessment, dropped: list[str] | None = None
) -> AssessmentDetailResponse:
    return AssessmentDetailResponse(
        id=a.id,
        owner_id=a.owner_id,
        catalog_version=a.catalog_version,
        industry=a.industry,
        status=a.status.value,
        responses={
            cid: ResponseValue(value=entry.value, answered_at=entry.answered_at)
            for cid, entry in a.responses.items()
        },
        overall=OverallScoreResponse.model_validate(a.overall.to_dict()) if a.overall else None,
        category_scores=[
            CategoryScoreResponse.model_validate(s.to_dict()) for s in a.category_scores
        ],
        recommendations=[_recommendation_to_response(r) for r in a.recommendations],
        funding_potential=_funding_potential(a),
        completion_percentage=a.completion_percentage,
        created_at=a.created_at,
        updated_at=a.updated_at,
        scored_at=a.scored_at,
        completed_at=a.completed_at,
        dropped_criteria=dropped or [],
    )


def assessment_to_summary(a: Assessment) -> AssessmentSummaryResponse:
    return AssessmentSummaryResponse(
        id=a.id,
        catalog_version=a.catalog_version,
        status=a.status.value,
        overall_score=a.overall.percentage if a.overall else None,
        grade=a.overall.grade if a.overall else None,
        completion_percentage=a.completion_percentage,
        created_at=a.created_at,
        updated_at=a.updated_at,
        completed_at=a.completed_at,
    )


# ── Scoring ──────────────────────────────────────────────────────────────────


def _score(
    catalog: CriteriaCatalog, responses: Mapping[str, Any], industry: str | None
) -> tuple[ScoringResult, list[Recommendation]]:
    result = score_responses(catalog, responses)
    recommendations = generate_recommendations(
        result.category_scores,
        responses,
        catalog=catalog,
        industry=industry,
        threshold=settings.RECOMMENDATION_THRESHOLD,
    )
    return result, recommendations


async def calculate(
    store: AssessmentStore,
    responses: dict[str, Any],
    industry: str | None = None,
    catalog_version: str | None = None,
) -> CalculateResponse:
    """Score a response map without persisting anything."""
    catalog = await store.load_catalog(catalog_version or settings.CATALOG_VERSION)
    dropped = sorted(cid for cid in responses if catalog.criterion(cid) is None)
    if not industry and isinstance(responses.get("industry"), str):
        industry = responses["industry"]
    result, recommendations = _score(catalog, responses, industry)
    potential = assess_funding_potential(
        result.overall.percentage, result.category_scores, responses
    )

    logger.info(
        "fundability_calculated",
        catalog_version=catalog.version,
        overall_score=result.overall.percentage,
        risk_level=potential.risk_level.value,
        dropped=len(dropped),
    )
    return CalculateResponse(
        catalog_version=result.catalog_version,
        overall=OverallScoreResponse.model_validate(result.overall.to_dict()),
        category_scores=[
            CategoryScoreResponse.model_validate(s.to_dict()) for s in result.category_scores
        ],
        recommendations=[_recommendation_to_response(r) for r in recommendations],
        funding_potential=FundingPotentialResponse.model_validate(potential.to_dict()),
        completion_percentage=result.completion_percentage,
        dropped_criteria=dropped,
    )


async def _rescore(store: AssessmentStore, assessment: Assessment) -> None:
    catalog = await store.load_catalog(assessment.catalog_version)
    result, recommendations = _score(
        catalog, assessment.response_values(), assessment.effective_industry()
    )
    assessment.apply_score(result, recommendations)


# ── Assessments ──────────────────────────────────────────────────────────────


async def start_assessment(
    store: AssessmentStore,
    owner_id: uuid.UUID,
    industry: str | None = None,
    catalog_version: str | None = None,
    responses: dict[str, Any] | None = None,
) -> tuple[Assessment, list[str]]:
    catalog = await store.load_catalog(catalog_version or settings.CATALOG_VERSION)
    assessment = Assessment.start(owner_id, catalog.version, industry=industry)
    dropped: list[str] = []
    if responses:
        dropped = assessment.record_responses(responses, catalog)
    await _rescore(store, assessment)
    await store.create_assessment(assessment)
    return assessment, dropped


async def list_assessments(
    store: AssessmentStore, owner_id: uuid.UUID
) -> list[Assessment]:
    return await store.list_assessments(owner_id)


async def get_assessment(
    store: AssessmentStore, owner_id: uuid.UUID, assessment_id: uuid.UUID
) -> Assessment:
    return await store.get_assessment(assessment_id, owner_id)


async def update_responses(
    store: AssessmentStore,
    owner_id: uuid.UUID,
    assessment_id: uuid.UUID,
    responses: dict[str, Any],
) -> tuple[Assessment, list[str]]:
    """Upsert answers, rescore, and record today's history point."""
    assessment = await store.get_assessment(assessment_id, owner_id)
    catalog = await store.load_catalog(assessment.catalog_version)
    dropped = assessment.record_responses(responses, catalog)
    await _rescore(store, assessment)
    await store.save_assessment(assessment)
    await store.append_score_history(ScoreHistoryEntry.from_assessment(assessment))

    logger.info(
        "assessment_responses_updated",
        assessment_id=str(assessment_id),
        updated=len(responses) - len(dropped),
        dropped=len(dropped),
        overall_score=assessment.overall.percentage if assessment.overall else None,
    )
    return assessment, dropped


async def complete_assessment(
    store: AssessmentStore, owner_id: uuid.UUID, assessment_id: uuid.UUID
) -> Assessment:
    """Final scoring run; the assessment is frozen afterwards."""
    assessment = await store.get_assessment(assessment_id, owner_id)
    await _rescore(store, assessment)
    assessment.complete()
    await store.save_assessment(assessment)
    await store.append_score_history(ScoreHistoryEntry.from_assessment(assessment))

    logger.info(
        "assessment_completed",
        assessment_id=str(assessment_id),
        overall_score=assessment.overall.percentage if assessment.overall else None,
    )
    return assessment


async def delete_assessment(
    store: AssessmentStore, owner_id: uuid.UUID, assessment_id: uuid.UUID
) -> None:
    await store.delete_assessment(assessment_id, owner_id)


async def get_recommendations(
    store: AssessmentStore,
    owner_id: uuid.UUID,
    assessment_id: uuid.UUID,
    priority: Priority | None = None,
    category_id: str | None = None,
) -> list[RecommendationResponse]:
    assessment = await store.get_assessment(assessment_id, owner_id)
    items = assessment.recommendations
    if priority is not None:
        items = [r for r in items if r.priority is priority]
    if category_id is not None:
        items = [r for r in items if r.category_id == category_id]
    return [_recommendation_to_response(r) for r in items]


async def get_history(
    store: AssessmentStore, owner_id: uuid.UUID, limit: int = 30
) -> list[ScoreHistoryItem]:
    entries = await store.get_score_history(owner_id, limit=limit)
    return [
        ScoreHistoryItem(
            recorded_on=e.recorded_on,
            assessment_id=e.assessment_id,
            overall_score=e.overall_score,
            grade=e.grade,
            category_percentages=e.category_percentages,
        )
        for e in entries
    ]
