"""Fundability Pydantic schemas for API requests and responses."""

import uuid
from datetime import date, datetime
from typing import Any

from pydantic import BaseModel, Field


# ── Catalog ──────────────────────────────────────────────────────────────────


class CriterionDefinitionResponse(BaseModel):
    id: str
    question: str
    response_type: str
    weight: float
    required: bool
    is_critical: bool
    options: list[str] = []
    scoring_table: dict[str, float] = {}
    help_text: str = ""


class CategoryDefinitionResponse(BaseModel):
    id: str
    name: str
    description: str
    weight: float
    criteria: list[CriterionDefinitionResponse]


class CatalogResponse(BaseModel):
    version: str
    categories: list[CategoryDefinitionResponse]


# ── Scores ───────────────────────────────────────────────────────────────────


class CriterionScoreResponse(BaseModel):
    criterion_id: str
    points: float
    max_points: float
    status: str
    required: bool


class CategoryScoreResponse(BaseModel):
    category_id: str
    raw_score: float
    max_score: float
    percentage: int
    completed_criteria: int
    total_criteria: int
    is_complete: bool
    criteria: list[CriterionScoreResponse]


class OverallScoreResponse(BaseModel):
    percentage: int
    grade: str
    weights: dict[str, float]


class ResourceLink(BaseModel):
    title: str
    url: str


class RecommendationResponse(BaseModel):
    id: str
    category_id: str | None
    criterion_id: str | None
    title: str
    description: str
    priority: str
    estimated_impact: float
    action_items: list[str]
    resources: list[ResourceLink]
    timeframe: str


class RecommendationsListResponse(BaseModel):
    items: list[RecommendationResponse]
    total: int


class FundingPotentialResponse(BaseModel):
    max_amount: int | None
    revenue_multiplier: float
    time_to_funding_days: int
    recommended_products: list[str]
    risk_level: str


# ── Stateless calculation ────────────────────────────────────────────────────


class CalculateRequest(BaseModel):
    responses: dict[str, Any] = Field(default_factory=dict)
    industry: str | None = Field(None, max_length=100)
    catalog_version: str | None = Field(None, max_length=20)


class CalculateResponse(BaseModel):
    catalog_version: str
    overall: OverallScoreResponse
    category_scores: list[CategoryScoreResponse]
    recommendations: list[RecommendationResponse]
    funding_potential: FundingPotentialResponse
    completion_percentage: int
    dropped_criteria: list[str] = []


# ── Assessments ──────────────────────────────────────────────────────────────


class AssessmentCreateRequest(BaseModel):
    industry: str | None = Field(None, max_length=100)
    catalog_version: str | None = Field(None, max_length=20)
    responses: dict[str, Any] = Field(default_factory=dict)


class ResponsesUpdateRequest(BaseModel):
    responses: dict[str, Any] = Field(..., min_length=1)


class ResponseValue(BaseModel):
    value: Any
    answered_at: datetime


class AssessmentSummaryResponse(BaseModel):
    id: uuid.UUID
    catalog_version: str
    status: str
    overall_score: int | None
    grade: str | None
    completion_percentage: int
    created_at: datetime
    updated_at: datetime
    completed_at: datetime | None


class AssessmentListResponse(BaseModel):
    items: list[AssessmentSummaryResponse]
    total: int


class AssessmentDetailResponse(BaseModel):
    id: uuid.UUID
    owner_id: uuid.UUID
    catalog_version: str
    industry: str | None
    status: str
    responses: dict[str, ResponseValue]
    overall: OverallScoreResponse | None
    category_scores: list[CategoryScoreResponse]
    recommendations: list[RecommendationResponse]
    funding_potential: FundingPotentialResponse | None
    completion_percentage: int
    created_at: datetime
    updated_at: datetime
    scored_at: datetime | None
    completed_at: datetime | None
    dropped_criteria: list[str] = []


# ── History ──────────────────────────────────────────────────────────────────


class ScoreHistoryItem(BaseModel):
    recorded_on: date
    assessment_id: uuid.UUID | None
    overall_score: int
    grade: str
    category_percentages: dict[str, int]


class ScoreHistoryResponse(BaseModel):
    items: list[ScoreHistoryItem]
    total: int
