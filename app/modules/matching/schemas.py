"""Matching module API schemas."""

import uuid
from decimal import Decimal
from typing import Any

from pydantic import BaseModel, Field


class OpportunityResponse(BaseModel):
    id: str
    name: str
    kind: str
    product_type: str
    min_credit_score: int
    min_annual_revenue: str
    min_time_in_business_months: int
    allowed_industries: list[str]
    excluded_industries: list[str]
    requires_personal_guarantee: bool
    min_amount: str | None
    max_amount: str | None
    description: str
    application_url: str | None


class OpportunityListResponse(BaseModel):
    items: list[OpportunityResponse]
    total: int


class BusinessProfileRequest(BaseModel):
    credit_score: int | None = Field(None, ge=0, le=900)
    annual_revenue: Decimal | None = Field(None, ge=0)
    years_in_business: float | None = Field(None, ge=0)
    industry: str | None = Field(None, max_length=100)
    fundability_score: int | None = Field(None, ge=0, le=100)


class ScoreMatchRequest(BaseModel):
    profile: BusinessProfileRequest
    kind: str | None = Field(None, pattern="^(funding|tradeline)$")
    cutoff: int | None = Field(None, ge=0, le=100)


class MatchResponse(BaseModel):
    opportunity: OpportunityResponse
    score: int
    prequalified: bool
    breakdown: dict[str, Any]
    strengths: list[str]
    concerns: list[str]
    next_steps: list[str]
    risk_level: str


class MatchListResponse(BaseModel):
    items: list[MatchResponse]
    total: int
    evaluated: int
    cutoff: int
    assessment_id: uuid.UUID | None = None
