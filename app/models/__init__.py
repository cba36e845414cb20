"""SQLAlchemy models package; importing it populates Base.metadata."""

from app.models.base import BaseModel, ModelMixin, TimestampedModel
from app.models.fundability import (
    AssessmentResponse,
    FundabilityAssessment,
    LenderOpportunityRecord,
    ScoreHistory,
)

__all__ = [
    "AssessmentResponse",
    "BaseModel",
    "FundabilityAssessment",
    "LenderOpportunityRecord",
    "ModelMixin",
    "ScoreHistory",
    "TimestampedModel",
]
