"""Fundability models: assessments, responses, score history, lender opportunities."""

import uuid
from datetime import date, datetime
from decimal import Decimal
from typing import Any

from sqlalchemy import (
    Boolean,
    Date,
    DateTime,
    ForeignKey,
    Index,
    Integer,
    String,
    Text,
    UniqueConstraint,
    func,
)
from sqlalchemy.dialects.postgresql import JSONB, UUID
from sqlalchemy.orm import Mapped, mapped_column, relationship

from app.core.database import Base
from app.models.base import BaseModel, ModelMixin, TimestampedModel


class FundabilityAssessment(BaseModel):
    __tablename__ = "fundability_assessments"
    __table_args__ = (
        Index("ix_fundability_assessments_owner_id", "owner_id"),
        Index("ix_fundability_assessments_owner_status", "owner_id", "status"),
    )

    owner_id: Mapped[uuid.UUID] = mapped_column(UUID(as_uuid=True), nullable=False)
    catalog_version: Mapped[str] = mapped_column(String(20), nullable=False)
    industry: Mapped[str | None] = mapped_column(String(100))
    status: Mapped[str] = mapped_column(
        String(20), nullable=False, default="in_progress", server_default="in_progress"
    )
    completion_percentage: Mapped[int] = mapped_column(
        Integer, nullable=False, default=0, server_default="0"
    )
    overall_score: Mapped[int | None] = mapped_column(Integer)
    grade: Mapped[str | None] = mapped_column(String(3))
    # Snapshot of the latest scoring run
    overall: Mapped[dict[str, Any] | None] = mapped_column(JSONB)
    category_scores: Mapped[list[dict[str, Any]]] = mapped_column(
        JSONB, nullable=False, default=list, server_default="[]"
    )
    recommendations: Mapped[list[dict[str, Any]]] = mapped_column(
        JSONB, nullable=False, default=list, server_default="[]"
    )
    scored_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True))
    completed_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True))

    responses: Mapped[list["AssessmentResponse"]] = relationship(
        back_populates="assessment",
        cascade="all, delete-orphan",
        passive_deletes=True,
        lazy="selectin",
    )

    def __repr__(self) -> str:
        return f"<FundabilityAssessment(id={self.id}, status={self.status}, score={self.overall_score})>"


class AssessmentResponse(BaseModel):
    __tablename__ = "assessment_responses"
    __table_args__ = (
        UniqueConstraint(
            "assessment_id", "criterion_id", name="uq_assessment_responses_criterion"
        ),
        Index("ix_assessment_responses_assessment_id", "assessment_id"),
    )

    assessment_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True),
        ForeignKey("fundability_assessments.id", ondelete="CASCADE"),
        nullable=False,
    )
    criterion_id: Mapped[str] = mapped_column(String(100), nullable=False)
    value: Mapped[Any] = mapped_column(JSONB, nullable=False)
    answered_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)

    assessment: Mapped["FundabilityAssessment"] = relationship(back_populates="responses")


class ScoreHistory(TimestampedModel):
    __tablename__ = "score_history"
    __table_args__ = (
        UniqueConstraint("owner_id", "recorded_on", name="uq_score_history_owner_day"),
        Index("ix_score_history_owner_id", "owner_id"),
    )

    owner_id: Mapped[uuid.UUID] = mapped_column(UUID(as_uuid=True), nullable=False)
    recorded_on: Mapped[date] = mapped_column(Date, nullable=False)
    assessment_id: Mapped[uuid.UUID | None] = mapped_column(
        UUID(as_uuid=True),
        ForeignKey("fundability_assessments.id", ondelete="SET NULL"),
    )
    overall_score: Mapped[int] = mapped_column(Integer, nullable=False)
    grade: Mapped[str] = mapped_column(String(3), nullable=False)
    category_percentages: Mapped[dict[str, int]] = mapped_column(
        JSONB, nullable=False, default=dict, server_default="{}"
    )


class LenderOpportunityRecord(Base, ModelMixin):
    """Administered lender/tradeline eligibility rules keyed by a stable slug."""

    __tablename__ = "lender_opportunities"
    __table_args__ = (Index("ix_lender_opportunities_kind", "kind"),)

    id: Mapped[str] = mapped_column(String(100), primary_key=True)
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    kind: Mapped[str] = mapped_column(String(20), nullable=False)
    product_type: Mapped[str] = mapped_column(String(50), nullable=False, default="")
    min_credit_score: Mapped[int] = mapped_column(
        Integer, nullable=False, default=0, server_default="0"
    )
    min_annual_revenue: Mapped[Decimal] = mapped_column(
        nullable=False, default=Decimal("0"), server_default="0"
    )
    min_time_in_business_months: Mapped[int] = mapped_column(
        Integer, nullable=False, default=0, server_default="0"
    )
    allowed_industries: Mapped[list[str]] = mapped_column(
        JSONB, nullable=False, default=list, server_default="[]"
    )
    excluded_industries: Mapped[list[str]] = mapped_column(
        JSONB, nullable=False, default=list, server_default="[]"
    )
    requires_personal_guarantee: Mapped[bool] = mapped_column(
        Boolean, nullable=False, default=False, server_default="false"
    )
    min_amount: Mapped[Decimal | None] = mapped_column()
    max_amount: Mapped[Decimal | None] = mapped_column()
    description: Mapped[str] = mapped_column(Text, nullable=False, default="")
    application_url: Mapped[str | None] = mapped_column(String(500))
    is_active: Mapped[bool] = mapped_column(
        Boolean, nullable=False, default=True, server_default="true"
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        server_default=func.now(),
        nullable=False,
    )
