"""PostgreSQL-backed AssessmentStore (SQLAlchemy async)."""

import uuid
from decimal import Decimal

import structlog
from sqlalchemy import delete, select
from sqlalchemy.dialects.postgresql import insert as pg_insert
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from app.models.fundability import (
    AssessmentResponse,
    FundabilityAssessment,
    LenderOpportunityRecord,
    ScoreHistory,
)
from app.modules.fundability.assessment import (
    Assessment,
    AssessmentNotFoundError,
    AssessmentStatus,
    ResponseEntry,
    ScoreHistoryEntry,
)
from app.modules.fundability.criteria import CriteriaCatalog, get_catalog
from app.modules.fundability.engine import CategoryScore, OverallScore
from app.modules.fundability.recommendations import Recommendation
from app.modules.matching.algorithm import LenderOpportunity, OpportunityKind
from app.modules.matching.catalog import SEED_OPPORTUNITIES

logger = structlog.get_logger()


# ── Row <-> domain mapping ───────────────────────────────────────────────────


def _to_domain(row: FundabilityAssessment) -> Assessment:
    return Assessment(
        id=row.id,
        owner_id=row.owner_id,
        catalog_version=row.catalog_version,
        industry=row.industry,
        responses={
            r.criterion_id: ResponseEntry(value=r.value, answered_at=r.answered_at)
            for r in row.responses
        },
        category_scores=[CategoryScore.from_dict(s) for s in row.category_scores or []],
        overall=OverallScore.from_dict(row.overall) if row.overall else None,
        recommendations=[Recommendation.from_dict(r) for r in row.recommendations or []],
        completion_percentage=row.completion_percentage,
        status=AssessmentStatus(row.status),
        created_at=row.created_at,
        updated_at=row.updated_at,
        scored_at=row.scored_at,
        completed_at=row.completed_at,
    )


def _snapshot_columns(assessment: Assessment) -> dict:
    return {
        "industry": assessment.industry,
        "status": assessment.status.value,
        "completion_percentage": assessment.completion_percentage,
        "overall_score": assessment.overall.percentage if assessment.overall else None,
        "grade": assessment.overall.grade if assessment.overall else None,
        "overall": assessment.overall.to_dict() if assessment.overall else None,
        "category_scores": [s.to_dict() for s in assessment.category_scores],
        "recommendations": [r.to_dict() for r in assessment.recommendations],
        "scored_at": assessment.scored_at,
        "completed_at": assessment.completed_at,
    }


def _opportunity_to_domain(row: LenderOpportunityRecord) -> LenderOpportunity:
    return LenderOpportunity(
        id=row.id,
        name=row.name,
        kind=OpportunityKind(row.kind),
        min_credit_score=row.min_credit_score,
        min_annual_revenue=Decimal(row.min_annual_revenue),
        min_time_in_business_months=row.min_time_in_business_months,
        allowed_industries=tuple(row.allowed_industries or ()),
        excluded_industries=tuple(row.excluded_industries or ()),
        requires_personal_guarantee=row.requires_personal_guarantee,
        product_type=row.product_type,
        min_amount=row.min_amount,
        max_amount=row.max_amount,
        description=row.description,
        application_url=row.application_url,
    )


def _opportunity_values(opportunity: LenderOpportunity) -> dict:
    return {
        "id": opportunity.id,
        "name": opportunity.name,
        "kind": opportunity.kind.value,
        "product_type": opportunity.product_type,
        "min_credit_score": opportunity.min_credit_score,
        "min_annual_revenue": opportunity.min_annual_revenue,
        "min_time_in_business_months": opportunity.min_time_in_business_months,
        "allowed_industries": list(opportunity.allowed_industries),
        "excluded_industries": list(opportunity.excluded_industries),
        "requires_personal_guarantee": opportunity.requires_personal_guarantee,
        "min_amount": opportunity.min_amount,
        "max_amount": opportunity.max_amount,
        "description": opportunity.description,
        "application_url": opportunity.application_url,
    }


async def seed_opportunities(db: AsyncSession) -> None:
    """Upsert the lender/tradeline catalog (run at startup)."""
    for opportunity in SEED_OPPORTUNITIES:
        values = _opportunity_values(opportunity)
        stmt = (
            pg_insert(LenderOpportunityRecord)
            .values(**values)
            .on_conflict_do_update(index_elements=["id"], set_=values)
        )
        await db.execute(stmt)
    await db.commit()


class SqlAssessmentStore:
    """AssessmentStore over PostgreSQL; each call runs in its own transaction."""

    def __init__(self, session_factory: async_sessionmaker[AsyncSession]):
        self._session_factory = session_factory

    async def load_catalog(self, version: str | None = None) -> CriteriaCatalog:
        return get_catalog(version)

    async def _get_row(
        self, db: AsyncSession, assessment_id: uuid.UUID, owner_id: uuid.UUID
    ) -> FundabilityAssessment:
        stmt = select(FundabilityAssessment).where(
            FundabilityAssessment.id == assessment_id,
            FundabilityAssessment.owner_id == owner_id,
        )
        row = (await db.execute(stmt)).scalar_one_or_none()
        if row is None:
            raise AssessmentNotFoundError(f"Assessment {assessment_id} not found")
        return row

    async def create_assessment(self, assessment: Assessment) -> Assessment:
        async with self._session_factory() as db, db.begin():
            row = FundabilityAssessment(
                id=assessment.id,
                owner_id=assessment.owner_id,
                catalog_version=assessment.catalog_version,
                created_at=assessment.created_at,
                updated_at=assessment.updated_at,
                **_snapshot_columns(assessment),
            )
            row.responses = [
                AssessmentResponse(
                    criterion_id=cid, value=entry.value, answered_at=entry.answered_at
                )
                for cid, entry in assessment.responses.items()
            ]
            db.add(row)
        logger.info(
            "assessment_created",
            assessment_id=str(assessment.id),
            owner_id=str(assessment.owner_id),
        )
        return assessment

    async def get_assessment(
        self, assessment_id: uuid.UUID, owner_id: uuid.UUID
    ) -> Assessment:
        async with self._session_factory() as db:
            return _to_domain(await self._get_row(db, assessment_id, owner_id))

    async def list_assessments(self, owner_id: uuid.UUID) -> list[Assessment]:
        async with self._session_factory() as db:
            stmt = (
                select(FundabilityAssessment)
                .where(FundabilityAssessment.owner_id == owner_id)
                .order_by(
                    FundabilityAssessment.created_at.desc(),
                    FundabilityAssessment.id.desc(),
                )
            )
            rows = (await db.execute(stmt)).scalars().all()
            return [_to_domain(r) for r in rows]

    async def save_assessment(self, assessment: Assessment) -> Assessment:
        async with self._session_factory() as db, db.begin():
            row = await self._get_row(db, assessment.id, assessment.owner_id)
            for column, value in _snapshot_columns(assessment).items():
                setattr(row, column, value)
            row.updated_at = assessment.updated_at

            # One current value per criterion: upsert present answers, drop cleared ones
            await db.execute(
                delete(AssessmentResponse).where(
                    AssessmentResponse.assessment_id == assessment.id,
                    AssessmentResponse.criterion_id.not_in(list(assessment.responses)),
                )
            )
            for cid, entry in assessment.responses.items():
                stmt = (
                    pg_insert(AssessmentResponse)
                    .values(
                        assessment_id=assessment.id,
                        criterion_id=cid,
                        value=entry.value,
                        answered_at=entry.answered_at,
                    )
                    .on_conflict_do_update(
                        constraint="uq_assessment_responses_criterion",
                        set_={"value": entry.value, "answered_at": entry.answered_at},
                    )
                )
                await db.execute(stmt)
        return assessment

    async def delete_assessment(
        self, assessment_id: uuid.UUID, owner_id: uuid.UUID
    ) -> None:
        async with self._session_factory() as db, db.begin():
            row = await self._get_row(db, assessment_id, owner_id)
            await db.delete(row)
        logger.info("assessment_deleted", assessment_id=str(assessment_id))

    async def list_opportunities(
        self, kind: OpportunityKind | None = None
    ) -> list[LenderOpportunity]:
        async with self._session_factory() as db:
            stmt = select(LenderOpportunityRecord).where(
                LenderOpportunityRecord.is_active.is_(True)
            )
            if kind is not None:
                stmt = stmt.where(LenderOpportunityRecord.kind == kind.value)
            rows = (await db.execute(stmt.order_by(LenderOpportunityRecord.id))).scalars().all()
            return [_opportunity_to_domain(r) for r in rows]

    async def append_score_history(self, entry: ScoreHistoryEntry) -> ScoreHistoryEntry:
        values = {
            "assessment_id": entry.assessment_id,
            "overall_score": entry.overall_score,
            "grade": entry.grade,
            "category_percentages": entry.category_percentages,
        }
        async with self._session_factory() as db, db.begin():
            stmt = (
                pg_insert(ScoreHistory)
                .values(owner_id=entry.owner_id, recorded_on=entry.recorded_on, **values)
                .on_conflict_do_update(constraint="uq_score_history_owner_day", set_=values)
            )
            await db.execute(stmt)
        return entry

    async def get_score_history(
        self, owner_id: uuid.UUID, limit: int = 30
    ) -> list[ScoreHistoryEntry]:
        async with self._session_factory() as db:
            stmt = (
                select(ScoreHistory)
                .where(ScoreHistory.owner_id == owner_id)
                .order_by(ScoreHistory.recorded_on.desc())
                .limit(limit)
            )
            rows = (await db.execute(stmt)).scalars().all()
            return [
                ScoreHistoryEntry(
                    owner_id=r.owner_id,
                    recorded_on=r.recorded_on,
                    assessment_id=r.assessment_id,
                    overall_score=r.overall_score,
                    grade=r.grade,
                    category_percentages=dict(r.category_percentages or {}),
                )
                for r in rows
            ]
