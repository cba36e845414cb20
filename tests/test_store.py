"""Tests for the assessment stores: in-memory behaviour and SQL row mapping."""

import uuid
from datetime import date, timedelta
from decimal import Decimal

import pytest

from app.models.fundability import (
    AssessmentResponse,
    FundabilityAssessment,
    LenderOpportunityRecord,
)
from app.modules.fundability.assessment import (
    Assessment,
    AssessmentFrozenError,
    AssessmentNotFoundError,
    ScoreHistoryEntry,
)
from app.modules.fundability.criteria import get_catalog
from app.modules.fundability.engine import score_responses
from app.modules.fundability.recommendations import generate_recommendations
from app.modules.fundability.repository import (
    _opportunity_to_domain,
    _opportunity_values,
    _snapshot_columns,
    _to_domain,
)
from app.modules.fundability.store import InMemoryAssessmentStore
from app.modules.matching.algorithm import OpportunityKind
from app.modules.matching.catalog import SEED_OPPORTUNITIES
from tests.conftest import OTHER_USER_ID, SAMPLE_USER_ID


def _scored(responses: dict) -> Assessment:
    catalog = get_catalog()
    assessment = Assessment.start(SAMPLE_USER_ID, catalog.version, industry="Retail")
    assessment.record_responses(responses, catalog)
    result = score_responses(catalog, assessment.response_values())
    assessment.apply_score(
        result,
        generate_recommendations(
            result.category_scores, assessment.response_values(), catalog=catalog, industry="Retail"
        ),
    )
    return assessment


def _entry(day: date, score: int) -> ScoreHistoryEntry:
    return ScoreHistoryEntry(
        owner_id=SAMPLE_USER_ID,
        recorded_on=day,
        assessment_id=uuid.uuid4(),
        overall_score=score,
        grade="F",
    )


class TestAssessmentAggregate:
    def test_record_responses_drops_unknown_and_clears_none(self):
        catalog = get_catalog()
        assessment = Assessment.start(SAMPLE_USER_ID, catalog.version)
        dropped = assessment.record_responses({"ein": True, "zzz": 1, "aaa": 2}, catalog)
        assert dropped == ["aaa", "zzz"]
        assert assessment.response_values() == {"ein": True}

        assessment.record_responses({"ein": None}, catalog)
        assert assessment.response_values() == {}

    def test_answered_industry_wins(self):
        catalog = get_catalog()
        assessment = Assessment.start(SAMPLE_USER_ID, catalog.version, industry="Retail")
        assert assessment.effective_industry() == "Retail"
        assessment.record_responses({"industry": "Construction"}, catalog)
        assert assessment.effective_industry() == "Construction"

    def test_completed_assessment_is_frozen(self, strong_responses):
        assessment = _scored(strong_responses)
        assessment.complete()
        assert assessment.is_frozen
        with pytest.raises(AssessmentFrozenError):
            assessment.record_responses({"ein": False}, get_catalog())
        with pytest.raises(AssessmentFrozenError):
            assessment.complete()


@pytest.mark.anyio
class TestInMemoryStore:
    async def test_returns_copies(self, store: InMemoryAssessmentStore, strong_responses):
        assessment = _scored(strong_responses)
        await store.create_assessment(assessment)

        loaded = await store.get_assessment(assessment.id, SAMPLE_USER_ID)
        loaded.record_responses({"ein": False}, get_catalog())

        fresh = await store.get_assessment(assessment.id, SAMPLE_USER_ID)
        assert fresh.response_values()["ein"] is True

    async def test_owner_scoping(self, store: InMemoryAssessmentStore):
        assessment = _scored({})
        await store.create_assessment(assessment)
        with pytest.raises(AssessmentNotFoundError):
            await store.get_assessment(assessment.id, OTHER_USER_ID)
        with pytest.raises(AssessmentNotFoundError):
            await store.delete_assessment(assessment.id, OTHER_USER_ID)
        assert await store.list_assessments(OTHER_USER_ID) == []

    async def test_save_unknown_raises(self, store: InMemoryAssessmentStore):
        with pytest.raises(AssessmentNotFoundError):
            await store.save_assessment(_scored({}))

    async def test_history_upserts_per_day(self, store: InMemoryAssessmentStore):
        today = date(2026, 3, 2)
        await store.append_score_history(_entry(today - timedelta(days=1), 40))
        await store.append_score_history(_entry(today, 50))
        await store.append_score_history(_entry(today, 65))

        history = await store.get_score_history(SAMPLE_USER_ID)
        assert [(e.recorded_on, e.overall_score) for e in history] == [
            (today, 65),
            (today - timedelta(days=1), 40),
        ]
        assert len(await store.get_score_history(SAMPLE_USER_ID, limit=1)) == 1

    async def test_opportunities_by_kind(self, store: InMemoryAssessmentStore):
        all_items = await store.list_opportunities()
        assert len(all_items) == len(SEED_OPPORTUNITIES)
        tradelines = await store.list_opportunities(OpportunityKind.TRADELINE)
        assert {o.kind for o in tradelines} == {OpportunityKind.TRADELINE}


class TestRowMapping:
    def test_assessment_row_round_trip(self, strong_responses):
        assessment = _scored({**strong_responses, "ein": False})
        row = FundabilityAssessment(
            id=assessment.id,
            owner_id=assessment.owner_id,
            catalog_version=assessment.catalog_version,
            created_at=assessment.created_at,
            updated_at=assessment.updated_at,
            **_snapshot_columns(assessment),
        )
        row.responses = [
            AssessmentResponse(criterion_id=cid, value=entry.value, answered_at=entry.answered_at)
            for cid, entry in assessment.responses.items()
        ]

        restored = _to_domain(row)
        assert restored.response_values() == assessment.response_values()
        assert restored.overall == assessment.overall
        assert restored.category_scores == assessment.category_scores
        assert restored.recommendations == assessment.recommendations
        assert restored.status is assessment.status

    def test_opportunity_row_mapping(self):
        sba = next(o for o in SEED_OPPORTUNITIES if o.id == "sba-loan")
        row = LenderOpportunityRecord(**_opportunity_values(sba))
        restored = _opportunity_to_domain(row)
        assert restored == sba
        assert restored.min_annual_revenue == Decimal("150000")

        serialised = row.to_dict()
        assert serialised["min_annual_revenue"] == "150000"
        assert serialised["kind"] == "funding"
        assert repr(row) == "<LenderOpportunityRecord(id=sba-loan)>"
