"""Persistence seam for assessments, score history and the opportunity catalog.

``AssessmentStore`` is the only persistence surface the service layer sees.
The in-memory implementation backs development and tests; the SQL
implementation lives in ``repository.py``.
"""

import asyncio
import copy
import uuid
from collections.abc import Iterable
from typing import Protocol

import structlog
from fastapi import Request

from app.modules.fundability.assessment import (
    Assessment,
    AssessmentNotFoundError,
    ScoreHistoryEntry,
)
from app.modules.fundability.criteria import CriteriaCatalog, get_catalog
from app.modules.matching.algorithm import LenderOpportunity, OpportunityKind
from app.modules.matching.catalog import SEED_OPPORTUNITIES

logger = structlog.get_logger()


class AssessmentStore(Protocol):
    async def load_catalog(self, version: str | None = None) -> CriteriaCatalog: ...

    async def create_assessment(self, assessment: Assessment) -> Assessment: ...

    async def get_assessment(
        self, assessment_id: uuid.UUID, owner_id: uuid.UUID
    ) -> Assessment: ...

    async def list_assessments(self, owner_id: uuid.UUID) -> list[Assessment]: ...

    async def save_assessment(self, assessment: Assessment) -> Assessment: ...

    async def delete_assessment(
        self, assessment_id: uuid.UUID, owner_id: uuid.UUID
    ) -> None: ...

    async def list_opportunities(
        self, kind: OpportunityKind | None = None
    ) -> list[LenderOpportunity]: ...

    async def append_score_history(self, entry: ScoreHistoryEntry) -> ScoreHistoryEntry: ...

    async def get_score_history(
        self, owner_id: uuid.UUID, limit: int = 30
    ) -> list[ScoreHistoryEntry]: ...


def get_store(request: Request) -> AssessmentStore:
    """FastAPI dependency: the store built by the app lifespan."""
    return request.app.state.store


class InMemoryAssessmentStore:
    """Dict-backed store; copies on the way in and out so callers never alias state."""

    def __init__(self, opportunities: Iterable[LenderOpportunity] = SEED_OPPORTUNITIES):
        self._lock = asyncio.Lock()
        self._assessments: dict[uuid.UUID, Assessment] = {}
        self._history: dict[tuple[uuid.UUID, object], ScoreHistoryEntry] = {}
        self._opportunities: dict[str, LenderOpportunity] = {o.id: o for o in opportunities}

    async def load_catalog(self, version: str | None = None) -> CriteriaCatalog:
        return get_catalog(version)

    async def create_assessment(self, assessment: Assessment) -> Assessment:
        async with self._lock:
            self._assessments[assessment.id] = copy.deepcopy(assessment)
        logger.info(
            "assessment_created",
            assessment_id=str(assessment.id),
            owner_id=str(assessment.owner_id),
        )
        return assessment

    async def get_assessment(
        self, assessment_id: uuid.UUID, owner_id: uuid.UUID
    ) -> Assessment:
        async with self._lock:
            stored = self._assessments.get(assessment_id)
            if stored is None or stored.owner_id != owner_id:
                raise AssessmentNotFoundError(f"Assessment {assessment_id} not found")
            return copy.deepcopy(stored)

    async def list_assessments(self, owner_id: uuid.UUID) -> list[Assessment]:
        async with self._lock:
            owned = [a for a in self._assessments.values() if a.owner_id == owner_id]
            owned.sort(key=lambda a: (a.created_at, str(a.id)), reverse=True)
            return [copy.deepcopy(a) for a in owned]

    async def save_assessment(self, assessment: Assessment) -> Assessment:
        async with self._lock:
            stored = self._assessments.get(assessment.id)
            if stored is None or stored.owner_id != assessment.owner_id:
                raise AssessmentNotFoundError(f"Assessment {assessment.id} not found")
            self._assessments[assessment.id] = copy.deepcopy(assessment)
        return assessment

    async def delete_assessment(
        self, assessment_id: uuid.UUID, owner_id: uuid.UUID
    ) -> None:
        async with self._lock:
            stored = self._assessments.get(assessment_id)
            if stored is None or stored.owner_id != owner_id:
                raise AssessmentNotFoundError(f"Assessment {assessment_id} not found")
            del self._assessments[assessment_id]
        logger.info("assessment_deleted", assessment_id=str(assessment_id))

    async def list_opportunities(
        self, kind: OpportunityKind | None = None
    ) -> list[LenderOpportunity]:
        items = sorted(self._opportunities.values(), key=lambda o: o.id)
        if kind is not None:
            items = [o for o in items if o.kind is kind]
        return items

    async def append_score_history(self, entry: ScoreHistoryEntry) -> ScoreHistoryEntry:
        async with self._lock:
            self._history[(entry.owner_id, entry.recorded_on)] = copy.deepcopy(entry)
        return entry

    async def get_score_history(
        self, owner_id: uuid.UUID, limit: int = 30
    ) -> list[ScoreHistoryEntry]:
        async with self._lock:
            entries = [e for (owner, _), e in self._history.items() if owner == owner_id]
        entries.sort(key=lambda e: e.recorded_on, reverse=True)
        return [copy.deepcopy(e) for e in entries[:limit]]
